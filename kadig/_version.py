"""Centralized version management for the Kadig service."""

from pathlib import Path

# Path: _version.py -> kadig -> project root (local) or /app (in container)
_version_file = Path(__file__).parent.parent / "VERSION"
if not _version_file.exists():
    _version_file = Path(__file__).parent / "VERSION"
VERSION = _version_file.read_text().strip() if _version_file.exists() else "0.0.0"
