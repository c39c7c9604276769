"""Configuration file management for the kadig CLI."""

from pathlib import Path

import yaml

CONFIG_FILENAME = ".kadig.yaml"
USER_CONFIG_DIR = Path.home() / ".kadig"

VALID_KEYS = {"api_url", "api_key"}


def find_config() -> Path | None:
    """Find config file (project first, then user).

    Returns:
        Path to config file if found, None otherwise.
    """
    project_config = Path(CONFIG_FILENAME)
    if project_config.exists():
        return project_config

    user_config = USER_CONFIG_DIR / "config.yaml"
    if user_config.exists():
        return user_config

    return None


def load_config() -> dict:
    """Load config from file.

    Returns:
        Config dictionary, or empty dict if no config found.
    """
    path = find_config()
    if path is None:
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def save_config(config: dict, path: Path | None = None) -> Path:
    """Save config to file.

    Args:
        config: Config dictionary to save.
        path: Path to save to. Defaults to the project config file.

    Returns:
        Path where config was saved.
    """
    if path is None:
        path = Path(CONFIG_FILENAME)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False)
    return path


def get_default_config() -> dict:
    return {
        "api_url": "http://localhost:8000",
        "api_key": "",
    }
