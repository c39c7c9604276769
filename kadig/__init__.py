"""Kadig portfolio tracking service."""
