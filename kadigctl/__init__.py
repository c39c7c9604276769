"""Command line client for the Kadig API."""
