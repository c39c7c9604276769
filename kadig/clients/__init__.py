"""Outbound clients: Pluggy aggregator and BCB indicators."""

from kadig.clients.bcb import BCBClient, IndicatorError, Indicators, fetch_indicators
from kadig.clients.pluggy import ItemNotFoundError, PluggyClient, PluggyError

__all__ = [
    "BCBClient",
    "IndicatorError",
    "Indicators",
    "fetch_indicators",
    "ItemNotFoundError",
    "PluggyClient",
    "PluggyError",
]
