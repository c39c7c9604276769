"""Central Bank of Brazil (BCB) SGS client - CDI and IPCA indicators."""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from datetime import date, datetime

import httpx

logger = logging.getLogger(__name__)

BCB_API_URL = os.getenv("BCB_API_URL", "https://api.bcb.gov.br")

# SGS series codes
CDI_SERIES = 12  # Daily CDI rate, % per day
IPCA_SERIES = 433  # Monthly IPCA, % per month

CDI_WINDOW = 252  # Business days in a year
IPCA_WINDOW = 12

# Series are published once a day
INDICATORS_TTL = float(os.getenv("BCB_INDICATORS_TTL", "3600"))


class IndicatorError(Exception):
    """The indicator series could not be fetched or parsed."""


@dataclass
class Indicators:
    """Accumulated 12-month benchmarks, in percent."""

    cdi_12m: float
    ipca_12m: float
    cdi_daily: float  # Latest daily CDI rate
    cdi_annualized: float  # Latest daily rate compounded over a year
    ipca_monthly: float  # Latest monthly IPCA
    reference_date: date | None = None


def accumulate(rates: list[float]) -> float:
    """Compound a sequence of percent rates into one accumulated percent."""
    factor = 1.0
    for rate in rates:
        factor *= 1 + rate / 100
    return (factor - 1) * 100


def _parse_series(payload) -> list[tuple[date, float]]:
    if not isinstance(payload, list):
        raise IndicatorError("Unexpected series payload")
    points = []
    for entry in payload:
        try:
            day = datetime.strptime(entry["data"], "%d/%m/%Y").date()
            value = float(str(entry["valor"]).replace(",", "."))
        except (KeyError, TypeError, ValueError) as e:
            raise IndicatorError(f"Malformed series entry: {entry!r}") from e
        points.append((day, value))
    return points


class BCBClient:
    """Fetches SGS series from the BCB open-data API."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 5.0,
        cache_ttl: float = INDICATORS_TTL,
    ):
        self.base_url = (base_url or BCB_API_URL).rstrip("/")
        self._transport = transport
        self._timeout = timeout
        self._cache_ttl = cache_ttl
        self._cached: tuple[float, Indicators] | None = None

    async def get_series(self, code: int, last: int) -> list[tuple[date, float]]:
        """Get the last N points of an SGS series, oldest first."""
        path = f"/dados/serie/bcdata.sgs.{code}/dados/ultimos/{last}"
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(path, params={"formato": "json"})
        except httpx.HTTPError as e:
            raise IndicatorError(f"BCB request failed: {e}") from e

        if response.status_code >= 400:
            raise IndicatorError(f"BCB series {code} returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise IndicatorError(f"BCB series {code} returned invalid JSON") from e

        points = _parse_series(payload)
        points.sort(key=lambda p: p[0])
        return points

    async def fetch_indicators(self) -> Indicators:
        """Accumulated CDI over the last 252 days and IPCA over the last 12 months.

        Results are kept for cache_ttl seconds. Failures are not cached.

        Raises:
            IndicatorError: If either series is unavailable
        """
        if self._cached is not None:
            fetched_at, indicators = self._cached
            if time.monotonic() - fetched_at < self._cache_ttl:
                return indicators

        cdi, ipca = await asyncio.gather(
            self.get_series(CDI_SERIES, CDI_WINDOW),
            self.get_series(IPCA_SERIES, IPCA_WINDOW),
        )
        if not cdi or not ipca:
            raise IndicatorError("Empty indicator series")

        cdi_rates = [value for _, value in cdi[-CDI_WINDOW:]]
        ipca_rates = [value for _, value in ipca[-IPCA_WINDOW:]]
        cdi_daily = cdi_rates[-1]

        indicators = Indicators(
            cdi_12m=accumulate(cdi_rates),
            ipca_12m=accumulate(ipca_rates),
            cdi_daily=cdi_daily,
            cdi_annualized=((1 + cdi_daily / 100) ** CDI_WINDOW - 1) * 100,
            ipca_monthly=ipca_rates[-1],
            reference_date=cdi[-1][0],
        )
        self._cached = (time.monotonic(), indicators)
        return indicators


async def fetch_indicators(client: BCBClient | None = None) -> Indicators | None:
    """Fetch indicators, logging and returning None when BCB is unavailable.

    Callers fall back to the analytics defaults on None.
    """
    client = client or get_bcb_client()
    try:
        return await client.fetch_indicators()
    except IndicatorError as e:
        logger.warning("Economic indicators unavailable, using defaults: %s", e)
        return None


_bcb_client: BCBClient | None = None


def get_bcb_client() -> BCBClient:
    """Dependency that provides the process-wide indicators client and its cache."""
    global _bcb_client
    if _bcb_client is None:
        _bcb_client = BCBClient()
    return _bcb_client
