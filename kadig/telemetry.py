"""OpenTelemetry metrics and logs for the Kadig service."""

import logging
import os
from decimal import Decimal

from opentelemetry import metrics
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from kadig._version import VERSION

logger = logging.getLogger(__name__)

# Module-level state
_initialized = False
_meter = None
_log_handler = None

# Counters (cumulative)
_movements_total = None
_movement_value_total = None
_pluggy_syncs_total = None
_orphaned_connections_total = None
_snapshots_total = None

# Gauges (current state) - using ObservableGauge with callbacks
_gauge_callbacks = {}


def setup_telemetry() -> bool:
    """Initialize OpenTelemetry metrics and logs.

    Returns True if telemetry was initialized, False if disabled.
    """
    global _initialized, _meter, _log_handler
    global _movements_total, _movement_value_total, _pluggy_syncs_total
    global _orphaned_connections_total, _snapshots_total

    if _initialized:
        return True

    if os.getenv("OTLP_ENABLED", "true").lower() == "false":
        return False

    otlp_endpoint = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/metrics")
    export_interval = int(os.getenv("OTLP_EXPORT_INTERVAL", "5000"))

    resource = Resource.create({
        "service.name": "kadig",
        "service.version": VERSION,
    })

    exporter = OTLPMetricExporter(endpoint=otlp_endpoint)
    reader = PeriodicExportingMetricReader(
        exporter,
        export_interval_millis=export_interval,
    )
    provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(provider)

    _meter = metrics.get_meter("kadig", VERSION)

    _movements_total = _meter.create_counter(
        "kadig_movements_total",
        description="Ledger movements recorded",
        unit="1",
    )

    _movement_value_total = _meter.create_counter(
        "kadig_movement_value_total",
        description="Cash value of ledger movements",
        unit="BRL",
    )

    _pluggy_syncs_total = _meter.create_counter(
        "kadig_pluggy_syncs_total",
        description="Aggregator synchronisations by outcome",
        unit="1",
    )

    _orphaned_connections_total = _meter.create_counter(
        "kadig_orphaned_connections_total",
        description="Connections removed because the aggregator no longer knows the item",
        unit="1",
    )

    _snapshots_total = _meter.create_counter(
        "kadig_snapshots_total",
        description="Portfolio history snapshots written",
        unit="1",
    )

    # === LOGS ===
    logs_endpoint = otlp_endpoint.replace("/v1/metrics", "/v1/logs")
    log_exporter = OTLPLogExporter(endpoint=logs_endpoint)
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))
    set_logger_provider(logger_provider)

    _log_handler = LoggingHandler(
        level=logging.INFO,
        logger_provider=logger_provider,
    )

    _initialized = True
    return True


def get_log_handler() -> LoggingHandler | None:
    """Get the OTLP logging handler to attach to Python loggers."""
    return _log_handler


def is_enabled() -> bool:
    """Check if telemetry is initialized and enabled."""
    return _initialized


# --- Counter update functions ---

def record_movement(movement_type: str, value: Decimal) -> None:
    """Record a ledger movement."""
    if not _initialized:
        return

    attributes = {"type": movement_type}
    _movements_total.add(1, attributes)
    _movement_value_total.add(float(abs(value)), attributes)


def record_pluggy_sync(outcome: str) -> None:
    """Record a connection sync (ok, orphaned, error)."""
    if not _initialized:
        return

    _pluggy_syncs_total.add(1, {"outcome": outcome})


def record_orphaned_connection(connector_name: str | None) -> None:
    """Record a connection removed because its item vanished."""
    if not _initialized:
        return

    _orphaned_connections_total.add(1, {"connector": connector_name or "unknown"})


def record_snapshots(processed: int, errors: int) -> None:
    """Record a snapshot run."""
    if not _initialized:
        return

    if processed:
        _snapshots_total.add(processed, {"result": "ok"})
    if errors:
        _snapshots_total.add(errors, {"result": "error"})


# --- Gauge registration for observable metrics ---

def register_gauge_callback(name: str, callback, description: str, unit: str = "1") -> None:
    """Register a callback for an observable gauge.

    The callback should return an iterable of (value, attributes) tuples.
    """
    if not _initialized or _meter is None:
        return

    if name in _gauge_callbacks:
        return

    def wrapped_callback(options):
        try:
            for value, attrs in callback():
                yield metrics.Observation(value, attrs)
        except Exception:
            logger.exception("Gauge callback %s failed", name)

    _meter.create_observable_gauge(
        name,
        callbacks=[wrapped_callback],
        description=description,
        unit=unit,
    )
    _gauge_callbacks[name] = callback


# --- Portfolio metrics storage ---
# Latest values, exported as observable gauges
_portfolio_values: dict[str, float] = {}  # portfolio_id -> total_value
_portfolio_gains: dict[str, float] = {}  # portfolio_id -> total_gain


def _portfolio_value_callback():
    for portfolio_id, value in _portfolio_values.items():
        yield (value, {"portfolio_id": portfolio_id})


def _portfolio_gain_callback():
    for portfolio_id, gain in _portfolio_gains.items():
        yield (gain, {"portfolio_id": portfolio_id})


def setup_portfolio_metrics() -> None:
    """Register portfolio observable gauges.

    Call this after setup_telemetry().
    """
    if not _initialized or _meter is None:
        return

    register_gauge_callback(
        "kadig_portfolio_total_value",
        _portfolio_value_callback,
        "Current market value of a portfolio",
        "BRL",
    )

    register_gauge_callback(
        "kadig_portfolio_total_gain",
        _portfolio_gain_callback,
        "Unrealised gain of a portfolio",
        "BRL",
    )


def record_portfolio_value(portfolio_id: str, total_value: float, total_gain: float) -> None:
    """Record portfolio value metrics.

    Called when portfolio summaries are read via the API.
    """
    if not _initialized:
        return

    _portfolio_values[portfolio_id] = total_value
    _portfolio_gains[portfolio_id] = total_gain


def forget_portfolio(portfolio_id: str) -> None:
    """Stop exporting gauges for a deleted portfolio."""
    _portfolio_values.pop(portfolio_id, None)
    _portfolio_gains.pop(portfolio_id, None)
