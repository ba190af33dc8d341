"""OpenTelemetry metrics and logs for the investment ledger."""

import logging

from opentelemetry import metrics
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from ledger._version import VERSION
from ledger.config import OTLP_ENABLED, OTLP_ENDPOINT, OTLP_EXPORT_INTERVAL


# Module-level state
_initialized = False
_meter = None
_log_handler = None

# Counters (cumulative)
_transactions_recorded_total = None
_transactions_reversed_total = None
_sells_rejected_total = None
_holdings_deleted_total = None

# Gauges (current state) - using ObservableGauge with callbacks
_gauge_callbacks = {}


def setup_telemetry() -> bool:
    """Initialize OpenTelemetry metrics and log export.

    Returns True if telemetry was initialized, False if disabled.
    """
    global _initialized, _meter, _log_handler
    global _transactions_recorded_total, _transactions_reversed_total
    global _sells_rejected_total, _holdings_deleted_total

    if _initialized:
        return True

    if not OTLP_ENABLED:
        return False

    resource = Resource.create({
        "service.name": "investment-ledger",
        "service.version": VERSION,
    })

    # === METRICS ===
    exporter = OTLPMetricExporter(endpoint=OTLP_ENDPOINT)
    reader = PeriodicExportingMetricReader(
        exporter,
        export_interval_millis=OTLP_EXPORT_INTERVAL,
    )
    provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(provider)

    _meter = metrics.get_meter("investment_ledger", VERSION)

    _transactions_recorded_total = _meter.create_counter(
        "ledger_transactions_recorded_total",
        description="Ledger transactions recorded",
        unit="1",
    )

    _transactions_reversed_total = _meter.create_counter(
        "ledger_transactions_reversed_total",
        description="Ledger transactions deleted and reversed",
        unit="1",
    )

    _sells_rejected_total = _meter.create_counter(
        "ledger_sells_rejected_total",
        description="Sells rejected for insufficient shares",
        unit="1",
    )

    _holdings_deleted_total = _meter.create_counter(
        "ledger_holdings_deleted_total",
        description="Holdings cascade-deleted",
        unit="1",
    )

    # === LOGS ===
    logs_endpoint = OTLP_ENDPOINT.replace("/v1/metrics", "/v1/logs")
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

def record_transaction(tx_type: str) -> None:
    """Record a transaction being added to the ledger."""
    if not _initialized:
        return

    _transactions_recorded_total.add(1, {"type": tx_type})


def record_reversal(tx_type: str) -> None:
    """Record a transaction being deleted and its effect reversed."""
    if not _initialized:
        return

    _transactions_reversed_total.add(1, {"type": tx_type})


def record_sell_rejected() -> None:
    if not _initialized:
        return

    _sells_rejected_total.add(1)


def record_holding_deleted(transactions_deleted: int) -> None:
    """Record a cascade delete of a holding and its ledger."""
    if not _initialized:
        return

    _holdings_deleted_total.add(1)
    if transactions_deleted:
        _transactions_reversed_total.add(transactions_deleted, {"type": "cascade"})


# --- Gauge registration for observable metrics ---

def register_gauge_callback(name: str, callback, description: str, unit: str = "1") -> None:
    """Register a callback for an observable gauge.

    The callback should return an iterable of (value, attributes) tuples.
    """
    if not _initialized or _meter is None:
        return

    if name in _gauge_callbacks:
        return  # Already registered

    def wrapped_callback(options):
        for value, attrs in callback():
            yield metrics.Observation(value, attrs)

    _meter.create_observable_gauge(
        name,
        callbacks=[wrapped_callback],
        description=description,
        unit=unit,
    )
    _gauge_callbacks[name] = callback


# --- Portfolio metrics storage ---
# Latest values per user, exported as observable gauges
_portfolio_values: dict[str, float] = {}  # user_id -> total_value
_portfolio_gain_loss: dict[str, float] = {}  # user_id -> total_gain_loss


def _portfolio_value_callback():
    for user_id, value in _portfolio_values.items():
        yield (value, {"user_id": user_id})


def _portfolio_gain_loss_callback():
    for user_id, gain_loss in _portfolio_gain_loss.items():
        yield (gain_loss, {"user_id": user_id})


def setup_portfolio_metrics() -> None:
    """Register portfolio-related observable gauges.

    Call this after setup_telemetry() to register portfolio metrics.
    """
    if not _initialized or _meter is None:
        return

    register_gauge_callback(
        "portfolio_total_value",
        _portfolio_value_callback,
        "Market value of all holdings",
        "currency",
    )

    register_gauge_callback(
        "portfolio_unrealized_gain_loss",
        _portfolio_gain_loss_callback,
        "Unrealized gain/loss across all holdings",
        "currency",
    )


def record_portfolio_value(user_id: str, total_value: float, gain_loss: float) -> None:
    """Record portfolio value metrics for a user.

    Called when the portfolio summary is accessed via API.
    """
    if not _initialized:
        return

    _portfolio_values[user_id] = total_value
    _portfolio_gain_loss[user_id] = gain_loss
