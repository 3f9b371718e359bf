"""
Prometheus metrics describing the reporter itself.

The library ships application metrics to the monitoring backend; these
Prometheus metrics answer whether that shipping works: how many report
cycles ran, how many failed, how long they took and how many series
points went out. They can be scraped from a dedicated HTTP server.

Usage:
    from ddmetrics.monitoring.metrics import get_metrics_collector, start_metrics_server

    start_metrics_server(port=9090)

    metrics = get_metrics_collector()
    metrics.inc_reports()
    metrics.observe_report_duration(0.042)
"""
import threading
from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    start_http_server,
)

from ddmetrics.common.logging_config import get_logger

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Prometheus metric definitions (module-level singletons)
# ---------------------------------------------------------------------------

# -- Counters --
REPORTS_TOTAL = Counter(
    "ddmetrics_reports_total",
    "Total number of report cycles that delivered their batch",
)

REPORT_FAILURES_TOTAL = Counter(
    "ddmetrics_report_failures_total",
    "Total number of report cycles that failed",
)

SERIES_SENT_TOTAL = Counter(
    "ddmetrics_series_sent_total",
    "Total number of series points handed to the transport successfully",
)

SKIPPED_TICKS_TOTAL = Counter(
    "ddmetrics_skipped_ticks_total",
    "Report deadlines skipped because a previous cycle overran",
)

TICK_ERRORS_TOTAL = Counter(
    "ddmetrics_tick_errors_total",
    "Total number of metric tick() calls that raised",
)

# -- Histograms --
REPORT_DURATION = Histogram(
    "ddmetrics_report_duration_seconds",
    "Duration of a flush-and-send report cycle in seconds",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# -- Gauges --
REGISTERED_METRICS = Gauge(
    "ddmetrics_registered_metrics",
    "Number of metrics in the reporter registry at the last report",
)

TICKABLE_METRICS = Gauge(
    "ddmetrics_tickable_metrics",
    "Number of metrics attached to the tick arbiter",
)

# -- Info --
BUILD_INFO = Info(
    "ddmetrics",
    "ddmetrics library version info",
)


class ReporterMetricsCollector:
    """
    Convenience wrapper around the reporter's Prometheus metrics.

    All methods are thread-safe (Prometheus client handles it).
    """

    def __init__(self) -> None:
        BUILD_INFO.info({"version": "0.1.0"})

    # -- Counters -----------------------------------------------------------

    def inc_reports(self, count: int = 1) -> None:
        REPORTS_TOTAL.inc(count)

    def inc_report_failures(self, count: int = 1) -> None:
        REPORT_FAILURES_TOTAL.inc(count)

    def inc_series_sent(self, count: int = 1) -> None:
        SERIES_SENT_TOTAL.inc(count)

    def inc_skipped_ticks(self, count: int = 1) -> None:
        SKIPPED_TICKS_TOTAL.inc(count)

    def inc_tick_errors(self, count: int = 1) -> None:
        TICK_ERRORS_TOTAL.inc(count)

    # -- Histograms ---------------------------------------------------------

    def observe_report_duration(self, seconds: float) -> None:
        """Record the duration of one report cycle."""
        REPORT_DURATION.observe(seconds)

    def report_duration_timer(self):
        """
        Return a context-manager / decorator that measures a report cycle.

        Usage:
            with metrics.report_duration_timer():
                reporter.report()
        """
        return REPORT_DURATION.time()

    # -- Gauges -------------------------------------------------------------

    def set_registered_metrics(self, count: int) -> None:
        REGISTERED_METRICS.set(count)

    def set_tickable_metrics(self, count: int) -> None:
        TICKABLE_METRICS.set(count)

    # -- Accessors for testing ----------------------------------------------

    @staticmethod
    def get_reports_total() -> float:
        return REPORTS_TOTAL._value.get()

    @staticmethod
    def get_report_failures_total() -> float:
        return REPORT_FAILURES_TOTAL._value.get()

    @staticmethod
    def get_series_sent_total() -> float:
        return SERIES_SENT_TOTAL._value.get()

    @staticmethod
    def get_skipped_ticks_total() -> float:
        return SKIPPED_TICKS_TOTAL._value.get()

    @staticmethod
    def get_tick_errors_total() -> float:
        return TICK_ERRORS_TOTAL._value.get()

    @staticmethod
    def get_registered_metrics() -> float:
        return REGISTERED_METRICS._value.get()

    @staticmethod
    def get_tickable_metrics() -> float:
        return TICKABLE_METRICS._value.get()


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------

_metrics_collector: Optional[ReporterMetricsCollector] = None
_metrics_lock = threading.Lock()


def get_metrics_collector() -> ReporterMetricsCollector:
    """
    Return the singleton ``ReporterMetricsCollector`` instance.
    Creates one on first call (thread-safe).
    """
    global _metrics_collector
    if _metrics_collector is None:
        with _metrics_lock:
            if _metrics_collector is None:
                _metrics_collector = ReporterMetricsCollector()
    return _metrics_collector


def start_metrics_server(port: int = 9090) -> None:
    """
    Start the Prometheus metrics HTTP server on *port*.

    This is a thin wrapper around ``prometheus_client.start_http_server``
    that catches ``OSError`` when the port is already in use.
    """
    try:
        start_http_server(port)
        logger.info(
            f"Prometheus metrics server started on port {port}  "
            f"->  http://localhost:{port}/metrics"
        )
    except OSError as exc:
        logger.error(f"Failed to start metrics server on port {port}: {exc}")


def reset_metrics() -> None:
    """
    Reset all counters / gauges to zero.
    Useful in test suites to get deterministic values.
    """
    global _metrics_collector
    for c in (
        REPORTS_TOTAL,
        REPORT_FAILURES_TOTAL,
        SERIES_SENT_TOTAL,
        SKIPPED_TICKS_TOTAL,
        TICK_ERRORS_TOTAL,
    ):
        c._value.set(0)

    for g in (REGISTERED_METRICS, TICKABLE_METRICS):
        g._value.set(0)

    _metrics_collector = None
