"""
ddmetrics - in-process counters, gauges, histograms, meters and timers
flushed periodically as time-series points to a monitoring backend.
"""
from ddmetrics.core import *  # noqa: F401,F403
from ddmetrics.core import __all__ as _core_all
from ddmetrics.core.counter import (
    fetch_counter,
    fetch_flash_counter,
    register_counter,
    register_flash_counter,
)
from ddmetrics.core.gauge import fetch_gauge, fetch_gauge_f, register_gauge, register_gauge_f
from ddmetrics.core.histogram import (
    fetch_custom_histogram,
    fetch_histogram,
    register_custom_histogram,
    register_histogram,
)
from ddmetrics.core.meter import fetch_meter, register_meter
from ddmetrics.core.timer import (
    fetch_custom_timer,
    fetch_timer,
    register_custom_timer,
    register_timer,
)
from ddmetrics.reporter import (
    LookupResult,
    LookupStatus,
    MetricReporter,
    create_reporter_from_config,
)
from ddmetrics.transport import HTTPTransport, RecordingTransport, Transport

__version__ = "0.1.0"

__all__ = _core_all + [
    "fetch_counter",
    "fetch_flash_counter",
    "register_counter",
    "register_flash_counter",
    "fetch_gauge",
    "fetch_gauge_f",
    "register_gauge",
    "register_gauge_f",
    "fetch_custom_histogram",
    "fetch_histogram",
    "register_custom_histogram",
    "register_histogram",
    "fetch_meter",
    "register_meter",
    "fetch_custom_timer",
    "fetch_timer",
    "register_custom_timer",
    "register_timer",
    "LookupResult",
    "LookupStatus",
    "MetricReporter",
    "create_reporter_from_config",
    "HTTPTransport",
    "RecordingTransport",
    "Transport",
]
