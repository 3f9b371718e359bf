"""
Core metrics - samples, rate tracking and the metric kinds built on them.
"""
from ddmetrics.core.arbiter import TickArbiter, get_default_arbiter, reset_default_arbiter
from ddmetrics.core.counter import Counter, FlashCounter
from ddmetrics.core.ewma import EWMA, ewma1, ewma5, ewma15
from ddmetrics.core.gauge import Gauge, GaugeF
from ddmetrics.core.histogram import Histogram
from ddmetrics.core.meter import Meter
from ddmetrics.core.metric import MT_COUNTER, MT_GAUGE, Metric, Series, metric_id
from ddmetrics.core.sample import (
    ExpDecaySample,
    FlashSample,
    Sample,
    SampleSnapshot,
    UniformSample,
    new_default_sample,
)
from ddmetrics.core.timer import MICROSECOND, MILLISECOND, NANOSECOND, SECOND, Timer

__all__ = [
    "TickArbiter",
    "get_default_arbiter",
    "reset_default_arbiter",
    "Counter",
    "FlashCounter",
    "EWMA",
    "ewma1",
    "ewma5",
    "ewma15",
    "Gauge",
    "GaugeF",
    "Histogram",
    "Meter",
    "MT_COUNTER",
    "MT_GAUGE",
    "Metric",
    "Series",
    "metric_id",
    "ExpDecaySample",
    "FlashSample",
    "Sample",
    "SampleSnapshot",
    "UniformSample",
    "new_default_sample",
    "NANOSECOND",
    "MICROSECOND",
    "MILLISECOND",
    "SECOND",
    "Timer",
]
