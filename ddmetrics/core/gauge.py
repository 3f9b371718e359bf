"""
Gauges hold a single settable value.
"""
import threading
from typing import Iterable, List, Optional

from ddmetrics.core.metric import MT_GAUGE, Metric, Series


class Gauge(Metric):
    """Integer gauge."""

    def __init__(self, name: str, tags: Optional[Iterable[str]] = None):
        super().__init__(name, tags)
        self._value = 0
        self._lock = threading.Lock()

    def update(self, value: int) -> None:
        with self._lock:
            self._value = value

    def value(self) -> int:
        with self._lock:
            return self._value

    def flush(self, now: int) -> List[Series]:
        return [self._series(".value", now, self.value(), MT_GAUGE)]


class GaugeF(Metric):
    """Floating point gauge."""

    def __init__(self, name: str, tags: Optional[Iterable[str]] = None):
        super().__init__(name, tags)
        self._value = 0.0
        self._lock = threading.Lock()

    def update(self, value: float) -> None:
        with self._lock:
            self._value = float(value)

    def value(self) -> float:
        with self._lock:
            return self._value

    def flush(self, now: int) -> List[Series]:
        return [self._series(".value", now, self.value(), MT_GAUGE)]


def fetch_gauge(reporter, name: str, tags: Optional[Iterable[str]] = None) -> Gauge:
    """Return the registered gauge or register a new one."""
    return reporter.fetch_as(Gauge, lambda: Gauge(name, tags), name, tags)


def register_gauge(reporter, name: str, tags: Optional[Iterable[str]] = None) -> Gauge:
    m = Gauge(name, tags)
    reporter.register(m)
    return m


def fetch_gauge_f(reporter, name: str, tags: Optional[Iterable[str]] = None) -> GaugeF:
    """Return the registered float gauge or register a new one."""
    return reporter.fetch_as(GaugeF, lambda: GaugeF(name, tags), name, tags)


def register_gauge_f(reporter, name: str, tags: Optional[Iterable[str]] = None) -> GaugeF:
    m = GaugeF(name, tags)
    reporter.register(m)
    return m
