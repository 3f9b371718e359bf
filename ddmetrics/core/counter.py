"""
Counters: a lifetime total and a variant that reports deltas per flush.
"""
import threading
from typing import Iterable, List, Optional

from ddmetrics.core.metric import MT_COUNTER, Metric, Series


class Counter(Metric):
    """Signed integer counter."""

    def __init__(self, name: str, tags: Optional[Iterable[str]] = None):
        super().__init__(name, tags)
        self._count = 0
        self._lock = threading.Lock()

    def clear(self) -> None:
        """Set the counter to zero."""
        with self._lock:
            self._count = 0

    def count(self) -> int:
        with self._lock:
            return self._count

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= n

    def flush(self, now: int) -> List[Series]:
        return [self._series(".count", now, self.count(), MT_COUNTER)]


class FlashCounter(Counter):
    """
    Counter that reports only what happened since the previous flush.

    The flush subtracts exactly the amount it reports, so increments that
    land between the read and the subtraction show up in the next flush.
    """

    def flush(self, now: int) -> List[Series]:
        count = self.count()
        self.dec(count)
        return [self._series(".count", now, count, MT_COUNTER)]


def fetch_counter(reporter, name: str, tags: Optional[Iterable[str]] = None) -> Counter:
    """Return the registered counter or register a new one."""
    return reporter.fetch_as(Counter, lambda: Counter(name, tags), name, tags)


def register_counter(reporter, name: str, tags: Optional[Iterable[str]] = None) -> Counter:
    m = Counter(name, tags)
    reporter.register(m)
    return m


def fetch_flash_counter(reporter, name: str, tags: Optional[Iterable[str]] = None) -> FlashCounter:
    """Return the registered flash counter or register a new one."""
    return reporter.fetch_as(FlashCounter, lambda: FlashCounter(name, tags), name, tags)


def register_flash_counter(reporter, name: str, tags: Optional[Iterable[str]] = None) -> FlashCounter:
    m = FlashCounter(name, tags)
    reporter.register(m)
    return m
