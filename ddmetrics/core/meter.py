"""
Meters count events and track their rate.

A meter keeps a lifetime count plus one-, five- and fifteen-minute
exponentially-weighted rates. The rates only move when the tick arbiter
calls ``tick()``; reading them between ticks returns the last computed
values.
"""
import threading
from typing import Iterable, List, Optional

from ddmetrics.core.arbiter import TickArbiter, get_default_arbiter
from ddmetrics.core.ewma import ewma1, ewma5, ewma15
from ddmetrics.core.metric import MT_GAUGE, Metric, Series


class Meter(Metric):
    """
    Event rate meter.

    Args:
        name: Metric name
        tags: Metric tags
        arbiter: Arbiter that ticks this meter (defaults to the process one)
    """

    def __init__(
        self,
        name: str,
        tags: Optional[Iterable[str]] = None,
        arbiter: Optional[TickArbiter] = None,
    ):
        super().__init__(name, tags)
        self._arbiter = arbiter if arbiter is not None else get_default_arbiter()
        self._clock = self._arbiter.clock
        self._start_time = self._clock()

        self._count = 0
        self._count_lock = threading.Lock()

        self._a1 = ewma1()
        self._a5 = ewma5()
        self._a15 = ewma15()

        self._lock = threading.Lock()
        self._rate1 = 0.0
        self._rate5 = 0.0
        self._rate15 = 0.0
        self._rate_mean = 0.0

        self._arbiter.add(self)

    @property
    def arbiter(self) -> TickArbiter:
        return self._arbiter

    def count(self) -> int:
        """Number of events recorded."""
        with self._count_lock:
            return self._count

    def mark(self, n: int = 1) -> None:
        """Record the occurrence of n events."""
        with self._count_lock:
            self._count += n
        self._a1.update(n)
        self._a5.update(n)
        self._a15.update(n)

    def rate1(self) -> float:
        """One-minute moving average rate of events per second."""
        with self._lock:
            return self._rate1

    def rate5(self) -> float:
        """Five-minute moving average rate of events per second."""
        with self._lock:
            return self._rate5

    def rate15(self) -> float:
        """Fifteen-minute moving average rate of events per second."""
        with self._lock:
            return self._rate15

    def rate_mean(self) -> float:
        """Mean rate of events per second since the meter was created."""
        with self._lock:
            return self._rate_mean

    def tick(self) -> None:
        self._a1.tick()
        self._a5.tick()
        self._a15.tick()

        count = self.count()
        elapsed = self._clock() - self._start_time
        with self._lock:
            self._rate1 = self._a1.rate()
            self._rate5 = self._a5.rate()
            self._rate15 = self._a15.rate()
            self._rate_mean = count / elapsed if elapsed > 0 else 0.0

    def _rate_series(self, now: int) -> List[Series]:
        with self._lock:
            rates = (self._rate_mean, self._rate1, self._rate5, self._rate15)
        return [
            self._series(suffix, now, rate, MT_GAUGE)
            for suffix, rate in zip((".rate", ".rate1", ".rate5", ".rate15"), rates)
        ]

    def flush(self, now: int) -> List[Series]:
        return self._rate_series(now)


def fetch_meter(reporter, name: str, tags: Optional[Iterable[str]] = None) -> Meter:
    """Return the registered meter or register a new one."""
    return reporter.fetch_as(Meter, lambda: Meter(name, tags), name, tags)


def register_meter(reporter, name: str, tags: Optional[Iterable[str]] = None) -> Meter:
    m = Meter(name, tags)
    reporter.register(m)
    return m
