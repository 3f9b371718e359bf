"""
Unit tests for Meter, Histogram and Timer.
"""
import math
import random
import time
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from ddmetrics.core.arbiter import TickArbiter
from ddmetrics.core.histogram import Histogram
from ddmetrics.core.meter import Meter
from ddmetrics.core.metric import MT_COUNTER, MT_GAUGE
from ddmetrics.core.sample import ExpDecaySample, UniformSample
from ddmetrics.core.timer import MICROSECOND, MILLISECOND, NANOSECOND, SECOND, Timer


class FakeClock:
    def __init__(self, start: float = 500.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def arbiter(clock):
    return TickArbiter(clock=clock, autostart=False, collector=MagicMock())


def by_name(series):
    return {s.metric: s for s in series}


# -----------------------------------------------------------------------
# Meter
# -----------------------------------------------------------------------

class TestMeter:
    """Tests for Meter."""

    def test_registers_with_arbiter(self, arbiter):
        m = Meter("jobs", arbiter=arbiter)
        assert arbiter.metrics() == [m]
        assert not arbiter.is_running

    def test_mark_counts(self, arbiter):
        m = Meter("jobs", arbiter=arbiter)
        m.mark()
        m.mark(4)
        assert m.count() == 5

    def test_rates_zero_before_tick(self, arbiter):
        m = Meter("jobs", arbiter=arbiter)
        m.mark(3)
        assert m.rate1() == 0.0
        assert m.rate_mean() == 0.0

    def test_tick_updates_rates(self, arbiter, clock):
        m = Meter("jobs", arbiter=arbiter)
        m.mark(3)
        clock.advance(5)
        arbiter.tick_all()

        assert m.rate1() == pytest.approx(0.6)
        assert m.rate5() == pytest.approx(0.6)
        assert m.rate15() == pytest.approx(0.6)
        assert m.rate_mean() == pytest.approx(3 / 5)

    def test_rates_decay(self, arbiter, clock):
        m = Meter("jobs", arbiter=arbiter)
        m.mark(3)
        for _ in range(13):
            clock.advance(5)
            arbiter.tick_all()

        assert m.rate1() == pytest.approx(0.6 * math.exp(-1.0))
        assert m.rate1() < m.rate5() < m.rate15()
        assert m.rate_mean() == pytest.approx(3 / 65)

    def test_rate_mean_zero_without_elapsed_time(self, arbiter):
        m = Meter("jobs", arbiter=arbiter)
        m.mark(3)
        m.tick()
        assert m.rate_mean() == 0.0

    def test_flush(self, arbiter, clock):
        m = Meter("jobs", ["queue:a"], arbiter=arbiter)
        m.mark(3)
        clock.advance(5)
        arbiter.tick_all()

        series = m.flush(1234)
        assert [s.metric for s in series] == [
            "jobs.rate", "jobs.rate1", "jobs.rate5", "jobs.rate15",
        ]
        assert all(s.type == MT_GAUGE for s in series)
        assert all(s.timestamp == 1234 for s in series)
        assert all(s.tags == ["queue:a"] for s in series)
        assert series[1].value == pytest.approx(0.6)

    def test_uses_default_arbiter(self):
        from ddmetrics.core.arbiter import get_default_arbiter, reset_default_arbiter
        reset_default_arbiter()
        try:
            m = Meter("jobs")
            default = get_default_arbiter()
            assert m in default.metrics()
            assert default.is_running
        finally:
            reset_default_arbiter()

    def test_empty_explicit_arbiter_is_kept(self, clock):
        # A fresh arbiter has len() == 0 and must still be used
        from ddmetrics.core.arbiter import get_default_arbiter, reset_default_arbiter
        reset_default_arbiter()
        try:
            arbiter = TickArbiter(clock=clock, autostart=False, collector=MagicMock())
            assert len(arbiter) == 0
            m = Meter("jobs", arbiter=arbiter)
            t = Timer("latency", arbiter=arbiter)
            assert m.arbiter is arbiter
            assert t.arbiter is arbiter
            assert arbiter.metrics() == [m, t]
            assert get_default_arbiter().metrics() == []
            assert not get_default_arbiter().is_running
        finally:
            reset_default_arbiter()


# -----------------------------------------------------------------------
# Histogram
# -----------------------------------------------------------------------

class TestHistogram:
    """Tests for Histogram."""

    def test_default_sample(self):
        h = Histogram("payload")
        assert isinstance(h.sample, ExpDecaySample)

    def test_update_and_snapshot(self):
        h = Histogram("payload", UniformSample(100))
        for v in (1, 2, 3, 4, 5):
            h.update(v)
        snap = h.snapshot()
        assert snap.count() == 5
        assert snap.mean() == 3.0

    def test_flush(self):
        h = Histogram("payload", UniformSample(100), ["svc:api"])
        for v in (1, 2, 3, 4, 5):
            h.update(v)

        series = h.flush(42)
        assert [s.metric for s in series] == [
            "payload.count",
            "payload.min",
            "payload.max",
            "payload.mean",
            "payload.stddev",
            "payload.median",
            "payload.percentile.75",
            "payload.percentile.95",
            "payload.percentile.99",
        ]
        values = by_name(series)
        assert values["payload.count"].type == MT_COUNTER
        assert values["payload.count"].value == 5
        assert values["payload.min"].value == 1
        assert values["payload.max"].value == 5
        assert values["payload.mean"].value == 3.0
        assert values["payload.stddev"].value == pytest.approx(math.sqrt(2))
        assert values["payload.median"].value == 3.0
        assert values["payload.percentile.75"].value == pytest.approx(4.5)
        assert values["payload.percentile.99"].value == 5.0
        assert all(s.type == MT_GAUGE for s in series[1:])

    def test_flush_empty(self):
        h = Histogram("payload", UniformSample(10))
        values = by_name(h.flush(1))
        assert values["payload.count"].value == 0
        assert values["payload.max"].value == 0
        assert values["payload.percentile.95"].value == 0.0

    def test_clear(self):
        h = Histogram("payload", UniformSample(10))
        h.update(5)
        h.clear()
        assert h.snapshot().count() == 0


# -----------------------------------------------------------------------
# Timer
# -----------------------------------------------------------------------

class TestTimer:
    """Tests for Timer."""

    def test_unit_constants(self):
        assert NANOSECOND == 1
        assert MICROSECOND == 1000
        assert MILLISECOND == 1000000
        assert SECOND == 1000000000

    def test_update_feeds_sample_and_meter(self, arbiter):
        t = Timer("db.query", MILLISECOND, UniformSample(100), arbiter=arbiter)
        t.update(5 * MILLISECOND)
        t.update(15 * MILLISECOND)
        assert t.count() == 2
        assert t.snapshot().values() == [5000000, 15000000]

    def test_update_accepts_timedelta(self, arbiter):
        t = Timer("db.query", MILLISECOND, UniformSample(100), arbiter=arbiter)
        t.update(timedelta(milliseconds=250))
        assert t.snapshot().values() == [250 * MILLISECOND]

    def test_flush_normalizes_units(self, arbiter, clock):
        t = Timer("db.query", MILLISECOND, UniformSample(100), ["db:main"], arbiter=arbiter)
        for ms in (10, 20, 30, 40, 50):
            t.update(ms * MILLISECOND)
        clock.advance(5)
        arbiter.tick_all()

        series = t.flush(7)
        assert [s.metric for s in series] == [
            "db.query.rate",
            "db.query.rate1",
            "db.query.rate5",
            "db.query.rate15",
            "db.query.count",
            "db.query.min",
            "db.query.max",
            "db.query.mean",
            "db.query.stddev",
            "db.query.median",
            "db.query.percentile.75",
            "db.query.percentile.95",
            "db.query.percentile.99",
        ]
        values = by_name(series)
        assert values["db.query.rate1"].value == pytest.approx(1.0)
        assert values["db.query.rate"].value == pytest.approx(1.0)
        assert values["db.query.count"].value == 5
        assert values["db.query.count"].type == MT_COUNTER
        assert values["db.query.min"].value == pytest.approx(10.0)
        assert values["db.query.max"].value == pytest.approx(50.0)
        assert values["db.query.mean"].value == pytest.approx(30.0)
        assert values["db.query.stddev"].value == pytest.approx(math.sqrt(200))
        assert values["db.query.median"].value == pytest.approx(30.0)
        assert values["db.query.percentile.75"].value == pytest.approx(45.0)
        assert all(s.tags == ["db:main"] for s in series)

    def test_time_context_manager(self, arbiter):
        t = Timer("work", MILLISECOND, UniformSample(10), arbiter=arbiter)
        with t.time():
            time.sleep(0.01)
        assert t.count() == 1
        assert t.snapshot().values()[0] >= 10 * MILLISECOND

    def test_time_decorator(self, arbiter):
        t = Timer("work", MILLISECOND, UniformSample(10), arbiter=arbiter)

        @t.time()
        def job(x):
            return x * 2

        assert job(21) == 42
        assert job(1) == 2
        assert t.count() == 2

    def test_update_since(self, arbiter):
        t = Timer("work", MILLISECOND, UniformSample(10), arbiter=arbiter)
        start = time.perf_counter_ns()
        t.update_since(start)
        assert t.count() == 1
        assert t.snapshot().values()[0] >= 0

    def test_clear_keeps_meter(self, arbiter):
        t = Timer("work", MILLISECOND, UniformSample(10), arbiter=arbiter)
        t.update(1)
        t.clear()
        assert t.snapshot().count() == 0
        assert t.count() == 1
