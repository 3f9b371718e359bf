"""
Histograms summarise the distribution of recorded values.
"""
from typing import Iterable, List, Optional

from ddmetrics.core.metric import MT_COUNTER, MT_GAUGE, Metric, Series
from ddmetrics.core.sample import Sample, SampleSnapshot, new_default_sample

PERCENTILES = (0.5, 0.75, 0.95, 0.99)
PERCENTILE_SUFFIXES = (".median", ".percentile.75", ".percentile.95", ".percentile.99")


def distribution_series(
    metric: Metric, snap: SampleSnapshot, now: int, unit: float = 1
) -> List[Series]:
    """
    Series describing a snapshot: count, min, max, mean, stddev and the
    standard percentiles. Every value except the count is divided by ``unit``.
    """
    scores = snap.percentiles(PERCENTILES)
    if unit == 1:
        low, high = snap.min(), snap.max()
    else:
        low, high = snap.min() / unit, snap.max() / unit

    series = [
        metric._series(".count", now, snap.count(), MT_COUNTER),
        metric._series(".min", now, low, MT_GAUGE),
        metric._series(".max", now, high, MT_GAUGE),
        metric._series(".mean", now, snap.mean() / unit, MT_GAUGE),
        metric._series(".stddev", now, snap.stddev() / unit, MT_GAUGE),
    ]
    for suffix, score in zip(PERCENTILE_SUFFIXES, scores):
        series.append(metric._series(suffix, now, score / unit, MT_GAUGE))
    return series


class Histogram(Metric):
    """
    Distribution of integer values backed by a sample.

    Args:
        name: Metric name
        sample: Reservoir to use (defaults to an exponentially-decaying one)
        tags: Metric tags
    """

    def __init__(
        self,
        name: str,
        sample: Optional[Sample] = None,
        tags: Optional[Iterable[str]] = None,
    ):
        super().__init__(name, tags)
        self.sample = sample if sample is not None else new_default_sample()

    def clear(self) -> None:
        self.sample.clear()

    def snapshot(self) -> SampleSnapshot:
        return self.sample.snapshot()

    def update(self, value: int) -> None:
        self.sample.update(value)

    def flush(self, now: int) -> List[Series]:
        return distribution_series(self, self.snapshot(), now)


def fetch_histogram(reporter, name: str, tags: Optional[Iterable[str]] = None) -> Histogram:
    """Return the registered histogram or register one with a default sample."""
    return reporter.fetch_as(Histogram, lambda: Histogram(name, None, tags), name, tags)


def register_histogram(reporter, name: str, tags: Optional[Iterable[str]] = None) -> Histogram:
    return register_custom_histogram(reporter, name, new_default_sample(), tags)


def fetch_custom_histogram(
    reporter, name: str, sample: Sample, tags: Optional[Iterable[str]] = None
) -> Histogram:
    """Return the registered histogram or register one backed by ``sample``."""
    return reporter.fetch_as(Histogram, lambda: Histogram(name, sample, tags), name, tags)


def register_custom_histogram(
    reporter, name: str, sample: Sample, tags: Optional[Iterable[str]] = None
) -> Histogram:
    m = Histogram(name, sample, tags)
    reporter.register(m)
    return m
