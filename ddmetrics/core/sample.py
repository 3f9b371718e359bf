"""
Bounded reservoirs of observed integer values and their snapshots.

Three reservoirs are provided:
    ExpDecaySample - forward-decaying priority reservoir, biased to recent values
    UniformSample  - Vitter's Algorithm R, every observation equally likely
    FlashSample    - uniform reservoir emptied by every snapshot

Statistics are never computed on a live reservoir. ``snapshot()`` copies
the retained values under the sample's lock and the returned
``SampleSnapshot`` derives everything from that frozen copy.
"""
import heapq
import math
import random
import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple

RESCALE_THRESHOLD = 60 * 60  # seconds

DEFAULT_RESERVOIR_SIZE = 1028
DEFAULT_ALPHA = 0.015


class SampleSnapshot:
    """
    Read-only copy of a sample.

    Values are sorted once at construction; percentiles, min and max read
    the sorted tuple directly.
    """

    __slots__ = ("_count", "_values")

    def __init__(self, count: int, values: Sequence[int]):
        self._count = count
        self._values: Tuple[int, ...] = tuple(sorted(values))

    def count(self) -> int:
        """Number of updates seen by the sample when the snapshot was taken."""
        return self._count

    def size(self) -> int:
        return len(self._values)

    def values(self) -> List[int]:
        return list(self._values)

    def min(self) -> int:
        if not self._values:
            return 0
        return self._values[0]

    def max(self) -> int:
        if not self._values:
            return 0
        return self._values[-1]

    def sum(self) -> int:
        return sum(self._values)

    def mean(self) -> float:
        if not self._values:
            return 0.0
        return self.sum() / len(self._values)

    def variance(self) -> float:
        """Population variance of the retained values."""
        size = len(self._values)
        if size == 0:
            return 0.0
        m = self.mean()
        return sum((v - m) ** 2 for v in self._values) / size

    def stddev(self) -> float:
        return math.sqrt(self.variance())

    def percentile(self, p: float) -> float:
        return self.percentiles([p])[0]

    def percentiles(self, ps: Sequence[float]) -> List[float]:
        """
        Interpolated percentiles.

        For each ``p`` in [0, 1] the position ``p * (n + 1)`` is taken on
        the sorted values (1-based). Positions below 1 clamp to the minimum,
        positions at or past ``n`` clamp to the maximum, anything between is
        linearly interpolated between its two neighbours.

        Args:
            ps: Requested percentiles as fractions (0.5 = median)

        Returns:
            One score per requested percentile, all 0.0 when empty
        """
        values = self._values
        size = len(values)
        scores = [0.0] * len(ps)
        if size == 0:
            return scores

        for i, p in enumerate(ps):
            pos = p * (size + 1)
            if pos < 1.0:
                scores[i] = float(values[0])
            elif pos >= size:
                scores[i] = float(values[-1])
            else:
                lower = float(values[int(pos) - 1])
                upper = float(values[int(pos)])
                scores[i] = lower + (pos - math.floor(pos)) * (upper - lower)
        return scores

    def __repr__(self) -> str:
        return f"SampleSnapshot(count={self._count}, size={len(self._values)})"


class Sample:
    """
    A bounded, statistically representative selection from a value stream.

    All public methods are safe for concurrent callers.
    """

    def clear(self) -> None:
        raise NotImplementedError

    def update(self, value: int) -> None:
        raise NotImplementedError

    def snapshot(self) -> SampleSnapshot:
        raise NotImplementedError

    def size(self) -> int:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def values(self) -> List[int]:
        raise NotImplementedError


class ExpDecaySample(Sample):
    """
    Exponentially-decaying sample using a forward-decaying priority reservoir.

    See Cormode et al., "Forward Decay: A Practical Time Decay Model for
    Streaming Systems". Every value gets the priority
    ``exp(alpha * (t - t0)) / u`` with ``u`` uniform in (0, 1]; the
    reservoir keeps the ``reservoir_size`` highest priorities in a
    ``heapq`` min-heap so the weakest entry sits at index 0.

    Priorities grow without bound as ``t - t0`` grows, so once an hour the
    landmark ``t0`` moves to the present and every stored key is scaled
    down by the same factor. Scaling by a positive constant keeps both the
    relative order and the heap layout.

    Args:
        reservoir_size: Maximum number of retained values
        alpha: Decay factor; larger values favour recent observations
        clock: Seconds source (monotonic by default)
        rng: Random source, seedable for tests
    """

    def __init__(
        self,
        reservoir_size: int = DEFAULT_RESERVOIR_SIZE,
        alpha: float = DEFAULT_ALPHA,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        self.reservoir_size = reservoir_size
        self.alpha = alpha
        self._clock = clock
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._count = 0
        self._values: List[Tuple[float, int]] = []
        self._t0 = clock()
        self._t1 = self._t0 + RESCALE_THRESHOLD

    def clear(self) -> None:
        with self._lock:
            self._count = 0
            self._values = []
            self._t0 = self._clock()
            self._t1 = self._t0 + RESCALE_THRESHOLD

    def count(self) -> int:
        """Number of updates recorded; may exceed the reservoir size."""
        with self._lock:
            return self._count

    def size(self) -> int:
        """Number of retained values; at most the reservoir size."""
        with self._lock:
            return len(self._values)

    def values(self) -> List[int]:
        with self._lock:
            return [v for _, v in self._values]

    def snapshot(self) -> SampleSnapshot:
        with self._lock:
            return SampleSnapshot(self._count, [v for _, v in self._values])

    def update(self, value: int) -> None:
        self._update_at(self._clock(), value)

    def _update_at(self, t: float, value: int) -> None:
        with self._lock:
            self._count += 1
            # 1.0 - random() lies in (0, 1], never zero
            key = math.exp((t - self._t0) * self.alpha) / (1.0 - self._rng.random())
            if len(self._values) >= self.reservoir_size:
                heapq.heapreplace(self._values, (key, value))
            else:
                heapq.heappush(self._values, (key, value))

            if t > self._t1:
                self._rescale(t)

    def _rescale(self, t: float) -> None:
        # Caller holds the lock
        factor = math.exp(-self.alpha * (t - self._t0))
        self._values = [(k * factor, v) for k, v in self._values]
        self._t0 = t
        self._t1 = t + RESCALE_THRESHOLD


class UniformSample(Sample):
    """
    Uniform sample using Vitter's Algorithm R.

    Each of the ``count()`` values seen so far has the same probability of
    being in the reservoir.
    """

    def __init__(self, reservoir_size: int, rng: Optional[random.Random] = None):
        self.reservoir_size = reservoir_size
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._count = 0
        self._values: List[int] = []

    def clear(self) -> None:
        with self._lock:
            self._count = 0
            self._values = []

    def count(self) -> int:
        with self._lock:
            return self._count

    def size(self) -> int:
        with self._lock:
            return len(self._values)

    def values(self) -> List[int]:
        with self._lock:
            return list(self._values)

    def snapshot(self) -> SampleSnapshot:
        with self._lock:
            return SampleSnapshot(self._count, self._values)

    def update(self, value: int) -> None:
        with self._lock:
            self._count += 1
            if len(self._values) < self.reservoir_size:
                self._values.append(value)
                return
            r = self._rng.randrange(self._count)
            if r < self.reservoir_size:
                self._values[r] = value


class FlashSample(UniformSample):
    """Uniform sample that is emptied by every snapshot."""

    def snapshot(self) -> SampleSnapshot:
        with self._lock:
            snap = SampleSnapshot(self._count, self._values)
            self._count = 0
            self._values = []
            return snap


def new_default_sample() -> Sample:
    """
    Exponentially-decaying sample with the reservoir size and alpha of
    UNIX load averages (1028 values, alpha 0.015).
    """
    return ExpDecaySample(DEFAULT_RESERVOIR_SIZE, DEFAULT_ALPHA)
