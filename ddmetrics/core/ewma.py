"""
Exponentially-weighted moving average of an event rate.

The EWMA assumes ``tick()`` is called every ``TICK_INTERVAL`` seconds.
``update()`` only touches the uncounted accumulator under its own lock, so
producers never wait on the rate computation.
"""
import math
import threading

TICK_INTERVAL = 5.0  # seconds


def _alpha(minutes: float) -> float:
    return 1 - math.exp(-TICK_INTERVAL / 60.0 / minutes)


M1_ALPHA = _alpha(1)
M5_ALPHA = _alpha(5)
M15_ALPHA = _alpha(15)


class EWMA:
    """
    Tracks uncounted events and folds them into a smoothed rate on each tick.

    Args:
        alpha: Blending factor applied on every tick after the first
    """

    def __init__(self, alpha: float):
        self.alpha = alpha
        self._uncounted = 0
        self._uncounted_lock = threading.Lock()
        self._rate = 0.0
        self._initialized = False
        self._lock = threading.Lock()

    def update(self, n: int) -> None:
        """Add n uncounted events."""
        with self._uncounted_lock:
            self._uncounted += n

    def tick(self) -> None:
        """Drain uncounted events into the moving average."""
        with self._uncounted_lock:
            count = self._uncounted
            self._uncounted = 0

        instant_rate = count / TICK_INTERVAL
        with self._lock:
            if self._initialized:
                self._rate += self.alpha * (instant_rate - self._rate)
            else:
                self._initialized = True
                self._rate = instant_rate

    def rate(self) -> float:
        """Moving average rate in events per second."""
        with self._lock:
            return self._rate

    def __repr__(self) -> str:
        return f"EWMA(alpha={self.alpha:.6f}, rate={self.rate():.6f})"


def ewma1() -> EWMA:
    """EWMA for a one-minute moving average."""
    return EWMA(M1_ALPHA)


def ewma5() -> EWMA:
    """EWMA for a five-minute moving average."""
    return EWMA(M5_ALPHA)


def ewma15() -> EWMA:
    """EWMA for a fifteen-minute moving average."""
    return EWMA(M15_ALPHA)
