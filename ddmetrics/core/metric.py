"""
Metric base class, metric identity and the series point emitted on flush.
"""
from typing import Any, Dict, Iterable, List, Optional, Union

MT_COUNTER = "counter"
MT_GAUGE = "gauge"

Number = Union[int, float]


def metric_id(name: str, tags: Optional[Iterable[str]] = None) -> str:
    """
    Build the registry key for a metric.

    Tags are sorted so the same tag set in any order maps to one ID.
    The caller's sequence is left untouched.
    """
    return name + "|" + ",".join(sorted(tags or ()))


class Series:
    """One (timestamp, value) observation destined for the backend."""

    __slots__ = ("metric", "timestamp", "value", "type", "host", "tags")

    def __init__(
        self,
        metric: str,
        timestamp: int,
        value: Number,
        type: str,
        tags: Optional[Iterable[str]] = None,
        host: Optional[str] = None,
    ):
        self.metric = metric
        self.timestamp = timestamp
        self.value = value
        self.type = type
        self.tags: List[str] = list(tags or ())
        self.host = host

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape of the point; empty host and tags are omitted."""
        data: Dict[str, Any] = {
            "metric": self.metric,
            "points": [[self.timestamp, self.value]],
            "type": self.type,
        }
        if self.host:
            data["host"] = self.host
        if self.tags:
            data["tags"] = list(self.tags)
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Series):
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self.__slots__)

    def __repr__(self) -> str:
        return (
            f"Series({self.metric!r}, {self.timestamp}, {self.value!r}, "
            f"{self.type!r}, tags={self.tags!r}, host={self.host!r})"
        )


class Metric:
    """
    Base for every reportable metric.

    Subclasses implement ``flush(now)`` and return the series points that
    describe their current state.
    """

    def __init__(self, name: str, tags: Optional[Iterable[str]] = None):
        self._name = name
        self._tags: List[str] = list(tags or ())

    @property
    def name(self) -> str:
        return self._name

    @property
    def tags(self) -> List[str]:
        return list(self._tags)

    @property
    def id(self) -> str:
        return metric_id(self._name, self._tags)

    def flush(self, now: int) -> List[Series]:
        raise NotImplementedError

    def _series(self, suffix: str, now: int, value: Number, mtype: str = MT_GAUGE) -> Series:
        return Series(self._name + suffix, now, value, mtype, self._tags)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r}, tags={self._tags!r})"
