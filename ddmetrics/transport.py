"""
Transports deliver a flushed series batch to the monitoring backend.

The reporter only needs ``post_series(batch)``: return on success, raise
``TransportError`` on any failure. ``HTTPTransport`` talks to a
Datadog-compatible ``/series`` endpoint; ``RecordingTransport`` keeps
batches in memory.
"""
import threading
from typing import List, Optional, Protocol, Sequence

import requests

from ddmetrics.common.exceptions import TransportError
from ddmetrics.common.logging_config import get_logger
from ddmetrics.core.metric import Series

logger = get_logger(__name__)

DEFAULT_ENDPOINT = "https://app.datadoghq.com/api/v1"
ACCEPTED_STATUS = (200, 202)


class Transport(Protocol):
    def post_series(self, series: Sequence[Series]) -> None:
        ...


class HTTPTransport:
    """
    POSTs series batches as JSON.

    The body is ``{"series": [...]}`` with one object per point, sent to
    ``<endpoint>/series?api_key=<key>``. 200 and 202 count as success.

    Args:
        api_key: Backend API key
        endpoint: API base URL
        timeout: Request timeout in seconds
        session: Optional ``requests.Session`` (connection reuse, testing)
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def series_url(self) -> str:
        return f"{self.endpoint}/series?api_key={self.api_key}"

    def post_series(self, series: Sequence[Series]) -> None:
        """
        Send one batch.

        Raises:
            TransportError: On connection errors or a non-success status
        """
        payload = {"series": [s.to_dict() for s in series]}
        try:
            resp = self.session.post(self.series_url(), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Series POST failed: {e}") from e

        if resp.status_code not in ACCEPTED_STATUS:
            raise TransportError(
                f"Bad backend response: '{resp.status_code} {resp.reason}'"
            )
        logger.debug(f"Posted {len(series)} series points ({resp.status_code})")

    def close(self) -> None:
        self.session.close()


class RecordingTransport:
    """Keeps every posted batch in memory."""

    def __init__(self) -> None:
        self.batches: List[List[Series]] = []
        self._lock = threading.Lock()

    def post_series(self, series: Sequence[Series]) -> None:
        with self._lock:
            self.batches.append(list(series))

    @property
    def last_batch(self) -> List[Series]:
        with self._lock:
            return self.batches[-1] if self.batches else []
