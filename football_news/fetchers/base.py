from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import RawItem


class FetchError(Exception):
    """A single fetch failed: network error, timeout, non-2xx status or malformed body."""


class RequestPacer:
    """Serialize calls to one upstream and keep at least ``delay`` seconds between them.

    Use as a context manager around each outbound request.
    """

    def __init__(self, delay: float = 0.0, *, sleep=time.sleep, monotonic=time.monotonic) -> None:
        self.delay = max(0.0, delay)
        self._lock = threading.Lock()
        self._last: Optional[float] = None
        self._sleep = sleep
        self._monotonic = monotonic

    def __enter__(self) -> "RequestPacer":
        self._lock.acquire()
        if self._last is not None:
            wait = self.delay - (self._monotonic() - self._last)
            if wait > 0:
                self._sleep(wait)
        return self

    def __exit__(self, *exc_info) -> None:
        self._last = self._monotonic()
        self._lock.release()


class SourceFetcher(ABC):
    """One pluggable source of raw items.

    ``query_driven`` fetchers consume the scheduler's plan and count against
    the quota ledger; others (RSS) poll a fixed list given by
    :meth:`default_queries`. ``max_parallel`` bounds concurrent fetches of
    this source within one run.
    """

    kind: str = ""
    query_driven: bool = True
    max_parallel: int = 1

    @abstractmethod
    def fetch(self, query: str, max_results: int) -> List[RawItem]:
        """Return raw items for ``query``; raise :class:`FetchError` on failure."""

    def default_queries(self) -> List[str]:
        return []
