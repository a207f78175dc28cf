from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable, List, Optional, Set

from ..models import Article, QuotaRecord


class StoreUnavailableError(Exception):
    """Raised when the article store or the usage counters cannot be reached."""


class ArticleStore(ABC):
    """Key-value article collection, unique on url."""

    @abstractmethod
    def insert_if_absent(self, articles: Iterable[Article]) -> int:
        """Insert articles whose url is not yet stored; return how many were written."""

    @abstractmethod
    def existing_urls(self, urls: Iterable[str]) -> Set[str]:
        ...

    @abstractmethod
    def recent_titles(self, since: datetime) -> List[str]:
        ...

    @abstractmethod
    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete non-featured articles published before ``cutoff``."""


class UsageCounterStore(ABC):
    """Counter collection keyed by (source, day) with atomic increments."""

    @abstractmethod
    def increment(
        self,
        source: str,
        day: date,
        count: int,
        keywords: Iterable[str],
        *,
        at: datetime,
        daily_limit: Optional[int] = None,
        monthly_limit: Optional[int] = None,
    ) -> None:
        ...

    @abstractmethod
    def get(self, source: str, day: date) -> Optional[QuotaRecord]:
        ...

    @abstractmethod
    def month_total(self, source: str, day: date) -> int:
        """Calls recorded for ``source`` from the first of ``day``'s month up to ``day``."""
