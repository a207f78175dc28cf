from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..models import RawItem
from ..planning import MatchCalendar
from ..processors.text import parse_datetime
from ..utils.logging import get_logger
from .base import FetchError, RequestPacer, SourceFetcher
from .http import get_json

logger = get_logger("fn.fetchers.breaking")

BRAVE_NEWS_URL = "https://api.search.brave.com/res/v1/news/search"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BreakingNewsFetcher(SourceFetcher):
    """News search tuned for just-happened events (Brave News Search API).

    Freshness is the past day, narrowed to the past hour while the source
    region is inside its live-match window.
    """

    kind = "breaking"
    query_driven = True

    def __init__(
        self,
        api_key: str,
        *,
        calendar: Optional[MatchCalendar] = None,
        timeout: float = 20,
        request_delay: float = 1.0,
        search_lang: str = "en",
        clock: Callable[[], datetime] = _utcnow,
        max_parallel: int = 1,
    ) -> None:
        if not api_key:
            raise ValueError("BreakingNewsFetcher requires an API key")
        self.api_key = api_key
        self.calendar = calendar or MatchCalendar()
        self.timeout = timeout
        self.pacer = RequestPacer(request_delay)
        self.search_lang = search_lang
        self.clock = clock
        self.max_parallel = max_parallel

    def freshness(self) -> str:
        return "ph" if self.calendar.in_live_window(self.clock()) else "pd"

    def fetch(self, query: str, max_results: int) -> List[RawItem]:
        params = {
            "q": query,
            "count": max_results,
            "freshness": self.freshness(),
            "search_lang": self.search_lang,
        }
        headers = {"Accept": "application/json", "X-Subscription-Token": self.api_key}
        with self.pacer:
            payload = get_json(BRAVE_NEWS_URL, params=params, headers=headers, timeout=self.timeout)

        results = payload.get("results")
        if not isinstance(results, list):
            raise FetchError(f"Malformed breaking-search response for {query!r}: no results list")

        items: List[RawItem] = []
        for result in results[:max_results]:
            if not isinstance(result, dict):
                continue
            meta = result.get("meta_url")
            meta = meta if isinstance(meta, dict) else {}
            thumb = result.get("thumbnail")
            thumb = thumb if isinstance(thumb, dict) else {}
            items.append(
                RawItem(
                    title=result.get("title") or "",
                    link=result.get("url") or "",
                    snippet=result.get("description"),
                    hostname=meta.get("hostname"),
                    published=parse_datetime(result.get("page_age")),
                    age=result.get("age"),
                    image_url=thumb.get("src"),
                )
            )
        logger.info("Breaking search %r returned %d items", query, len(items))
        return items
