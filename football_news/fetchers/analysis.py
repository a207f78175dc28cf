from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Sequence

from ..models import RawItem
from ..processors.text import parse_datetime
from ..utils.logging import get_logger
from .base import FetchError, RequestPacer, SourceFetcher
from .http import get_json

logger = get_logger("fn.fetchers.analysis")

NEWSAPI_EVERYTHING_URL = "https://newsapi.org/v2/everything"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisSearchFetcher(SourceFetcher):
    """Curated-domain news search with a multi-day lookback (NewsAPI ``/v2/everything``)."""

    kind = "analysis"
    query_driven = True

    def __init__(
        self,
        api_key: str,
        *,
        domains: Sequence[str] = (),
        lookback_days: int = 7,
        language: str = "en",
        timeout: float = 20,
        request_delay: float = 0.5,
        clock: Callable[[], datetime] = _utcnow,
        max_parallel: int = 1,
    ) -> None:
        if not api_key:
            raise ValueError("AnalysisSearchFetcher requires an API key")
        self.api_key = api_key
        self.domains = list(domains)
        self.lookback_days = lookback_days
        self.language = language
        self.timeout = timeout
        self.pacer = RequestPacer(request_delay)
        self.clock = clock
        self.max_parallel = max_parallel

    def build_params(self, query: str, max_results: int) -> dict:
        since = (self.clock() - timedelta(days=self.lookback_days)).date()
        params = {
            "q": query,
            "from": since.isoformat(),
            "sortBy": "relevancy",
            "language": self.language,
            "pageSize": max_results,
            "apiKey": self.api_key,
        }
        if self.domains:
            params["domains"] = ",".join(self.domains)
        return params

    def fetch(self, query: str, max_results: int) -> List[RawItem]:
        with self.pacer:
            payload = get_json(NEWSAPI_EVERYTHING_URL, params=self.build_params(query, max_results), timeout=self.timeout)

        if payload.get("status") == "error":
            raise FetchError(f"Analysis search error for {query!r}: {payload.get('code')} {payload.get('message')}")
        articles = payload.get("articles")
        if not isinstance(articles, list):
            raise FetchError(f"Malformed analysis-search response for {query!r}: no articles list")

        items: List[RawItem] = []
        for article in articles[:max_results]:
            if not isinstance(article, dict):
                continue
            source = article.get("source")
            if not isinstance(source, dict):
                source = {}
            items.append(
                RawItem(
                    title=article.get("title") or "",
                    link=article.get("url") or "",
                    snippet=article.get("description"),
                    body=article.get("content"),
                    outlet=source.get("name"),
                    published=parse_datetime(article.get("publishedAt")),
                    image_url=article.get("urlToImage"),
                )
            )
        logger.info("Analysis search %r returned %d items", query, len(items))
        return items
