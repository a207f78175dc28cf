from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import feedparser
from bs4 import BeautifulSoup

from ..models import FeedSource, RawItem
from ..utils.logging import get_logger
from .base import FetchError, SourceFetcher
from .http import get_bytes

logger = get_logger("fn.fetchers.rss")


def _parse_datetime(entry: dict) -> Optional[datetime]:
    # feedparser normalizes dates to UTC struct_time in 'published_parsed' or 'updated_parsed'
    for key in ("published_parsed", "updated_parsed"):
        tm = entry.get(key)
        if tm:
            try:
                return datetime(*tm[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                return None
    return None


def _extract_image(entry: dict) -> Optional[str]:
    for enclosure in entry.get("enclosures") or []:
        if str(enclosure.get("type", "")).startswith("image") and enclosure.get("href"):
            return enclosure["href"]
    for key in ("media_content", "media_thumbnail"):
        for media in entry.get(key) or []:
            if media.get("url"):
                return media["url"]
    summary = entry.get("summary") or ""
    if "<img" in summary:
        img = BeautifulSoup(summary, "html.parser").find("img")
        if img and img.get("src"):
            return img["src"]
    return None


class RSSFetcher(SourceFetcher):
    """Poll a fixed list of outlet feeds, one fetch per feed.

    The "query" handed to :meth:`fetch` is the feed name. Entries that
    mention none of the football keywords are discarded here.
    """

    kind = "rss"
    query_driven = False

    def __init__(
        self,
        feeds: Sequence[FeedSource],
        *,
        keywords: Iterable[str] = (),
        timeout: float = 20,
        max_parallel: int = 4,
    ) -> None:
        self.feeds: Dict[str, FeedSource] = {f.name: f for f in feeds}
        words = sorted({k.lower() for k in keywords if k}, key=len, reverse=True)
        self._relevance = (
            re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")", re.IGNORECASE) if words else None
        )
        self.timeout = timeout
        self.max_parallel = max_parallel

    def default_queries(self) -> List[str]:
        return list(self.feeds)

    def is_relevant(self, text: str) -> bool:
        return self._relevance is None or bool(self._relevance.search(text))

    def fetch(self, query: str, max_results: int) -> List[RawItem]:
        feed = self.feeds.get(query)
        if feed is None:
            raise FetchError(f"Unknown feed: {query}")

        logger.debug("Fetching RSS from %s", feed.url)
        parsed = feedparser.parse(get_bytes(feed.url, timeout=self.timeout))
        entries = getattr(parsed, "entries", []) or []
        if getattr(parsed, "bozo", False):
            # feedparser sets bozo on feed errors but may still parse entries
            logger.debug("Feed 'bozo' flagged for %s: %s", feed.url, getattr(parsed, "bozo_exception", None))
            if not entries:
                raise FetchError(f"Unparseable feed {feed.url}: {getattr(parsed, 'bozo_exception', None)}")

        items: List[RawItem] = []
        skipped = 0
        for entry in entries:
            title = entry.get("title") or ""
            summary = entry.get("summary")
            if not self.is_relevant(f"{title} {summary or ''}"):
                skipped += 1
                continue
            content_val = None
            contents = entry.get("content")
            if contents and isinstance(contents, list):
                content_val = contents[0].get("value")
            items.append(
                RawItem(
                    title=title,
                    link=entry.get("link") or "",
                    snippet=summary,
                    body=content_val,
                    outlet=feed.name,
                    published=_parse_datetime(entry),
                    image_url=_extract_image(entry),
                    feed_tier=feed.tier,
                )
            )
            if len(items) >= max_results:
                break

        logger.info("Fetched %d RSS entries from %s (%d off-topic skipped)", len(items), feed.name, skipped)
        return items
