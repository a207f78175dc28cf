from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from ..models import Article, RawItem
from ..utils.logging import get_logger
from .classify import classify_text
from .scoring import Scorer, ScoringProfile
from .text import clean_text, hostname_of, is_http_url, resolve_published

_logger = get_logger("fn.processors.normalize")

TITLE_LIMIT = 500
DESCRIPTION_LIMIT = 2000
_TEXT_FIELDS = ("title", "link", "snippet", "body", "outlet", "hostname", "age", "image_url")


class Normalizer:
    """Turn a source-specific :class:`RawItem` into a scored :class:`Article`."""

    def __init__(self, scorer: Optional[Scorer] = None) -> None:
        self.scorer = scorer or Scorer()

    def normalize(
        self,
        raw: RawItem,
        origin_query: str,
        profile: ScoringProfile,
        *,
        now: datetime,
    ) -> Optional[Article]:
        """Return the canonical article, or ``None`` for items without a usable title or url."""
        malformed = [name for name in _TEXT_FIELDS if not isinstance(getattr(raw, name), (str, type(None)))]
        if malformed or not isinstance(raw.published, (datetime, type(None))):
            _logger.debug("Dropping item with malformed fields %s: %r", malformed or ["published"], raw.link)
            return None
        url = (raw.link or "").strip()
        if not is_http_url(url):
            _logger.debug("Dropping item without http(s) url: %r", raw.title)
            return None
        title = clean_text(raw.title, limit=TITLE_LIMIT)
        if not title:
            _logger.debug("Dropping item without title: %s", url)
            return None

        description = clean_text(raw.snippet, limit=DESCRIPTION_LIMIT)
        body = clean_text(raw.body)
        text = " ".join(part for part in (title, description, body) if part).lower()

        category = classify_text(text)
        hostname = (raw.hostname or hostname_of(url)).lower()
        if hostname.startswith("www."):
            hostname = hostname[4:]
        trust, tier = self.scorer.trust(profile, hostname, raw.feed_tier)
        published_at = resolve_published(raw.published, raw.age, now)
        breaking = self.scorer.is_breaking(profile, text, published_at, now)
        importance = self.scorer.importance(profile, category, text, published_at, now, breaking=breaking)

        return Article(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            url=url,
            image_url=(raw.image_url or "").strip(),
            source=(raw.outlet or hostname or "Unknown").strip(),
            source_tier=tier,
            category=category,
            tags=tuple(self.scorer.tags(text, origin_query)),
            published_at=published_at,
            created_at=now,
            updated_at=now,
            trust_score=trust,
            importance_score=importance,
            is_breaking=breaking,
            source_kind=profile.source_kind,
        )
