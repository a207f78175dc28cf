from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple

from ..models import Article
from ..storage import ArticleStore
from ..utils.logging import get_logger

logger = get_logger("fn.processors.dedup")

_token_re = re.compile(r"\w+")


def title_tokens(title: str) -> FrozenSet[str]:
    return frozenset(_token_re.findall((title or "").lower()))


def jaccard(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    if not a and not b:
        return 1.0
    return len(a & b) / len(a | b)


@dataclass(slots=True)
class DedupStats:
    total: int
    kept: int
    duplicates: int
    reasons: Dict[str, int] = field(default_factory=dict)


class _TitleIndex:
    """Token-set titles sharded by token so only overlapping titles are compared."""

    def __init__(self) -> None:
        self._titles: List[FrozenSet[str]] = []
        self._by_token: Dict[str, Set[int]] = defaultdict(set)

    def add(self, tokens: FrozenSet[str]) -> None:
        index = len(self._titles)
        self._titles.append(tokens)
        for token in tokens:
            self._by_token[token].add(index)

    def max_similarity(self, tokens: FrozenSet[str]) -> float:
        candidates: Set[int] = set()
        for token in tokens:
            candidates |= self._by_token.get(token, set())
        return max((jaccard(tokens, self._titles[i]) for i in candidates), default=0.0)


class Deduplicator:
    """Filter candidates against stored articles within a lookback window.

    A candidate is rejected when its url is already stored (or appeared
    earlier in the same batch), or when the token-set Jaccard similarity of
    its lower-cased title to a stored or already-accepted title is at least
    ``title_threshold``. Survivors are sorted by importance, newest first on ties.
    """

    def __init__(
        self,
        store: ArticleStore,
        *,
        lookback: timedelta = timedelta(hours=24),
        title_threshold: float = 0.8,
    ) -> None:
        self.store = store
        self.lookback = lookback
        self.title_threshold = title_threshold

    def filter_new(self, candidates: Iterable[Article], *, now: datetime) -> List[Article]:
        unique, _ = self.filter_new_with_stats(candidates, now=now)
        return unique

    def filter_new_with_stats(
        self,
        candidates: Iterable[Article],
        *,
        now: datetime,
    ) -> Tuple[List[Article], DedupStats]:
        candidates = list(candidates)
        reasons: Dict[str, int] = defaultdict(int)
        stored_urls = self.store.existing_urls(a.url for a in candidates)
        index = _TitleIndex()
        for title in self.store.recent_titles(now - self.lookback):
            index.add(title_tokens(title))

        seen_urls: Set[str] = set()
        unique: List[Article] = []
        for article in candidates:
            if article.url in stored_urls or article.url in seen_urls:
                reasons["url"] += 1
                continue
            tokens = title_tokens(article.title)
            if index.max_similarity(tokens) >= self.title_threshold:
                reasons["title"] += 1
                continue
            seen_urls.add(article.url)
            index.add(tokens)
            unique.append(article)

        unique.sort(key=lambda a: (a.importance_score, a.published_at), reverse=True)
        stats = DedupStats(
            total=len(candidates),
            kept=len(unique),
            duplicates=len(candidates) - len(unique),
            reasons=dict(reasons),
        )
        logger.info(
            "Dedup kept %d/%d (url=%d, title=%d)",
            stats.kept,
            stats.total,
            stats.reasons.get("url", 0),
            stats.reasons.get("title", 0),
        )
        return unique, stats
