from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

CATEGORIES: Tuple[str, ...] = (
    "transfer",
    "match",
    "injury",
    "lineup",
    "preview",
    "analysis",
    "general",
)


@dataclass(slots=True)
class RawItem:
    """Whatever a single source result exposes, before normalization."""

    title: str
    link: str
    snippet: Optional[str] = None
    body: Optional[str] = None
    outlet: Optional[str] = None
    hostname: Optional[str] = None
    published: Optional[datetime] = None
    age: Optional[str] = None
    image_url: Optional[str] = None
    feed_tier: Optional[int] = None


@dataclass(slots=True)
class Article:
    id: str
    title: str
    description: str
    url: str
    image_url: str
    source: str
    source_tier: int
    category: str
    tags: Tuple[str, ...]
    published_at: datetime
    created_at: datetime
    updated_at: datetime
    trust_score: int
    importance_score: int
    is_breaking: bool
    source_kind: str = "rss"
    is_featured: bool = field(default=False)

    @property
    def priority(self) -> int:
        return self.importance_score // 10

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "image_url": self.image_url,
            "source": self.source,
            "source_tier": self.source_tier,
            "category": self.category,
            "tags": list(self.tags),
            "published_at": self.published_at.isoformat(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "trust_score": self.trust_score,
            "importance_score": self.importance_score,
            "is_breaking": self.is_breaking,
            "priority": self.priority,
            "source_kind": self.source_kind,
        }
