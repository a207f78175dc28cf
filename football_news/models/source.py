from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple

SourceKind = Literal["rss", "breaking", "analysis"]

SOURCE_KINDS: Tuple[str, ...] = ("rss", "breaking", "analysis")


@dataclass(slots=True, frozen=True)
class FeedSource:
    """An outlet RSS feed polled once per run."""

    name: str
    url: str
    tier: int = 2
