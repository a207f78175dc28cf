from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from football_news.models import Article
from football_news.storage import SQLiteStore

# Monday, 20:00 UTC (21:00 in the source region, inside the live-match window)
FROZEN_NOW = datetime(2025, 3, 10, 20, 0, tzinfo=timezone.utc)


def make_article(
    url: str,
    title: str = "Arsenal beat Chelsea in London derby",
    *,
    published_at: Optional[datetime] = None,
    importance: int = 100,
    now: datetime = FROZEN_NOW,
) -> Article:
    published = published_at or now - timedelta(hours=1)
    return Article(
        id=f"id-{url}",
        title=title,
        description="",
        url=url,
        image_url="",
        source="BBC Sport",
        source_tier=1,
        category="match",
        tags=("Arsenal",),
        published_at=published,
        created_at=published,
        updated_at=published,
        trust_score=95,
        importance_score=importance,
        is_breaking=False,
        source_kind="rss",
    )


def mark_featured(store: SQLiteStore, url: str) -> None:
    """Pin an article the way an editor would, outside the pipeline."""
    with sqlite3.connect(store.path) as conn:
        conn.execute("UPDATE articles SET is_featured = 1 WHERE url = ?", (url,))
    conn.close()


@pytest.fixture
def frozen_now() -> datetime:
    return FROZEN_NOW


@pytest.fixture
def store(tmp_path) -> SQLiteStore:
    return SQLiteStore(tmp_path / "news.db")
