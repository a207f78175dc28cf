from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set

from ..models import Article, QuotaRecord
from ..utils.logging import get_logger
from .base import ArticleStore, StoreUnavailableError, UsageCounterStore

logger = get_logger("fn.storage.sqlite")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS articles (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    url TEXT NOT NULL UNIQUE,
    image_url TEXT,
    source TEXT,
    source_tier INTEGER,
    source_kind TEXT,
    category TEXT,
    tags TEXT,
    published_at TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    trust_score INTEGER,
    importance_score INTEGER,
    priority INTEGER,
    is_breaking INTEGER DEFAULT 0,
    is_featured INTEGER DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_articles_published ON articles(published_at);
CREATE INDEX IF NOT EXISTS idx_articles_importance ON articles(importance_score DESC);

CREATE TABLE IF NOT EXISTS api_usage_tracking (
    source TEXT NOT NULL,
    date TEXT NOT NULL,
    requests_used INTEGER NOT NULL DEFAULT 0,
    daily_limit INTEGER,
    monthly_limit INTEGER,
    last_request_at TEXT,
    PRIMARY KEY (source, date)
);

CREATE TABLE IF NOT EXISTS api_usage_keywords (
    source TEXT NOT NULL,
    date TEXT NOT NULL,
    keyword TEXT NOT NULL,
    PRIMARY KEY (source, date, keyword)
);
"""


def _ts(value: datetime) -> str:
    """UTC ISO-8601 text so lexical order equals chronological order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


class SQLiteStore(ArticleStore, UsageCounterStore):
    """Both collections in one SQLite file.

    A fresh connection is opened per operation so the store can be shared by
    the per-source worker threads. Any ``sqlite3.Error`` surfaces as
    :class:`StoreUnavailableError`.
    """

    def __init__(self, path: Path | str, *, busy_timeout: float = 10.0) -> None:
        self.path = str(path)
        self.busy_timeout = busy_timeout
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.path, timeout=self.busy_timeout)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Cannot open database {self.path}: {exc}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Database error on {self.path}: {exc}") from exc
        finally:
            conn.close()

    # ---------------- Articles -----------------
    def insert_if_absent(self, articles: Iterable[Article]) -> int:
        rows = [
            (
                a.id,
                a.title,
                a.description,
                a.url,
                a.image_url,
                a.source,
                a.source_tier,
                a.source_kind,
                a.category,
                ",".join(a.tags),
                _ts(a.published_at),
                _ts(a.created_at),
                _ts(a.updated_at),
                a.trust_score,
                a.importance_score,
                a.priority,
                int(a.is_breaking),
            )
            for a in articles
        ]
        if not rows:
            return 0
        with self._connect() as conn:
            before = conn.total_changes
            conn.executemany(
                """
                INSERT OR IGNORE INTO articles (
                    id, title, description, url, image_url, source, source_tier,
                    source_kind, category, tags, published_at, created_at, updated_at,
                    trust_score, importance_score, priority, is_breaking
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
            written = conn.total_changes - before
        logger.debug("Inserted %d/%d articles", written, len(rows))
        return written

    def existing_urls(self, urls: Iterable[str]) -> Set[str]:
        wanted = list(dict.fromkeys(urls))
        found: Set[str] = set()
        if not wanted:
            return found
        with self._connect() as conn:
            # Stay well below SQLITE_MAX_VARIABLE_NUMBER
            for start in range(0, len(wanted), 500):
                chunk = wanted[start : start + 500]
                marks = ",".join("?" for _ in chunk)
                cur = conn.execute(f"SELECT url FROM articles WHERE url IN ({marks})", chunk)
                found.update(row[0] for row in cur)
        return found

    def recent_titles(self, since: datetime) -> List[str]:
        with self._connect() as conn:
            cur = conn.execute(
                "SELECT title FROM articles WHERE published_at >= ? OR created_at >= ?",
                (_ts(since), _ts(since)),
            )
            return [row[0] for row in cur]

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM articles WHERE published_at < ? AND COALESCE(is_featured, 0) = 0",
                (_ts(cutoff),),
            )
            return cur.rowcount

    def count_articles(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]

    # ---------------- Usage counters -----------------
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
        if count < 0:
            raise ValueError("usage count must not be negative")
        day_key = day.isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO api_usage_tracking
                    (source, date, requests_used, daily_limit, monthly_limit, last_request_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(source, date) DO UPDATE SET
                    requests_used = requests_used + excluded.requests_used,
                    daily_limit = excluded.daily_limit,
                    monthly_limit = excluded.monthly_limit,
                    last_request_at = excluded.last_request_at
                """,
                (source, day_key, count, daily_limit, monthly_limit, _ts(at)),
            )
            conn.executemany(
                "INSERT OR IGNORE INTO api_usage_keywords (source, date, keyword) VALUES (?, ?, ?)",
                [(source, day_key, kw) for kw in keywords],
            )

    def get(self, source: str, day: date) -> Optional[QuotaRecord]:
        day_key = day.isoformat()
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT requests_used, daily_limit, monthly_limit, last_request_at
                FROM api_usage_tracking WHERE source = ? AND date = ?
                """,
                (source, day_key),
            ).fetchone()
            keywords = frozenset(
                r[0]
                for r in conn.execute(
                    "SELECT keyword FROM api_usage_keywords WHERE source = ? AND date = ?",
                    (source, day_key),
                )
            )
        if row is None:
            return None
        used, daily_limit, monthly_limit, last_at = row
        return QuotaRecord(
            source=source,
            date=day,
            requests_used=used,
            daily_limit=daily_limit,
            monthly_limit=monthly_limit,
            keywords_used_today=keywords,
            last_request_at=datetime.fromisoformat(last_at) if last_at else None,
        )

    def month_total(self, source: str, day: date) -> int:
        first = day.replace(day=1).isoformat()
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT COALESCE(SUM(requests_used), 0) FROM api_usage_tracking
                WHERE source = ? AND date >= ? AND date <= ?
                """,
                (source, first, day.isoformat()),
            ).fetchone()
        return int(row[0])
