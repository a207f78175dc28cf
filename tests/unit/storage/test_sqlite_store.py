"""Tests for storage.sqlite module."""

import threading
from datetime import date, datetime, timedelta, timezone

import pytest

from football_news.storage import SQLiteStore, StoreUnavailableError
from conftest import FROZEN_NOW, make_article, mark_featured


class TestArticles:
    def test_insert_is_noop_for_known_url(self, store) -> None:
        assert store.insert_if_absent([make_article("https://a.example/1")]) == 1
        assert store.insert_if_absent([make_article("https://a.example/1", title="Other")]) == 0
        assert store.count_articles() == 1

    def test_batch_with_repeated_url_writes_once(self, store) -> None:
        written = store.insert_if_absent([make_article("https://a.example/1"), make_article("https://a.example/1")])
        assert written == 1

    def test_existing_urls(self, store) -> None:
        store.insert_if_absent([make_article("https://a.example/1")])
        found = store.existing_urls(["https://a.example/1", "https://a.example/2"])
        assert found == {"https://a.example/1"}

    def test_existing_urls_empty_input(self, store) -> None:
        assert store.existing_urls([]) == set()

    def test_recent_titles_respects_window(self, store) -> None:
        store.insert_if_absent(
            [
                make_article("https://a.example/new", "Fresh headline"),
                make_article("https://a.example/old", "Stale headline", published_at=FROZEN_NOW - timedelta(days=2)),
            ]
        )
        titles = store.recent_titles(FROZEN_NOW - timedelta(hours=24))
        assert titles == ["Fresh headline"]

    def test_delete_older_than_skips_featured(self, store) -> None:
        old = FROZEN_NOW - timedelta(days=7)
        store.insert_if_absent(
            [
                make_article("https://a.example/old", published_at=old),
                make_article("https://a.example/pinned", published_at=old),
                make_article("https://a.example/new"),
            ]
        )
        mark_featured(store, "https://a.example/pinned")
        assert store.delete_older_than(FROZEN_NOW - timedelta(days=6)) == 1
        assert store.existing_urls(
            ["https://a.example/old", "https://a.example/pinned", "https://a.example/new"]
        ) == {"https://a.example/pinned", "https://a.example/new"}


class TestUsageCounters:
    def test_get_unknown_day_is_none(self, store) -> None:
        assert store.get("breaking", date(2025, 3, 10)) is None

    def test_increment_accumulates_and_unions_keywords(self, store) -> None:
        day = date(2025, 3, 10)
        store.increment("breaking", day, 2, ["a", "b"], at=FROZEN_NOW, daily_limit=40, monthly_limit=2000)
        store.increment("breaking", day, 3, ["b", "c"], at=FROZEN_NOW, daily_limit=40, monthly_limit=2000)
        record = store.get("breaking", day)
        assert record.requests_used == 5
        assert record.keywords_used_today == frozenset({"a", "b", "c"})
        assert record.daily_limit == 40
        assert record.monthly_limit == 2000
        assert record.last_request_at == FROZEN_NOW

    def test_concurrent_increments_are_not_lost(self, store) -> None:
        day = date(2025, 3, 10)

        def bump() -> None:
            store.increment("breaking", day, 1, [], at=FROZEN_NOW)

        threads = [threading.Thread(target=bump) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.get("breaking", day).requests_used == 10

    def test_month_total_only_counts_current_month(self, store) -> None:
        store.increment("breaking", date(2025, 2, 28), 7, [], at=FROZEN_NOW)
        store.increment("breaking", date(2025, 3, 1), 4, [], at=FROZEN_NOW)
        store.increment("breaking", date(2025, 3, 10), 5, [], at=FROZEN_NOW)
        store.increment("analysis", date(2025, 3, 10), 9, [], at=FROZEN_NOW)
        assert store.month_total("breaking", date(2025, 3, 10)) == 9

    def test_negative_count_rejected(self, store) -> None:
        with pytest.raises(ValueError):
            store.increment("breaking", date(2025, 3, 10), -1, [], at=FROZEN_NOW)


class TestUnavailable:
    def test_unopenable_database_raises(self, tmp_path) -> None:
        # A directory cannot be opened as a database file
        target = tmp_path / "db-dir"
        target.mkdir()
        with pytest.raises(StoreUnavailableError):
            SQLiteStore(target)
