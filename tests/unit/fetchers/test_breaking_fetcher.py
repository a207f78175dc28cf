"""Tests for fetchers.breaking module."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from football_news.fetchers import BreakingNewsFetcher, FetchError
from football_news.fetchers.breaking import BRAVE_NEWS_URL
from football_news.planning import MatchCalendar

LIVE = datetime(2025, 3, 10, 20, 0, tzinfo=timezone.utc)  # 21:00 in the source region
MORNING = datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)

PAYLOAD = {
    "type": "news",
    "results": [
        {
            "title": "Club confirms signing of striker",
            "url": "https://www.bbc.co.uk/sport/football/1",
            "description": "Five-year deal agreed.",
            "meta_url": {"hostname": "www.bbc.co.uk"},
            "thumbnail": {"src": "https://img.example.com/1.jpg"},
            "page_age": "2025-03-10T19:30:00",
            "age": "30 minutes ago",
        },
        {
            "title": "Second story",
            "url": "https://www.espn.com/soccer/2",
            "age": "2 hours ago",
        },
    ],
}


def _fetcher(now: datetime) -> BreakingNewsFetcher:
    return BreakingNewsFetcher("key-123", calendar=MatchCalendar(), request_delay=0, clock=lambda: now)


class TestBreakingNewsFetcher:
    def test_requires_api_key(self) -> None:
        with pytest.raises(ValueError):
            BreakingNewsFetcher("")

    def test_freshness_narrows_during_live_window(self) -> None:
        assert _fetcher(LIVE).freshness() == "ph"
        assert _fetcher(MORNING).freshness() == "pd"

    @patch("football_news.fetchers.breaking.get_json", return_value=PAYLOAD)
    def test_request_and_parse(self, mock_get) -> None:
        items = _fetcher(LIVE).fetch("Premier League news today", 10)

        args, kwargs = mock_get.call_args
        assert args[0] == BRAVE_NEWS_URL
        assert kwargs["params"]["q"] == "Premier League news today"
        assert kwargs["params"]["count"] == 10
        assert kwargs["params"]["freshness"] == "ph"
        assert kwargs["headers"]["X-Subscription-Token"] == "key-123"

        assert len(items) == 2
        first = items[0]
        assert first.title == "Club confirms signing of striker"
        assert first.hostname == "www.bbc.co.uk"
        assert first.image_url == "https://img.example.com/1.jpg"
        assert first.published == datetime(2025, 3, 10, 19, 30, tzinfo=timezone.utc)
        assert items[1].published is None
        assert items[1].age == "2 hours ago"

    @patch("football_news.fetchers.breaking.get_json", return_value=PAYLOAD)
    def test_truncates_to_max_results(self, mock_get) -> None:
        assert len(_fetcher(LIVE).fetch("q", 1)) == 1

    @patch("football_news.fetchers.breaking.get_json", return_value={"type": "error"})
    def test_missing_results_is_malformed(self, mock_get) -> None:
        with pytest.raises(FetchError):
            _fetcher(LIVE).fetch("q", 10)

    @patch("football_news.fetchers.breaking.get_json", side_effect=FetchError("HTTP 500"))
    def test_http_failure_propagates(self, mock_get) -> None:
        with pytest.raises(FetchError):
            _fetcher(LIVE).fetch("q", 10)

    @patch("football_news.fetchers.breaking.get_json")
    def test_odd_nested_fields_keep_the_item(self, mock_get) -> None:
        result = dict(PAYLOAD["results"][0], meta_url="www.bbc.co.uk", thumbnail=None)
        mock_get.return_value = {"results": [result]}
        items = _fetcher(LIVE).fetch("q", 10)
        assert len(items) == 1
        assert items[0].hostname is None
        assert items[0].image_url is None
