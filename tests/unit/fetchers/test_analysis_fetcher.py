"""Tests for fetchers.analysis module."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from football_news.fetchers import AnalysisSearchFetcher, FetchError
from football_news.fetchers.analysis import NEWSAPI_EVERYTHING_URL

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)

PAYLOAD = {
    "status": "ok",
    "totalResults": 1,
    "articles": [
        {
            "source": {"id": "bbc-sport", "name": "BBC Sport"},
            "title": "Tactical analysis: how Arteta rebuilt Arsenal",
            "description": "A deep dive.",
            "url": "https://www.bbc.co.uk/sport/football/analysis-1",
            "urlToImage": "https://img.example.com/a.jpg",
            "publishedAt": "2025-03-09T08:00:00Z",
            "content": "Long body text",
        }
    ],
}


def _fetcher() -> AnalysisSearchFetcher:
    return AnalysisSearchFetcher(
        "news-key",
        domains=["bbc.co.uk", "theguardian.com"],
        lookback_days=7,
        request_delay=0,
        clock=lambda: NOW,
    )


class TestAnalysisSearchFetcher:
    def test_params(self) -> None:
        params = _fetcher().build_params("Premier League title race analysis", 20)
        assert params == {
            "q": "Premier League title race analysis",
            "from": "2025-03-03",
            "sortBy": "relevancy",
            "language": "en",
            "pageSize": 20,
            "apiKey": "news-key",
            "domains": "bbc.co.uk,theguardian.com",
        }

    @patch("football_news.fetchers.analysis.get_json", return_value=PAYLOAD)
    def test_parse(self, mock_get) -> None:
        items = _fetcher().fetch("Arteta", 20)
        assert mock_get.call_args[0][0] == NEWSAPI_EVERYTHING_URL
        assert len(items) == 1
        item = items[0]
        assert item.outlet == "BBC Sport"
        assert item.body == "Long body text"
        assert item.image_url == "https://img.example.com/a.jpg"
        assert item.published == datetime(2025, 3, 9, 8, 0, tzinfo=timezone.utc)

    @patch(
        "football_news.fetchers.analysis.get_json",
        return_value={"status": "error", "code": "rateLimited", "message": "Too many requests"},
    )
    def test_error_status_is_malformed(self, mock_get) -> None:
        with pytest.raises(FetchError, match="rateLimited"):
            _fetcher().fetch("q", 20)

    @patch("football_news.fetchers.analysis.get_json", return_value={"status": "ok"})
    def test_missing_articles_is_malformed(self, mock_get) -> None:
        with pytest.raises(FetchError):
            _fetcher().fetch("q", 20)

    @patch("football_news.fetchers.analysis.get_json")
    def test_odd_source_field_keeps_the_item(self, mock_get) -> None:
        article = dict(PAYLOAD["articles"][0], source="BBC Sport", publishedAt=1741604400)
        mock_get.return_value = {"status": "ok", "articles": [article]}
        items = _fetcher().fetch("Arteta", 20)
        assert len(items) == 1
        assert items[0].outlet is None
        assert items[0].published is None
