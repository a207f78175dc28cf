"""Tests for fetchers.http module."""

from unittest.mock import Mock, patch

import pytest
import requests

from football_news.fetchers import FetchError
from football_news.fetchers.http import get_bytes, get_json


def _response(status=200, payload=None, content=b"") -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.content = content
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


class TestGetJson:
    @patch("football_news.fetchers.http.requests.get")
    def test_returns_payload_and_sends_user_agent(self, mock_get) -> None:
        mock_get.return_value = _response(payload={"ok": True})
        assert get_json("https://api.example.com/x", params={"q": "a"}, timeout=5) == {"ok": True}
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {"q": "a"}
        assert kwargs["timeout"] == 5
        assert "User-Agent" in kwargs["headers"]

    @patch("football_news.fetchers.http.requests.get")
    def test_non_2xx(self, mock_get) -> None:
        mock_get.return_value = _response(status=429)
        with pytest.raises(FetchError, match="429"):
            get_json("https://api.example.com/x")

    @patch("football_news.fetchers.http.requests.get")
    def test_malformed_json(self, mock_get) -> None:
        mock_get.return_value = _response(payload=ValueError("bad json"))
        with pytest.raises(FetchError):
            get_json("https://api.example.com/x")

    @patch("football_news.fetchers.http.requests.get")
    def test_non_object_json(self, mock_get) -> None:
        mock_get.return_value = _response(payload=[1, 2])
        with pytest.raises(FetchError):
            get_json("https://api.example.com/x")

    @patch("football_news.fetchers.http.requests.get", side_effect=requests.Timeout("slow"))
    def test_timeout(self, mock_get) -> None:
        with pytest.raises(FetchError, match="Timed out"):
            get_json("https://api.example.com/x")

    @patch("football_news.fetchers.http.requests.get", side_effect=requests.ConnectionError("down"))
    def test_network_error(self, mock_get) -> None:
        with pytest.raises(FetchError):
            get_bytes("https://feeds.example.com/rss")

    def test_invalid_url(self) -> None:
        with pytest.raises(FetchError):
            get_bytes("feeds.example.com/rss")
