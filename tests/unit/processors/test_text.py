"""Tests for processors.text module."""

from datetime import datetime, timedelta, timezone

from football_news.processors.text import (
    clean_text,
    hostname_of,
    is_http_url,
    parse_datetime,
    parse_relative_age,
    resolve_published,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestCleanText:
    def test_strips_tags_and_entities(self) -> None:
        assert clean_text("<p>Hello &amp; <b>world</b></p>") == "Hello & world"

    def test_normalizes_quotes_and_whitespace(self) -> None:
        assert clean_text("  “Here   we go”  ") == '"Here we go"'

    def test_limit(self) -> None:
        assert clean_text("abcdef", limit=3) == "abc"

    def test_empty(self) -> None:
        assert clean_text(None) == ""
        assert clean_text("<br/>") == ""


class TestParseDatetime:
    def test_naive_iso_is_utc(self) -> None:
        assert parse_datetime("2025-03-10T11:00:00") == datetime(2025, 3, 10, 11, 0, tzinfo=timezone.utc)

    def test_rfc822(self) -> None:
        assert parse_datetime("Mon, 10 Mar 2025 11:00:00 GMT") == datetime(2025, 3, 10, 11, 0, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self) -> None:
        assert parse_datetime("2025-03-10T12:00:00+01:00") == datetime(2025, 3, 10, 11, 0, tzinfo=timezone.utc)

    def test_unparseable(self) -> None:
        assert parse_datetime("not a date") is None
        assert parse_datetime("") is None
        assert parse_datetime(None) is None
        assert parse_datetime(1741604400) is None


class TestRelativeAge:
    def test_units(self) -> None:
        assert parse_relative_age("3 hours ago", NOW) == NOW - timedelta(hours=3)
        assert parse_relative_age("45 minutes ago", NOW) == NOW - timedelta(minutes=45)
        assert parse_relative_age("1 day ago", NOW) == NOW - timedelta(days=1)
        assert parse_relative_age("2 weeks ago", NOW) == NOW - timedelta(weeks=2)

    def test_unrecognized(self) -> None:
        assert parse_relative_age("yesterday", NOW) is None
        assert parse_relative_age(None, NOW) is None


class TestResolvePublished:
    def test_explicit_timestamp_wins(self) -> None:
        published = NOW - timedelta(hours=2)
        assert resolve_published(published, "5 hours ago", NOW) == published

    def test_relative_age_fallback(self) -> None:
        assert resolve_published(None, "5 hours ago", NOW) == NOW - timedelta(hours=5)

    def test_future_clamped_to_now(self) -> None:
        assert resolve_published(NOW + timedelta(hours=2), None, NOW) == NOW

    def test_missing_is_now(self) -> None:
        assert resolve_published(None, None, NOW) == NOW


class TestUrls:
    def test_hostname_strips_www(self) -> None:
        assert hostname_of("https://www.bbc.co.uk/sport/football/1") == "bbc.co.uk"
        assert hostname_of("") == ""

    def test_is_http_url(self) -> None:
        assert is_http_url("https://example.com/a")
        assert not is_http_url("ftp://example.com/a")
        assert not is_http_url("/relative/path")
        assert not is_http_url(None)
