"""Tests for pipeline.collect module."""

from unittest.mock import patch

import pytest

from conftest import FROZEN_NOW
from football_news.pipeline import build_orchestrators, run_collection
from football_news.utils.config_loader import ConfigError, parse_news_config
from football_news.utils.pipeline_config import PipelineConfig

FEED_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>BBC Sport - Football</title>
    <link>https://www.bbc.co.uk/sport/football</link>
    <description>Football news</description>
    <item>
      <title>Arsenal complete transfer of midfielder</title>
      <link>https://www.bbc.co.uk/sport/football/1</link>
      <description>The club announced the deal on Monday.</description>
      <pubDate>Mon, 10 Mar 2025 19:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Liverpool beat Everton in the derby</title>
      <link>https://www.bbc.co.uk/sport/football/2</link>
      <description>Match report.</description>
      <pubDate>Mon, 10 Mar 2025 18:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

RAW_CONFIG = {
    "rss": {
        "feeds": [{"name": "BBC Sport", "url": "https://feeds.bbci.co.uk/sport/football/rss.xml", "tier": 1}],
        "football_keywords": ["football", "transfer", "derby"],
    },
    "sources": {
        "breaking": {"policy": {"monthly_limit": 2000, "safety_margin": 0.8}, "catalog": {"always_on": ["Q1"]}},
        "analysis": {"policy": {"monthly_limit": 1000}, "domains": ["bbc.co.uk"]},
    },
}


def _settings(tmp_path, **overrides) -> PipelineConfig:
    values = dict(db_path=str(tmp_path / "news.db"), brave_api_key=None, news_api_key=None)
    values.update(overrides)
    return PipelineConfig(**values)


class TestBuildOrchestrators:
    def test_auto_skips_sources_without_keys(self, tmp_path) -> None:
        orchestrators = build_orchestrators("auto", parse_news_config(RAW_CONFIG), _settings(tmp_path))
        assert [o.source for o in orchestrators] == ["rss"]

    def test_auto_includes_keyed_sources(self, tmp_path) -> None:
        settings = _settings(tmp_path, brave_api_key="b", news_api_key="n")
        orchestrators = build_orchestrators("auto", parse_news_config(RAW_CONFIG), settings)
        assert [o.source for o in orchestrators] == ["rss", "breaking", "analysis"]
        assert orchestrators[0].scheduler is None
        assert orchestrators[1].scheduler is not None
        assert orchestrators[2].fetcher.domains == ["bbc.co.uk"]
        assert orchestrators[0].persist_lock is orchestrators[1].persist_lock is orchestrators[2].persist_lock
        assert orchestrators[0].deduplicator is orchestrators[2].deduplicator

    def test_disabled_source_skipped(self, tmp_path) -> None:
        raw = {**RAW_CONFIG, "sources": {"breaking": {"enabled": False}}}
        orchestrators = build_orchestrators("auto", parse_news_config(raw), _settings(tmp_path, brave_api_key="b"))
        assert [o.source for o in orchestrators] == ["rss"]

    def test_single_source_without_key(self, tmp_path) -> None:
        with pytest.raises(ConfigError):
            build_orchestrators("breaking", parse_news_config(RAW_CONFIG), _settings(tmp_path))

    def test_unknown_run_type(self, tmp_path) -> None:
        with pytest.raises(ConfigError):
            build_orchestrators("weather", parse_news_config(RAW_CONFIG), _settings(tmp_path))


class TestRunCollection:
    @patch("football_news.fetchers.rss.get_bytes", return_value=FEED_XML)
    def test_rss_run_end_to_end(self, mock_get, tmp_path) -> None:
        result = run_collection(
            "rss",
            settings=_settings(tmp_path),
            config=parse_news_config(RAW_CONFIG),
            clock=lambda: FROZEN_NOW,
        )

        assert result["success"] is True
        assert result["stats"]["collected"] == 2
        assert result["stats"]["saved"] == 2
        assert result["stats"]["keywords_searched"] == ["BBC Sport"]
        assert result["stats"]["api_usage"] is None

    @patch("football_news.fetchers.rss.get_bytes", return_value=FEED_XML)
    def test_second_run_saves_nothing_new(self, mock_get, tmp_path) -> None:
        config = parse_news_config(RAW_CONFIG)
        run_collection("rss", settings=_settings(tmp_path), config=config, clock=lambda: FROZEN_NOW)
        result = run_collection("rss", settings=_settings(tmp_path), config=config, clock=lambda: FROZEN_NOW)

        assert result["stats"]["saved"] == 0
        assert result["stats"]["duplicates"] == 2

    @patch("football_news.fetchers.rss.get_bytes", return_value=FEED_XML)
    def test_auto_merges_sources(self, mock_get, tmp_path) -> None:
        result = run_collection(
            "auto",
            settings=_settings(tmp_path),
            config=parse_news_config(RAW_CONFIG),
            clock=lambda: FROZEN_NOW,
        )

        assert result["success"] is True
        assert result["stats"]["saved"] == 2
        assert set(result["stats"]["sources"]) == {"rss"}

    def test_nothing_configured(self, tmp_path) -> None:
        result = run_collection("auto", settings=_settings(tmp_path), config=parse_news_config({}))
        assert result["success"] is True
        assert result["message"] == "No sources configured"
