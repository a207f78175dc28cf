"""Tests for output.pipeline_reporter module."""

from football_news.output import RunReport, merge_reports


class TestRunReport:
    def test_to_dict(self) -> None:
        report = RunReport(source="rss", message="ok", collected=4, saved=3, duplicates=1)
        payload = report.to_dict()
        assert payload["success"] is True
        assert payload["stats"]["saved"] == 3
        assert "error" not in payload

    def test_markdown_mentions_failure(self) -> None:
        report = RunReport(source="breaking", success=False, error="StoreUnavailableError: locked", timed_out=True)
        text = report.to_markdown()
        assert "Status: failed" in text
        assert "Run deadline reached" in text
        assert "StoreUnavailableError" in text


class TestMergeReports:
    def test_sums_and_keeps_per_source(self) -> None:
        usage = {"today": 3, "daily_limit": 40}
        merged = merge_reports(
            [
                RunReport(source="rss", collected=5, saved=4, keywords_searched=["BBC Sport"]),
                RunReport(source="breaking", collected=3, saved=1, duplicates=2, api_usage=usage, timed_out=True),
            ]
        )
        assert merged["success"] is True
        stats = merged["stats"]
        assert stats["collected"] == 8
        assert stats["saved"] == 5
        assert stats["duplicates"] == 2
        assert stats["timed_out"] is True
        assert stats["keywords_searched"] == ["BBC Sport"]
        assert stats["api_usage"] == {"breaking": usage}
        assert set(stats["sources"]) == {"rss", "breaking"}

    def test_any_failure_fails_the_run(self) -> None:
        merged = merge_reports(
            [
                RunReport(source="rss", saved=2),
                RunReport(source="analysis", success=False, message="analysis run failed", error="RuntimeError: boom"),
            ]
        )
        assert merged["success"] is False
        assert "analysis" in merged["message"]
        assert merged["error"] == "RuntimeError: boom"
        assert merged["stats"]["saved"] == 2
