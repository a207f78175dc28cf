from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    return raw.strip() if raw and raw.strip() else None


@dataclass(slots=True)
class PipelineConfig:
    """Operational settings taken from the environment.

    Defaults are resolved when the instance is created, so a ``.env`` file
    loaded by the entry point before construction is honoured.
    """

    db_path: str = field(default_factory=lambda: os.getenv("NEWS_DB_PATH", "news.db"))
    config_path: str = field(default_factory=lambda: os.getenv("NEWS_CONFIG_PATH", "config/sources.yaml"))
    brave_api_key: Optional[str] = field(default_factory=lambda: _env_str("BRAVE_API_KEY"))
    news_api_key: Optional[str] = field(default_factory=lambda: _env_str("NEWS_API_KEY"))
    fetch_timeout_seconds: float = field(default_factory=lambda: _env_float("FETCH_TIMEOUT_SECONDS", 20.0))
    run_deadline_seconds: float = field(default_factory=lambda: _env_float("RUN_DEADLINE_SECONDS", 120.0))
    retention_days: int = field(default_factory=lambda: _env_int("RETENTION_DAYS", 6))
    dedup_lookback_hours: int = field(default_factory=lambda: _env_int("DEDUP_LOOKBACK_HOURS", 24))
    dedup_title_threshold: float = field(default_factory=lambda: _env_float("DEDUP_TITLE_THRESHOLD", 0.8))
    max_articles_per_run: int = field(default_factory=lambda: _env_int("MAX_ARTICLES_PER_RUN", 100))
    source_region_utc_offset: int = field(default_factory=lambda: _env_int("SOURCE_REGION_UTC_OFFSET", 1))
    home_region_utc_offset: int = field(default_factory=lambda: _env_int("HOME_REGION_UTC_OFFSET", 9))
    max_source_workers: int = field(default_factory=lambda: _env_int("MAX_SOURCE_WORKERS", 3))

    def api_key_for(self, kind: str) -> Optional[str]:
        if kind == "breaking":
            return self.brave_api_key
        if kind == "analysis":
            return self.news_api_key
        return None
