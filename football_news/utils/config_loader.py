from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import yaml

from ..models import FeedSource, SOURCE_KINDS
from ..planning import KeywordCatalog, QuotaPolicy, RunSizing
from ..planning.calendar import TIME_WINDOWS


class ConfigError(Exception):
    """Raised when the configuration file is invalid or missing required fields."""


DAY_TYPES = {"weekday", "weekend", "matchday"}
WINDOW_NAMES = {name for name, _, _ in TIME_WINDOWS} | {"night"}
WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


@dataclass(slots=True)
class SourceSettings:
    kind: str
    policy: QuotaPolicy = field(default_factory=QuotaPolicy)
    request_delay_ms: int = 500
    max_results: int = 10
    domains: List[str] = field(default_factory=list)
    lookback_days: int = 7
    catalog: KeywordCatalog = field(default_factory=KeywordCatalog)
    sizing: RunSizing = field(default_factory=RunSizing)
    enabled: bool = True


@dataclass(slots=True)
class ScoringSettings:
    outlet_tiers: Dict[str, int] = field(default_factory=dict)
    trust_overrides: Dict[str, int] = field(default_factory=dict)
    marquee_teams: List[str] = field(default_factory=list)
    breaking_terms: List[str] = field(default_factory=list)
    league_tags: Dict[str, str] = field(default_factory=dict)
    team_tags: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class NewsConfig:
    feeds: List[FeedSource] = field(default_factory=list)
    football_keywords: List[str] = field(default_factory=list)
    sources: Dict[str, SourceSettings] = field(default_factory=dict)
    matchday_weekdays: Tuple[int, ...] = (1, 2)
    marquee_fixture_dates: Tuple[date, ...] = ()
    scoring: ScoringSettings = field(default_factory=ScoringSettings)


def _require_mapping(value: Any, where: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{where}' must be a mapping")
    return value


def _string_list(value: Any, where: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{where}' must be a list of strings")
    return [v.strip() for v in value if v.strip()]


def _int(value: Any, where: str, *, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"'{where}' must be an integer >= {minimum}, got {value!r}")
    return value


def _validated_url(url: Any, where: str) -> str:
    url_str = str(url or "").strip()
    parsed = urlparse(url_str)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid URL '{url_str}' in {where}. Must be absolute http(s) URL.")
    return url_str


def _parse_feed(entry: Any, index: int) -> FeedSource:
    where = f"rss.feeds[{index}]"
    if not isinstance(entry, dict):
        raise ConfigError(f"Each feed must be a mapping, got: {type(entry)}")
    missing = {"name", "url"} - set(entry)
    if missing:
        raise ConfigError(f"Missing required fields: {sorted(missing)} in {where}")
    tier = entry.get("tier", 2)
    if tier not in (1, 2, 3):
        raise ConfigError(f"'{where}.tier' must be 1, 2 or 3, got {tier!r}")
    return FeedSource(name=str(entry["name"]).strip(), url=_validated_url(entry["url"], where), tier=tier)


def _parse_policy(raw: Dict[str, Any], where: str) -> QuotaPolicy:
    monthly = raw.get("monthly_limit")
    if monthly is not None:
        monthly = _int(monthly, f"{where}.monthly_limit", minimum=1)
    margin = raw.get("safety_margin", 1.0)
    if not isinstance(margin, (int, float)) or not 0 < margin <= 1:
        raise ConfigError(f"'{where}.safety_margin' must be a number in (0, 1]")
    allowances = _require_mapping(raw.get("day_allowances"), f"{where}.day_allowances")
    unknown = set(allowances) - DAY_TYPES
    if unknown:
        raise ConfigError(f"Unknown day types in {where}.day_allowances: {sorted(unknown)}")
    return QuotaPolicy(
        monthly_limit=monthly,
        safety_margin=float(margin),
        day_allowances={k: _int(v, f"{where}.day_allowances.{k}") for k, v in allowances.items()},
    )


def _parse_windows(raw: Any, where: str) -> Dict[str, List[str]]:
    windows = _require_mapping(raw, where)
    unknown = set(windows) - WINDOW_NAMES
    if unknown:
        raise ConfigError(f"Unknown time windows in {where}: {sorted(unknown)}; allowed: {sorted(WINDOW_NAMES)}")
    return {name: _string_list(queries, f"{where}.{name}") for name, queries in windows.items()}


def _parse_catalog(raw: Dict[str, Any], where: str) -> KeywordCatalog:
    teams = _require_mapping(raw.get("teams"), f"{where}.teams")
    months = raw.get("transfer_window_months", [1, 8])
    if not isinstance(months, list) or not all(isinstance(m, int) and 1 <= m <= 12 for m in months):
        raise ConfigError(f"'{where}.transfer_window_months' must be a list of months 1..12")
    return KeywordCatalog(
        always_on=_string_list(raw.get("always_on"), f"{where}.always_on"),
        always_on_busy=_string_list(raw.get("always_on_busy"), f"{where}.always_on_busy"),
        time_of_day=_parse_windows(raw.get("time_of_day"), f"{where}.time_of_day"),
        time_of_day_busy=_parse_windows(raw.get("time_of_day_busy"), f"{where}.time_of_day_busy"),
        region_priority=_string_list(raw.get("region_priority"), f"{where}.region_priority"),
        transfer_window=_string_list(raw.get("transfer_window"), f"{where}.transfer_window"),
        transfer_window_months=tuple(months),
        transfer_window_limit=_int(raw.get("transfer_window_limit", 3), f"{where}.transfer_window_limit"),
        teams={str(group): _string_list(queries, f"{where}.teams.{group}") for group, queries in teams.items()},
        trending=_string_list(raw.get("trending"), f"{where}.trending"),
        topics=_string_list(raw.get("topics"), f"{where}.topics"),
    )


def _parse_sizing(raw: Dict[str, Any], where: str) -> RunSizing:
    defaults = RunSizing()
    return RunSizing(
        peak=_int(raw.get("peak", defaults.peak), f"{where}.peak", minimum=1),
        normal=_int(raw.get("normal", defaults.normal), f"{where}.normal", minimum=1),
        quiet=_int(raw.get("quiet", defaults.quiet), f"{where}.quiet", minimum=1),
        busy_multiplier=_int(raw.get("busy_multiplier", defaults.busy_multiplier), f"{where}.busy_multiplier", minimum=1),
    )


def _parse_source(kind: str, raw: Dict[str, Any]) -> SourceSettings:
    where = f"sources.{kind}"
    domains = _string_list(raw.get("domains"), f"{where}.domains")
    return SourceSettings(
        kind=kind,
        policy=_parse_policy(_require_mapping(raw.get("policy"), f"{where}.policy"), f"{where}.policy"),
        request_delay_ms=_int(raw.get("request_delay_ms", 500), f"{where}.request_delay_ms"),
        max_results=_int(raw.get("max_results", 10), f"{where}.max_results", minimum=1),
        domains=domains,
        lookback_days=_int(raw.get("lookback_days", 7), f"{where}.lookback_days", minimum=1),
        catalog=_parse_catalog(_require_mapping(raw.get("catalog"), f"{where}.catalog"), f"{where}.catalog"),
        sizing=_parse_sizing(_require_mapping(raw.get("sizing"), f"{where}.sizing"), f"{where}.sizing"),
        enabled=bool(raw.get("enabled", True)),
    )


def _parse_weekday(value: Any) -> int:
    if isinstance(value, int) and 0 <= value <= 6:
        return value
    if isinstance(value, str) and value.lower() in WEEKDAYS:
        return WEEKDAYS[value.lower()]
    raise ConfigError(f"Invalid weekday {value!r} in calendar.matchday_weekdays")


def _parse_date(value: Any) -> date:
    # PyYAML already turns unquoted YYYY-MM-DD into datetime.date
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ConfigError(f"Invalid date {value!r} in calendar.marquee_fixture_dates") from exc


def _parse_tiers(raw: Any) -> Dict[str, int]:
    tiers = _require_mapping(raw, "scoring.outlet_tiers")
    result: Dict[str, int] = {}
    for tier_key, domains in tiers.items():
        try:
            tier = int(str(tier_key).replace("tier", "").strip("_ "))
        except ValueError as exc:
            raise ConfigError(f"Invalid tier key {tier_key!r} in scoring.outlet_tiers") from exc
        if tier not in (1, 2, 3):
            raise ConfigError(f"Tier must be 1, 2 or 3 in scoring.outlet_tiers, got {tier_key!r}")
        for domain in _string_list(domains, f"scoring.outlet_tiers.{tier_key}"):
            result[domain.lower()] = tier
    return result


def _parse_scoring(raw: Dict[str, Any]) -> ScoringSettings:
    overrides = _require_mapping(raw.get("trust_overrides"), "scoring.trust_overrides")
    league_tags = _require_mapping(raw.get("league_tags"), "scoring.league_tags")
    team_tags = _require_mapping(raw.get("team_tags"), "scoring.team_tags")
    return ScoringSettings(
        outlet_tiers=_parse_tiers(raw.get("outlet_tiers")),
        trust_overrides={
            str(k).lower(): _int(v, f"scoring.trust_overrides.{k}") for k, v in overrides.items()
        },
        marquee_teams=_string_list(raw.get("marquee_teams"), "scoring.marquee_teams"),
        breaking_terms=_string_list(raw.get("breaking_terms"), "scoring.breaking_terms"),
        league_tags={str(k).lower(): str(v) for k, v in league_tags.items()},
        team_tags={str(k).lower(): str(v) for k, v in team_tags.items()},
    )


def parse_news_config(data: Optional[Dict[str, Any]]) -> NewsConfig:
    data = _require_mapping(data, "<root>")
    rss = _require_mapping(data.get("rss"), "rss")
    feeds_raw = rss.get("feeds") or []
    if not isinstance(feeds_raw, list):
        raise ConfigError("'rss.feeds' must be a list in the YAML configuration")

    sources_raw = _require_mapping(data.get("sources"), "sources")
    unknown = set(sources_raw) - set(SOURCE_KINDS)
    if unknown:
        raise ConfigError(f"Unknown source kinds: {sorted(unknown)}. Allowed: {list(SOURCE_KINDS)}")

    calendar = _require_mapping(data.get("calendar"), "calendar")
    weekdays = calendar.get("matchday_weekdays", [1, 2])
    if not isinstance(weekdays, list):
        raise ConfigError("'calendar.matchday_weekdays' must be a list")
    fixtures = calendar.get("marquee_fixture_dates") or []
    if not isinstance(fixtures, list):
        raise ConfigError("'calendar.marquee_fixture_dates' must be a list")

    return NewsConfig(
        feeds=[_parse_feed(entry, i) for i, entry in enumerate(feeds_raw)],
        football_keywords=_string_list(rss.get("football_keywords"), "rss.football_keywords"),
        sources={
            kind: _parse_source(kind, _require_mapping(raw, f"sources.{kind}")) for kind, raw in sources_raw.items()
        },
        matchday_weekdays=tuple(_parse_weekday(d) for d in weekdays),
        marquee_fixture_dates=tuple(_parse_date(d) for d in fixtures),
        scoring=_parse_scoring(_require_mapping(data.get("scoring"), "scoring")),
    )


def load_news_config(path: Path | str) -> NewsConfig:
    """Load ``sources.yaml`` into a typed :class:`NewsConfig`.

    YAML structure:
      - ``rss``: ``feeds`` (list of ``{name, url, tier}``) and ``football_keywords``
      - ``sources``: mapping of ``breaking`` / ``analysis`` / ``rss`` to quota
        policy, request pacing, search parameters and keyword catalog
      - ``calendar``: ``matchday_weekdays`` and ``marquee_fixture_dates``
      - ``scoring``: ``outlet_tiers`` (tier1/tier2/tier3 domain lists),
        ``trust_overrides``, ``marquee_teams``, optional tag vocabularies

    Unknown top-level keys are ignored for forward compatibility.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    return parse_news_config(data)
