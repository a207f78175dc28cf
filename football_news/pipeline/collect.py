from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from ..fetchers import AnalysisSearchFetcher, BreakingNewsFetcher, RSSFetcher, SourceFetcher
from ..models import SOURCE_KINDS
from ..orchestrator import Orchestrator, run_sources
from ..output import merge_reports
from ..planning import MatchCalendar, QueryScheduler
from ..processors import (
    Deduplicator,
    Normalizer,
    OutletDirectory,
    Scorer,
    TagVocabulary,
    default_profile,
)
from ..processors.scoring import DEFAULT_BREAKING_TERMS
from ..storage import QuotaLedger, RetentionSweeper, SQLiteStore
from ..utils.config_loader import ConfigError, NewsConfig, SourceSettings, load_news_config
from ..utils.logging import get_logger
from ..utils.pipeline_config import PipelineConfig

logger = get_logger("fn.pipeline.collect")

RUN_TYPES = ("auto",) + tuple(SOURCE_KINDS)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _build_scorer(config: NewsConfig) -> Scorer:
    scoring = config.scoring
    outlets = OutletDirectory()
    if scoring.outlet_tiers:
        outlets.tiers = dict(scoring.outlet_tiers)
    if scoring.trust_overrides:
        outlets.overrides = dict(scoring.trust_overrides)
    vocabulary = TagVocabulary()
    if scoring.league_tags:
        vocabulary.leagues = dict(scoring.league_tags)
    if scoring.team_tags:
        vocabulary.teams = dict(scoring.team_tags)
    return Scorer(
        outlets=outlets,
        vocabulary=vocabulary,
        marquee_teams=scoring.marquee_teams,
        breaking_terms=scoring.breaking_terms or DEFAULT_BREAKING_TERMS,
    )


def _build_fetcher(
    kind: str,
    source: SourceSettings,
    config: NewsConfig,
    settings: PipelineConfig,
    calendar: MatchCalendar,
    clock: Callable[[], datetime],
) -> SourceFetcher:
    delay = source.request_delay_ms / 1000.0
    if kind == "rss":
        return RSSFetcher(config.feeds, keywords=config.football_keywords, timeout=settings.fetch_timeout_seconds)
    api_key = settings.api_key_for(kind)
    if not api_key:
        raise ConfigError(f"No API key configured for source '{kind}'")
    if kind == "breaking":
        return BreakingNewsFetcher(
            api_key,
            calendar=calendar,
            timeout=settings.fetch_timeout_seconds,
            request_delay=delay,
            clock=clock,
        )
    return AnalysisSearchFetcher(
        api_key,
        domains=source.domains,
        lookback_days=source.lookback_days,
        timeout=settings.fetch_timeout_seconds,
        request_delay=delay,
        clock=clock,
    )


def _selected_kinds(run_type: str, config: NewsConfig, settings: PipelineConfig) -> List[str]:
    if run_type not in RUN_TYPES:
        raise ConfigError(f"Unknown run type '{run_type}'. Allowed: {list(RUN_TYPES)}")
    if run_type != "auto":
        return [run_type]

    kinds: List[str] = []
    for kind in SOURCE_KINDS:
        source = config.sources.get(kind)
        if source is not None and not source.enabled:
            continue
        if kind == "rss":
            if config.feeds:
                kinds.append(kind)
            continue
        if source is None:
            continue
        if not settings.api_key_for(kind):
            logger.warning("Skipping %s source: no API key configured", kind)
            continue
        kinds.append(kind)
    return kinds


def build_orchestrators(
    run_type: str,
    config: NewsConfig,
    settings: PipelineConfig,
    *,
    force_search: bool = False,
    clock: Callable[[], datetime] = _utcnow,
    store: Optional[SQLiteStore] = None,
) -> List[Orchestrator]:
    calendar = MatchCalendar(
        source_utc_offset=settings.source_region_utc_offset,
        home_utc_offset=settings.home_region_utc_offset,
        matchday_weekdays=frozenset(config.matchday_weekdays),
        marquee_fixture_dates=frozenset(config.marquee_fixture_dates),
    )
    store = store or SQLiteStore(settings.db_path)
    ledger = QuotaLedger(store, {kind: s.policy for kind, s in config.sources.items()}, calendar)
    normalizer = Normalizer(_build_scorer(config))
    deduplicator = Deduplicator(
        store,
        lookback=timedelta(hours=settings.dedup_lookback_hours),
        title_threshold=settings.dedup_title_threshold,
    )
    sweeper = RetentionSweeper(store, horizon=timedelta(days=settings.retention_days))
    persist_lock = threading.Lock()

    orchestrators: List[Orchestrator] = []
    for kind in _selected_kinds(run_type, config, settings):
        source = config.sources.get(kind) or SourceSettings(kind=kind)
        fetcher = _build_fetcher(kind, source, config, settings, calendar, clock)
        scheduler = (
            QueryScheduler(kind, source.catalog, calendar, sizing=source.sizing) if fetcher.query_driven else None
        )
        orchestrators.append(
            Orchestrator(
                fetcher,
                default_profile(kind),
                store=store,
                ledger=ledger,
                normalizer=normalizer,
                deduplicator=deduplicator,
                sweeper=sweeper,
                scheduler=scheduler,
                max_results=source.max_results,
                max_articles_per_run=settings.max_articles_per_run,
                run_deadline=settings.run_deadline_seconds,
                force_search=force_search,
                clock=clock,
                persist_lock=persist_lock,
            )
        )
    return orchestrators


def run_collection(
    run_type: str = "auto",
    force_search: bool = False,
    *,
    settings: Optional[PipelineConfig] = None,
    config: Optional[NewsConfig] = None,
    clock: Callable[[], datetime] = _utcnow,
) -> Dict[str, Any]:
    """Run one collection pass and return the JSON-ready response.

    ``auto`` runs every configured source concurrently; a single kind runs
    only that source. Raises :class:`ConfigError` for an unusable
    configuration and ``StoreUnavailableError`` if the database cannot be opened.
    """
    settings = settings or PipelineConfig()
    config = config or load_news_config(settings.config_path)
    orchestrators = build_orchestrators(run_type, config, settings, force_search=force_search, clock=clock)
    if not orchestrators:
        logger.warning("No sources available for run type '%s'", run_type)
        return {"success": True, "message": "No sources configured", "stats": merge_reports([])["stats"]}

    logger.info(
        "Starting %s collection for %s (force_search=%s)",
        run_type,
        ", ".join(o.source for o in orchestrators),
        force_search,
    )
    reports = run_sources(orchestrators, max_workers=settings.max_source_workers)
    if run_type != "auto":
        return reports[0].to_dict()
    return merge_reports(reports)
