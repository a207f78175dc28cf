from __future__ import annotations

import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, as_completed, wait
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from .fetchers import FetchError, SourceFetcher
from .models import Article, RawItem
from .output import RunReport
from .planning import QueryPlan, QueryScheduler
from .processors import Deduplicator, Normalizer, ScoringProfile
from .storage import ArticleStore, QuotaLedger, RetentionSweeper, StoreUnavailableError
from .utils.logging import get_logger

logger = get_logger("fn.orchestrator")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Orchestrator:
    """One pass of the ingestion pipeline for a single source.

    sweep -> budget -> plan -> fetch -> normalize/score -> dedupe ->
    persist top N -> record usage. Fetch failures are counted and skipped;
    store failures abort the run with a failed report.
    Dedupe and persist run under ``persist_lock`` so sources sharing a store
    see each other's writes.
    """

    def __init__(
        self,
        fetcher: SourceFetcher,
        profile: ScoringProfile,
        *,
        store: ArticleStore,
        ledger: QuotaLedger,
        normalizer: Normalizer,
        deduplicator: Deduplicator,
        sweeper: RetentionSweeper,
        scheduler: Optional[QueryScheduler] = None,
        max_results: int = 10,
        max_articles_per_run: int = 100,
        run_deadline: float = 120.0,
        force_search: bool = False,
        clock: Callable[[], datetime] = _utcnow,
        persist_lock: Optional[threading.Lock] = None,
    ) -> None:
        if fetcher.query_driven and scheduler is None:
            raise ValueError(f"Source '{fetcher.kind}' is query driven and needs a scheduler")
        self.fetcher = fetcher
        self.profile = profile
        self.store = store
        self.ledger = ledger
        self.normalizer = normalizer
        self.deduplicator = deduplicator
        self.sweeper = sweeper
        self.scheduler = scheduler
        self.max_results = max_results
        self.max_articles_per_run = max_articles_per_run
        self.run_deadline = run_deadline
        self.force_search = force_search
        self.clock = clock
        # Shared by every source writing to the same store
        self.persist_lock = persist_lock or threading.Lock()

    @property
    def source(self) -> str:
        return self.fetcher.kind

    # ---------------- Steps -----------------
    def plan(self, now: datetime) -> QueryPlan:
        if not self.fetcher.query_driven:
            return QueryPlan.from_queries(self.source, self.fetcher.default_queries(), tier="feed")
        day = self.ledger.calendar.ledger_day(now)
        remaining = self.ledger.remaining_budget(self.source, day)
        record = self.ledger.today_record(self.source, day)
        return self.scheduler.plan(record, remaining, now, force=self.force_search)

    def fetch(self, plan: QueryPlan, report: RunReport) -> tuple[Dict[str, List[RawItem]], List[str]]:
        """Run the plan on a bounded pool until done or the run deadline passes.

        Returns the items per query and the queries whose call was actually
        started, which is what the ledger is charged for.
        """
        results: Dict[str, List[RawItem]] = {}
        attempted: List[str] = []
        lock = threading.Lock()
        cancel = threading.Event()

        def task(query: str) -> List[RawItem]:
            if cancel.is_set():
                return []
            with lock:
                attempted.append(query)
            return self.fetcher.fetch(query, self.max_results)

        executor = ThreadPoolExecutor(max_workers=max(1, self.fetcher.max_parallel))
        deadline = time.monotonic() + self.run_deadline
        try:
            future_map = {executor.submit(task, q.query): q.query for q in plan}
            pending = set(future_map)
            while pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
                for fut in done:
                    query = future_map[fut]
                    try:
                        results[query] = fut.result() or []
                    except FetchError as exc:
                        report.failed_queries += 1
                        logger.warning("Fetch failed for %s query %r: %s", self.source, query, exc)
                    except Exception as exc:  # noqa: BLE001 - one bad query must not abort the run
                        report.failed_queries += 1
                        logger.exception("Unexpected fetch error for %s query %r: %s", self.source, query, exc)
            if pending:
                report.timed_out = True
                cancel.set()
                logger.warning(
                    "Run deadline of %.0fs reached for %s; abandoning %d in-flight queries",
                    self.run_deadline,
                    self.source,
                    len(pending),
                )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        with lock:
            started = list(attempted)
        return results, started

    def normalize(self, plan: QueryPlan, results: Dict[str, List[RawItem]], now: datetime, report: RunReport) -> List[Article]:
        articles: List[Article] = []
        for planned in plan:
            for raw in results.get(planned.query, []):
                report.collected += 1
                try:
                    article = self.normalizer.normalize(raw, planned.query, self.profile, now=now)
                except (TypeError, ValueError) as exc:
                    logger.warning("Dropping malformed %s item from %r: %s", self.source, planned.query, exc)
                    article = None
                if article is None:
                    report.dropped += 1
                    continue
                articles.append(article)
        return articles

    # ---------------- Run -----------------
    def run(self) -> RunReport:
        now = self.clock()
        report = RunReport(source=self.source)
        day = self.ledger.calendar.ledger_day(now)
        try:
            report.deleted_old = self.sweeper.sweep(now)
            plan = self.plan(now)
            if not plan:
                report.message = f"No queries scheduled for {self.source}"
                if self.fetcher.query_driven:
                    report.api_usage = self.ledger.usage_summary(self.source, day).to_dict()
                logger.info(report.message)
                return report

            report.keywords_searched = plan.keywords
            results, started = self.fetch(plan, report)
            try:
                articles = self.normalize(plan, results, now, report)
                with self.persist_lock:
                    unique, stats = self.deduplicator.filter_new_with_stats(articles, now=now)
                    report.duplicates = stats.duplicates
                    report.saved = self.store.insert_if_absent(unique[: self.max_articles_per_run])
            finally:
                if self.fetcher.query_driven:
                    self.ledger.record_usage(self.source, day, len(started), started, at=self.clock())
            if self.fetcher.query_driven:
                report.api_usage = self.ledger.usage_summary(self.source, day).to_dict()
        except StoreUnavailableError as exc:
            logger.exception("Store unavailable during %s run: %s", self.source, exc)
            report.success = False
            report.message = f"{self.source} run aborted: store unavailable"
            report.error = f"{exc.__class__.__name__}: {exc}"
            return report

        report.message = (
            f"{self.source}: collected {report.collected}, saved {report.saved}, "
            f"duplicates {report.duplicates}, failed queries {report.failed_queries}"
        )
        logger.info(report.message)
        return report


def run_sources(orchestrators: Sequence[Orchestrator], *, max_workers: int = 3) -> List[RunReport]:
    """Run several sources concurrently; each source stays sequential internally."""
    if not orchestrators:
        return []
    reports: List[RunReport] = []
    workers = max(1, min(max_workers, len(orchestrators)))
    logger.debug("Starting %d source runs (workers=%d)", len(orchestrators), workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_map = {executor.submit(o.run): o for o in orchestrators}
        for fut in as_completed(future_map):
            orch = future_map[fut]
            try:
                reports.append(fut.result())
            except Exception as exc:  # noqa: BLE001 - isolate sources from each other
                logger.exception("Run failed for %s: %s", orch.source, exc)
                reports.append(
                    RunReport(
                        source=orch.source,
                        success=False,
                        message=f"{orch.source} run failed",
                        error=f"{exc.__class__.__name__}: {exc}",
                    )
                )
    order = {o.source: i for i, o in enumerate(orchestrators)}
    reports.sort(key=lambda r: order.get(r.source, len(order)))
    logger.info("Source runs complete: %d reports", len(reports))
    return reports
