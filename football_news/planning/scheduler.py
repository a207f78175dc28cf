from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Set

from ..models import QuotaRecord
from ..utils.logging import get_logger
from .calendar import MatchCalendar
from .catalog import KeywordCatalog

logger = get_logger("fn.planning.scheduler")


@dataclass(slots=True, frozen=True)
class PlannedQuery:
    query: str
    source: str
    tier: str


@dataclass(slots=True)
class QueryPlan:
    """Ordered queries selected for one run of one source. Never persisted."""

    source: str
    queries: List[PlannedQuery] = field(default_factory=list)

    @classmethod
    def from_queries(cls, source: str, queries: Iterable[str], *, tier: str) -> "QueryPlan":
        return cls(source=source, queries=[PlannedQuery(q, source, tier) for q in queries])

    @property
    def keywords(self) -> List[str]:
        return [q.query for q in self.queries]

    def __len__(self) -> int:
        return len(self.queries)

    def __iter__(self) -> Iterator[PlannedQuery]:
        return iter(self.queries)


@dataclass(slots=True)
class RunSizing:
    """Queries per run by source-region time of day, doubled on busy days."""

    peak: int = 5
    normal: int = 3
    quiet: int = 1
    busy_multiplier: int = 2


class QueryScheduler:
    """Choose the queries for one run of a quota-bound search source.

    Selection is deterministic for a given (quota record, clock, catalog):
    the always-on league tier first, then the home-market tier during the
    home region's evening, the time-of-day tier, the transfer-window tier in
    window months, teams round-robin across leagues, trending players and
    finally hot topics. Keywords already searched today are skipped unless
    ``force`` is set. The plan never exceeds the remaining budget.
    """

    def __init__(
        self,
        source: str,
        catalog: KeywordCatalog,
        calendar: MatchCalendar,
        *,
        sizing: Optional[RunSizing] = None,
    ) -> None:
        self.source = source
        self.catalog = catalog
        self.calendar = calendar
        self.sizing = sizing or RunSizing()

    def run_size(self, now: datetime) -> int:
        if self.calendar.in_live_window(now):
            count = self.sizing.peak
        elif self.calendar.in_quiet_window(now):
            count = self.sizing.quiet
        else:
            count = self.sizing.normal
        if self.calendar.is_busy_day(self.calendar.ledger_day(now)):
            count *= self.sizing.busy_multiplier
        return count

    def plan(
        self,
        record: QuotaRecord,
        remaining_budget: int,
        now: datetime,
        *,
        force: bool = False,
    ) -> QueryPlan:
        plan = QueryPlan(source=self.source)
        if remaining_budget <= 0:
            logger.info("No budget left for %s today; empty plan", self.source)
            return plan

        capacity = min(self.run_size(now), remaining_budget)
        used: Set[str] = set() if force else set(record.keywords_used_today)
        chosen: Set[str] = set()
        busy = self.calendar.is_busy_day(self.calendar.ledger_day(now))
        catalog = self.catalog

        def take(tier: str, queries: Iterable[str], limit: Optional[int] = None) -> None:
            added = 0
            for query in queries:
                if len(plan.queries) >= capacity or (limit is not None and added >= limit):
                    return
                if query in used or query in chosen:
                    continue
                plan.queries.append(PlannedQuery(query, self.source, tier))
                chosen.add(query)
                added += 1

        take("league", catalog.league_queries(busy))
        if self.calendar.in_home_evening(now):
            take("region", catalog.region_priority)
        take("time_of_day", catalog.window_queries(self.calendar.time_window(now), busy))
        if self.calendar.source_local(now).month in catalog.transfer_window_months:
            take("transfer_window", catalog.transfer_window, limit=catalog.transfer_window_limit)
        take("team", catalog.team_rotation())
        take("trending", catalog.trending)
        take("topic", catalog.topics)

        logger.info(
            "Planned %d/%d queries for %s (remaining budget=%d)",
            len(plan),
            capacity,
            self.source,
            remaining_budget,
        )
        return plan
