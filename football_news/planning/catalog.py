from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple


@dataclass(slots=True)
class KeywordCatalog:
    """Static, tiered query catalog for one search source.

    Tiers are consulted by the scheduler in a fixed order; see
    :class:`~football_news.planning.scheduler.QueryScheduler`.
    """

    always_on: List[str] = field(default_factory=list)
    always_on_busy: List[str] = field(default_factory=list)
    time_of_day: Dict[str, List[str]] = field(default_factory=dict)
    time_of_day_busy: Dict[str, List[str]] = field(default_factory=dict)
    region_priority: List[str] = field(default_factory=list)
    transfer_window: List[str] = field(default_factory=list)
    transfer_window_months: Tuple[int, ...] = (1, 8)
    transfer_window_limit: int = 3
    teams: Dict[str, List[str]] = field(default_factory=dict)
    trending: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)

    def league_queries(self, busy: bool) -> List[str]:
        if busy and self.always_on_busy:
            return self.always_on_busy
        return self.always_on

    def window_queries(self, window: str, busy: bool) -> List[str]:
        if busy and window in self.time_of_day_busy:
            return self.time_of_day_busy[window]
        return self.time_of_day.get(window, [])

    def team_rotation(self) -> List[str]:
        """Team queries interleaved across groups: first of each league, then second..."""
        return list(_round_robin(self.teams.values()))


def _round_robin(groups: Iterable[List[str]]) -> Iterable[str]:
    pending = [list(g) for g in groups if g]
    index = 0
    while pending:
        remaining = []
        for group in pending:
            if index < len(group):
                yield group[index]
            if index + 1 < len(group):
                remaining.append(group)
        pending = remaining
        index += 1
