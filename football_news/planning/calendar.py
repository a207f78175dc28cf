from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import FrozenSet, Tuple

DayType = str  # "weekday" | "weekend" | "matchday"

# Inclusive hour ranges in source-region local time
TIME_WINDOWS: Tuple[Tuple[str, int, int], ...] = (
    ("morning", 7, 12),
    ("afternoon", 13, 18),
    ("evening", 19, 23),
)


def _in_range(hour: int, bounds: Tuple[int, int]) -> bool:
    start, end = bounds
    return start <= hour <= end


@dataclass(slots=True, frozen=True)
class MatchCalendar:
    """Region-aware view of the clock.

    All football timing (live-match window, matchdays, overnight lull) is
    evaluated in the source region's local time; the home market's evening
    is evaluated in the home region's local time. Both offsets are plain
    hour offsets from UTC.
    """

    source_utc_offset: int = 1
    home_utc_offset: int = 9
    # Monday == 0; Tuesday/Wednesday carry the European club competitions
    matchday_weekdays: FrozenSet[int] = frozenset({1, 2})
    marquee_fixture_dates: FrozenSet[date] = field(default_factory=frozenset)
    live_window: Tuple[int, int] = (19, 23)
    quiet_window: Tuple[int, int] = (0, 6)
    home_evening: Tuple[int, int] = (18, 23)

    def source_local(self, now: datetime) -> datetime:
        return now.astimezone(timezone(timedelta(hours=self.source_utc_offset)))

    def home_local(self, now: datetime) -> datetime:
        return now.astimezone(timezone(timedelta(hours=self.home_utc_offset)))

    def ledger_day(self, now: datetime) -> date:
        return self.source_local(now).date()

    def day_type(self, day: date) -> DayType:
        if day in self.marquee_fixture_dates or day.weekday() in self.matchday_weekdays:
            return "matchday"
        if day.weekday() >= 5:
            return "weekend"
        return "weekday"

    def is_busy_day(self, day: date) -> bool:
        return self.day_type(day) != "weekday"

    def in_live_window(self, now: datetime) -> bool:
        return _in_range(self.source_local(now).hour, self.live_window)

    def in_quiet_window(self, now: datetime) -> bool:
        return _in_range(self.source_local(now).hour, self.quiet_window)

    def in_home_evening(self, now: datetime) -> bool:
        return _in_range(self.home_local(now).hour, self.home_evening)

    def time_window(self, now: datetime) -> str:
        hour = self.source_local(now).hour
        for name, start, end in TIME_WINDOWS:
            if start <= hour <= end:
                return name
        return "night"
