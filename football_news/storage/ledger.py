from __future__ import annotations

import calendar as _calendar
import sys
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, Optional

from ..models import QuotaRecord
from ..planning import MatchCalendar, QuotaPolicy
from ..utils.logging import get_logger
from .base import UsageCounterStore

logger = get_logger("fn.storage.ledger")


@dataclass(slots=True)
class UsageSummary:
    today: int
    daily_limit: Optional[int]
    remaining_today: Optional[int]
    used_this_month: int
    monthly_projection: int
    monthly_limit: Optional[int]

    def to_dict(self) -> dict:
        return {
            "today": self.today,
            "daily_limit": self.daily_limit,
            "remaining_today": self.remaining_today,
            "used_this_month": self.used_this_month,
            "monthly_projection": self.monthly_projection,
            "monthly_limit": self.monthly_limit,
        }


class QuotaLedger:
    """Per-source, per-day call budget on top of a :class:`UsageCounterStore`.

    The ledger never reads-then-writes a counter: usage is handed to the
    store as an increment. Errors from the store propagate unchanged
    (``StoreUnavailableError``) so the caller can fail the run closed.
    """

    def __init__(
        self,
        counters: UsageCounterStore,
        policies: Dict[str, QuotaPolicy],
        calendar: MatchCalendar,
    ) -> None:
        self.counters = counters
        self.policies = policies
        self.calendar = calendar

    def policy(self, source: str) -> QuotaPolicy:
        return self.policies.get(source) or QuotaPolicy()

    def daily_allowance(self, source: str, day: date) -> Optional[int]:
        return self.policy(source).allowance_for(self.calendar.day_type(day))

    def today_record(self, source: str, day: date) -> QuotaRecord:
        record = self.counters.get(source, day)
        if record is not None:
            return record
        policy = self.policy(source)
        return QuotaRecord(
            source=source,
            date=day,
            daily_limit=self.daily_allowance(source, day),
            monthly_limit=policy.monthly_limit,
        )

    def remaining_budget(self, source: str, day: date) -> int:
        policy = self.policy(source)
        if policy.unlimited:
            return sys.maxsize
        allowance = self.daily_allowance(source, day) or 0
        used_today = self.today_record(source, day).requests_used
        used_month = self.counters.month_total(source, day)
        return max(0, min(allowance - used_today, policy.monthly_limit - used_month))

    def record_usage(
        self,
        source: str,
        day: date,
        count: int,
        keywords: Iterable[str],
        *,
        at: datetime,
    ) -> None:
        keywords = list(keywords)
        if count <= 0 and not keywords:
            return
        policy = self.policy(source)
        self.counters.increment(
            source,
            day,
            count,
            keywords,
            at=at,
            daily_limit=self.daily_allowance(source, day),
            monthly_limit=policy.monthly_limit,
        )
        logger.info("Recorded %d %s calls for %s", count, source, day.isoformat())

    def usage_summary(self, source: str, day: date) -> UsageSummary:
        policy = self.policy(source)
        today = self.today_record(source, day).requests_used
        used_month = self.counters.month_total(source, day)
        days_in_month = _calendar.monthrange(day.year, day.month)[1]
        projection = int(round(used_month / day.day * days_in_month))
        allowance = self.daily_allowance(source, day)
        return UsageSummary(
            today=today,
            daily_limit=allowance,
            remaining_today=None if policy.unlimited else self.remaining_budget(source, day),
            used_this_month=used_month,
            monthly_projection=projection,
            monthly_limit=policy.monthly_limit,
        )
