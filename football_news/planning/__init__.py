"""Query planning: match calendar, quota policies, keyword catalogs and the scheduler."""

from .calendar import MatchCalendar
from .catalog import KeywordCatalog
from .quota_policy import QuotaPolicy
from .scheduler import PlannedQuery, QueryPlan, QueryScheduler, RunSizing

__all__ = [
    "MatchCalendar",
    "KeywordCatalog",
    "QuotaPolicy",
    "PlannedQuery",
    "QueryPlan",
    "QueryScheduler",
    "RunSizing",
]
