"""Persistence: article store, usage counters, quota ledger and retention."""

from .base import ArticleStore, StoreUnavailableError, UsageCounterStore
from .ledger import QuotaLedger
from .retention import RetentionSweeper
from .sqlite import SQLiteStore

__all__ = [
    "ArticleStore",
    "UsageCounterStore",
    "StoreUnavailableError",
    "QuotaLedger",
    "RetentionSweeper",
    "SQLiteStore",
]
