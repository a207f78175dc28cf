from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ..utils.logging import get_logger
from .base import ArticleStore

logger = get_logger("fn.storage.retention")


class RetentionSweeper:
    """Delete non-featured articles published before ``now - horizon``."""

    def __init__(self, store: ArticleStore, *, horizon: timedelta = timedelta(days=6)) -> None:
        self.store = store
        self.horizon = horizon

    def sweep(self, now: datetime, horizon: Optional[timedelta] = None) -> int:
        cutoff = now - (horizon if horizon is not None else self.horizon)
        deleted = self.store.delete_older_than(cutoff)
        logger.info("Retention sweep removed %d articles published before %s", deleted, cutoff.isoformat())
        return deleted
