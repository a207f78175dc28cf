from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import FrozenSet, Optional


@dataclass(slots=True, frozen=True)
class QuotaRecord:
    """One row of the usage ledger: calls made to a source on one calendar day."""

    source: str
    date: date
    requests_used: int = 0
    daily_limit: Optional[int] = None
    monthly_limit: Optional[int] = None
    keywords_used_today: FrozenSet[str] = field(default_factory=frozenset)
    last_request_at: Optional[datetime] = None
