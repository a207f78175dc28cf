from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(slots=True)
class QuotaPolicy:
    """Call allowance of one source.

    The nominal daily limit spreads the monthly cap evenly over
    ``days_per_month`` after applying ``safety_margin`` (2000 a month with a
    0.8 margin gives 53 a day). ``day_allowances`` may grant a different
    allowance per day type (weekday / weekend / matchday). A policy without a
    monthly limit is unlimited.
    """

    monthly_limit: Optional[int] = None
    safety_margin: float = 1.0
    day_allowances: Dict[str, int] = field(default_factory=dict)
    days_per_month: int = 30

    @property
    def unlimited(self) -> bool:
        return self.monthly_limit is None

    @property
    def daily_limit(self) -> Optional[int]:
        if self.monthly_limit is None:
            return None
        return int(math.floor(self.monthly_limit * self.safety_margin / self.days_per_month))

    def allowance_for(self, day_type: str) -> Optional[int]:
        if self.monthly_limit is None:
            return None
        return self.day_allowances.get(day_type, self.daily_limit)
