from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence


@dataclass(slots=True)
class RunReport:
    source: str
    success: bool = True
    message: str = ""
    collected: int = 0
    dropped: int = 0
    duplicates: int = 0
    saved: int = 0
    deleted_old: int = 0
    failed_queries: int = 0
    timed_out: bool = False
    keywords_searched: List[str] = field(default_factory=list)
    api_usage: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def stats(self) -> Dict[str, Any]:
        return {
            "collected": self.collected,
            "dropped": self.dropped,
            "duplicates": self.duplicates,
            "saved": self.saved,
            "deleted_old": self.deleted_old,
            "failed_queries": self.failed_queries,
            "timed_out": self.timed_out,
            "keywords_searched": list(self.keywords_searched),
            "api_usage": self.api_usage,
        }

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "stats": self.stats(),
        }
        if self.error:
            payload["error"] = self.error
        return payload

    def to_markdown(self) -> str:
        lines = [
            f"### Collection Summary ({self.source})\n",
            f"- Status: {'ok' if self.success else 'failed'}",
            f"- Collected: {self.collected}",
            f"- Dropped: {self.dropped}",
            f"- Duplicates: {self.duplicates}",
            f"- Saved: {self.saved}",
            f"- Deleted old: {self.deleted_old}",
            f"- Failed queries: {self.failed_queries}",
        ]
        if self.timed_out:
            lines.append("- Run deadline reached; partial results kept")
        if self.keywords_searched:
            lines.append(f"- Keywords: {', '.join(self.keywords_searched)}")
        if self.api_usage:
            usage = self.api_usage
            lines.append(
                f"- API usage: {usage.get('today')}/{usage.get('daily_limit')} today, "
                f"projected {usage.get('monthly_projection')}/{usage.get('monthly_limit')} this month"
            )
        if self.error:
            lines.append(f"- Error: {self.error}")
        return "\n".join(lines) + "\n"


_SUMMED = ("collected", "dropped", "duplicates", "saved", "deleted_old", "failed_queries")


def merge_reports(reports: Sequence[RunReport]) -> Dict[str, Any]:
    """Combine per-source reports into the single response of an ``auto`` run."""
    totals: Dict[str, Any] = {name: sum(getattr(r, name) for r in reports) for name in _SUMMED}
    totals["timed_out"] = any(r.timed_out for r in reports)
    totals["keywords_searched"] = [kw for r in reports for kw in r.keywords_searched]
    totals["api_usage"] = {r.source: r.api_usage for r in reports if r.api_usage is not None}
    totals["sources"] = {r.source: r.to_dict() for r in reports}

    failed = [r for r in reports if not r.success]
    success = not failed
    if success:
        message = f"Collected {totals['collected']} articles, saved {totals['saved']} from {len(reports)} sources"
    else:
        message = "; ".join(f"{r.source}: {r.message}" for r in failed)

    payload: Dict[str, Any] = {"success": success, "message": message, "stats": totals}
    if failed:
        payload["error"] = "; ".join(r.error or r.message for r in failed)
    return payload
