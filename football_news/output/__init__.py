"""Run reporting."""

from .pipeline_reporter import RunReport, merge_reports

__all__ = ["RunReport", "merge_reports"]
