"""Report generation modules for DamShift."""

from .export import write_results, write_summary, summarize_results, collect_records

__all__ = ["write_results", "write_summary", "summarize_results", "collect_records"]
