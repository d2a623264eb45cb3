"""Normalization of raw insight rows."""

from .insights import (
    DailySummary,
    InsightRecord,
    flatten_actions,
    normalize_insight,
    summarize_by_date,
    to_number,
)

__all__ = [
    "DailySummary",
    "InsightRecord",
    "flatten_actions",
    "normalize_insight",
    "summarize_by_date",
    "to_number",
]
