"""Reporting package: period buckets and budget usage."""

from finance_tracker.reports.budget import summarize_category_spending
from finance_tracker.reports.periods import (
    group_by_period,
    net_total,
    period_bounds,
    sort_chronologically,
    week_start,
)

__all__ = [
    "group_by_period",
    "net_total",
    "period_bounds",
    "sort_chronologically",
    "summarize_category_spending",
    "week_start",
]
