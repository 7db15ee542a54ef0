"""Expense aggregation and cross-period analytics."""

from expense_tracker.aggregation.aggregator import (
    by_category,
    expense_table,
    filter_by_category,
    next_sort_state,
    sort_by,
    spending_by_category,
    spending_total,
    total,
)
from expense_tracker.aggregation.analytics import (
    build_period_stats,
    category_totals,
    extrema,
    filter_window,
    half_averages,
    spending_category_totals,
    summarize,
)

__all__ = [
    # Single period
    "by_category",
    "expense_table",
    "filter_by_category",
    "next_sort_state",
    "sort_by",
    "spending_by_category",
    "spending_total",
    "total",
    # Across periods
    "build_period_stats",
    "category_totals",
    "extrema",
    "filter_window",
    "half_averages",
    "spending_category_totals",
    "summarize",
]
