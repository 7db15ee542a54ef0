"""
Analytics Reducer

Turns many periods' worth of expenses into the summary cards and chart
series of the analytics view.

DESIGN DECISION: An empty window is reported as empty. Averages fall back
to zero, but there is no highest or lowest period, and callers get None
instead of a zero-valued placeholder period.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence, TypeVar

from dateutil.relativedelta import relativedelta

from expense_tracker.aggregation.aggregator import (
    NON_SPENDING_CATEGORIES,
    by_category,
    spending_total,
)
from expense_tracker.models.ledger import ExpenseCategory, Period, PeriodKey
from expense_tracker.models.reports import (
    AnalyticsSummary,
    AnalyticsWindow,
    PeriodExtrema,
    PeriodStat,
    WindowMode,
)
from expense_tracker.periods.display import display_label
from expense_tracker.periods.identifier import period_start_date


class Keyed(Protocol):
    key: PeriodKey


K = TypeVar("K", bound=Keyed)


def build_period_stats(periods: Iterable[Period]) -> list[PeriodStat]:
    """One PeriodStat per period, oldest first."""
    stats = [
        PeriodStat(
            key=period.key,
            label=display_label(period.key),
            total=spending_total(period.expenses),
            by_category=by_category(period.expenses),
        )
        for period in periods
    ]
    stats.sort(key=lambda stat: stat.key)
    return stats


def window_start(window: AnalyticsWindow, today: date) -> Optional[date]:
    """Earliest period start date a last-months window accepts."""
    if window.mode != WindowMode.LAST_MONTHS:
        return None
    return today - relativedelta(months=window.months)


def filter_window(
    items: Sequence[K],
    window: AnalyticsWindow,
    today: date,
) -> list[K]:
    """
    Keep the periods inside the analytics window.

    Works on anything with a `key` (Period or PeriodStat); order is kept.
    """
    if window.mode == WindowMode.ALL:
        return list(items)
    if window.mode == WindowMode.YEAR:
        return [item for item in items if item.key.year == window.year]

    start = window_start(window, today)
    return [item for item in items if period_start_date(item.key) >= start]


def _mean(values: list[Decimal]) -> Decimal:
    if not values:
        return Decimal("0")
    return sum(values, Decimal("0")) / len(values)


def half_averages(stats: Sequence[PeriodStat]) -> tuple[Decimal, Decimal]:
    """Average spending of first-half and second-half periods, 0 if none."""
    first = [stat.total for stat in stats if stat.half == 1]
    second = [stat.total for stat in stats if stat.half == 2]
    return _mean(first), _mean(second)


def extrema(stats: Sequence[PeriodStat]) -> Optional[PeriodExtrema]:
    """
    Highest and lowest spending periods.

    Ties go to the period scanned first. Returns None for an empty window.
    """
    if not stats:
        return None
    # max() and min() both return the first of several equal elements
    highest = max(stats, key=lambda stat: stat.total)
    lowest = min(stats, key=lambda stat: stat.total)
    return PeriodExtrema(highest=highest, lowest=lowest)


def category_totals(stats: Iterable[PeriodStat]) -> dict[ExpenseCategory, Decimal]:
    """Per-category sums across the window, Savings included."""
    totals: dict[ExpenseCategory, Decimal] = {}
    for stat in stats:
        for category, amount in stat.by_category.items():
            totals[category] = totals.get(category, Decimal("0")) + amount
    return totals


def spending_category_totals(stats: Iterable[PeriodStat]) -> dict[ExpenseCategory, Decimal]:
    """Per-category sums without Savings, largest first."""
    totals = {
        category: amount
        for category, amount in category_totals(stats).items()
        if category not in NON_SPENDING_CATEGORIES
    }
    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


def summarize(stats: Sequence[PeriodStat]) -> AnalyticsSummary:
    """Everything the analytics view shows for one window."""
    average_first, average_second = half_averages(stats)
    totals = category_totals(stats)
    return AnalyticsSummary(
        periods_tracked=len(stats),
        average_first_half=average_first,
        average_second_half=average_second,
        extrema=extrema(stats),
        category_totals=totals,
        spending_category_totals=spending_category_totals(stats),
        total_spending=sum((stat.total for stat in stats), Decimal("0")),
        savings_total=totals.get(ExpenseCategory.SAVINGS, Decimal("0")),
        periods=list(stats),
    )
