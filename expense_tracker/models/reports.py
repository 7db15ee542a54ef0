"""
Report Models for Expense Tracker

Display-ready figures produced by the aggregator, the analytics reducer
and the ledger orchestrator. None of these are persisted.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from expense_tracker.models.ledger import ExpenseCategory, PeriodKey


class SortField(str, Enum):
    """Column an expense list can be sorted by."""
    NONE = "none"
    DESCRIPTION = "description"
    AMOUNT = "amount"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortState(BaseModel):
    """Current sort selection of an expense table."""
    model_config = ConfigDict(frozen=True)

    field: SortField = SortField.NONE
    direction: SortDirection = SortDirection.ASC


class WindowMode(str, Enum):
    """How the analytics view limits the periods it looks at."""
    ALL = "all"
    YEAR = "year"
    LAST_MONTHS = "last_months"


class AnalyticsWindow(BaseModel):
    """
    Time window for analytics.

    - ALL: every period
    - YEAR: periods whose key year equals `year`
    - LAST_MONTHS: periods starting on or after today minus `months` months
    """
    model_config = ConfigDict(frozen=True)

    mode: WindowMode = WindowMode.ALL
    year: Optional[int] = Field(default=None, ge=1, le=9999)
    months: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode='after')
    def validate_mode_arguments(self) -> 'AnalyticsWindow':
        if self.mode == WindowMode.YEAR and self.year is None:
            raise ValueError("A year window needs a year")
        if self.mode == WindowMode.LAST_MONTHS and self.months is None:
            raise ValueError("A last-months window needs a number of months")
        return self

    @classmethod
    def all(cls) -> 'AnalyticsWindow':
        return cls(mode=WindowMode.ALL)

    @classmethod
    def for_year(cls, year: int) -> 'AnalyticsWindow':
        return cls(mode=WindowMode.YEAR, year=year)

    @classmethod
    def last_months(cls, months: int) -> 'AnalyticsWindow':
        return cls(mode=WindowMode.LAST_MONTHS, months=months)


class PeriodStat(BaseModel):
    """
    Per-period figures used by analytics.

    `total` leaves out Savings; `by_category` still includes it.
    """

    key: PeriodKey
    label: str
    total: Decimal = Decimal("0")
    by_category: dict[ExpenseCategory, Decimal] = Field(default_factory=dict)

    @property
    def half(self) -> int:
        return self.key.half


class PeriodExtrema(BaseModel):
    """Highest and lowest spending periods of a non-empty window."""

    highest: PeriodStat
    lowest: PeriodStat


class AnalyticsSummary(BaseModel):
    """Summary cards and chart data for the analytics view."""

    periods_tracked: int = Field(ge=0)
    average_first_half: Decimal = Decimal("0")
    average_second_half: Decimal = Decimal("0")
    extrema: Optional[PeriodExtrema] = Field(
        default=None,
        description="None when the window holds no periods"
    )
    category_totals: dict[ExpenseCategory, Decimal] = Field(
        default_factory=dict,
        description="All categories including Savings"
    )
    spending_category_totals: dict[ExpenseCategory, Decimal] = Field(
        default_factory=dict,
        description="Categories without Savings, largest first"
    )
    total_spending: Decimal = Decimal("0")
    savings_total: Decimal = Decimal("0")
    periods: list[PeriodStat] = Field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.periods_tracked > 0


class PeriodSummary(BaseModel):
    """Balance cards of the expenses view for one period."""

    key: PeriodKey
    label: str
    bank_balance: Decimal
    total_expenses: Decimal = Field(
        ...,
        description="Sum of every expense in the period, Savings included"
    )
    total_available: Decimal = Field(
        ...,
        description="Bank balance minus total expenses; negative when overspent"
    )
    spending_by_category: dict[ExpenseCategory, Decimal] = Field(
        default_factory=dict,
        description="Breakdown without Savings, largest first"
    )
    previous_total: Optional[Decimal] = Field(
        default=None,
        description="Total of the previous period, None if it does not exist"
    )
    expense_count: int = Field(default=0, ge=0)

    @property
    def period_difference(self) -> Optional[Decimal]:
        """Change in total expenses against the previous period."""
        if self.previous_total is None:
            return None
        return self.total_expenses - self.previous_total

    @property
    def is_overspent(self) -> bool:
        return self.total_available < 0
