"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.ledger import (
    ALL_CATEGORIES,
    AMOUNT_MAX,
    AMOUNT_MIN,
    BALANCE_MAX,
    DESC_MAX_LENGTH,
    Expense,
    ExpenseCategory,
    InvalidPeriodKeyError,
    Period,
    PeriodData,
    PeriodKey,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.reports import (
    AnalyticsSummary,
    AnalyticsWindow,
    PeriodExtrema,
    PeriodStat,
    PeriodSummary,
    SortDirection,
    SortField,
    SortState,
    WindowMode,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "ALL_CATEGORIES",
    "AMOUNT_MAX",
    "AMOUNT_MIN",
    "BALANCE_MAX",
    "DESC_MAX_LENGTH",
    "Expense",
    "ExpenseCategory",
    "InvalidPeriodKeyError",
    "Period",
    "PeriodData",
    "PeriodKey",
    "ValidationIssue",
    "ValidationResult",
    # Report models
    "AnalyticsSummary",
    "AnalyticsWindow",
    "PeriodExtrema",
    "PeriodStat",
    "PeriodSummary",
    "SortDirection",
    "SortField",
    "SortState",
    "WindowMode",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
