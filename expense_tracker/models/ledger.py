"""
Core Data Models for Expense Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable to the persisted period document shape
4. Support the audit trail

DESIGN DECISION: Categories are a closed enumeration. Unknown values are
rejected when an Expense is constructed, so aggregation never has to guess.
"""

from decimal import Decimal
from enum import Enum
from functools import total_ordering
from typing import Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# CONSTANTS
# =============================================================================

DESC_MAX_LENGTH = 100
AMOUNT_MIN = Decimal("0.01")
AMOUNT_MAX = Decimal("999999.99")
BALANCE_MAX = Decimal("999999.99")

# Filter value meaning "no category filter"
ALL_CATEGORIES = "All"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: Using explicit categories rather than free text ensures
    consistent grouping in the dashboard breakdown and analytics.
    Savings is tracked like any other category but is left out of
    headline spending figures.
    """
    HOUSING = "Housing"
    FOOD = "Food"
    TRANSPORT = "Transport"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    INSURANCE = "Insurance"
    SAVINGS = "Savings"
    FAMILY_SUPPORT = "Family Support"
    DEBT_PAYMENTS = "Debt/Payments"
    OTHER = "Other"


class InvalidPeriodKeyError(ValueError):
    """A period identifier string could not be parsed."""
    pass


# =============================================================================
# PERIOD KEY
# =============================================================================

@total_ordering
class PeriodKey(BaseModel):
    """
    Identifier of a half-month period.

    Serialized as "YYYY-M-H" without zero padding, e.g. "2024-5-1".
    Half 1 covers days 1-15, half 2 covers day 16 to the end of the month.
    Keys order chronologically.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)
    half: Literal[1, 2]

    @classmethod
    def parse(cls, text: str) -> "PeriodKey":
        """
        Parse a serialized key.

        Raises:
            InvalidPeriodKeyError: If the text is not three integers joined
                by '-' or a component is out of range.
        """
        parts = str(text).strip().split("-")
        if len(parts) != 3:
            raise InvalidPeriodKeyError(f"Malformed period key: {text!r}")
        try:
            year, month, half = (int(part) for part in parts)
        except ValueError:
            raise InvalidPeriodKeyError(f"Malformed period key: {text!r}")
        if not 1 <= month <= 12 or half not in (1, 2) or not 1 <= year <= 9999:
            raise InvalidPeriodKeyError(f"Period key out of range: {text!r}")
        return cls(year=year, month=month, half=half)

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (self.year, self.month, self.half)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PeriodKey):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __str__(self) -> str:
        return f"{self.year}-{self.month}-{self.half}"


# =============================================================================
# EXPENSE AND PERIOD
# =============================================================================

class Expense(BaseModel):
    """
    A single expense recorded against a period.

    The id never changes. Description, amount and category are edited by
    replacing the expense inside its period.

    Persisted as {"id", "desc", "amount", "category"}.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: int = Field(
        ...,
        ge=0,
        description="Creation timestamp in milliseconds, unique within the period"
    )
    description: str = Field(
        ...,
        alias="desc",
        min_length=1,
        max_length=DESC_MAX_LENGTH,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        ge=AMOUNT_MIN,
        le=AMOUNT_MAX,
        decimal_places=2,
        description="Amount spent"
    )
    category: ExpenseCategory = Field(
        default=ExpenseCategory.OTHER,
        description="Expense category"
    )

    @field_validator('category', mode='before')
    @classmethod
    def default_missing_category(cls, v: Any) -> Any:
        """Older documents have no category; those read as Other."""
        if v is None or v == "":
            return ExpenseCategory.OTHER
        return v

    def to_document(self) -> dict:
        """Convert to the persisted document shape."""
        return {
            "id": self.id,
            "desc": self.description,
            "amount": float(self.amount),
            "category": self.category.value,
        }


class PeriodData(BaseModel):
    """
    Contents of one period document.

    Persisted as {"bankBalance", "expenses"}.
    """
    model_config = ConfigDict(populate_by_name=True)

    bank_balance: Decimal = Field(
        default=Decimal("0"),
        alias="bankBalance",
        ge=0,
        le=BALANCE_MAX,
        decimal_places=2,
        description="Bank balance entered by the user for this period"
    )
    expenses: list[Expense] = Field(
        default_factory=list,
        description="Expenses in insertion order"
    )

    def to_document(self) -> dict:
        """Convert to the persisted document shape."""
        return {
            "bankBalance": float(self.bank_balance),
            "expenses": [expense.to_document() for expense in self.expenses],
        }

    @classmethod
    def from_document(cls, document: dict) -> "PeriodData":
        """Build from a stored document. Raises pydantic.ValidationError if invalid."""
        return cls.model_validate(document)


class Period(BaseModel):
    """A period key together with its stored contents."""

    key: PeriodKey
    data: PeriodData = Field(default_factory=PeriodData)

    @property
    def expenses(self) -> list[Expense]:
        return self.data.expenses

    @property
    def bank_balance(self) -> Decimal:
        return self.data.bank_balance


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'too_long', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating raw user input.

    Input is never silently corrected; issues are reported back
    to the caller for display.
    """

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def first_error(self) -> Optional[str]:
        """Message of the first error, as shown in a single toast."""
        for issue in self.issues:
            if issue.severity == "error":
                return issue.message
        return None
