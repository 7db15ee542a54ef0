"""
Input Validation Boundary

DESIGN DECISION: Raw user input (text fields, amounts typed as strings,
category names) is validated here, once, before an Expense or a bank
balance ever reaches a period. The aggregator and analytics code trust
their input and never re-check it.

Checks:
- Description present and at most 100 characters
- Amount a finite number between $0.01 and $999,999.99, at most 2 decimals
- Category one of the closed category set
- Bank balance a finite number between $0 and $999,999.99

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the caller to show to the user.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from expense_tracker.models.ledger import (
    AMOUNT_MAX,
    AMOUNT_MIN,
    BALANCE_MAX,
    DESC_MAX_LENGTH,
    Expense,
    ExpenseCategory,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.periods.display import CENT, format_currency

RawAmount = Union[str, int, float, Decimal, None]


class ExpenseValidationError(ValueError):
    """Raised when user input does not describe a valid expense or balance."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(result.first_error or "Invalid input")


def _parse_decimal(raw: RawAmount) -> Optional[Decimal]:
    """Decimal value of raw input, or None if it is not a finite number."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def _has_at_most_two_decimals(value: Decimal) -> bool:
    exponent = value.normalize().as_tuple().exponent
    return not isinstance(exponent, int) or exponent >= -2


class ExpenseValidator:
    """
    Validates raw expense and balance input.

    Stateless; one instance can be shared by every request.
    """

    def validate_description(self, description: Optional[str]) -> list[ValidationIssue]:
        if description is not None and not isinstance(description, str):
            return [ValidationIssue(
                field="description",
                issue_type="invalid_format",
                message="Description must be text",
            )]
        issues = []
        text = (description or "").strip()
        if not text:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
            ))
        elif len(text) > DESC_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description must be {DESC_MAX_LENGTH} characters or less",
            ))
        return issues

    def validate_amount(self, amount: RawAmount) -> list[ValidationIssue]:
        value = _parse_decimal(amount)
        if value is None:
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a valid number",
            )]
        if value < AMOUNT_MIN:
            return [ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message=f"Amount must be at least {format_currency(AMOUNT_MIN)}",
            )]
        if value > AMOUNT_MAX:
            return [ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message=f"Amount cannot exceed {format_currency(AMOUNT_MAX)}",
            )]
        if not _has_at_most_two_decimals(value):
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount cannot have more than 2 decimal places",
            )]
        return []

    def validate_category(self, category: Any) -> list[ValidationIssue]:
        if category is None or category == "" or isinstance(category, ExpenseCategory):
            return []
        try:
            ExpenseCategory(category)
        except ValueError:
            return [ValidationIssue(
                field="category",
                issue_type="unknown_value",
                message=f"Unknown category: {category}",
            )]
        return []

    def validate_expense(
        self,
        description: Optional[str],
        amount: RawAmount,
        category: Any = ExpenseCategory.OTHER,
    ) -> ValidationResult:
        """Validate all expense fields, collecting every issue."""
        issues = []
        issues.extend(self.validate_description(description))
        issues.extend(self.validate_amount(amount))
        issues.extend(self.validate_category(category))
        return ValidationResult(issues=issues)

    def validate_balance(self, balance: RawAmount) -> ValidationResult:
        """
        Validate a bank balance.

        An empty field means a zero balance.
        """
        if balance is None or (isinstance(balance, str) and not balance.strip()):
            return ValidationResult()

        value = _parse_decimal(balance)
        issues = []
        if value is None:
            issues.append(ValidationIssue(
                field="bank_balance",
                issue_type="invalid_format",
                message="Balance must be a valid number",
            ))
        elif value < 0:
            issues.append(ValidationIssue(
                field="bank_balance",
                issue_type="out_of_range",
                message="Balance cannot be negative",
            ))
        elif value > BALANCE_MAX:
            issues.append(ValidationIssue(
                field="bank_balance",
                issue_type="out_of_range",
                message=f"Balance cannot exceed {format_currency(BALANCE_MAX)}",
            ))
        elif not _has_at_most_two_decimals(value):
            issues.append(ValidationIssue(
                field="bank_balance",
                issue_type="invalid_format",
                message="Balance cannot have more than 2 decimal places",
            ))
        return ValidationResult(issues=issues)

    def build_expense(
        self,
        expense_id: int,
        description: Optional[str],
        amount: RawAmount,
        category: Any = ExpenseCategory.OTHER,
    ) -> Expense:
        """
        Create an Expense from raw input.

        Raises:
            ExpenseValidationError: If any field is invalid
        """
        result = self.validate_expense(description, amount, category)
        if result.has_errors:
            raise ExpenseValidationError(result)
        return Expense(
            id=expense_id,
            description=description.strip(),
            amount=_parse_decimal(amount).quantize(CENT),
            category=category or ExpenseCategory.OTHER,
        )

    def parse_balance(self, balance: RawAmount) -> Decimal:
        """
        Decimal bank balance from raw input.

        Raises:
            ExpenseValidationError: If the balance is invalid
        """
        result = self.validate_balance(balance)
        if result.has_errors:
            raise ExpenseValidationError(result)
        value = _parse_decimal(balance)
        if value is None:
            return Decimal("0.00")
        return value.quantize(CENT)
