"""Validation package."""

from expense_tracker.validation.validator import (
    ExpenseValidationError,
    ExpenseValidator,
)

__all__ = ["ExpenseValidationError", "ExpenseValidator"]
