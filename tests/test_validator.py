"""Tests for the input validation boundary."""

import pytest
from decimal import Decimal

from expense_tracker.models.ledger import ExpenseCategory
from expense_tracker.validation import ExpenseValidationError, ExpenseValidator


@pytest.fixture
def validator():
    return ExpenseValidator()


class TestExpenseValidation:
    """Tests for expense input."""

    def test_valid_expense(self, validator):
        result = validator.validate_expense("Groceries", "45.50", "Food")
        assert result.is_valid is True
        assert result.issues == []

    def test_missing_description(self, validator):
        result = validator.validate_expense("   ", "10")
        assert result.first_error == "Description is required"

    def test_description_too_long(self, validator):
        result = validator.validate_expense("x" * 101, "10")
        assert result.first_error == "Description must be 100 characters or less"

    @pytest.mark.parametrize("description", [5, 12.5, ["Rent"]])
    def test_description_not_text(self, validator, description):
        result = validator.validate_expense(description, "10")
        assert result.first_error == "Description must be text"

    def test_build_expense_rejects_non_text_description(self, validator):
        with pytest.raises(ExpenseValidationError, match="Description must be text"):
            validator.build_expense(1, 5, "10")

    def test_description_at_limit(self, validator):
        assert validator.validate_expense("x" * 100, "10").is_valid is True

    @pytest.mark.parametrize("amount", [None, "", "abc", "NaN", "Infinity", True])
    def test_amount_not_a_number(self, validator, amount):
        result = validator.validate_expense("Test", amount)
        assert result.first_error == "Amount must be a valid number"

    @pytest.mark.parametrize("amount", ["0", "0.001", "-5"])
    def test_amount_too_small(self, validator, amount):
        result = validator.validate_expense("Test", amount)
        assert result.first_error == "Amount must be at least $0.01"

    def test_amount_too_large(self, validator):
        result = validator.validate_expense("Test", "1000000")
        assert result.first_error == "Amount cannot exceed $999,999.99"

    def test_amount_bounds_inclusive(self, validator):
        assert validator.validate_expense("Test", "0.01").is_valid is True
        assert validator.validate_expense("Test", "999999.99").is_valid is True

    def test_amount_too_many_decimals(self, validator):
        result = validator.validate_expense("Test", "12.345")
        assert result.first_error == "Amount cannot have more than 2 decimal places"

    def test_trailing_zeros_are_fine(self, validator):
        assert validator.validate_expense("Test", "12.500").is_valid is True

    def test_unknown_category(self, validator):
        result = validator.validate_expense("Test", "10", "Pets")
        assert result.first_error == "Unknown category: Pets"

    def test_collects_every_issue(self, validator):
        result = validator.validate_expense("", "abc", "Pets")
        assert result.error_count == 3
        assert [issue.field for issue in result.issues] == ["description", "amount", "category"]


class TestBuildExpense:
    """Tests for building an Expense from raw input."""

    def test_build_expense(self, validator):
        expense = validator.build_expense(42, "  Bus pass ", "45.5", "Transport")
        assert expense.id == 42
        assert expense.description == "Bus pass"
        assert expense.amount == Decimal("45.50")
        assert expense.category == ExpenseCategory.TRANSPORT

    def test_missing_category_is_other(self, validator):
        expense = validator.build_expense(1, "Misc", 3, None)
        assert expense.category == ExpenseCategory.OTHER

    def test_build_expense_raises_with_result(self, validator):
        with pytest.raises(ExpenseValidationError, match="Description is required") as exc_info:
            validator.build_expense(1, "", "10")
        assert exc_info.value.result.error_count == 1


class TestBalanceValidation:
    """Tests for bank balance input."""

    @pytest.mark.parametrize("balance", [None, "", "   "])
    def test_empty_means_zero(self, validator, balance):
        assert validator.validate_balance(balance).is_valid is True
        assert validator.parse_balance(balance) == Decimal("0")

    def test_valid_balance(self, validator):
        assert validator.parse_balance("2500.75") == Decimal("2500.75")
        assert validator.parse_balance(0) == Decimal("0")

    def test_negative_balance(self, validator):
        result = validator.validate_balance("-1")
        assert result.first_error == "Balance cannot be negative"

    def test_balance_too_large(self, validator):
        result = validator.validate_balance("1000000")
        assert result.first_error == "Balance cannot exceed $999,999.99"

    def test_balance_not_a_number(self, validator):
        with pytest.raises(ExpenseValidationError, match="Balance must be a valid number"):
            validator.parse_balance("lots")

    def test_balance_too_many_decimals(self, validator):
        result = validator.validate_balance("10.005")
        assert result.first_error == "Balance cannot have more than 2 decimal places"
