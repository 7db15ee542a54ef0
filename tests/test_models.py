"""
Tests for Expense Tracker

Test strategy:
1. Unit tests for individual components (models, validators, aggregation)
2. Integration tests for flows (with in-memory storage)
3. No real API calls in tests
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from expense_tracker.models.ledger import (
    Expense,
    ExpenseCategory,
    InvalidPeriodKeyError,
    PeriodData,
    PeriodKey,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.reports import AnalyticsWindow, PeriodSummary, WindowMode
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestPeriodKey:
    """Tests for the PeriodKey model."""

    def test_str_has_no_padding(self):
        """Test serialization as YYYY-M-H."""
        assert str(PeriodKey(year=2024, month=5, half=1)) == "2024-5-1"
        assert str(PeriodKey(year=2024, month=12, half=2)) == "2024-12-2"

    def test_parse(self):
        """Test parsing a serialized key."""
        key = PeriodKey.parse("2024-10-2")
        assert key == PeriodKey(year=2024, month=10, half=2)

    @pytest.mark.parametrize("text", ["", "2024-5", "2024-5-3", "2024-13-1", "abc-1-1", "2024-0-1"])
    def test_parse_rejects_malformed(self, text):
        """Test malformed or out-of-range keys are rejected."""
        with pytest.raises(InvalidPeriodKeyError):
            PeriodKey.parse(text)

    def test_ordering_is_chronological(self):
        """Test that 2024-10-1 sorts after 2024-9-2."""
        assert PeriodKey.parse("2024-9-2") < PeriodKey.parse("2024-10-1")
        assert PeriodKey.parse("2023-12-2") < PeriodKey.parse("2024-1-1")
        assert PeriodKey.parse("2024-3-1") < PeriodKey.parse("2024-3-2")

    def test_keys_are_hashable(self):
        """Test keys can be used in sets and as dict keys."""
        keys = {PeriodKey.parse("2024-1-1"), PeriodKey.parse("2024-1-1")}
        assert len(keys) == 1


class TestExpenseModels:
    """Tests for expense and period document models."""

    def test_expense_creation(self):
        """Test Expense model creation."""
        expense = Expense(
            id=1714000000000,
            description="Rent",
            amount=Decimal("1200.00"),
            category=ExpenseCategory.HOUSING,
        )
        assert expense.description == "Rent"
        assert expense.category == ExpenseCategory.HOUSING

    def test_expense_strips_whitespace(self):
        """Test that whitespace is stripped from the description."""
        expense = Expense(id=1, description="  Groceries  ", amount=Decimal("10"))
        assert expense.description == "Groceries"

    def test_expense_accepts_document_alias(self):
        """Test the persisted 'desc' key is accepted."""
        expense = Expense.model_validate({"id": 1, "desc": "Bus", "amount": 2.5, "category": "Transport"})
        assert expense.description == "Bus"
        assert expense.amount == Decimal("2.5")

    def test_missing_category_reads_as_other(self):
        """Test documents without a category."""
        expense = Expense.model_validate({"id": 1, "desc": "Misc", "amount": 5})
        assert expense.category == ExpenseCategory.OTHER

        expense = Expense.model_validate({"id": 1, "desc": "Misc", "amount": 5, "category": None})
        assert expense.category == ExpenseCategory.OTHER

    def test_unknown_category_rejected(self):
        """Test that categories outside the closed set are rejected."""
        with pytest.raises(ValidationError):
            Expense(id=1, description="Cat food", amount=Decimal("5"), category="Pets")

    def test_expense_rejects_zero_amount(self):
        """Test that amounts below one cent are rejected."""
        with pytest.raises(ValueError):
            Expense(id=1, description="Test", amount=Decimal("0"))

    def test_expense_rejects_long_description(self):
        """Test the 100 character limit."""
        with pytest.raises(ValueError):
            Expense(id=1, description="x" * 101, amount=Decimal("1"))

    def test_expense_to_document(self):
        """Test conversion to the persisted shape."""
        expense = Expense(id=7, description="Power", amount=Decimal("80.25"), category=ExpenseCategory.UTILITIES)
        assert expense.to_document() == {
            "id": 7,
            "desc": "Power",
            "amount": 80.25,
            "category": "Utilities",
        }

    def test_period_data_from_document(self):
        """Test reading a stored period document."""
        data = PeriodData.from_document({
            "bankBalance": 1500.5,
            "expenses": [{"id": 1, "desc": "Rent", "amount": 900, "category": "Housing"}],
        })
        assert data.bank_balance == Decimal("1500.5")
        assert len(data.expenses) == 1

        document = data.to_document()
        assert document["bankBalance"] == 1500.5
        assert document["expenses"][0]["desc"] == "Rent"

    def test_period_data_defaults(self):
        """Test an empty period document."""
        data = PeriodData.from_document({})
        assert data.bank_balance == Decimal("0")
        assert data.expenses == []

    def test_period_data_rejects_negative_balance(self):
        """Test that negative balances are rejected."""
        with pytest.raises(ValueError):
            PeriodData(bank_balance=Decimal("-1"))


class TestReportModels:
    """Tests for report models."""

    def test_window_constructors(self):
        """Test the AnalyticsWindow helpers."""
        assert AnalyticsWindow.all().mode == WindowMode.ALL
        assert AnalyticsWindow.for_year(2024).year == 2024
        assert AnalyticsWindow.last_months(3).months == 3

    def test_year_window_requires_year(self):
        """Test mode arguments are required."""
        with pytest.raises(ValueError, match="needs a year"):
            AnalyticsWindow(mode=WindowMode.YEAR)
        with pytest.raises(ValueError, match="number of months"):
            AnalyticsWindow(mode=WindowMode.LAST_MONTHS)

    def test_period_summary_difference(self):
        """Test comparison against the previous period."""
        summary = PeriodSummary(
            key=PeriodKey.parse("2024-5-2"),
            label="May 2nd",
            bank_balance=Decimal("100"),
            total_expenses=Decimal("150"),
            total_available=Decimal("-50"),
            previous_total=Decimal("120"),
        )
        assert summary.period_difference == Decimal("30")
        assert summary.is_overspent is True

    def test_period_summary_without_previous(self):
        """Test the difference is None without a previous period."""
        summary = PeriodSummary(
            key=PeriodKey.parse("2024-5-2"),
            label="May 2nd",
            bank_balance=Decimal("100"),
            total_expenses=Decimal("0"),
            total_available=Decimal("100"),
        )
        assert summary.period_difference is None
        assert summary.is_overspent is False


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.PERIOD_OPENED,
            description="Period opened",
        )
        assert event.event_type == AuditEventType.PERIOD_OPENED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            user_id="user-1",
            description="Expense added",
            details={"category": "Food", "amount": "12.50"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_added"
        assert log_dict["user_id"] == "user-1"
        assert log_dict["details"]["category"] == "Food"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.PERIOD_DELETED,
            description="Period deleted",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 12  # Expected number of columns
        assert row[2] == "period_deleted"  # event_type
        assert row[11] == "True"  # is_user_action

    def test_audit_event_builder_period_created(self):
        """Test AuditEventBuilder.period_created."""
        correlation_id = uuid4()

        event = AuditEventBuilder.period_created(
            user_id="user-1",
            period_id="2024-2-1",
            seeded_expenses=3,
            template_id="2024-1-1",
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.PERIOD_CREATED
        assert event.entity_id == "2024-2-1"
        assert event.details["seeded_expenses"] == 3
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_expense_deleted(self):
        """Test AuditEventBuilder.expense_deleted."""
        event = AuditEventBuilder.expense_deleted(
            user_id="user-1",
            period_id="2024-2-1",
            expense_id=1714,
            correlation_id=uuid4(),
        )

        assert event.event_type == AuditEventType.EXPENSE_DELETED
        assert event.entity_id == "1714"
        assert event.details["period_id"] == "2024-2-1"

    def test_audit_event_builder_save_failed(self):
        """Test failed saves are errors."""
        event = AuditEventBuilder.save_failed(
            user_id="user-1",
            period_id="2024-2-1",
            error_message="quota exceeded",
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "quota exceeded"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount must be a valid number",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.is_valid is False
        assert result.error_count == 1
        assert result.first_error == "Amount must be a valid number"

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="description",
                    issue_type="duplicate",
                    message="Similar expense exists",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.first_error is None


class TestExpenseCategories:
    """Tests for expense category enum."""

    def test_all_categories_exist(self):
        """Test that expected categories exist."""
        expected = [
            "Housing", "Food", "Transport", "Utilities", "Entertainment",
            "Health", "Insurance", "Savings", "Family Support",
            "Debt/Payments", "Other",
        ]
        for cat in expected:
            assert ExpenseCategory(cat) is not None
        assert len(ExpenseCategory) == len(expected)

    def test_category_values(self):
        """Test category string values."""
        assert ExpenseCategory.FAMILY_SUPPORT.value == "Family Support"
        assert ExpenseCategory.DEBT_PAYMENTS.value == "Debt/Payments"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
