"""Tests for single-period aggregation, filtering and sorting."""

import pytest
from decimal import Decimal

from expense_tracker.aggregation import (
    by_category,
    expense_table,
    filter_by_category,
    next_sort_state,
    sort_by,
    spending_by_category,
    spending_total,
    total,
)
from expense_tracker.models.ledger import Expense, ExpenseCategory
from expense_tracker.models.reports import SortDirection, SortField, SortState


def make_expense(expense_id, description, amount, category=ExpenseCategory.OTHER):
    return Expense(
        id=expense_id,
        description=description,
        amount=Decimal(amount),
        category=category,
    )


@pytest.fixture
def expenses():
    return [
        make_expense(1, "rent", "1500", ExpenseCategory.HOUSING),
        make_expense(2, "Groceries", "200", ExpenseCategory.FOOD),
        make_expense(3, "Emergency fund", "300", ExpenseCategory.SAVINGS),
        make_expense(4, "bus pass", "45.50", ExpenseCategory.TRANSPORT),
        make_expense(5, "Takeout", "200", ExpenseCategory.FOOD),
    ]


class TestTotals:
    """Tests for totals."""

    def test_scenario_total_and_by_category(self):
        """Test the basic two-expense example."""
        items = [
            make_expense(1, "Rent", "1500", ExpenseCategory.HOUSING),
            make_expense(2, "Food", "200", ExpenseCategory.FOOD),
        ]
        assert total(items) == Decimal("1700.00")
        assert by_category(items) == {
            ExpenseCategory.HOUSING: Decimal("1500"),
            ExpenseCategory.FOOD: Decimal("200"),
        }

    def test_total_of_nothing_is_zero(self):
        assert total([]) == Decimal("0")

    def test_raw_total_includes_savings(self, expenses):
        assert total(expenses) == Decimal("2245.50")

    def test_spending_total_excludes_savings(self, expenses):
        assert spending_total(expenses) == Decimal("1945.50")

    def test_total_with_exclusions(self, expenses):
        assert total(expenses, exclude_categories=[ExpenseCategory.FOOD]) == Decimal("1845.50")

    def test_total_is_exact(self):
        """Test that decimal sums do not drift."""
        items = [make_expense(i, "x", "0.10") for i in range(10)]
        assert total(items) == Decimal("1.00")


class TestCategoryBreakdown:
    """Tests for grouping by category."""

    def test_by_category_sums_match_total(self, expenses):
        groups = by_category(expenses)
        assert sum(groups.values()) == total(expenses)
        assert groups[ExpenseCategory.FOOD] == Decimal("400")

    def test_by_category_keeps_first_seen_order(self, expenses):
        assert list(by_category(expenses)) == [
            ExpenseCategory.HOUSING,
            ExpenseCategory.FOOD,
            ExpenseCategory.SAVINGS,
            ExpenseCategory.TRANSPORT,
        ]

    def test_spending_breakdown_drops_savings(self, expenses):
        groups = spending_by_category(expenses)
        assert ExpenseCategory.SAVINGS not in groups
        assert list(groups) == [
            ExpenseCategory.HOUSING,
            ExpenseCategory.FOOD,
            ExpenseCategory.TRANSPORT,
        ]


class TestFilter:
    """Tests for the category filter."""

    def test_all_is_identity(self, expenses):
        assert filter_by_category(expenses, "All") == expenses

    def test_filter_one_category(self, expenses):
        result = filter_by_category(expenses, ExpenseCategory.FOOD)
        assert [e.id for e in result] == [2, 5]

    def test_filter_by_category_name(self, expenses):
        result = filter_by_category(expenses, "Savings")
        assert [e.id for e in result] == [3]

    def test_filter_unknown_category_raises(self, expenses):
        with pytest.raises(ValueError):
            filter_by_category(expenses, "Pets")


class TestSorting:
    """Tests for sorting and the sort-state cycle."""

    def test_sort_by_amount_ascending_is_stable(self, expenses):
        result = sort_by(expenses, SortField.AMOUNT, SortDirection.ASC)
        assert [e.id for e in result] == [4, 2, 5, 3, 1]

    def test_sort_by_amount_descending_is_stable(self, expenses):
        """Test equal amounts keep insertion order when descending too."""
        result = sort_by(expenses, SortField.AMOUNT, SortDirection.DESC)
        assert [e.id for e in result] == [1, 3, 2, 5, 4]

    def test_sort_by_description_ignores_case(self, expenses):
        result = sort_by(expenses, SortField.DESCRIPTION, SortDirection.ASC)
        assert [e.description for e in result] == [
            "bus pass", "Emergency fund", "Groceries", "rent", "Takeout",
        ]

    def test_sort_none_restores_insertion_order(self, expenses):
        sorted_once = sort_by(expenses, SortField.AMOUNT, SortDirection.DESC)
        assert sort_by(sorted_once, SortField.NONE) == sorted_once
        assert sort_by(expenses, SortField.NONE) == expenses

    def test_sort_does_not_mutate_input(self, expenses):
        before = list(expenses)
        sort_by(expenses, SortField.AMOUNT, SortDirection.DESC)
        assert expenses == before

    @pytest.mark.parametrize("field", [SortField.AMOUNT, SortField.DESCRIPTION])
    @pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
    def test_sorting_twice_changes_nothing(self, field, direction):
        """Test sorting a sorted table again keeps it as is, ties included."""
        items = [
            make_expense(1, "Coffee", "4.50"),
            make_expense(2, "coffee", "4.50"),
            make_expense(3, "Bread", "3"),
            make_expense(4, "COFFEE", "12"),
            make_expense(5, "bread", "4.50"),
        ]
        once = sort_by(items, field, direction)
        assert sort_by(once, field, direction) == once

    def test_sort_state_cycle(self):
        """Test asc -> desc -> none on repeated clicks."""
        state = SortState()
        state = next_sort_state(state, SortField.AMOUNT)
        assert state == SortState(field=SortField.AMOUNT, direction=SortDirection.ASC)
        state = next_sort_state(state, SortField.AMOUNT)
        assert state == SortState(field=SortField.AMOUNT, direction=SortDirection.DESC)
        state = next_sort_state(state, SortField.AMOUNT)
        assert state == SortState()

    def test_switching_column_starts_ascending(self):
        state = SortState(field=SortField.AMOUNT, direction=SortDirection.DESC)
        state = next_sort_state(state, SortField.DESCRIPTION)
        assert state == SortState(field=SortField.DESCRIPTION, direction=SortDirection.ASC)

    def test_expense_table_filters_then_sorts(self, expenses):
        rows = expense_table(
            expenses,
            category=ExpenseCategory.FOOD,
            sort=SortState(field=SortField.DESCRIPTION, direction=SortDirection.DESC),
        )
        assert [e.description for e in rows] == ["Takeout", "Groceries"]
