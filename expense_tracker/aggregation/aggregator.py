"""
Expense Aggregator

Totals, category breakdowns and the filtered/sorted expense table of a
single period.

Every function here is pure: it takes a sequence of already-validated
Expense objects and returns a new value. Persistence is the caller's job.
"""

from decimal import Decimal
from typing import Iterable, Sequence, Union

from expense_tracker.models.ledger import (
    ALL_CATEGORIES,
    Expense,
    ExpenseCategory,
)
from expense_tracker.models.reports import SortDirection, SortField, SortState

CategoryFilter = Union[ExpenseCategory, str]

# Categories left out of headline spending figures
NON_SPENDING_CATEGORIES = (ExpenseCategory.SAVINGS,)


def total(
    expenses: Iterable[Expense],
    exclude_categories: Iterable[ExpenseCategory] = (),
) -> Decimal:
    """Sum of amounts, skipping any category in `exclude_categories`."""
    excluded = set(exclude_categories)
    return sum(
        (expense.amount for expense in expenses if expense.category not in excluded),
        Decimal("0"),
    )


def spending_total(expenses: Iterable[Expense]) -> Decimal:
    """Total without Savings."""
    return total(expenses, exclude_categories=NON_SPENDING_CATEGORIES)


def by_category(expenses: Iterable[Expense]) -> dict[ExpenseCategory, Decimal]:
    """
    Sum of amounts grouped by category.

    Categories appear in the order they are first seen. Categories with
    no expenses are absent.
    """
    groups: dict[ExpenseCategory, Decimal] = {}
    for expense in expenses:
        groups[expense.category] = groups.get(expense.category, Decimal("0")) + expense.amount
    return groups


def spending_by_category(expenses: Iterable[Expense]) -> dict[ExpenseCategory, Decimal]:
    """Category breakdown without Savings, largest amount first."""
    groups = {
        category: amount
        for category, amount in by_category(expenses).items()
        if category not in NON_SPENDING_CATEGORIES
    }
    return dict(sorted(groups.items(), key=lambda item: item[1], reverse=True))


def filter_by_category(
    expenses: Sequence[Expense],
    category: CategoryFilter = ALL_CATEGORIES,
) -> list[Expense]:
    """Expenses of one category; "All" returns every expense unchanged."""
    if category == ALL_CATEGORIES:
        return list(expenses)
    wanted = ExpenseCategory(category)
    return [expense for expense in expenses if expense.category == wanted]


def _description_key(expense: Expense) -> tuple[str, str]:
    # Case-insensitive first, then exact text so ordering is total
    return (expense.description.casefold(), expense.description)


def sort_by(
    expenses: Sequence[Expense],
    field: SortField,
    direction: SortDirection = SortDirection.ASC,
) -> list[Expense]:
    """
    Stable sort of an expense table.

    SortField.NONE returns the expenses in their original insertion order.
    Equal elements keep their relative order in both directions.
    """
    field = SortField(field)
    direction = SortDirection(direction)

    if field == SortField.NONE:
        return list(expenses)

    if field == SortField.DESCRIPTION:
        key = _description_key
    else:
        key = lambda expense: expense.amount  # noqa: E731

    return sorted(expenses, key=key, reverse=direction == SortDirection.DESC)


def next_sort_state(state: SortState, field: SortField) -> SortState:
    """
    Sort state after the user clicks a column header.

    Clicking the active column cycles asc -> desc -> none.
    Clicking another column starts it ascending.
    """
    field = SortField(field)
    if field == SortField.NONE:
        return SortState()
    if state.field != field:
        return SortState(field=field, direction=SortDirection.ASC)
    if state.direction == SortDirection.ASC:
        return SortState(field=field, direction=SortDirection.DESC)
    return SortState()


def expense_table(
    expenses: Sequence[Expense],
    category: CategoryFilter = ALL_CATEGORIES,
    sort: SortState = SortState(),
) -> list[Expense]:
    """Rows of the expense table: filter first, then sort."""
    rows = filter_by_category(expenses, category)
    return sort_by(rows, sort.field, sort.direction)
