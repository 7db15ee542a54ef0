"""Display formatting for period keys and money amounts."""

from decimal import Decimal
from typing import Union

from expense_tracker.models.ledger import PeriodKey

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

HALF_ORDINALS = {1: "1st", 2: "2nd"}

CENT = Decimal("0.01")


def display_label(key: PeriodKey, with_year: bool = False) -> str:
    """Short tab label for a period.

    Example:
        >>> display_label(PeriodKey(year=2024, month=12, half=2))
        'Dec 2nd'
        >>> display_label(PeriodKey(year=2024, month=12, half=2), with_year=True)
        "Dec 2nd '24"
    """
    label = f"{MONTH_ABBREVIATIONS[key.month - 1]} {HALF_ORDINALS[key.half]}"
    if with_year:
        label = f"{label} '{key.year % 100:02d}"
    return label


def format_currency(amount: Union[Decimal, float, int]) -> str:
    """Format an amount as US dollars with two decimals.

    Example:
        >>> format_currency(Decimal("1234.56"))
        '$1,234.56'
        >>> format_currency(-50)
        '-$50.00'
    """
    value = Decimal(str(amount)).quantize(CENT)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"
