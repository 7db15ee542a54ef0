"""Period identifier arithmetic and display formatting."""

from expense_tracker.periods.display import (
    MONTH_ABBREVIATIONS,
    display_label,
    format_currency,
)
from expense_tracker.periods.identifier import (
    next_period_key,
    parse_period_key,
    period_end_date,
    period_id_for,
    period_start_date,
    previous_period_key,
    sort_period_keys,
    template_key_for,
    try_parse_period_key,
)

__all__ = [
    "MONTH_ABBREVIATIONS",
    "display_label",
    "format_currency",
    "next_period_key",
    "parse_period_key",
    "period_end_date",
    "period_id_for",
    "period_start_date",
    "previous_period_key",
    "sort_period_keys",
    "template_key_for",
    "try_parse_period_key",
]
