"""
Period Identifier

Maps calendar dates to half-month period keys and derives the keys
around them. All functions are pure: the date is always passed in,
nothing reads the clock.
"""

import calendar
from datetime import date
from typing import Iterable, Optional

from expense_tracker.models.ledger import InvalidPeriodKeyError, PeriodKey

# Last day of the first half of a month
FIRST_HALF_LAST_DAY = 15


def period_id_for(day: date) -> PeriodKey:
    """Key of the period containing `day`."""
    half = 1 if day.day <= FIRST_HALF_LAST_DAY else 2
    return PeriodKey(year=day.year, month=day.month, half=half)


def previous_period_key(key: PeriodKey) -> PeriodKey:
    """
    The period just before `key`.

    Second half -> first half of the same month.
    First half -> second half of the previous month, rolling into
    December of the previous year from January.
    """
    if key.half == 2:
        return PeriodKey(year=key.year, month=key.month, half=1)
    if key.month == 1:
        return PeriodKey(year=key.year - 1, month=12, half=2)
    return PeriodKey(year=key.year, month=key.month - 1, half=2)


def next_period_key(key: PeriodKey) -> PeriodKey:
    """The period just after `key`. Inverse of previous_period_key."""
    if key.half == 1:
        return PeriodKey(year=key.year, month=key.month, half=2)
    if key.month == 12:
        return PeriodKey(year=key.year + 1, month=1, half=1)
    return PeriodKey(year=key.year, month=key.month + 1, half=1)


def template_key_for(key: PeriodKey) -> PeriodKey:
    """January period of the same year and half; seeds recurring expenses."""
    return PeriodKey(year=key.year, month=1, half=key.half)


def parse_period_key(text: str) -> PeriodKey:
    """Parse "YYYY-M-H". Raises InvalidPeriodKeyError."""
    return PeriodKey.parse(text)


def try_parse_period_key(text: str) -> Optional[PeriodKey]:
    """Parse "YYYY-M-H", returning None for malformed input."""
    try:
        return PeriodKey.parse(text)
    except InvalidPeriodKeyError:
        return None


def period_start_date(key: PeriodKey) -> date:
    return date(key.year, key.month, 1 if key.half == 1 else FIRST_HALF_LAST_DAY + 1)


def period_end_date(key: PeriodKey) -> date:
    if key.half == 1:
        return date(key.year, key.month, FIRST_HALF_LAST_DAY)
    last_day = calendar.monthrange(key.year, key.month)[1]
    return date(key.year, key.month, last_day)


def sort_period_keys(
    keys: Iterable[PeriodKey],
    newest_first: bool = False,
) -> list[PeriodKey]:
    """Chronological order, so "2024-10-1" comes after "2024-9-2"."""
    return sorted(keys, reverse=newest_first)
