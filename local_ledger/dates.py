"""
Calendar helpers shared by the schedule derivations.

DESIGN DECISION: Month arithmetic clamps the day to the last day of the
target month (Jan 31 + 1 month = Feb 29 in a leap year). Nothing ever
rolls over into the following month.
"""

import calendar
import datetime as dt
import re
from typing import Optional

_MONTH_KEY = re.compile(r"^(\d{4})-(\d{2})$")


def month_key(value: dt.date) -> str:
    """'YYYY-MM' key of the month containing `value`."""
    return f"{value.year:04d}-{value.month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    """Split a 'YYYY-MM' key into (year, month). Raises ValueError when malformed."""
    match = _MONTH_KEY.match(key or "")
    if not match:
        raise ValueError(f"Invalid month key: {key!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month key: {key!r}")
    return year, month


def clamped_date(year: int, month: int, day: int) -> dt.date:
    last_day = calendar.monthrange(year, month)[1]
    return dt.date(year, month, min(max(day, 1), last_day))


def add_months(value: dt.date, months: int, day: Optional[int] = None) -> dt.date:
    """
    Shift `value` by whole calendar months.

    `day` overrides the day of month (e.g. a loan's due day); either way it
    is clamped to the target month's length.
    """
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    return clamped_date(year, month + 1, day if day is not None else value.day)


def month_label(value: dt.date) -> str:
    """Short display label, e.g. 'Jan 2024'."""
    return f"{calendar.month_abbr[value.month]} {value.year}"
