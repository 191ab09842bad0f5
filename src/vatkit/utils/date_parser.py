"""Date parsing utilities."""

from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def _start_of(unit: str, today: date) -> Optional[date]:
    if unit == "month":
        return today.replace(day=1)
    if unit == "quarter":
        return date(today.year, 3 * ((today.month - 1) // 3) + 1, 1)
    if unit == "year":
        return today.replace(month=1, day=1)
    return None


_UNIT_LENGTHS = {
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
    "year": relativedelta(years=1),
}


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports:
    - Absolute dates: "2025-01-15", "15 January 2025", etc.
    - "today", "yesterday", "tomorrow"
    - "last/this/next" followed by "month", "quarter" or "year", meaning the
      first day of that period

    Args:
        date_str: Date string
        today: Reference date for relative forms (defaults to today)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    simple = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in simple:
        return simple[text]

    prefix, _, unit = text.partition(" ")
    if prefix in ("last", "this", "next") and unit in _UNIT_LENGTHS:
        start = _start_of(unit, today)
        if prefix == "last":
            return start - _UNIT_LENGTHS[unit]
        if prefix == "next":
            return start + _UNIT_LENGTHS[unit]
        return start

    try:
        # ISO input first so "2025-02-03" is never read day-first
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
