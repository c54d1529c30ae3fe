"""Calendar helpers for YYYY-MM month keys."""

import calendar
from datetime import date, datetime
from typing import Optional, Tuple


def parse_month(month: str) -> Tuple[int, int]:
    """Parse a 'YYYY-MM' key into (year, month). Raises ValueError if malformed."""
    if not isinstance(month, str):
        raise ValueError(f"Month must be a 'YYYY-MM' string, got {month!r}")
    parts = month.strip().split("-")
    if len(parts) != 2 or len(parts[0]) != 4 or len(parts[1]) != 2:
        raise ValueError(f"Month must be formatted 'YYYY-MM', got {month!r}")
    year, mon = int(parts[0]), int(parts[1])
    if not 1 <= mon <= 12:
        raise ValueError(f"Month out of range in {month!r}")
    return year, mon


def is_valid_month(month: str) -> bool:
    try:
        parse_month(month)
    except ValueError:
        return False
    return True


def month_bounds(month: str) -> Tuple[date, date]:
    """First and last calendar day of the month."""
    year, mon = parse_month(month)
    return date(year, mon, 1), date(year, mon, calendar.monthrange(year, mon)[1])


def days_in_month(month: str) -> int:
    year, mon = parse_month(month)
    return calendar.monthrange(year, mon)[1]


def month_day(month: str, day: int) -> str:
    """ISO date string for a day of the month, clamped to the month length."""
    year, mon = parse_month(month)
    day = max(1, min(day, calendar.monthrange(year, mon)[1]))
    return date(year, mon, day).isoformat()


def parse_date(value) -> Optional[date]:
    """Parse an ISO date (or date/datetime). Returns None for anything unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def current_month() -> str:
    return date.today().strftime("%Y-%m")
