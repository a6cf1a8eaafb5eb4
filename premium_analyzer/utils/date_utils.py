"""Date parsing and month-key utilities"""

from datetime import date, datetime, timedelta
from typing import Any, List, Optional

_DAY_FIRST_FORMATS = ("%d/%m/%Y", "%d-%m-%Y", "%d/%m/%Y %H:%M", "%d/%m/%Y %H:%M:%S")


def parse_date(value: Any) -> Optional[date]:
    """
    Coerce a date-like value to a date.

    Accepts date and datetime objects, ISO-8601 strings (with or without a
    time part or trailing "Z") and UK day-first strings. Returns None when
    the value cannot be interpreted.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in _DAY_FIRST_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # "2023-01-07 10:00:00 UTC" style exports: fall back to the date prefix
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def month_key(day: date) -> str:
    """Format a date as its YYYY-MM month key"""
    return f"{day.year:04d}-{day.month:02d}"


def days_between(first: date, second: date) -> int:
    """Absolute calendar-day distance between two dates"""
    return abs((second - first).days)


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]
