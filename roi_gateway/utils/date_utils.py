"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timezone
from typing import Any, Optional


def utc_today() -> date:
    """Current calendar date in UTC"""
    return datetime.now(timezone.utc).date()


def subtract_months(from_date: date, months: int) -> date:
    """
    Step back whole calendar months, clamping the day to the target month.

    Example:
        2026-03-31 minus 1 month -> 2026-02-28
    """
    month_index = from_date.year * 12 + (from_date.month - 1) - months
    year, month_zero = divmod(month_index, 12)
    month = month_zero + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(from_date.day, last_day))


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date or datetime string, returning None for anything unusable"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None
