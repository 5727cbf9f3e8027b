"""Utilities for working with months, weeks and reporting periods.

Every helper that depends on "today" takes it as an argument so results are
reproducible; callers at the edge pass ``date.today()``.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Any, Optional, Tuple

import pandas as pd


def as_date(value: Any) -> Optional[date]:
    """Best-effort conversion of strings, timestamps and datetimes to a ``date``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and not value.strip():
        return None
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


def days_in_month(day: date) -> int:
    """Return the number of days in the month containing ``day``."""
    return calendar.monthrange(day.year, day.month)[1]


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=days_in_month(day))


def month_range(day: date) -> Tuple[date, date]:
    """Return the first and last day of the month containing ``day``."""
    return month_start(day), month_end(day)


def is_in_month(value: Any, month: date) -> bool:
    """Check whether ``value`` falls inside the calendar month of ``month``."""
    day = as_date(value)
    if day is None:
        return False
    return day.year == month.year and day.month == month.month


def is_same_month(first: date, second: date) -> bool:
    return (first.year, first.month) == (second.year, second.month)


def expected_pace_percentage(day: date) -> float:
    """Share of the month elapsed on ``day``, as a percentage."""
    return day.day / days_in_month(day) * 100


def effective_day_of_month(month: date, today: date) -> int:
    """Day used for pacing a month viewed on ``today``.

    The current month uses today's day, past months are viewed as complete
    and future months as not yet started.
    """
    if is_same_month(month, today):
        return today.day
    if (month.year, month.month) < (today.year, today.month):
        return days_in_month(month)
    return 1


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``, floored at 0."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    return max(0, months)


def add_months(day: date, months: int) -> date:
    """Shift ``day`` by ``months``, clamping to the last day of the target month."""
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def week_of_month(day: date) -> int:
    """Week number inside the month: days 1-7 are week 1, 8-14 week 2, and so on."""
    return (day.day - 1) // 7 + 1


def week_key(day: date) -> str:
    """ISO year and week of ``day`` formatted as ``YYYY-Www``."""
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def week_key_start(key: str) -> date:
    """Monday of the ISO week identified by ``key``."""
    year, week = key.split('-W')
    return date.fromisocalendar(int(year), int(week), 1)


def previous_week_key(key: str) -> str:
    """Week key immediately before ``key``; handles 52- and 53-week years."""
    return week_key(week_key_start(key) - timedelta(days=7))


def month_key(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


def format_month_year(day: date) -> str:
    """Format a date for display, e.g. ``January 2026``."""
    return f"{calendar.month_name[day.month]} {day.year}"
