"""Calendar helpers shared by the budget and goal calculations."""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Optional, Tuple, Union

MONTH_FORMAT = '%Y-%m'
DATE_FORMAT = '%Y-%m-%d'

MonthLike = Union[str, date]


def month_start(month: MonthLike) -> date:
    """Return the first day of ``month``.

    Accepts a ``'YYYY-MM'`` key, a ``'YYYY-MM-DD'`` string or any date.
    """
    if isinstance(month, datetime):
        return month.date().replace(day=1)
    if isinstance(month, date):
        return month.replace(day=1)
    text = str(month).strip()
    if len(text) == 7:
        return datetime.strptime(text, MONTH_FORMAT).date()
    return datetime.strptime(text[:10], DATE_FORMAT).date().replace(day=1)


def month_bounds(month: MonthLike) -> Tuple[date, date]:
    """First and last calendar day of ``month``."""
    first = month_start(month)
    _, last_day = calendar.monthrange(first.year, first.month)
    return first, first.replace(day=last_day)


def month_key(month: MonthLike) -> str:
    return month_start(month).strftime(MONTH_FORMAT)


def in_month(value: date, month: MonthLike) -> bool:
    first, last = month_bounds(month)
    return first <= value <= last


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole months, clamping the day to the month end."""
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    _, last_day = calendar.monthrange(year, month)
    return date(year, month, min(value.day, last_day))


def parse_date(value) -> Optional[date]:
    """Parse an ISO date (or pass a date through); ``None`` on failure."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], DATE_FORMAT).date()
    except ValueError:
        return None
