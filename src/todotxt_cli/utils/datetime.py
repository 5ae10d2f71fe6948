"""Calendar arithmetic helpers.

This module provides the month/year aware date offsetting used by the date
resolver and the expression evaluator. Week days are numbered the ISO way:
Monday=1 .. Sunday=7.
"""

from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"

MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6
SUNDAY = 7


def today() -> date:
    """Return the current local date."""
    return date.today()


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in the given month.

    Args:
        year: Gregorian year
        month: Month number, 1-12

    Returns:
        28, 29, 30 or 31
    """
    return monthrange(year, month)[1]


def is_last_day_of_month(dt: date) -> bool:
    return dt.day == days_in_month(dt.year, dt.month)


def _move_day(dt: date, year: int, month: int, keep_month_end: bool) -> date:
    last = days_in_month(year, month)
    if keep_month_end and is_last_day_of_month(dt):
        return date(year, month, last)
    return date(year, month, min(dt.day, last))


def add_months(dt: date, num: int, subtract: bool = False,
               keep_month_end: bool = False) -> date:
    """Shift a date by a number of months.

    When the target month is shorter than the day of month of ``dt`` the
    result is clamped to the last day of the target month, so Jan 31 + 1
    month is the end of February and never a day in March.

    Args:
        dt: Date to shift
        num: Number of months
        subtract: Move backwards instead of forwards
        keep_month_end: If ``dt`` is the last day of its month, the result
            is the last day of the target month

    Returns:
        The shifted date
    """
    delta = -num if subtract else num
    total = dt.year * 12 + (dt.month - 1) + delta
    year, month = divmod(total, 12)
    return _move_day(dt, year, month + 1, keep_month_end)


def add_years(dt: date, num: int, subtract: bool = False,
              keep_month_end: bool = False) -> date:
    """Shift a date by a number of years, clamping Feb 29 when needed.

    Args:
        dt: Date to shift
        num: Number of years
        subtract: Move backwards instead of forwards
        keep_month_end: If ``dt`` is the last day of its month, the result
            is the last day of the same month in the target year

    Returns:
        The shifted date
    """
    year = dt.year - num if subtract else dt.year + num
    return _move_day(dt, year, dt.month, keep_month_end)


def closest_weekday(base: date, weekday: int, extra_weeks: int = 0) -> date:
    """Return the nearest ``weekday`` strictly after ``base``.

    If the target day is later in the current week than ``base`` it is
    returned from this week, otherwise the one from the next week. The
    base day itself is never returned. ``extra_weeks`` adds whole weeks.
    """
    base_num = base.isoweekday()
    shift = extra_weeks * 7
    if base_num < weekday:
        return base + timedelta(days=shift + weekday - base_num)
    return base + timedelta(days=shift + 7 + weekday - base_num)


def next_weekday(base: date, weekday: int) -> date:
    """Return ``weekday`` of the next week, never this week's one."""
    return closest_weekday(base, weekday, 1)


def first_of_next_month(base: date) -> date:
    if base.month == 12:
        return date(base.year + 1, 1, 1)
    return date(base.year, base.month + 1, 1)


def last_of_month(base: date) -> date:
    return date(base.year, base.month, days_in_month(base.year, base.month))


def format_date(dt: date) -> str:
    """Format a date the todo.txt way (YYYY-MM-DD)."""
    return dt.strftime(DATE_FORMAT)


def parse_date(date_str: str) -> Optional[date]:
    """Parse a YYYY-MM-DD string.

    Args:
        date_str: String to parse

    Returns:
        The parsed date, or None if the string is not a valid ISO date
    """
    if len(date_str) != 10:
        return None
    try:
        return datetime.strptime(date_str, DATE_FORMAT).date()
    except ValueError:
        return None
