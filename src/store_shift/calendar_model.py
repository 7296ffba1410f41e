"""
Pure month arithmetic.

Months are 0-based (0 = January) inside the engine. User-facing values are
1-based and must pass through to_internal_month() exactly once.
"""

import calendar
from datetime import date
from typing import List, Tuple

from .errors import InvalidArgument
from .models import CalendarDay, WEEKDAY_NAMES

MIN_YEAR = 2000
MAX_YEAR = 2100


def check_period(month: int, year: int) -> None:
    """Raise InvalidArgument unless month is 0-11 and year is within range."""
    if isinstance(month, bool) or not isinstance(month, int) or not 0 <= month <= 11:
        raise InvalidArgument(f"Invalid month: {month!r} (expected 0-11)")
    if isinstance(year, bool) or not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidArgument(
            f"Invalid year: {year!r} (expected {MIN_YEAR}-{MAX_YEAR})"
        )


def to_internal_month(month: int) -> int:
    """Convert a 1-based month from the outside world to 0-based."""
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidArgument(f"Invalid month: {month!r} (expected 1-12)")
    return month - 1


def to_external_month(month: int) -> int:
    """Convert a 0-based internal month to the 1-based value users see."""
    return month + 1


def weekday_name(day: date) -> str:
    """Lowercase English weekday name of a date."""
    return WEEKDAY_NAMES[day.weekday()]


def month_bounds(month: int, year: int) -> Tuple[date, date]:
    """First and last date of the month."""
    check_period(month, year)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, 1), date(year, month + 1, last_day)


def contains(month: int, year: int, day: date) -> bool:
    """Whether a date falls within the given month."""
    return day.year == year and day.month == month + 1


def days_in_month(month: int, year: int) -> List[CalendarDay]:
    """
    Enumerate the days of a month in order.

    Args:
        month: 0-based month (0-11)
        year: Calendar year

    Returns:
        One CalendarDay per day, tagged with its weekday

    Raises:
        InvalidArgument: If month or year is out of range
    """
    check_period(month, year)
    last_day = calendar.monthrange(year, month + 1)[1]

    days = []
    for day_number in range(1, last_day + 1):
        day = date(year, month + 1, day_number)
        days.append(
            CalendarDay(
                date=day,
                weekday=day.weekday(),
                weekday_name=WEEKDAY_NAMES[day.weekday()],
            )
        )
    return days
