"""
Store capacity targets derived from a store's working hours per weekday.
"""

from typing import Any, Dict, Mapping

from .calendar_model import days_in_month
from .errors import InvalidArgument
from .models import Store, WEEKDAY_NAMES, normalize_working_hours


def _weekday_key(weekday: int | str) -> str:
    if isinstance(weekday, str):
        key = weekday.lower()
        if key in WEEKDAY_NAMES:
            return key
    elif isinstance(weekday, int) and not isinstance(weekday, bool) and 0 <= weekday <= 6:
        return WEEKDAY_NAMES[weekday]
    raise InvalidArgument(
        f"Invalid weekday: {weekday!r}. Use 0 (Mon) to 6 (Sun) or one of "
        f"{', '.join(WEEKDAY_NAMES)}"
    )


def daily_target(store: Store, weekday: int | str) -> float:
    """Target hours for a weekday (index 0=Mon or lowercase name)."""
    return store.working_hours.get(_weekday_key(weekday), 0.0)


def weekly_target(store: Store) -> float:
    """Sum of the seven weekday targets."""
    return sum(store.working_hours.get(day, 0.0) for day in WEEKDAY_NAMES)


def monthly_target(store: Store, month: int, year: int) -> float:
    """Sum of daily targets over every day of a 0-based month."""
    return sum(daily_target(store, day.weekday) for day in days_in_month(month, year))


def validate_working_hours(raw: Mapping[str, Any]) -> Dict[str, float]:
    """Validate and normalize a weekday -> hours mapping."""
    return normalize_working_hours(raw)
