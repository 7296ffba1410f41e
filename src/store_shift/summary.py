"""
Read-only projections over an AssignmentSet.

Everything is computed fresh from the assignments on each call.
"""

from collections import defaultdict
from typing import Dict, Mapping

from .assignments import AssignmentSet
from .calendar_model import days_in_month, weekday_name
from .errors import NotFound
from .models import (
    CoverageReport,
    Employee,
    MonthlySummary,
    Store,
    Timesheet,
    TimesheetEntry,
)


def monthly_summary(
    assignment_set: AssignmentSet, coverage: CoverageReport | None = None
) -> MonthlySummary:
    """
    Aggregate hours per employee, per store, per day and per ISO week.

    The per-employee and per-store totals always add up to total_hours.
    """
    employee_hours: Dict[str, float] = defaultdict(float)
    store_hours: Dict[str, float] = defaultdict(float)
    daily_hours: Dict = defaultdict(float)
    store_daily: Dict[str, Dict] = defaultdict(lambda: defaultdict(float))
    store_weekly: Dict[str, Dict[int, float]] = defaultdict(lambda: defaultdict(float))

    for a in assignment_set:
        employee_hours[a.employee_id] += a.hours
        store_hours[a.store_id] += a.hours
        daily_hours[a.date] += a.hours
        store_daily[a.store_id][a.date] += a.hours
        store_weekly[a.store_id][a.date.isocalendar()[1]] += a.hours

    return MonthlySummary(
        month=assignment_set.month,
        year=assignment_set.year,
        employee_hours=dict(sorted(employee_hours.items())),
        store_hours=dict(sorted(store_hours.items())),
        daily_hours=dict(sorted(daily_hours.items())),
        store_daily_hours={k: dict(sorted(v.items())) for k, v in sorted(store_daily.items())},
        store_weekly_hours={k: dict(sorted(v.items())) for k, v in sorted(store_weekly.items())},
        total_hours=sum(employee_hours.values()),
        uncovered_count=len(coverage.uncovered) if coverage is not None else None,
    )


def employee_timesheet(
    assignment_set: AssignmentSet,
    employee: Employee,
    stores: Mapping[str, Store] | None = None,
    require_assignments: bool = False,
) -> Timesheet:
    """
    Date-ordered timesheet for a single employee.

    Args:
        assignment_set: Assignments of the schedule
        employee: The employee; existence is the caller's concern
        stores: Store lookup for names (defaults to the set's own lookup)
        require_assignments: Raise NotFound instead of returning an empty sheet

    Raises:
        NotFound: If require_assignments is set and the employee is idle
    """
    stores = stores if stores is not None else assignment_set.stores
    assignments = assignment_set.for_employee(employee.id)

    if require_assignments and not assignments:
        raise NotFound(
            f"No assignments found for employee {employee.id} in "
            f"{assignment_set.month + 1:02d}/{assignment_set.year}"
        )

    entries = []
    for a in assignments:
        store = stores.get(a.store_id)
        entries.append(
            TimesheetEntry(
                date=a.date,
                weekday_name=weekday_name(a.date),
                store_id=a.store_id,
                store_name=store.name if store else a.store_id,
                hours=a.hours,
            )
        )

    worked = {e.date for e in entries if e.hours > 0}
    days_off = [
        day.date
        for day in days_in_month(assignment_set.month, assignment_set.year)
        if day.date not in worked
    ]

    return Timesheet(
        employee=employee,
        month=assignment_set.month,
        year=assignment_set.year,
        entries=entries,
        total_hours=sum(e.hours for e in entries),
        days_off=days_off,
    )
