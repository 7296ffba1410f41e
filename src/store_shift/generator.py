"""
Monthly schedule generation using a greedy, fairness-first allocator.

Each store/day slot goes to the available employee with the fewest hours so
far this month. The result is deterministic for identical inputs but is not
a global optimum: a different employee order, or counts changed by a manual
edit before regenerating, can produce a different plan.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Set, Tuple

from .assignments import AssignmentSet
from .calendar_model import check_period, contains, days_in_month
from .capacity import daily_target
from .errors import InvalidArgument
from .models import (
    Assignment,
    CoverageReport,
    DEFAULT_MAX_DAILY_HOURS,
    Employee,
    GenerationResult,
    Store,
    UncoveredSlot,
)

logger = logging.getLogger(__name__)

EmployeeDaysOff = Mapping[str, Iterable[date]]


class ScheduleGenerator:
    """Builds a full month of assignments from store targets and availability."""

    def __init__(
        self,
        month: int,
        year: int,
        stores: Iterable[Store],
        employees: Iterable[Employee],
        days_off: EmployeeDaysOff | None = None,
        max_daily_hours: float = DEFAULT_MAX_DAILY_HOURS,
    ):
        """
        Args:
            month: 0-based month
            year: Calendar year
            stores: Candidate stores; inactive ones are ignored
            employees: Candidate employees; inactive ones are ignored
            days_off: employee id -> dates the employee must not work
            max_daily_hours: Soft per-employee daily bound, logged when exceeded

        Raises:
            InvalidArgument: If the period is invalid or no active store or
                employee remains
        """
        check_period(month, year)
        self.month = month
        self.year = year
        self.max_daily_hours = max_daily_hours

        self.stores = sorted((s for s in stores if s.active), key=lambda s: s.id)
        self.employees = sorted((e for e in employees if e.active), key=lambda e: e.id)

        if not self.stores:
            raise InvalidArgument("Cannot generate a schedule without active stores")
        if not self.employees:
            raise InvalidArgument("Cannot generate a schedule without active employees")

        self.days_off = self._normalize_days_off(days_off or {})

        self.cumulative_hours: Dict[str, float] = {}
        self.assigned_on: Dict[date, Set[str]] = {}

    def generate(self) -> GenerationResult:
        """
        Run the allocation and return the assignments with a coverage report.

        Returns:
            GenerationResult; uncovered slots are reported, never raised
        """
        self._reset_state()
        assignments, coverage = self._allocate()
        self._log_outcome(assignments, coverage)
        return GenerationResult(
            month=self.month,
            year=self.year,
            assignments=assignments,
            coverage=coverage,
        )

    def _normalize_days_off(self, days_off: EmployeeDaysOff) -> Dict[str, Set[date]]:
        """Keep only dates inside the target month."""
        normalized: Dict[str, Set[date]] = {}
        for employee_id, dates in days_off.items():
            normalized[str(employee_id)] = {
                d for d in dates if contains(self.month, self.year, d)
            }
        return normalized

    def _reset_state(self) -> None:
        self.cumulative_hours = {emp.id: 0.0 for emp in self.employees}
        self.assigned_on = defaultdict(set)

    def _allocate(self) -> Tuple[AssignmentSet, CoverageReport]:
        """Walk every day and store in stable order, filling one slot at a time."""
        assignments = AssignmentSet(
            self.month, self.year, {s.id: s for s in self.stores}
        )
        coverage = CoverageReport()

        for day in days_in_month(self.month, self.year):
            for store in self.stores:
                target = daily_target(store, day.weekday)
                if target == 0:
                    continue

                coverage.required_hours += target
                employee, reason = self._pick_employee(day.date)

                if employee is None:
                    coverage.uncovered.append(
                        UncoveredSlot(
                            store_id=store.id,
                            date=day.date,
                            hours=target,
                            reason=reason,
                        )
                    )
                    continue

                assignments.add(
                    Assignment(
                        employee_id=employee.id,
                        store_id=store.id,
                        date=day.date,
                        hours=target,
                    )
                )
                coverage.covered_hours += target
                self.cumulative_hours[employee.id] += target
                self.assigned_on[day.date].add(employee.id)

                if target > self.max_daily_hours:
                    logger.debug(
                        "Slot %s/%s of %sh exceeds the %sh daily bound",
                        store.id,
                        day.date,
                        target,
                        self.max_daily_hours,
                    )

        return assignments, coverage

    def _pick_employee(self, day: date) -> Tuple[Employee | None, str]:
        """
        Choose the least-loaded available employee for a day.

        Returns:
            (employee, "") on success, otherwise (None, reason)
        """
        off = [e for e in self.employees if self._is_off(e, day)]
        candidates = self._candidates(day)

        if not candidates:
            reason = "all_days_off" if len(off) == len(self.employees) else "all_committed"
            return None, reason

        ranked = sorted(candidates, key=lambda e: (self.cumulative_hours[e.id], e.id))
        return ranked[0], ""

    def _candidates(self, day: date) -> List[Employee]:
        committed = self.assigned_on.get(day, set())
        return [
            emp
            for emp in self.employees
            if not self._is_off(emp, day) and emp.id not in committed
        ]

    def _is_off(self, employee: Employee, day: date) -> bool:
        return day in self.days_off.get(str(employee.id), ())

    def _log_outcome(self, assignments: AssignmentSet, coverage: CoverageReport) -> None:
        logger.info(
            "Generated %d assignments for %02d/%d (%.1f of %.1f hours covered)",
            len(assignments),
            self.month + 1,
            self.year,
            coverage.covered_hours,
            coverage.required_hours,
        )
        if not coverage.is_complete:
            logger.warning(
                "%d store/day slots left uncovered for %02d/%d",
                len(coverage.uncovered),
                self.month + 1,
                self.year,
            )


def generate(
    month: int,
    year: int,
    stores: Iterable[Store],
    employees: Iterable[Employee],
    employee_days_off: EmployeeDaysOff | None = None,
    max_daily_hours: float = DEFAULT_MAX_DAILY_HOURS,
) -> Tuple[AssignmentSet, CoverageReport]:
    """Generate a month (0-based) and return (assignments, coverage report)."""
    generator = ScheduleGenerator(
        month,
        year,
        stores,
        employees,
        days_off=employee_days_off,
        max_daily_hours=max_daily_hours,
    )
    return generator.generate().as_tuple()
