"""
Reporting and output formatting for generated schedules.
"""

import pandas as pd
from datetime import date
from typing import Dict, Iterable, Mapping, Set

from .calendar_model import days_in_month, month_bounds
from .capacity import monthly_target
from .models import Employee, GenerationResult, Store
from .summary import monthly_summary


class ScheduleReporter:
    """Formats and displays generation results."""

    def __init__(
        self,
        result: GenerationResult,
        stores: Iterable[Store],
        employees: Iterable[Employee],
        days_off: Mapping[str, Set[date]] | None = None,
    ):
        self.result = result
        self.stores: Dict[str, Store] = {s.id: s for s in stores}
        self.employees: Dict[str, Employee] = {e.id: e for e in employees}
        self.days_off = days_off or {}
        self.summary = monthly_summary(result.assignments, result.coverage)

    def print_report(self, quiet: bool) -> None:
        """Print complete scheduling report."""
        self._print_header()
        self._print_daily_schedule()

        if not quiet:
            self._print_employee_summary()
            self._print_store_summary()
            self._print_coverage_gaps()
            self._print_days_off_summary()

    def _print_title(self, title: str) -> None:
        print("=" * 80)
        print(title)
        print("=" * 80)

    def _employee_name(self, employee_id: str) -> str:
        employee = self.employees.get(employee_id)
        return employee.name if employee else employee_id

    def _store_name(self, store_id: str) -> str:
        store = self.stores.get(store_id)
        return store.name if store else store_id

    def _print_header(self) -> None:
        """Print report header."""
        self._print_title("MONTHLY STORE SCHEDULE")

        first, last = month_bounds(self.result.month, self.result.year)
        coverage = self.result.coverage
        print(f"\nPlanning Period: {first} to {last}")
        print(f"Assignments: {len(self.result.assignments)}")
        print(
            f"Hours Covered: {coverage.covered_hours:g} of {coverage.required_hours:g} "
            f"({coverage.coverage_ratio * 100:.1f}%)"
        )
        print()

    def _print_daily_schedule(self) -> None:
        """Print day-by-day schedule."""
        self._print_title("DAILY SCHEDULE")

        for day in days_in_month(self.result.month, self.result.year):
            parts = [
                f"{self._store_name(a.store_id)}: {self._employee_name(a.employee_id)} ({a.hours:g}h)"
                for a in sorted(self.result.assignments.for_date(day.date), key=lambda a: a.store_id)
            ]
            print(
                f"Day {day.date.day:2d} "
                f"({day.date.strftime('%Y-%m-%d %a')}): "
                f"{', '.join(parts) if parts else '-'}"
            )
        print()

    def _print_employee_summary(self) -> None:
        """Print hours and worked days per employee."""
        self._print_title("EMPLOYEE SUMMARY")

        data = []
        for employee_id, employee in sorted(self.employees.items()):
            if not employee.active and employee_id not in self.summary.employee_hours:
                continue
            assignments = self.result.assignments.for_employee(employee_id)
            data.append(
                {
                    "Employee": employee.name,
                    "Days Worked": len({a.date for a in assignments}),
                    "Hours": self.summary.employee_hours.get(employee_id, 0.0),
                    "Days Off": len(self.days_off.get(employee_id, ())),
                }
            )

        if not data:
            print("\n  No employees")
            print()
            return

        df = pd.DataFrame(data).set_index("Employee")
        pd.options.display.float_format = "{:.2f}".format
        print(df.to_string())
        print()

    def _print_store_summary(self) -> None:
        """Print assigned versus target hours per store."""
        self._print_title("STORE SUMMARY")

        data = []
        for store_id, store in sorted(self.stores.items()):
            if not store.active:
                continue
            target = monthly_target(store, self.result.month, self.result.year)
            assigned = self.summary.store_hours.get(store_id, 0.0)
            data.append(
                {
                    "Store": store.name,
                    "Code": store.label,
                    "Target Hours": target,
                    "Assigned Hours": assigned,
                    "Deviation": assigned - target,
                }
            )

        df = pd.DataFrame(data).set_index("Store")
        pd.options.display.float_format = "{:.2f}".format
        print(df.to_string())
        print()

    def _print_coverage_gaps(self) -> None:
        """Print store/day slots nobody could take."""
        self._print_title("COVERAGE GAPS")

        coverage = self.result.coverage
        if coverage.is_complete:
            print("\n✓ Every store/day slot is covered")
            print()
            return

        for slot in coverage.uncovered:
            print(
                f"  {slot.date.strftime('%Y-%m-%d (%a)')} {self._store_name(slot.store_id):20s} "
                f"{slot.hours:g}h  [{slot.reason}]"
            )
        print(f"\n  {len(coverage.uncovered)} slots, {coverage.uncovered_hours:g}h uncovered")
        print()

    def _print_days_off_summary(self) -> None:
        """Print requested days off."""
        self._print_title("DAYS OFF")

        has_days_off = False
        for employee_id, days in sorted(self.days_off.items()):
            if not days:
                continue
            has_days_off = True
            print(f"\n  {self._employee_name(employee_id)}:")
            for day in sorted(days):
                print(f"    • {day.strftime('%Y-%m-%d (%a)')}")

        if not has_days_off:
            print("\n  No days off requested for this period")

        print()
