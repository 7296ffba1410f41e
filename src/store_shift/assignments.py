"""
In-memory assignment collection for a single schedule.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, Iterator, List, Mapping

from .calendar_model import check_period, contains
from .capacity import daily_target
from .errors import DuplicateKey, InvalidArgument, NotFound, OutOfRange
from .models import (
    Assignment,
    CapacityWarning,
    DEFAULT_MAX_DAILY_HOURS,
    Store,
    check_hours,
)


class AssignmentSet:
    """All assignments of one schedule, unique per (employee, store, date).

    Mutations reject structural violations (wrong month, duplicate slot,
    negative hours). Capacity is advisory only: over-target edits are
    accepted and surfaced by validate().
    """

    def __init__(
        self,
        month: int,
        year: int,
        stores: Mapping[str, Store] | None = None,
        assignments: Iterable[Assignment] = (),
    ):
        """
        Args:
            month: 0-based month of the owning schedule
            year: Year of the owning schedule
            stores: Store lookup used for capacity checks and store changes
            assignments: Initial assignments, added one by one
        """
        check_period(month, year)
        self.month = month
        self.year = year
        self._stores: Dict[str, Store] = dict(stores or {})
        self._by_id: Dict[str, Assignment] = {}
        self._by_key: Dict[tuple, str] = {}

        for assignment in assignments:
            self.add(assignment)

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Assignment]:
        return iter(list(self._by_id.values()))

    def __contains__(self, assignment_id: object) -> bool:
        return assignment_id in self._by_id

    @property
    def stores(self) -> Dict[str, Store]:
        return self._stores

    def set_stores(self, stores: Mapping[str, Store]) -> None:
        """Replace the store lookup (e.g. after reloading from persistence)."""
        self._stores = dict(stores)

    # Queries

    def get(self, assignment_id: str) -> Assignment:
        try:
            return self._by_id[assignment_id]
        except KeyError:
            raise NotFound(f"Assignment {assignment_id} not found") from None

    def find(self, employee_id: str, store_id: str, day: date) -> Assignment | None:
        assignment_id = self._by_key.get((employee_id, store_id, day))
        return self._by_id[assignment_id] if assignment_id else None

    def for_employee(self, employee_id: str) -> List[Assignment]:
        return sorted(
            (a for a in self._by_id.values() if a.employee_id == employee_id),
            key=lambda a: (a.date, a.store_id),
        )

    def for_store(self, store_id: str) -> List[Assignment]:
        return sorted(
            (a for a in self._by_id.values() if a.store_id == store_id),
            key=lambda a: (a.date, a.employee_id),
        )

    def for_date(self, day: date) -> List[Assignment]:
        return sorted(
            (a for a in self._by_id.values() if a.date == day),
            key=lambda a: (a.store_id, a.employee_id),
        )

    def employees(self) -> List[str]:
        """Ids of employees holding at least one assignment, sorted."""
        return sorted({a.employee_id for a in self._by_id.values()})

    def total_hours(
        self,
        employee_id: str | None = None,
        store_id: str | None = None,
        day: date | None = None,
    ) -> float:
        """Sum hours of assignments matching every given filter."""
        total = 0.0
        for a in self._by_id.values():
            if employee_id is not None and a.employee_id != employee_id:
                continue
            if store_id is not None and a.store_id != store_id:
                continue
            if day is not None and a.date != day:
                continue
            total += a.hours
        return total

    # Mutations

    def add(self, assignment: Assignment) -> Assignment:
        """
        Insert a new assignment.

        Raises:
            OutOfRange: If the date is outside the schedule's month
            DuplicateKey: If the (employee, store, date) slot is taken
            InvalidArgument: If hours are outside 0-24
        """
        if not contains(self.month, self.year, assignment.date):
            raise OutOfRange(
                f"Assignment date {assignment.date} is outside "
                f"{self.month + 1:02d}/{self.year}"
            )
        assignment.hours = check_hours(assignment.hours)

        if assignment.key in self._by_key:
            raise DuplicateKey(
                f"Employee {assignment.employee_id} already has hours at store "
                f"{assignment.store_id} on {assignment.date}; update it instead"
            )
        if assignment.id in self._by_id:
            raise DuplicateKey(f"Assignment id {assignment.id} already exists")

        self._by_id[assignment.id] = assignment
        self._by_key[assignment.key] = assignment.id
        return assignment

    def update(
        self,
        assignment_id: str,
        store_id: str | None = None,
        hours: float | None = None,
    ) -> Assignment:
        """
        Change the store and/or hours of an assignment.

        When the store changes and hours are omitted, the hours default to the
        new store's target for that weekday.

        Raises:
            NotFound: If the assignment or the new store is unknown
            InvalidArgument: If hours are negative or the new store is inactive
            DuplicateKey: If the employee already works at the new store that day
        """
        assignment = self.get(assignment_id)
        new_store_id = assignment.store_id

        if store_id is not None and store_id != assignment.store_id:
            store = self._stores.get(store_id)
            if store is None:
                raise NotFound(f"Store {store_id} not found")
            if not store.active:
                raise InvalidArgument(f"Store {store.name} is inactive")
            if (assignment.employee_id, store_id, assignment.date) in self._by_key:
                raise DuplicateKey(
                    f"Employee {assignment.employee_id} already has hours at store "
                    f"{store_id} on {assignment.date}"
                )
            if hours is None:
                hours = daily_target(store, assignment.date.weekday())
            new_store_id = store_id

        if hours is not None:
            hours = check_hours(hours)

        del self._by_key[assignment.key]
        assignment.store_id = new_store_id
        if hours is not None:
            assignment.hours = hours
        self._by_key[assignment.key] = assignment.id
        return assignment

    def remove(self, assignment_id: str) -> Assignment:
        """
        Delete an assignment.

        Raises:
            NotFound: If the id is unknown or was already removed
        """
        assignment = self._by_id.pop(assignment_id, None)
        if assignment is None:
            raise NotFound(f"Assignment {assignment_id} not found")
        del self._by_key[assignment.key]
        return assignment

    def replace_all(self, assignments: Iterable[Assignment]) -> None:
        """Swap the whole content; leaves the set untouched if any entry is rejected."""
        staged = AssignmentSet(self.month, self.year, self._stores, assignments)
        self._by_id = staged._by_id
        self._by_key = staged._by_key

    # Advisory checks

    def validate(
        self, max_daily_hours: float = DEFAULT_MAX_DAILY_HOURS
    ) -> List[CapacityWarning]:
        """
        Report soft-constraint violations without changing anything.

        Returns:
            Warnings for store-days above target, employee-days above
            max_daily_hours and assignments at inactive or unknown stores
        """
        warnings: List[CapacityWarning] = []
        store_day: Dict[tuple, float] = defaultdict(float)
        employee_day: Dict[tuple, float] = defaultdict(float)

        for a in sorted(self._by_id.values(), key=lambda a: (a.date, a.store_id, a.employee_id)):
            store_day[(a.store_id, a.date)] += a.hours
            employee_day[(a.employee_id, a.date)] += a.hours

            store = self._stores.get(a.store_id)
            if store is None or not store.active:
                warnings.append(
                    CapacityWarning(
                        kind="inactive_store",
                        message=f"Assignment {a.id} references an inactive or unknown store",
                        date=a.date,
                        store_id=a.store_id,
                        employee_id=a.employee_id,
                        hours=a.hours,
                    )
                )

        for (store_id, day), hours in store_day.items():
            store = self._stores.get(store_id)
            if store is None:
                continue
            target = daily_target(store, day.weekday())
            if hours > target:
                warnings.append(
                    CapacityWarning(
                        kind="over_capacity",
                        message=(
                            f"{store.name} has {hours:g}h assigned on {day}, "
                            f"target is {target:g}h"
                        ),
                        date=day,
                        store_id=store_id,
                        hours=hours,
                        limit=target,
                    )
                )

        for (employee_id, day), hours in employee_day.items():
            if hours > max_daily_hours:
                warnings.append(
                    CapacityWarning(
                        kind="employee_overtime",
                        message=(
                            f"Employee {employee_id} works {hours:g}h on {day}, "
                            f"more than {max_daily_hours:g}h"
                        ),
                        date=day,
                        employee_id=employee_id,
                        hours=hours,
                        limit=max_daily_hours,
                    )
                )

        return warnings
