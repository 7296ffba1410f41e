"""
External interface of the scheduling engine.

Every month argument on this surface is 1-based (1 = January) and is
converted to the engine's 0-based month exactly once, on entry.
"""

import copy
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Executor
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple

from . import generator, summary
from .assignments import AssignmentSet
from .calendar_model import check_period, contains, to_internal_month
from .errors import Conflict, DuplicateKey, Forbidden, InvalidArgument, NotFound
from .lifecycle import ScheduleLifecycle
from .models import (
    Assignment,
    AssignmentInput,
    CapacityWarning,
    CoverageReport,
    Employee,
    EngineSettings,
    MAX_HOURS_PER_DAY,
    MonthlySummary,
    Schedule,
    Store,
    Timesheet,
)
from .notifications import LoggingNotifier, NotificationOutbox, Notifier, ScheduleChange
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class Authorizer(ABC):
    """Decides whether an actor may perform an admin-only mutation."""

    @abstractmethod
    def check(self, actor: str, action: str) -> None:
        """Raise Forbidden to deny."""


class AllowAllAuthorizer(Authorizer):
    def check(self, actor: str, action: str) -> None:
        return None


class AdminAuthorizer(Authorizer):
    """Only employees flagged as admins may mutate schedules."""

    def __init__(self, repository: ScheduleRepository):
        self.repository = repository

    def check(self, actor: str, action: str) -> None:
        try:
            employee = self.repository.get_employee(actor)
        except NotFound:
            raise Forbidden(f"Unknown user {actor} may not {action}") from None
        if not employee.is_admin:
            raise Forbidden(f"User {actor} is not an administrator and may not {action}")


class ScheduleService:
    """Schedule operations backed by a repository and a notifier."""

    def __init__(
        self,
        repository: ScheduleRepository,
        notifier: Notifier | None = None,
        authorizer: Authorizer | None = None,
        settings: EngineSettings | None = None,
        executor: Executor | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repository = repository
        self.notifier = notifier or LoggingNotifier()
        self.authorizer = authorizer or AllowAllAuthorizer()
        self.settings = settings or EngineSettings()
        self.executor = executor
        self.clock = clock

    # Generation

    def generate(
        self,
        month: int,
        year: int,
        stores: Iterable[Store],
        employees: Iterable[Employee],
        employee_days_off: Mapping[str, Iterable] | None = None,
    ) -> Tuple[AssignmentSet, CoverageReport]:
        """Run the generator on explicit inputs without persisting anything."""
        return generator.generate(
            to_internal_month(month),
            year,
            stores,
            employees,
            employee_days_off,
            max_daily_hours=self.settings.max_daily_hours,
        )

    def generate_schedule(
        self,
        month: int,
        year: int,
        actor: str,
        employee_days_off: Mapping[str, Iterable] | None = None,
    ) -> Tuple[Schedule, CoverageReport]:
        """
        Generate from the active stores and employees and upsert the result.

        Returns:
            The saved schedule and the coverage report attached to it
        """
        self.authorizer.check(actor, "generate a schedule")
        internal = to_internal_month(month)
        assignments, coverage = generator.generate(
            internal,
            year,
            self.repository.list_stores(active_only=True),
            self.repository.list_employees(active_only=True),
            employee_days_off,
            max_daily_hours=self.settings.max_daily_hours,
        )
        schedule = self._upsert(internal, year, list(assignments), actor, coverage=coverage)
        return schedule, coverage

    # Schedules

    def create_schedule(
        self, month: int, year: int, assignments: Iterable[Any], actor: str
    ) -> Schedule:
        """
        Create the schedule of a month.

        Raises:
            DuplicateKey: If the month already has a schedule
            InvalidArgument: If any assignment entry is invalid
        """
        self.authorizer.check(actor, "create a schedule")
        internal = to_internal_month(month)
        entries = self._validate_inputs(internal, year, assignments)
        return self._upsert(internal, year, entries, actor, create_only=True)

    def create_or_update_schedule(
        self, month: int, year: int, assignments: Iterable[Any], actor: str
    ) -> Schedule:
        """
        Create the month's schedule or replace the assignments of the existing one.

        Raises:
            InvalidArgument: If any assignment entry is invalid
        """
        self.authorizer.check(actor, "update a schedule")
        internal = to_internal_month(month)
        entries = self._validate_inputs(internal, year, assignments)
        return self._upsert(internal, year, entries, actor)

    def get_schedule(self, month: int, year: int) -> Schedule:
        internal = to_internal_month(month)
        schedule = self.repository.find_schedule(internal, year)
        if schedule is None:
            raise NotFound(f"Schedule for {month:02d}/{year} not found")
        schedule.assignments.set_stores(self._store_lookup())
        return schedule

    def list_schedules(self) -> List[Schedule]:
        return self.repository.list_schedules()

    def delete_schedule(self, month: int, year: int, actor: str) -> None:
        """Delete a schedule and all of its assignments."""
        self.authorizer.check(actor, "delete a schedule")
        internal = to_internal_month(month)

        def operation(lifecycle: ScheduleLifecycle) -> None:
            schedule = self._require_schedule(internal, year)
            self.repository.delete_schedule(schedule.id)
            logger.info(
                "Schedule %s deleted by %s (%d assignments)",
                schedule.period_label,
                actor,
                len(schedule.assignments),
            )

        self._mutate(internal, year, operation)

    # Assignments

    def update_assignment(
        self,
        assignment_id: str,
        actor: str,
        store_id: str | None = None,
        hours: float | None = None,
    ) -> Assignment:
        """
        Change the store and/or hours of one assignment.

        Raises:
            NotFound: If the assignment or store is unknown
            InvalidArgument: If nothing is changed, hours are invalid or the
                store is inactive
            DuplicateKey: If the employee already works at the new store that day
        """
        self.authorizer.check(actor, "update an assignment")
        if store_id is None and hours is None:
            raise InvalidArgument("Either store_id or hours must be given")

        located = self.repository.find_schedule_for_assignment(assignment_id)
        if located is None:
            raise NotFound(f"Assignment {assignment_id} not found")

        def operation(lifecycle: ScheduleLifecycle) -> Assignment:
            schedule = self.repository.find_schedule_for_assignment(assignment_id)
            if schedule is None:
                raise NotFound(f"Assignment {assignment_id} not found")
            schedule.assignments.set_stores(self._store_lookup())

            previous = copy.copy(schedule.assignments.get(assignment_id))
            current = schedule.assignments.update(assignment_id, store_id=store_id, hours=hours)

            change = self._change(schedule, updated=[(previous, copy.copy(current))])
            lifecycle.record_change(schedule, change, actor)
            self.repository.save_schedule(schedule)
            logger.info("Assignment %s updated by %s", assignment_id, actor)
            return current

        return self._mutate(located.month, located.year, operation)

    def delete_assignment(self, month: int, year: int, assignment_id: str, actor: str) -> None:
        """
        Remove one assignment from the month's schedule.

        Raises:
            NotFound: If the schedule is missing or does not hold the assignment
        """
        self.authorizer.check(actor, "delete an assignment")
        internal = to_internal_month(month)

        def operation(lifecycle: ScheduleLifecycle) -> None:
            schedule = self._require_schedule(internal, year)
            if assignment_id not in schedule.assignments:
                owner = self.repository.find_schedule_for_assignment(assignment_id)
                if owner is not None:
                    raise NotFound(
                        f"Assignment {assignment_id} does not belong to schedule "
                        f"{schedule.period_label}"
                    )
            removed = schedule.assignments.remove(assignment_id)

            lifecycle.record_change(schedule, self._change(schedule, removed=[removed]), actor)
            self.repository.save_schedule(schedule)
            logger.info(
                "Assignment %s deleted from schedule %s by %s",
                assignment_id,
                schedule.period_label,
                actor,
            )

        self._mutate(internal, year, operation)

    # Read models

    def monthly_summary(self, month: int, year: int) -> MonthlySummary:
        schedule = self.get_schedule(month, year)
        return summary.monthly_summary(schedule.assignments, schedule.coverage)

    def employee_timesheet(self, schedule_id: str, employee_id: str) -> Timesheet:
        """
        Timesheet of one employee.

        Raises:
            NotFound: If the schedule or the employee does not exist. An
                existing employee without assignments gets an empty timesheet.
        """
        schedule = self.repository.get_schedule(schedule_id)
        employee = self.repository.get_employee(employee_id)
        return summary.employee_timesheet(
            schedule.assignments, employee, self._store_lookup()
        )

    def validate_schedule(self, month: int, year: int) -> List[CapacityWarning]:
        schedule = self.get_schedule(month, year)
        return schedule.assignments.validate(self.settings.max_daily_hours)

    # Lifecycle

    def mark_ready(self, month: int, year: int, actor: str) -> Schedule:
        """Mark the month's schedule as final and notify its employees."""
        self.authorizer.check(actor, "mark a schedule as ready")
        internal = to_internal_month(month)

        def operation(lifecycle: ScheduleLifecycle) -> Schedule:
            schedule = self._require_schedule(internal, year)
            warnings = schedule.assignments.validate(self.settings.max_daily_hours)
            for warning in warnings:
                logger.warning("Schedule %s: %s", schedule.period_label, warning.message)
            lifecycle.mark_ready(schedule, actor)
            self.repository.save_schedule(schedule)
            return schedule

        return self._mutate(internal, year, operation)

    def mark_not_ready(self, month: int, year: int, actor: str) -> Schedule:
        """Move the month's schedule back to draft."""
        self.authorizer.check(actor, "mark a schedule as not ready")
        internal = to_internal_month(month)

        def operation(lifecycle: ScheduleLifecycle) -> Schedule:
            schedule = self._require_schedule(internal, year)
            lifecycle.mark_not_ready(schedule, actor)
            self.repository.save_schedule(schedule)
            return schedule

        return self._mutate(internal, year, operation)

    # Stores and employees

    def list_stores(self, active_only: bool = True) -> List[Store]:
        return self.repository.list_stores(active_only=active_only)

    def save_store(self, store: Store) -> Store:
        return self.repository.save_store(store)

    def deactivate_store(self, store_id: str) -> Store:
        """Soft-delete a store; its historical assignments stay intact."""
        store = self.repository.get_store(store_id)
        store.active = False
        logger.info("Store %s deactivated", store.name)
        return self.repository.save_store(store)

    def list_employees(self, active_only: bool = True) -> List[Employee]:
        return self.repository.list_employees(active_only=active_only)

    def save_employee(self, employee: Employee) -> Employee:
        return self.repository.save_employee(employee)

    def deactivate_employee(self, employee_id: str) -> Employee:
        employee = self.repository.get_employee(employee_id)
        employee.active = False
        logger.info("Employee %s deactivated", employee.name)
        return self.repository.save_employee(employee)

    # Internals

    def _mutate(self, month: int, year: int, operation: Callable[[ScheduleLifecycle], Any]) -> Any:
        """
        Run an operation inside the month's critical section.

        Conflicts are retried against refreshed state; notices queued by the
        operation are delivered only after it succeeds.
        """
        attempts = self.settings.max_retries + 1
        for attempt in range(1, attempts + 1):
            outbox = NotificationOutbox(self.notifier, self.executor)
            lifecycle = ScheduleLifecycle(outbox, self.clock)
            try:
                with self.repository.transaction(month, year):
                    result = operation(lifecycle)
            except Conflict:
                outbox.discard()
                if attempt == attempts:
                    raise
                logger.warning(
                    "Concurrent edit on %02d/%d, retrying (%d/%d)",
                    month + 1,
                    year,
                    attempt,
                    attempts - 1,
                )
                continue
            except Exception:
                outbox.discard()
                raise
            outbox.flush()
            return result

    def _upsert(
        self,
        month: int,
        year: int,
        entries: List[Assignment],
        actor: str,
        coverage: CoverageReport | None = None,
        create_only: bool = False,
    ) -> Schedule:
        def operation(lifecycle: ScheduleLifecycle) -> Schedule:
            stores = self._store_lookup()
            fresh = [copy.copy(a) for a in entries]
            schedule = self.repository.find_schedule(month, year)

            if schedule is None:
                schedule = Schedule(
                    month=month,
                    year=year,
                    assignments=AssignmentSet(month, year, stores, fresh),
                    created_by=actor,
                    coverage=coverage,
                )
                lifecycle.record_change(schedule, self._change(schedule, added=fresh), actor)
                self.repository.add_schedule(schedule)
                logger.info(
                    "Schedule %s created by %s with %d assignments",
                    schedule.period_label,
                    actor,
                    len(fresh),
                )
                return schedule

            if create_only:
                raise DuplicateKey(f"Schedule for {schedule.period_label} already exists")

            previous = list(schedule.assignments)
            schedule.assignments.set_stores(stores)
            schedule.assignments.replace_all(fresh)
            schedule.coverage = coverage

            change = self._diff(schedule, previous, list(schedule.assignments))
            lifecycle.record_change(schedule, change, actor)
            self.repository.save_schedule(schedule)
            logger.info(
                "Schedule %s updated by %s with %d assignments",
                schedule.period_label,
                actor,
                len(fresh),
            )
            return schedule

        return self._mutate(month, year, operation)

    def _validate_inputs(self, month: int, year: int, payload: Iterable[Any]) -> List[Assignment]:
        """
        Check a whole batch and merge duplicate (employee, store, date) entries.

        Raises:
            InvalidArgument: Listing every bad entry by index
        """
        check_period(month, year)
        if payload is None or isinstance(payload, (str, bytes, Mapping)):
            raise InvalidArgument("Assignments data is required")

        employees = {e.id: e for e in self.repository.list_employees(active_only=False)}
        stores = self._store_lookup()
        errors: List[Dict[str, Any]] = []
        merged: Dict[tuple, AssignmentInput] = {}

        for index, raw in enumerate(payload):
            try:
                entry = raw if isinstance(raw, AssignmentInput) else AssignmentInput.from_dict(raw)
            except InvalidArgument as e:
                errors.append({"index": index, "message": e.message})
                continue

            problems = []
            if not contains(month, year, entry.date):
                problems.append(f"date {entry.date} is outside {month + 1:02d}/{year}")
            employee = employees.get(entry.employee_id)
            if employee is None or not employee.active:
                problems.append(f"employee {entry.employee_id} not found or inactive")
            store = stores.get(entry.store_id)
            if store is None or not store.active:
                problems.append(f"store {entry.store_id} not found or inactive")
            if problems:
                errors.append({"index": index, "message": "; ".join(problems)})
                continue

            key = (entry.employee_id, entry.store_id, entry.date)
            if key in merged:
                total = merged[key].hours + entry.hours
                if total > MAX_HOURS_PER_DAY:
                    errors.append(
                        {
                            "index": index,
                            "message": (
                                f"merged hours for employee {entry.employee_id} at store "
                                f"{entry.store_id} on {entry.date} exceed {MAX_HOURS_PER_DAY:g}"
                            ),
                        }
                    )
                    continue
                entry = AssignmentInput(
                    employee_id=entry.employee_id,
                    store_id=entry.store_id,
                    date=entry.date,
                    hours=total,
                )
            merged[key] = entry

        if errors:
            raise InvalidArgument(f"{len(errors)} invalid assignment(s)", details=errors)

        return [entry.to_assignment() for entry in merged.values()]

    def _require_schedule(self, month: int, year: int) -> Schedule:
        schedule = self.repository.find_schedule(month, year)
        if schedule is None:
            raise NotFound(f"Schedule for {month + 1:02d}/{year} not found")
        schedule.assignments.set_stores(self._store_lookup())
        return schedule

    def _store_lookup(self) -> Dict[str, Store]:
        return {s.id: s for s in self.repository.list_stores(active_only=False)}

    def _change(self, schedule: Schedule, **kwargs) -> ScheduleChange:
        return ScheduleChange(
            action="update",
            schedule_id=schedule.id,
            month=schedule.external_month,
            year=schedule.year,
            **kwargs,
        )

    def _diff(
        self, schedule: Schedule, previous: List[Assignment], current: List[Assignment]
    ) -> ScheduleChange:
        before = {a.key: a for a in previous}
        after = {a.key: a for a in current}
        return self._change(
            schedule,
            added=[a for key, a in after.items() if key not in before],
            removed=[a for key, a in before.items() if key not in after],
            updated=[
                (before[key], a)
                for key, a in after.items()
                if key in before and before[key].hours != a.hours
            ],
        )
