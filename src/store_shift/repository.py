"""
Persistence collaborator for schedules, stores and employees.

The engine only talks to ScheduleRepository. InMemoryRepository is the
bundled implementation; it hands out copies so callers never share mutable
state with the store, and uses schedule versions for optimistic concurrency.
"""

import copy
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple

from .errors import Conflict, DuplicateKey, NotFound
from .models import Employee, Schedule, Store


class ScheduleRepository(ABC):
    """Transactional CRUD for the engine's entities."""

    @abstractmethod
    def transaction(self, month: int, year: int):
        """Context manager serializing writers of one (0-based) month."""

    # Schedules

    @abstractmethod
    def get_schedule(self, schedule_id: str) -> Schedule:
        """Raises NotFound for unknown ids."""

    @abstractmethod
    def find_schedule(self, month: int, year: int) -> Schedule | None:
        pass

    @abstractmethod
    def list_schedules(self) -> List[Schedule]:
        pass

    @abstractmethod
    def add_schedule(self, schedule: Schedule) -> Schedule:
        """Raises DuplicateKey if the month already has a schedule."""

    @abstractmethod
    def save_schedule(self, schedule: Schedule) -> Schedule:
        """Raises Conflict if the stored version moved on since it was read."""

    @abstractmethod
    def delete_schedule(self, schedule_id: str) -> None:
        """Deletes the schedule together with its assignments."""

    @abstractmethod
    def find_schedule_for_assignment(self, assignment_id: str) -> Schedule | None:
        pass

    # Stores and employees

    @abstractmethod
    def list_stores(self, active_only: bool = True) -> List[Store]:
        pass

    @abstractmethod
    def get_store(self, store_id: str) -> Store:
        pass

    @abstractmethod
    def save_store(self, store: Store) -> Store:
        pass

    @abstractmethod
    def list_employees(self, active_only: bool = True) -> List[Employee]:
        pass

    @abstractmethod
    def get_employee(self, employee_id: str) -> Employee:
        pass

    @abstractmethod
    def save_employee(self, employee: Employee) -> Employee:
        pass


class InMemoryRepository(ScheduleRepository):
    """Dictionary-backed repository, safe to share between threads."""

    def __init__(self):
        self._schedules: Dict[str, Schedule] = {}
        self._stores: Dict[str, Store] = {}
        self._employees: Dict[str, Employee] = {}
        self._guard = threading.RLock()
        self._locks: Dict[Tuple[int, int], threading.RLock] = {}

    @contextmanager
    def transaction(self, month: int, year: int) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault((month, year), threading.RLock())
        with lock:
            yield

    # Schedules

    def get_schedule(self, schedule_id: str) -> Schedule:
        with self._guard:
            schedule = self._schedules.get(schedule_id)
            if schedule is None:
                raise NotFound(f"Schedule {schedule_id} not found")
            return copy.deepcopy(schedule)

    def find_schedule(self, month: int, year: int) -> Schedule | None:
        with self._guard:
            for schedule in self._schedules.values():
                if schedule.month == month and schedule.year == year:
                    return copy.deepcopy(schedule)
        return None

    def list_schedules(self) -> List[Schedule]:
        with self._guard:
            schedules = sorted(self._schedules.values(), key=lambda s: (s.year, s.month))
            return [copy.deepcopy(s) for s in schedules]

    def add_schedule(self, schedule: Schedule) -> Schedule:
        with self._guard:
            for existing in self._schedules.values():
                if existing.month == schedule.month and existing.year == schedule.year:
                    raise DuplicateKey(
                        f"Schedule for {schedule.period_label} already exists"
                    )
            schedule.version = 1
            self._schedules[schedule.id] = copy.deepcopy(schedule)
            return schedule

    def save_schedule(self, schedule: Schedule) -> Schedule:
        with self._guard:
            stored = self._schedules.get(schedule.id)
            if stored is None:
                raise NotFound(f"Schedule {schedule.id} not found")
            if stored.version != schedule.version:
                raise Conflict(
                    f"Schedule {schedule.period_label} was modified concurrently "
                    f"(version {schedule.version}, stored {stored.version})"
                )
            schedule.version += 1
            self._schedules[schedule.id] = copy.deepcopy(schedule)
            return schedule

    def delete_schedule(self, schedule_id: str) -> None:
        with self._guard:
            if self._schedules.pop(schedule_id, None) is None:
                raise NotFound(f"Schedule {schedule_id} not found")

    def find_schedule_for_assignment(self, assignment_id: str) -> Schedule | None:
        with self._guard:
            for schedule in self._schedules.values():
                if assignment_id in schedule.assignments:
                    return copy.deepcopy(schedule)
        return None

    # Stores

    def list_stores(self, active_only: bool = True) -> List[Store]:
        with self._guard:
            stores = [s for s in self._stores.values() if s.active or not active_only]
            return [copy.deepcopy(s) for s in sorted(stores, key=lambda s: s.name)]

    def get_store(self, store_id: str) -> Store:
        with self._guard:
            store = self._stores.get(store_id)
            if store is None:
                raise NotFound(f"Store {store_id} not found")
            return copy.deepcopy(store)

    def save_store(self, store: Store) -> Store:
        with self._guard:
            for other in self._stores.values():
                if other.id != store.id and other.name.lower() == store.name.lower():
                    raise DuplicateKey(f"Store with name {store.name} already exists")
            self._stores[store.id] = copy.deepcopy(store)
            return store

    # Employees

    def list_employees(self, active_only: bool = True) -> List[Employee]:
        with self._guard:
            employees = [e for e in self._employees.values() if e.active or not active_only]
            return [copy.deepcopy(e) for e in sorted(employees, key=lambda e: e.id)]

    def get_employee(self, employee_id: str) -> Employee:
        with self._guard:
            employee = self._employees.get(employee_id)
            if employee is None:
                raise NotFound(f"Employee {employee_id} not found")
            return copy.deepcopy(employee)

    def save_employee(self, employee: Employee) -> Employee:
        with self._guard:
            self._employees[employee.id] = copy.deepcopy(employee)
            return employee
