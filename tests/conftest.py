"""Shared fixtures for store-shift tests."""

import pytest
from datetime import datetime, timezone

from store_shift.models import Employee, Store, WEEKDAY_NAMES
from store_shift.notifications import RecordingNotifier
from store_shift.repository import InMemoryRepository
from store_shift.service import ScheduleService


def week(mon=0, tue=0, wed=0, thu=0, fri=0, sat=0, sun=0) -> dict:
    """Build a working_hours mapping from positional weekday targets."""
    return dict(zip(WEEKDAY_NAMES, (mon, tue, wed, thu, fri, sat, sun)))


FIXED_NOW = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def central_store() -> Store:
    """8h Monday-Saturday, closed Sunday."""
    return Store(
        id="central",
        name="Central",
        code="CEN",
        working_hours=week(8, 8, 8, 8, 8, 8, 0),
    )


@pytest.fixture
def harbour_store() -> Store:
    """6h on weekdays, 4h on weekends."""
    return Store(
        id="harbour",
        name="Harbour",
        working_hours=week(6, 6, 6, 6, 6, 4, 4),
    )


@pytest.fixture
def closed_store() -> Store:
    """An inactive store."""
    return Store(
        id="closed",
        name="Closed",
        working_hours=week(8, 8, 8, 8, 8, 0, 0),
        active=False,
    )


@pytest.fixture
def stores(central_store, harbour_store, closed_store) -> dict:
    return {s.id: s for s in (central_store, harbour_store, closed_store)}


@pytest.fixture
def employees() -> list:
    """Three active employees (one admin) and one inactive one."""
    return [
        Employee(id="anna", name="Anna", is_admin=True),
        Employee(id="boris", name="Boris", chat_id="1001"),
        Employee(id="chen", name="Chen"),
        Employee(id="dora", name="Dora", active=False),
    ]


@pytest.fixture
def repository(stores, employees) -> InMemoryRepository:
    """Repository seeded with every store and employee."""
    repo = InMemoryRepository()
    for store in stores.values():
        repo.save_store(store)
    for employee in employees:
        repo.save_employee(employee)
    return repo


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(repository, notifier) -> ScheduleService:
    """Service with recorded notifications and a fixed clock."""
    return ScheduleService(repository, notifier=notifier, clock=lambda: FIXED_NOW)
