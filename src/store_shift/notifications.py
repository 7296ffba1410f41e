"""
Outbound schedule-change notifications.

Events are queued while a mutation is in progress and delivered only after
it has been committed. Delivery is best effort: failures are logged and
never reach the caller.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import List, Tuple

from .models import Assignment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleChange:
    """What happened to a schedule, as told to one employee."""

    action: str  # "ready" or "update"
    schedule_id: str
    month: int  # 1-based
    year: int
    added: List[Assignment] = field(default_factory=list)
    removed: List[Assignment] = field(default_factory=list)
    updated: List[Tuple[Assignment, Assignment]] = field(default_factory=list)

    def describe(self) -> str:
        """One-line human readable summary."""
        text = f"Schedule {self.month:02d}/{self.year} "
        if self.action == "ready":
            return text + "is ready"
        parts = []
        if self.added:
            parts.append(f"{len(self.added)} added")
        if self.removed:
            parts.append(f"{len(self.removed)} removed")
        if self.updated:
            parts.append(f"{len(self.updated)} updated")
        return text + "was updated" + (f" ({', '.join(parts)})" if parts else "")


class Notifier(ABC):
    """Delivers a change notice to one employee."""

    @abstractmethod
    def notify(self, employee_id: str, change: ScheduleChange) -> None:
        pass


class LoggingNotifier(Notifier):
    """Writes notices to the log instead of an external channel."""

    def notify(self, employee_id: str, change: ScheduleChange) -> None:
        logger.info("Notify %s: %s", employee_id, change.describe())


class RecordingNotifier(Notifier):
    """Keeps every notice in memory."""

    def __init__(self):
        self.calls: List[Tuple[str, ScheduleChange]] = []

    def notify(self, employee_id: str, change: ScheduleChange) -> None:
        self.calls.append((employee_id, change))


class NotificationOutbox:
    """Queue of pending notices, flushed after a successful commit."""

    def __init__(self, notifier: Notifier, executor: Executor | None = None):
        """
        Args:
            notifier: Delivery channel
            executor: When given, deliveries are submitted to it and not awaited
        """
        self.notifier = notifier
        self.executor = executor
        self._pending: List[Tuple[str, ScheduleChange]] = []

    @property
    def pending(self) -> List[Tuple[str, ScheduleChange]]:
        return list(self._pending)

    def emit(self, employee_id: str, change: ScheduleChange) -> None:
        self._pending.append((employee_id, change))

    def discard(self) -> None:
        """Drop queued notices of a mutation that did not commit."""
        if self._pending:
            logger.debug("Discarding %d pending notifications", len(self._pending))
        self._pending.clear()

    def flush(self) -> int:
        """Deliver queued notices; returns how many were handed off."""
        pending, self._pending = self._pending, []
        for employee_id, change in pending:
            if self.executor is not None:
                self.executor.submit(self._deliver, employee_id, change)
            else:
                self._deliver(employee_id, change)
        return len(pending)

    def _deliver(self, employee_id: str, change: ScheduleChange) -> None:
        try:
            self.notifier.notify(employee_id, change)
        except Exception:
            logger.exception(
                "Failed to notify employee %s about %s", employee_id, change.action
            )
