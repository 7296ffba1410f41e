"""
Readiness state machine for schedules: DRAFT -> READY -> DRAFT.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from .models import Schedule, ScheduleState
from .notifications import NotificationOutbox, ScheduleChange

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleLifecycle:
    """Applies readiness transitions and queues the resulting notices."""

    def __init__(
        self,
        outbox: NotificationOutbox,
        clock: Callable[[], datetime] | None = None,
    ):
        self.outbox = outbox
        self.clock = clock or _utcnow

    def mark_ready(self, schedule: Schedule, actor: str) -> bool:
        """
        Mark a schedule as final.

        A DRAFT schedule becomes READY and one "ready" notice is queued per
        employee holding an assignment. An already READY schedule only
        records the actor and time.

        Returns:
            True if the state changed
        """
        self._touch(schedule, actor)
        if schedule.state == ScheduleState.READY:
            return False

        schedule.state = ScheduleState.READY

        change = ScheduleChange(
            action="ready",
            schedule_id=schedule.id,
            month=schedule.external_month,
            year=schedule.year,
        )
        for employee_id in schedule.assignments.employees():
            self.outbox.emit(employee_id, change)

        logger.info("Schedule %s marked as ready by %s", schedule.period_label, actor)
        return True

    def mark_not_ready(self, schedule: Schedule, actor: str) -> bool:
        """
        Move a READY schedule back to DRAFT without notifying anyone.

        A DRAFT schedule only records the actor and time.

        Returns:
            True if the state changed
        """
        self._touch(schedule, actor)
        if schedule.state == ScheduleState.DRAFT:
            return False

        schedule.state = ScheduleState.DRAFT
        logger.info("Schedule %s marked as not ready by %s", schedule.period_label, actor)
        return True

    def record_change(self, schedule: Schedule, change: ScheduleChange, actor: str) -> int:
        """
        Record an edit and, on a READY schedule, queue one notice per affected employee.

        Returns:
            Number of notices queued
        """
        self._touch(schedule, actor)
        if not schedule.is_ready:
            return 0

        affected = {a.employee_id for a in change.added}
        affected.update(a.employee_id for a in change.removed)
        for previous, current in change.updated:
            affected.add(previous.employee_id)
            affected.add(current.employee_id)

        for employee_id in sorted(affected):
            self.outbox.emit(employee_id, change)
        return len(affected)

    def _touch(self, schedule: Schedule, actor: str) -> None:
        schedule.updated_by = actor
        schedule.updated_at = self.clock()
