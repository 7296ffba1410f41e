"""
Error taxonomy shared by every layer of the scheduling engine.
"""

from typing import Any, Dict, List


class ScheduleError(Exception):
    """Base class for all scheduling errors.

    Carries a machine-readable ``kind`` and optional per-entry ``details``
    so transports can return a structured error without parsing messages.
    """

    kind = "error"

    def __init__(self, message: str, details: List[Dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation of the error."""
        payload: Dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidArgument(ScheduleError, ValueError):
    """Malformed month, year, hours or missing required fields."""

    kind = "invalid_argument"


class OutOfRange(InvalidArgument):
    """A date falls outside the schedule's month."""

    kind = "out_of_range"


class NotFound(ScheduleError):
    """Unknown schedule, assignment, employee or store."""

    kind = "not_found"


class DuplicateKey(ScheduleError):
    """Uniqueness violation on a Schedule or an Assignment."""

    kind = "duplicate_key"


class Conflict(ScheduleError):
    """Concurrent edit collision; retry against refreshed state."""

    kind = "conflict"


class Forbidden(ScheduleError):
    """The acting user may not perform this mutation."""

    kind = "forbidden"
