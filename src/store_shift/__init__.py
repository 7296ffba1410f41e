"""
Store Shift - Monthly store schedule generation and assignment management.
"""

__version__ = "0.1.0"

from .assignments import AssignmentSet
from .config import ConfigLoader, ConfigurationError, GenerationConfig, InvalidDateFormatError
from .errors import (
    Conflict,
    DuplicateKey,
    Forbidden,
    InvalidArgument,
    NotFound,
    OutOfRange,
    ScheduleError,
)
from .generator import ScheduleGenerator, generate
from .models import (
    Assignment,
    AssignmentInput,
    CoverageReport,
    Employee,
    EngineSettings,
    MonthlySummary,
    Schedule,
    ScheduleState,
    Store,
    Timesheet,
)
from .notifications import Notifier, ScheduleChange
from .repository import InMemoryRepository, ScheduleRepository
from .reporter import ScheduleReporter
from .service import ScheduleService

__all__ = [
    "Assignment",
    "AssignmentInput",
    "AssignmentSet",
    "ConfigLoader",
    "ConfigurationError",
    "Conflict",
    "CoverageReport",
    "DuplicateKey",
    "Employee",
    "EngineSettings",
    "Forbidden",
    "GenerationConfig",
    "InMemoryRepository",
    "InvalidArgument",
    "InvalidDateFormatError",
    "MonthlySummary",
    "NotFound",
    "Notifier",
    "OutOfRange",
    "Schedule",
    "ScheduleChange",
    "ScheduleError",
    "ScheduleGenerator",
    "ScheduleReporter",
    "ScheduleRepository",
    "ScheduleService",
    "ScheduleState",
    "Store",
    "Timesheet",
    "generate",
]
