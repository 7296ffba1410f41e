"""
Data models for the store scheduling engine.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, TYPE_CHECKING
from uuid import uuid4

from .errors import InvalidArgument

if TYPE_CHECKING:
    from .assignments import AssignmentSet


WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# Hard bound for a single assignment and for a store's weekday target
MAX_HOURS_PER_DAY = 24.0

# Soft bound for one employee's total across stores on one day
DEFAULT_MAX_DAILY_HOURS = 12.0


def _new_id() -> str:
    return uuid4().hex


def _parse_iso_date(value: str) -> date:
    """Parse "2025-03-01" or a full timestamp such as "2025-03-01T00:00:00.000Z"."""
    if "T" not in value:
        return date.fromisoformat(value)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value).date()


def check_hours(hours: Any, what: str = "hours") -> float:
    """Validate an hours value against the 0-24 range and return it as float."""
    if isinstance(hours, bool) or not isinstance(hours, (int, float)):
        raise InvalidArgument(f"Invalid {what}: expected a number, got {hours!r}")
    if not 0 <= hours <= MAX_HOURS_PER_DAY:
        raise InvalidArgument(
            f"Invalid {what}: must be between 0 and {MAX_HOURS_PER_DAY:g}, got {hours}"
        )
    return float(hours)


def normalize_working_hours(raw: Mapping[str, Any]) -> Dict[str, float]:
    """
    Validate a weekday -> target hours mapping.

    Every weekday must be present, values must lie within 0-24 and be
    multiples of 0.5.

    Raises:
        InvalidArgument: If the mapping is incomplete or holds bad values
    """
    if not isinstance(raw, Mapping):
        raise InvalidArgument("Working hours per day is required")

    unknown = [name for name in raw if str(name).lower() not in WEEKDAY_NAMES]
    if unknown:
        raise InvalidArgument(
            f"Invalid day name(s): {', '.join(map(str, unknown))}. "
            f"Valid names: {', '.join(WEEKDAY_NAMES)}"
        )

    lowered = {str(name).lower(): value for name, value in raw.items()}
    hours: Dict[str, float] = {}
    for day in WEEKDAY_NAMES:
        if day not in lowered:
            raise InvalidArgument(f"Working hours for {day} is required")
        value = check_hours(lowered[day], what=f"working hours for {day}")
        if (value * 2) % 1 != 0:
            raise InvalidArgument(
                f"Invalid working hours for {day}: must be a multiple of 0.5, got {value}"
            )
        hours[day] = value
    return hours


class ScheduleState(str, Enum):
    """Readiness of a schedule."""

    DRAFT = "DRAFT"
    READY = "READY"


@dataclass
class Store:
    """A retail store with a target number of working hours per weekday."""

    id: str
    name: str
    working_hours: Dict[str, float]
    code: str | None = None
    active: bool = True

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidArgument("Store name is required")
        self.name = self.name.strip()
        self.working_hours = normalize_working_hours(self.working_hours)

    @property
    def label(self) -> str:
        """Short code shown in matrix exports."""
        return self.code or self.name[:3].upper()


@dataclass
class Employee:
    """An employee who can be assigned to stores."""

    id: str
    name: str
    chat_id: str | None = None
    active: bool = True
    is_admin: bool = False


@dataclass
class Assignment:
    """One employee's hours at one store on one date."""

    employee_id: str
    store_id: str
    date: date
    hours: float
    id: str = field(default_factory=_new_id)

    @property
    def key(self) -> tuple:
        """Uniqueness key within a schedule."""
        return (self.employee_id, self.store_id, self.date)


@dataclass(frozen=True)
class AssignmentInput:
    """Strictly typed assignment payload accepted at the service boundary."""

    employee_id: str
    store_id: str
    date: date
    hours: float

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AssignmentInput":
        """
        Build an input record from a loosely typed mapping.

        Accepts ``employeeId``/``storeId`` spellings as well as snake case,
        and ISO 8601 date strings.

        Raises:
            InvalidArgument: If a field is missing or malformed
        """
        if not isinstance(raw, Mapping):
            raise InvalidArgument(f"Assignment must be a mapping, got {type(raw).__name__}")

        employee_id = raw.get("employee_id", raw.get("employeeId"))
        store_id = raw.get("store_id", raw.get("storeId"))
        raw_date = raw.get("date")
        hours = raw.get("hours")

        missing = [
            name
            for name, value in (
                ("employee_id", employee_id),
                ("store_id", store_id),
                ("date", raw_date),
                ("hours", hours),
            )
            if value is None or value == ""
        ]
        if missing:
            raise InvalidArgument(f"Missing required fields: {', '.join(missing)}")

        if isinstance(raw_date, datetime):
            raw_date = raw_date.date()
        elif not isinstance(raw_date, date):
            try:
                raw_date = _parse_iso_date(str(raw_date))
            except ValueError:
                raise InvalidArgument(
                    f"Date must be in ISO 8601 format (YYYY-MM-DD), got: {raw_date}"
                ) from None

        return cls(
            employee_id=str(employee_id),
            store_id=str(store_id),
            date=raw_date,
            hours=check_hours(hours),
        )

    def to_assignment(self) -> Assignment:
        return Assignment(
            employee_id=self.employee_id,
            store_id=self.store_id,
            date=self.date,
            hours=self.hours,
        )


@dataclass(frozen=True)
class CalendarDay:
    """A single day of a month, tagged with its weekday."""

    date: date
    weekday: int  # 0=Mon, 6=Sun
    weekday_name: str


@dataclass(frozen=True)
class UncoveredSlot:
    """A store/day slot that generation could not staff."""

    store_id: str
    date: date
    hours: float
    reason: str  # "all_days_off" or "all_committed"


@dataclass
class CoverageReport:
    """Outcome of a generation run: which slots were left unfilled."""

    uncovered: List[UncoveredSlot] = field(default_factory=list)
    required_hours: float = 0.0
    covered_hours: float = 0.0

    @property
    def is_complete(self) -> bool:
        return not self.uncovered

    @property
    def uncovered_hours(self) -> float:
        return sum(slot.hours for slot in self.uncovered)

    @property
    def coverage_ratio(self) -> float:
        """Share of required hours that were assigned (1.0 when nothing was required)."""
        if self.required_hours == 0:
            return 1.0
        return self.covered_hours / self.required_hours


@dataclass(frozen=True)
class CapacityWarning:
    """Advisory finding from AssignmentSet.validate()."""

    kind: str  # "over_capacity", "employee_overtime" or "inactive_store"
    message: str
    date: date
    store_id: str | None = None
    employee_id: str | None = None
    hours: float = 0.0
    limit: float = 0.0


@dataclass
class GenerationResult:
    """Complete result of a generation run."""

    month: int  # 0-based
    year: int
    assignments: "AssignmentSet"
    coverage: CoverageReport

    def as_tuple(self) -> tuple:
        return self.assignments, self.coverage


@dataclass
class Schedule:
    """One month's plan. Owns exactly one AssignmentSet."""

    month: int  # 0-based
    year: int
    assignments: "AssignmentSet"
    id: str = field(default_factory=_new_id)
    state: ScheduleState = ScheduleState.DRAFT
    created_by: str | None = None
    updated_by: str | None = None
    updated_at: datetime | None = None
    coverage: CoverageReport | None = None
    version: int = 0

    @property
    def is_ready(self) -> bool:
        return self.state == ScheduleState.READY

    @property
    def external_month(self) -> int:
        """Month as shown to users (1-12)."""
        return self.month + 1

    @property
    def period_label(self) -> str:
        return f"{self.external_month:02d}/{self.year}"


@dataclass
class MonthlySummary:
    """Aggregated hours for one schedule."""

    month: int  # 0-based
    year: int
    employee_hours: Dict[str, float]
    store_hours: Dict[str, float]
    daily_hours: Dict[date, float]
    store_daily_hours: Dict[str, Dict[date, float]]
    store_weekly_hours: Dict[str, Dict[int, float]]
    total_hours: float
    uncovered_count: int | None = None


@dataclass(frozen=True)
class TimesheetEntry:
    """One line of an employee's timesheet."""

    date: date
    weekday_name: str
    store_id: str
    store_name: str
    hours: float


@dataclass
class Timesheet:
    """All assignments of a single employee in one schedule, ordered by date."""

    employee: Employee
    month: int  # 0-based
    year: int
    entries: List[TimesheetEntry]
    total_hours: float
    days_off: List[date] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries


@dataclass
class EngineSettings:
    """Tunables shared by the service, generator and CLI."""

    max_daily_hours: float = DEFAULT_MAX_DAILY_HOURS
    max_retries: int = 3
    log_level: str = "INFO"

    def __post_init__(self):
        if self.max_daily_hours <= 0 or self.max_daily_hours > MAX_HOURS_PER_DAY:
            raise InvalidArgument(
                f"max_daily_hours must be within (0, {MAX_HOURS_PER_DAY:g}], "
                f"got {self.max_daily_hours}"
            )
        if self.max_retries < 0:
            raise InvalidArgument(f"max_retries cannot be negative, got {self.max_retries}")
