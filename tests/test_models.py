"""Tests for data models and the error taxonomy."""

import pytest
from datetime import date, datetime

from conftest import week
from store_shift.assignments import AssignmentSet
from store_shift.errors import (
    DuplicateKey,
    InvalidArgument,
    NotFound,
    OutOfRange,
    ScheduleError,
)
from store_shift.models import (
    AssignmentInput,
    CoverageReport,
    EngineSettings,
    Schedule,
    ScheduleState,
    Store,
    UncoveredSlot,
    check_hours,
)


class TestStore:
    """Tests for the Store model."""

    def test_name_required(self):
        with pytest.raises(InvalidArgument, match="name"):
            Store(id="s1", name="  ", working_hours=week(8))

    def test_name_trimmed(self):
        store = Store(id="s1", name=" Central ", working_hours=week(8))
        assert store.name == "Central"

    def test_working_hours_validated_on_creation(self):
        with pytest.raises(InvalidArgument):
            Store(id="s1", name="Central", working_hours={"monday": 8})

    def test_label_prefers_code(self):
        assert Store(id="s1", name="Central", working_hours=week(8), code="C1").label == "C1"
        assert Store(id="s2", name="harbour", working_hours=week(8)).label == "HAR"


class TestCheckHours:
    """Tests for the hours bound."""

    @pytest.mark.parametrize("hours", [0, 0.5, 8, 24])
    def test_valid_hours(self, hours):
        assert check_hours(hours) == float(hours)

    @pytest.mark.parametrize("hours", [-0.5, 24.5, "8", None, True])
    def test_invalid_hours(self, hours):
        with pytest.raises(InvalidArgument):
            check_hours(hours)


class TestAssignmentInput:
    """Tests for parsing loosely typed assignment payloads."""

    def test_snake_case_payload(self):
        entry = AssignmentInput.from_dict(
            {"employee_id": "anna", "store_id": "central", "date": "2025-03-03", "hours": 8}
        )

        assert entry.employee_id == "anna"
        assert entry.store_id == "central"
        assert entry.date == date(2025, 3, 3)
        assert entry.hours == 8.0

    def test_camel_case_payload(self):
        entry = AssignmentInput.from_dict(
            {"employeeId": 7, "storeId": 3, "date": datetime(2025, 3, 3, 12), "hours": 4.5}
        )

        assert entry.employee_id == "7"
        assert entry.store_id == "3"
        assert entry.date == date(2025, 3, 3)

    def test_missing_fields_listed(self):
        with pytest.raises(InvalidArgument) as exc_info:
            AssignmentInput.from_dict({"employee_id": "anna", "hours": 8})

        assert "store_id" in exc_info.value.message
        assert "date" in exc_info.value.message

    @pytest.mark.parametrize(
        "raw", ["2025-03-03T00:00:00.000Z", "2025-03-03T09:30:00", "2025-03-03T00:00:00+01:00"]
    )
    def test_timestamp_payload_uses_its_date(self, raw):
        entry = AssignmentInput.from_dict(
            {"employee_id": "anna", "store_id": "central", "date": raw, "hours": 8}
        )

        assert entry.date == date(2025, 3, 3)

    def test_bad_date_rejected(self):
        with pytest.raises(InvalidArgument, match="ISO 8601"):
            AssignmentInput.from_dict(
                {"employee_id": "anna", "store_id": "central", "date": "03/03/2025", "hours": 8}
            )

    def test_non_mapping_rejected(self):
        with pytest.raises(InvalidArgument):
            AssignmentInput.from_dict(["anna", "central"])

    def test_to_assignment_gets_fresh_id(self):
        entry = AssignmentInput("anna", "central", date(2025, 3, 3), 8.0)

        first, second = entry.to_assignment(), entry.to_assignment()
        assert first.key == second.key
        assert first.id != second.id


class TestCoverageReport:
    """Tests for coverage arithmetic."""

    def test_empty_report_is_complete(self):
        report = CoverageReport()

        assert report.is_complete
        assert report.coverage_ratio == 1.0
        assert report.uncovered_hours == 0

    def test_uncovered_hours_and_ratio(self):
        report = CoverageReport(
            uncovered=[UncoveredSlot("central", date(2025, 3, 3), 8.0, "all_days_off")],
            required_hours=32.0,
            covered_hours=24.0,
        )

        assert not report.is_complete
        assert report.uncovered_hours == 8.0
        assert report.coverage_ratio == 0.75


class TestSchedule:
    """Tests for the Schedule model."""

    def test_defaults(self):
        schedule = Schedule(month=2, year=2025, assignments=AssignmentSet(2, 2025))

        assert schedule.state == ScheduleState.DRAFT
        assert not schedule.is_ready
        assert schedule.external_month == 3
        assert schedule.period_label == "03/2025"
        assert schedule.version == 0


class TestEngineSettings:
    """Tests for engine settings validation."""

    @pytest.mark.parametrize("value", [0, -1, 25])
    def test_max_daily_hours_bounds(self, value):
        with pytest.raises(InvalidArgument):
            EngineSettings(max_daily_hours=value)

    def test_negative_retries_rejected(self):
        with pytest.raises(InvalidArgument):
            EngineSettings(max_retries=-1)


class TestErrors:
    """Tests for the error taxonomy."""

    def test_kinds(self):
        assert InvalidArgument("x").kind == "invalid_argument"
        assert OutOfRange("x").kind == "out_of_range"
        assert NotFound("x").kind == "not_found"
        assert DuplicateKey("x").kind == "duplicate_key"

    def test_out_of_range_is_invalid_argument(self):
        assert isinstance(OutOfRange("x"), InvalidArgument)
        assert isinstance(InvalidArgument("x"), ValueError)
        assert not isinstance(NotFound("x"), ValueError)

    def test_to_dict(self):
        error = InvalidArgument("2 invalid", details=[{"index": 0, "message": "bad"}])

        assert error.to_dict() == {
            "kind": "invalid_argument",
            "message": "2 invalid",
            "details": [{"index": 0, "message": "bad"}],
        }
        assert ScheduleError("plain").to_dict() == {"kind": "error", "message": "plain"}
