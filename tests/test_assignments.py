"""Tests for the per-schedule assignment collection."""

import pytest
from datetime import date

from store_shift.assignments import AssignmentSet
from store_shift.errors import DuplicateKey, InvalidArgument, NotFound, OutOfRange
from store_shift.models import Assignment

MONDAY = date(2025, 3, 3)
TUESDAY = date(2025, 3, 4)


@pytest.fixture
def march(stores) -> AssignmentSet:
    """Empty March 2025 set with every store known."""
    return AssignmentSet(2, 2025, stores)


@pytest.fixture
def filled(march: AssignmentSet) -> AssignmentSet:
    march.add(Assignment("anna", "central", MONDAY, 8))
    march.add(Assignment("boris", "harbour", MONDAY, 6))
    march.add(Assignment("anna", "harbour", TUESDAY, 6))
    return march


class TestAdd:
    """Tests for inserting assignments."""

    def test_add_and_get(self, march: AssignmentSet):
        added = march.add(Assignment("anna", "central", MONDAY, 8))

        assert len(march) == 1
        assert added.id in march
        assert march.get(added.id) is added
        assert march.find("anna", "central", MONDAY) is added

    def test_date_outside_month(self, march: AssignmentSet):
        with pytest.raises(OutOfRange):
            march.add(Assignment("anna", "central", date(2025, 4, 1), 8))
        assert len(march) == 0

    def test_duplicate_triple_rejected(self, march: AssignmentSet):
        march.add(Assignment("anna", "central", MONDAY, 8))

        with pytest.raises(DuplicateKey):
            march.add(Assignment("anna", "central", MONDAY, 4))
        assert len(march) == 1

    def test_same_employee_other_store_allowed(self, march: AssignmentSet):
        march.add(Assignment("anna", "central", MONDAY, 8))
        march.add(Assignment("anna", "harbour", MONDAY, 2))

        assert march.total_hours(employee_id="anna", day=MONDAY) == 10

    @pytest.mark.parametrize("hours", [-1, 25])
    def test_hours_bounds(self, march: AssignmentSet, hours):
        with pytest.raises(InvalidArgument):
            march.add(Assignment("anna", "central", MONDAY, hours))

    def test_zero_hours_allowed(self, march: AssignmentSet):
        march.add(Assignment("anna", "central", MONDAY, 0))
        assert march.total_hours() == 0


class TestRemove:
    """Tests for deleting assignments."""

    def test_remove_twice(self, filled: AssignmentSet):
        target = filled.find("anna", "central", MONDAY)

        removed = filled.remove(target.id)
        assert removed is target
        assert filled.find("anna", "central", MONDAY) is None

        with pytest.raises(NotFound):
            filled.remove(target.id)

    def test_slot_reusable_after_remove(self, filled: AssignmentSet):
        filled.remove(filled.find("anna", "central", MONDAY).id)
        filled.add(Assignment("anna", "central", MONDAY, 4))

        assert filled.total_hours(store_id="central") == 4


class TestUpdate:
    """Tests for changing an assignment's store or hours."""

    def test_update_hours(self, filled: AssignmentSet):
        target = filled.find("anna", "central", MONDAY)

        filled.update(target.id, hours=5)

        assert filled.get(target.id).hours == 5

    def test_store_change_defaults_hours_to_target(self, filled: AssignmentSet):
        target = filled.find("boris", "harbour", MONDAY)

        updated = filled.update(target.id, store_id="central")

        assert updated.store_id == "central"
        assert updated.hours == 8
        assert filled.find("boris", "harbour", MONDAY) is None
        assert filled.find("boris", "central", MONDAY) is updated

    def test_store_change_with_explicit_hours(self, filled: AssignmentSet):
        target = filled.find("boris", "harbour", MONDAY)

        updated = filled.update(target.id, store_id="central", hours=3)

        assert updated.hours == 3

    def test_unknown_store(self, filled: AssignmentSet):
        target = filled.find("anna", "central", MONDAY)

        with pytest.raises(NotFound):
            filled.update(target.id, store_id="nowhere")

    def test_inactive_store(self, filled: AssignmentSet):
        target = filled.find("anna", "central", MONDAY)

        with pytest.raises(InvalidArgument):
            filled.update(target.id, store_id="closed")
        assert target.store_id == "central"

    def test_collision(self, filled: AssignmentSet):
        filled.add(Assignment("anna", "harbour", MONDAY, 2))
        target = filled.find("anna", "central", MONDAY)

        with pytest.raises(DuplicateKey):
            filled.update(target.id, store_id="harbour")

    def test_negative_hours(self, filled: AssignmentSet):
        target = filled.find("anna", "central", MONDAY)

        with pytest.raises(InvalidArgument):
            filled.update(target.id, hours=-2)
        assert target.hours == 8

    def test_unknown_assignment(self, filled: AssignmentSet):
        with pytest.raises(NotFound):
            filled.update("missing", hours=4)


class TestQueries:
    """Tests for filtering and totals."""

    def test_total_hours_filters(self, filled: AssignmentSet):
        assert filled.total_hours() == 20
        assert filled.total_hours(employee_id="anna") == 14
        assert filled.total_hours(store_id="harbour") == 12
        assert filled.total_hours(day=MONDAY) == 14
        assert filled.total_hours(employee_id="anna", store_id="harbour", day=TUESDAY) == 6

    def test_views_are_sorted(self, filled: AssignmentSet):
        assert [a.date for a in filled.for_employee("anna")] == [MONDAY, TUESDAY]
        assert [a.employee_id for a in filled.for_store("harbour")] == ["boris", "anna"]
        assert [a.store_id for a in filled.for_date(MONDAY)] == ["central", "harbour"]
        assert filled.employees() == ["anna", "boris"]

    def test_iteration_survives_mutation(self, filled: AssignmentSet):
        for assignment in filled:
            filled.remove(assignment.id)
        assert len(filled) == 0


class TestReplaceAll:
    """Tests for bulk replacement."""

    def test_replace(self, filled: AssignmentSet):
        filled.replace_all([Assignment("chen", "central", MONDAY, 8)])

        assert len(filled) == 1
        assert filled.employees() == ["chen"]

    def test_rejected_batch_leaves_set_untouched(self, filled: AssignmentSet):
        with pytest.raises(OutOfRange):
            filled.replace_all(
                [
                    Assignment("chen", "central", MONDAY, 8),
                    Assignment("chen", "central", date(2025, 4, 2), 8),
                ]
            )

        assert len(filled) == 3
        assert filled.find("chen", "central", MONDAY) is None


class TestValidate:
    """Tests for advisory capacity checks."""

    def test_clean_set_has_no_warnings(self, filled: AssignmentSet):
        assert filled.validate() == []

    def test_over_capacity(self, filled: AssignmentSet):
        filled.add(Assignment("chen", "central", MONDAY, 4))

        warnings = filled.validate()

        assert [w.kind for w in warnings] == ["over_capacity"]
        assert warnings[0].hours == 12
        assert warnings[0].limit == 8

    def test_employee_overtime(self, filled: AssignmentSet):
        filled.add(Assignment("anna", "harbour", MONDAY, 6))

        warnings = filled.validate(max_daily_hours=12)

        overtime = [w for w in warnings if w.kind == "employee_overtime"]
        assert len(overtime) == 1
        assert overtime[0].employee_id == "anna"
        assert overtime[0].hours == 14

    def test_inactive_store(self, filled: AssignmentSet):
        filled.add(Assignment("chen", "closed", MONDAY, 4))

        kinds = [w.kind for w in filled.validate()]

        assert kinds == ["inactive_store"]

    def test_capacity_is_advisory(self, filled: AssignmentSet):
        target = filled.find("anna", "central", MONDAY)

        filled.update(target.id, hours=20)

        assert filled.get(target.id).hours == 20
