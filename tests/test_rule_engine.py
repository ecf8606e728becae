"""Tests for forbidden-sequence and follow-up rule evaluation."""

from datetime import date

import pytest

from shiftplan.domain.calendar import HalfDay, Weekday
from shiftplan.domain.models import Employee, RuleType, ShiftAssignment, ShiftRule, ShiftType
from shiftplan.domain.policies import DefaultAvailabilityPolicy, DefaultQualificationPolicy
from shiftplan.scheduling.assignment_store import AssignmentStore
from shiftplan.scheduling.rule_engine import FollowUpStatus, RuleEngine

MONDAY = date(2024, 1, 1)
TUESDAY = date(2024, 1, 2)


@pytest.fixture
def shift_types():
    return [
        ShiftType(id="early", name="Early", start_time="06:00", end_time="14:00"),
        ShiftType(id="late", name="Late", start_time="14:00", end_time="22:00"),
        ShiftType(id="night", name="Night", start_time="22:00", end_time="06:00"),
        ShiftType(id="oncall", name="On-call", start_time="22:00", end_time="23:00"),
    ]


@pytest.fixture
def shifts(shift_types):
    return {s.id: s for s in shift_types}


def make_engine(rules, shift_types):
    return RuleEngine(
        rules=rules,
        shift_types=shift_types,
        availability_policy=DefaultAvailabilityPolicy(),
        qualification_policy=DefaultQualificationPolicy(),
    )


class TestForbiddenSequences:
    """Tests for find_sequence_conflict."""

    @pytest.fixture
    def employee(self):
        return Employee(id="e1", name="Alice", allowed_shifts={"early", "late", "night"})

    def test_next_day_rule(self, shift_types, shifts, employee):
        rule = ShiftRule(
            id="r1",
            rule_type=RuleType.FORBIDDEN_SEQUENCE,
            name="No early after night",
            from_shift_id="night",
            to_shift_ids=["early"],
        )
        engine = make_engine([rule], shift_types)
        store = AssignmentStore([ShiftAssignment("e1", "night", MONDAY)])

        conflict = engine.find_sequence_conflict(store, employee, TUESDAY, shifts["early"])
        assert conflict == "Forbidden next-day sequence: No early after night"
        assert engine.find_sequence_conflict(store, employee, TUESDAY, shifts["late"]) is None
        # The rule looks at the previous date only
        assert engine.find_sequence_conflict(store, employee, MONDAY, shifts["early"]) is None

    def test_next_day_rule_does_not_span_weekend(self, shift_types, shifts, employee):
        rule = ShiftRule(
            id="r1",
            rule_type=RuleType.FORBIDDEN_SEQUENCE,
            name="No early after night",
            from_shift_id="night",
            to_shift_ids=["early"],
        )
        engine = make_engine([rule], shift_types)
        store = AssignmentStore([ShiftAssignment("e1", "night", date(2024, 1, 5))])

        # Monday's previous date is Sunday, not Friday
        next_monday = date(2024, 1, 8)
        assert engine.find_sequence_conflict(store, employee, next_monday, shifts["early"]) is None

    def test_same_day_rule(self, shift_types, shifts, employee):
        rule = ShiftRule(
            id="r1",
            rule_type=RuleType.FORBIDDEN_SEQUENCE,
            name="No late with early",
            from_shift_id="early",
            to_shift_id="late",
            same_day=True,
        )
        engine = make_engine([rule], shift_types)
        store = AssignmentStore([ShiftAssignment("e1", "early", MONDAY)])

        conflict = engine.find_sequence_conflict(store, employee, MONDAY, shifts["late"])
        assert conflict == "Forbidden same-day sequence: No late with early"
        assert engine.find_sequence_conflict(store, employee, TUESDAY, shifts["late"]) is None

    def test_other_employee_is_not_affected(self, shift_types, shifts):
        rule = ShiftRule(
            id="r1",
            rule_type=RuleType.FORBIDDEN_SEQUENCE,
            name="No early after night",
            from_shift_id="night",
            to_shift_ids=["early"],
        )
        engine = make_engine([rule], shift_types)
        store = AssignmentStore([ShiftAssignment("e1", "night", MONDAY)])
        other = Employee(id="e2", name="Bob", allowed_shifts={"early"})
        assert engine.find_sequence_conflict(store, other, TUESDAY, shifts["early"]) is None

    def test_follow_up_counts_as_from_shift(self, shift_types, shifts, employee):
        rule = ShiftRule(
            id="r1",
            rule_type=RuleType.FORBIDDEN_SEQUENCE,
            name="No early after on-call",
            from_shift_id="oncall",
            to_shift_ids=["early"],
        )
        engine = make_engine([rule], shift_types)
        store = AssignmentStore([ShiftAssignment("e1", "oncall", MONDAY, is_follow_up=True)])
        assert engine.find_sequence_conflict(store, employee, TUESDAY, shifts["early"]) is not None

    def test_rule_without_targets_is_ignored(self, shift_types, shifts, employee):
        rule = ShiftRule(
            id="r1",
            rule_type=RuleType.FORBIDDEN_SEQUENCE,
            name="Broken",
            from_shift_id="night",
        )
        engine = make_engine([rule], shift_types)
        assert engine.forbidden_sequences == []
        store = AssignmentStore([ShiftAssignment("e1", "night", MONDAY)])
        assert engine.find_sequence_conflict(store, employee, TUESDAY, shifts["early"]) is None


class TestMandatoryFollowUps:
    """Tests for the immediate and sweep follow-up checks."""

    @pytest.fixture
    def rule(self):
        return ShiftRule(
            id="r1",
            rule_type=RuleType.MANDATORY_FOLLOW_UP,
            name="On-call after late",
            from_shift_id="late",
            to_shift_id="oncall",
        )

    @pytest.fixture
    def employee(self):
        return Employee(id="e1", name="Alice", allowed_shifts={"late", "oncall"})

    def test_immediate_follow_up(self, rule, shift_types, shifts, employee):
        engine = make_engine([rule], shift_types)
        assert engine.immediate_follow_up(employee, MONDAY, shifts["late"]) == shifts["oncall"]
        assert engine.immediate_follow_up(employee, MONDAY, shifts["early"]) is None

    def test_immediate_follow_up_requires_qualification(self, rule, shift_types, shifts):
        engine = make_engine([rule], shift_types)
        employee = Employee(id="e1", name="Alice", allowed_shifts={"late"})
        assert engine.immediate_follow_up(employee, MONDAY, shifts["late"]) is None

    def test_immediate_follow_up_requires_availability(self, rule, shift_types, shifts):
        engine = make_engine([rule], shift_types)
        employee = Employee(
            id="e1",
            name="Alice",
            allowed_shifts={"late", "oncall"},
            availability={(Weekday.MONDAY, HalfDay.PM): False},
        )
        assert engine.immediate_follow_up(employee, MONDAY, shifts["late"]) is None

    def test_missing_target_shift_is_skipped(self, shift_types, shifts, employee):
        rule = ShiftRule(
            id="r1",
            rule_type=RuleType.MANDATORY_FOLLOW_UP,
            name="Dangling",
            from_shift_id="late",
            to_shift_id="does-not-exist",
        )
        engine = make_engine([rule], shift_types)
        assert engine.immediate_follow_up(employee, MONDAY, shifts["late"]) is None

    def test_pending_follow_ups_include_existing(self, rule, shift_types, employee):
        engine = make_engine([rule], shift_types)
        store = AssignmentStore(
            [
                ShiftAssignment("e1", "late", MONDAY, locked=True),
                ShiftAssignment("e1", "late", TUESDAY, is_follow_up=True),
            ]
        )
        pending = engine.pending_follow_ups(store, {"e1": employee})
        assert len(pending) == 1
        _, source, pending_employee, follow_up = pending[0]
        assert source.schedule_date == MONDAY
        assert pending_employee is employee
        assert follow_up.id == "oncall"

    def test_check_order(self, rule, shift_types, shifts, employee):
        engine = make_engine([rule], shift_types)
        source = ShiftAssignment("e1", "late", MONDAY)

        store = AssignmentStore([source])
        check = engine.check_follow_up(store, rule, source, employee, shifts["oncall"])
        assert check.status == FollowUpStatus.READY

        store = AssignmentStore([source, ShiftAssignment("e1", "oncall", MONDAY, is_follow_up=True)])
        check = engine.check_follow_up(store, rule, source, employee, shifts["oncall"])
        assert check.status == FollowUpStatus.ALREADY_PRESENT

        store = AssignmentStore([source, ShiftAssignment("e2", "oncall", MONDAY)])
        check = engine.check_follow_up(store, rule, source, employee, shifts["oncall"])
        assert check.status == FollowUpStatus.SLOT_OCCUPIED

        unqualified = Employee(id="e1", name="Alice", allowed_shifts={"late"})
        store = AssignmentStore([source])
        check = engine.check_follow_up(store, rule, source, unqualified, shifts["oncall"])
        assert check.status == FollowUpStatus.NOT_QUALIFIED

        unavailable = Employee(
            id="e1",
            name="Alice",
            allowed_shifts={"late", "oncall"},
            availability={(Weekday.MONDAY, HalfDay.PM): False},
        )
        check = engine.check_follow_up(store, rule, source, unavailable, shifts["oncall"])
        assert check.status == FollowUpStatus.NOT_AVAILABLE
