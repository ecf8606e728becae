"""Tests for request and schedule validation."""

from datetime import date

import pytest

from shiftplan.domain.calendar import HalfDay, Weekday
from shiftplan.domain.models import (
    Employee,
    EmployeeType,
    LearningYearQualification,
    RuleType,
    ScheduleRequest,
    ScheduleResult,
    ScheduleStatistics,
    ShiftAssignment,
    ShiftRule,
    ShiftType,
    Team,
)
from shiftplan.scheduling.scheduler import generate_shift_schedule
from shiftplan.validation.validator import ScheduleValidator, ValidationErrorType

MONDAY = date(2024, 1, 1)
TUESDAY = date(2024, 1, 2)


def make_result(assignments):
    return ScheduleResult(
        assignments=assignments,
        conflict_details=[],
        statistics=ScheduleStatistics(total_assignments=len(assignments)),
    )


class TestValidateRequest:
    """Tests for ScheduleValidator.validate_request."""

    @pytest.fixture
    def validator(self):
        return ScheduleValidator()

    @pytest.fixture
    def valid_request(self):
        return ScheduleRequest(
            start_date=MONDAY,
            end_date=TUESDAY,
            employees=[Employee(id="e1", name="Alice", team_id="t1", allowed_shifts={"early"})],
            teams=[Team(id="t1", name="Team 1")],
            shift_types=[
                ShiftType(
                    id="early",
                    name="Early",
                    start_time="06:00",
                    end_time="14:00",
                    weekly_needs={Weekday.MONDAY: 1},
                )
            ],
        )

    def test_valid_request(self, validator, valid_request):
        result = validator.validate_request(valid_request)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_invalid_time(self, validator, valid_request):
        valid_request.shift_types[0].end_time = "25:00"
        result = validator.validate_request(valid_request)
        assert not result.is_valid
        assert result.has_error(ValidationErrorType.INVALID_TIME)

    def test_negative_need(self, validator, valid_request):
        valid_request.shift_types[0].weekly_needs[Weekday.TUESDAY] = -1
        result = validator.validate_request(valid_request)
        assert result.has_error(ValidationErrorType.NEGATIVE_NEED)

    def test_need_above_one_is_a_warning(self, validator, valid_request):
        valid_request.shift_types[0].weekly_needs[Weekday.TUESDAY] = 2
        result = validator.validate_request(valid_request)
        assert result.is_valid
        assert result.has_warning(ValidationErrorType.NEED_EXCEEDS_SLOT)

    def test_duplicate_ids(self, validator, valid_request):
        valid_request.employees.append(Employee(id="e1", name="Other Alice"))
        result = validator.validate_request(valid_request)
        assert result.has_error(ValidationErrorType.DUPLICATE_ID)

    def test_unknown_team_is_a_warning(self, validator, valid_request):
        valid_request.employees[0].team_id = "nope"
        result = validator.validate_request(valid_request)
        assert result.is_valid
        assert result.has_warning(ValidationErrorType.UNKNOWN_TEAM)

    def test_unknown_allowed_shift_is_a_warning(self, validator, valid_request):
        valid_request.employees[0].allowed_shifts.add("ghost")
        result = validator.validate_request(valid_request)
        assert result.is_valid
        assert result.has_warning(ValidationErrorType.UNKNOWN_SHIFT_REFERENCE)

    def test_trainee_without_learning_year(self, validator, valid_request):
        valid_request.employees.append(
            Employee(
                id="t1",
                name="Tom",
                employee_type=EmployeeType.TRAINEE,
                trainee_year=2,
                allowed_shifts={"early"},
            )
        )
        valid_request.qualifications.append(LearningYearQualification(year=1))
        result = validator.validate_request(valid_request)
        assert result.has_warning(ValidationErrorType.MISSING_LEARNING_YEAR)

    def test_rule_with_unknown_shift(self, validator, valid_request):
        valid_request.rules.append(
            ShiftRule(
                id="r1",
                rule_type=RuleType.FORBIDDEN_SEQUENCE,
                name="Bad",
                from_shift_id="early",
                to_shift_ids=["ghost"],
            )
        )
        result = validator.validate_request(valid_request)
        assert not result.is_valid
        assert result.has_error(ValidationErrorType.UNKNOWN_SHIFT_REFERENCE)

    def test_mandatory_rule_without_target(self, validator, valid_request):
        valid_request.rules.append(
            ShiftRule(
                id="r1",
                rule_type=RuleType.MANDATORY_FOLLOW_UP,
                name="Nothing follows",
                from_shift_id="early",
            )
        )
        result = validator.validate_request(valid_request)
        assert result.has_error(ValidationErrorType.INVALID_RULE)


class TestValidateSchedule:
    """Tests for ScheduleValidator.validate and validate_statistics."""

    @pytest.fixture
    def validator(self):
        return ScheduleValidator()

    @pytest.fixture
    def schedule_request(self):
        return ScheduleRequest(
            start_date=MONDAY,
            end_date=TUESDAY,
            employees=[
                Employee(id="e1", name="Alice", allowed_shifts={"early", "late", "oncall"}),
                Employee(
                    id="e2",
                    name="Bob",
                    allowed_shifts={"early", "late"},
                    availability={(Weekday.TUESDAY, HalfDay.AM): False},
                ),
            ],
            shift_types=[
                ShiftType(
                    id="early",
                    name="Early",
                    start_time="06:00",
                    end_time="14:00",
                    weekly_needs={Weekday.MONDAY: 1, Weekday.TUESDAY: 1},
                ),
                ShiftType(id="late", name="Late", start_time="14:00", end_time="22:00"),
                ShiftType(id="oncall", name="On-call", start_time="22:00", end_time="23:00"),
            ],
            rules=[
                ShiftRule(
                    id="r1",
                    rule_type=RuleType.MANDATORY_FOLLOW_UP,
                    name="On-call after late",
                    from_shift_id="late",
                    to_shift_id="oncall",
                ),
                ShiftRule(
                    id="r2",
                    rule_type=RuleType.FORBIDDEN_SEQUENCE,
                    name="No early after late",
                    from_shift_id="late",
                    to_shift_ids=["early"],
                ),
            ],
        )

    def test_generated_schedule_is_valid(self, validator, schedule_request):
        result = generate_shift_schedule(schedule_request)
        assert validator.validate(result, schedule_request).is_valid
        assert validator.validate_statistics(result, schedule_request).is_valid

    def test_slot_double_booked(self, validator, schedule_request):
        result = make_result(
            [
                ShiftAssignment("e1", "early", MONDAY),
                ShiftAssignment("e2", "early", MONDAY),
            ]
        )
        validation = validator.validate(result, schedule_request)
        assert validation.has_error(ValidationErrorType.SLOT_DOUBLE_BOOKED)

    def test_follow_up_does_not_double_book(self, validator, schedule_request):
        result = make_result(
            [
                ShiftAssignment("e2", "late", MONDAY),
                ShiftAssignment("e1", "late", MONDAY, is_follow_up=True),
            ]
        )
        validation = validator.validate(result, schedule_request)
        assert not validation.has_error(ValidationErrorType.SLOT_DOUBLE_BOOKED)

    def test_employee_double_booked(self, validator, schedule_request):
        result = make_result(
            [
                ShiftAssignment("e1", "early", MONDAY),
                ShiftAssignment("e1", "late", MONDAY),
            ]
        )
        validation = validator.validate(result, schedule_request)
        assert validation.has_error(ValidationErrorType.EMPLOYEE_DOUBLE_BOOKED)

    def test_unknown_references(self, validator, schedule_request):
        result = make_result(
            [
                ShiftAssignment("ghost", "early", MONDAY),
                ShiftAssignment("e1", "ghost", MONDAY),
            ]
        )
        validation = validator.validate(result, schedule_request)
        assert validation.has_error(ValidationErrorType.UNKNOWN_EMPLOYEE)
        assert validation.has_error(ValidationErrorType.UNKNOWN_SHIFT_TYPE)

    def test_not_qualified(self, validator, schedule_request):
        result = make_result([ShiftAssignment("e2", "oncall", MONDAY)])
        validation = validator.validate(result, schedule_request)
        assert validation.has_error(ValidationErrorType.NOT_QUALIFIED)

    def test_locked_assignment_skips_qualification(self, validator, schedule_request):
        result = make_result([ShiftAssignment("e2", "oncall", MONDAY, locked=True)])
        validation = validator.validate(result, schedule_request)
        assert not validation.has_error(ValidationErrorType.NOT_QUALIFIED)

    def test_soft_violations_are_warnings(self, validator, schedule_request):
        result = make_result(
            [
                ShiftAssignment("e2", "late", MONDAY),
                ShiftAssignment("e2", "early", TUESDAY),
            ]
        )
        validation = validator.validate(result, schedule_request)
        assert validation.is_valid
        assert validation.has_warning(ValidationErrorType.NOT_AVAILABLE)
        assert validation.has_warning(ValidationErrorType.FORBIDDEN_SEQUENCE)
        assert validation.has_warning(ValidationErrorType.MISSING_FOLLOW_UP)
        assert validation.has_warning(ValidationErrorType.UNDERSTAFFED)

    def test_statistics_mismatch(self, validator, schedule_request):
        result = generate_shift_schedule(schedule_request)
        result.statistics.total_assignments += 1
        result.statistics.employee_workloads["e1"].hours += 1.0
        validation = validator.validate_statistics(result, schedule_request)
        assert not validation.is_valid
        assert len(validation.errors) == 2
        assert all(
            e.error_type == ValidationErrorType.STATISTICS_MISMATCH for e in validation.errors
        )
