"""Validation module for verifying requests and schedule results.

Requests are validated before scheduling: the engine itself assumes
well-formed times and resolvable references. Results are validated against
the request by replaying every assignment, which is the single source of
truth for the invariants a schedule must satisfy.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from shiftplan.domain.calendar import parse_time, to_iso, working_weekday
from shiftplan.domain.models import RuleType, ScheduleRequest, ScheduleResult
from shiftplan.domain.policies import (
    AvailabilityPolicy,
    DefaultAvailabilityPolicy,
    DefaultQualificationPolicy,
    QualificationPolicy,
)
from shiftplan.scheduling.workload import WorkloadTracker


class ValidationErrorType(Enum):
    """Types of validation errors."""

    # Request problems
    INVALID_TIME = "invalid_time"
    UNKNOWN_TEAM = "unknown_team"
    UNKNOWN_SHIFT_REFERENCE = "unknown_shift_reference"
    MISSING_LEARNING_YEAR = "missing_learning_year"
    INVALID_RULE = "invalid_rule"
    NEGATIVE_NEED = "negative_need"
    NEED_EXCEEDS_SLOT = "need_exceeds_slot"
    DUPLICATE_ID = "duplicate_id"

    # Result problems
    SLOT_DOUBLE_BOOKED = "slot_double_booked"
    EMPLOYEE_DOUBLE_BOOKED = "employee_double_booked"
    UNKNOWN_EMPLOYEE = "unknown_employee"
    UNKNOWN_SHIFT_TYPE = "unknown_shift_type"
    NOT_QUALIFIED = "not_qualified"
    NOT_AVAILABLE = "not_available"
    FORBIDDEN_SEQUENCE = "forbidden_sequence"
    MISSING_FOLLOW_UP = "missing_follow_up"
    UNDERSTAFFED = "understaffed"
    STATISTICS_MISMATCH = "statistics_mismatch"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    employee_id: Optional[str] = None
    schedule_date: Optional[date] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.employee_id:
            parts.append(f"Employee {self.employee_id}:")
        parts.append(self.message)
        if self.schedule_date is not None:
            parts.append(f"({to_iso(self.schedule_date)})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of a validation run.

    Errors make the result invalid. Warnings describe constraints a greedy
    run may legitimately break (emergency assignments, missing follow-ups,
    open positions) and do not affect validity.
    """

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: ValidationError) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def has_error(self, error_type: ValidationErrorType) -> bool:
        return any(e.error_type == error_type for e in self.errors)

    def has_warning(self, error_type: ValidationErrorType) -> bool:
        return any(w.error_type == error_type for w in self.warnings)


class ScheduleValidator:
    """Validates requests and schedule results.

    Example:
        >>> validator = ScheduleValidator()
        >>> result = validator.validate(schedule_result, request)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(
        self,
        availability_policy: Optional[AvailabilityPolicy] = None,
        qualification_policy: Optional[QualificationPolicy] = None,
    ):
        self.availability_policy = availability_policy or DefaultAvailabilityPolicy()
        self.qualification_policy = qualification_policy

    def _qualification_policy_for(self, request: ScheduleRequest) -> QualificationPolicy:
        if self.qualification_policy is not None:
            return self.qualification_policy
        return DefaultQualificationPolicy(qualifications=request.qualifications)

    def validate_request(self, request: ScheduleRequest) -> ValidationResult:
        """Check the input assumptions the scheduling engine relies on.

        Args:
            request: The request to check.

        Returns:
            ValidationResult; errors here would make the engine misbehave.
        """
        result = ValidationResult(is_valid=True)
        shift_ids = {s.id for s in request.shift_types}
        team_ids = {t.id for t in request.teams}
        years = {q.year for q in request.qualifications}

        for label, ids in (
            ("employee", [e.id for e in request.employees]),
            ("shift type", [s.id for s in request.shift_types]),
            ("team", [t.id for t in request.teams]),
        ):
            for duplicate, count in Counter(ids).items():
                if count > 1:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.DUPLICATE_ID,
                            message=f"Duplicate {label} ID {duplicate!r} ({count} times)",
                        )
                    )

        for shift_type in request.shift_types:
            for attr in ("start_time", "end_time"):
                value = getattr(shift_type, attr)
                try:
                    parse_time(value)
                except ValueError:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.INVALID_TIME,
                            message=f"Shift type {shift_type.id} has invalid {attr} {value!r}",
                        )
                    )
            for weekday, need in shift_type.weekly_needs.items():
                if need < 0:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.NEGATIVE_NEED,
                            message=(
                                f"Shift type {shift_type.id} has negative need "
                                f"{need} on {weekday.value}"
                            ),
                        )
                    )
                elif need > 1:
                    # A slot holds one primary assignment; extra positions stay open.
                    result.add_warning(
                        ValidationError(
                            error_type=ValidationErrorType.NEED_EXCEEDS_SLOT,
                            message=(
                                f"Shift type {shift_type.id} needs {need} on {weekday.value} "
                                f"but only one primary assignment fits a slot"
                            ),
                        )
                    )

        for employee in request.employees:
            if employee.team_id is not None and employee.team_id not in team_ids:
                # Not fatal: the engine falls back to the default percentage.
                result.add_warning(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_TEAM,
                        message=f"Unknown team {employee.team_id!r}",
                        employee_id=employee.id,
                    )
                )
            for shift_id in sorted(employee.allowed_shifts - shift_ids):
                result.add_warning(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_SHIFT_REFERENCE,
                        message=f"Allowed shift {shift_id!r} does not exist",
                        employee_id=employee.id,
                    )
                )
            if employee.is_trainee and employee.trainee_year and employee.trainee_year not in years:
                result.add_warning(
                    ValidationError(
                        error_type=ValidationErrorType.MISSING_LEARNING_YEAR,
                        message=(
                            f"No qualification for training year {employee.trainee_year}; "
                            f"trainee cannot be scheduled"
                        ),
                        employee_id=employee.id,
                    )
                )

        for rule in request.rules:
            referenced = [rule.from_shift_id]
            if rule.to_shift_id:
                referenced.append(rule.to_shift_id)
            referenced.extend(rule.to_shift_ids)
            for shift_id in referenced:
                if shift_id not in shift_ids:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.UNKNOWN_SHIFT_REFERENCE,
                            message=f"Rule {rule.name!r} references unknown shift {shift_id!r}",
                        )
                    )

            if rule.rule_type == RuleType.MANDATORY_FOLLOW_UP and not rule.to_shift_id:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.INVALID_RULE,
                        message=f"Mandatory follow-up rule {rule.name!r} has no target shift",
                    )
                )
            if rule.rule_type == RuleType.FORBIDDEN_SEQUENCE and not rule.has_targets:
                result.add_warning(
                    ValidationError(
                        error_type=ValidationErrorType.INVALID_RULE,
                        message=f"Forbidden sequence {rule.name!r} has no targets and is ignored",
                    )
                )

        return result

    def validate(self, schedule: ScheduleResult, request: ScheduleRequest) -> ValidationResult:
        """Validate a schedule result against its request.

        Args:
            schedule: The result to validate.
            request: Original request with entities and horizon.

        Returns:
            ValidationResult with is_valid flag, errors and warnings.
        """
        result = ValidationResult(is_valid=True)
        employees = {e.id: e for e in reversed(request.employees)}
        shift_types = {s.id: s for s in reversed(request.shift_types)}
        qualification_policy = self._qualification_policy_for(request)

        self._validate_occupancy(schedule, result)

        for assignment in schedule.assignments:
            employee = employees.get(assignment.employee_id)
            shift_type = shift_types.get(assignment.shift_id)

            if employee is None:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_EMPLOYEE,
                        message=f"Unknown employee ID: {assignment.employee_id}",
                        employee_id=assignment.employee_id,
                        schedule_date=assignment.schedule_date,
                    )
                )
                continue
            if shift_type is None:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_SHIFT_TYPE,
                        message=f"Unknown shift type ID: {assignment.shift_id}",
                        employee_id=employee.id,
                        schedule_date=assignment.schedule_date,
                    )
                )
                continue

            # Locked assignments were placed by hand.
            if assignment.locked:
                continue

            if not qualification_policy.is_qualified(employee, shift_type):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.NOT_QUALIFIED,
                        message=f"Not qualified for {shift_type.name}",
                        employee_id=employee.id,
                        schedule_date=assignment.schedule_date,
                        details={"shift_id": shift_type.id},
                    )
                )

            if not self.availability_policy.is_available(
                employee, assignment.schedule_date, shift_type
            ):
                result.add_warning(
                    ValidationError(
                        error_type=ValidationErrorType.NOT_AVAILABLE,
                        message=f"Assigned to {shift_type.name} outside availability",
                        employee_id=employee.id,
                        schedule_date=assignment.schedule_date,
                        details={"shift_id": shift_type.id},
                    )
                )

        self._validate_rules(schedule, request, result)
        self._validate_coverage(schedule, request, result)

        return result

    def _validate_occupancy(self, schedule: ScheduleResult, result: ValidationResult) -> None:
        """Check primary slot and per-employee-day exclusivity."""
        primaries = [a for a in schedule.assignments if a.is_primary]

        slot_counts = Counter(a.slot_key for a in primaries)
        for (slot_date, shift_id), count in slot_counts.items():
            if count > 1:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.SLOT_DOUBLE_BOOKED,
                        message=f"Slot {shift_id} holds {count} primary assignments",
                        schedule_date=slot_date,
                        details={"shift_id": shift_id, "count": count},
                    )
                )

        day_counts = Counter((a.employee_id, a.schedule_date) for a in primaries)
        for (employee_id, day), count in day_counts.items():
            if count > 1:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.EMPLOYEE_DOUBLE_BOOKED,
                        message=f"{count} primary assignments on one date",
                        employee_id=employee_id,
                        schedule_date=day,
                    )
                )

    def _validate_rules(
        self,
        schedule: ScheduleResult,
        request: ScheduleRequest,
        result: ValidationResult,
    ) -> None:
        """Report forbidden sequences and missing mandatory follow-ups."""
        held = {(a.employee_id, a.schedule_date, a.shift_id) for a in schedule.assignments}

        for rule in request.rules:
            if rule.rule_type == RuleType.FORBIDDEN_SEQUENCE:
                if not rule.has_targets:
                    continue
                offset = timedelta(days=0 if rule.same_day else 1)
                for assignment in schedule.assignments:
                    if not rule.targets(assignment.shift_id):
                        continue
                    previous = (
                        assignment.employee_id,
                        assignment.schedule_date - offset,
                        rule.from_shift_id,
                    )
                    if previous in held:
                        result.add_warning(
                            ValidationError(
                                error_type=ValidationErrorType.FORBIDDEN_SEQUENCE,
                                message=f"Breaks rule {rule.name!r}",
                                employee_id=assignment.employee_id,
                                schedule_date=assignment.schedule_date,
                                details={"rule_id": rule.id},
                            )
                        )

            elif rule.rule_type == RuleType.MANDATORY_FOLLOW_UP and rule.to_shift_id:
                for assignment in schedule.assignments:
                    if not assignment.is_primary or assignment.shift_id != rule.from_shift_id:
                        continue
                    key = (assignment.employee_id, assignment.schedule_date, rule.to_shift_id)
                    if key not in held:
                        result.add_warning(
                            ValidationError(
                                error_type=ValidationErrorType.MISSING_FOLLOW_UP,
                                message=f"Missing follow-up {rule.to_shift_id} ({rule.name!r})",
                                employee_id=assignment.employee_id,
                                schedule_date=assignment.schedule_date,
                                details={"rule_id": rule.id},
                            )
                        )

    def _validate_coverage(
        self,
        schedule: ScheduleResult,
        request: ScheduleRequest,
        result: ValidationResult,
    ) -> None:
        """Report working-day slots with fewer primary assignments than needed."""
        counts = Counter(a.slot_key for a in schedule.assignments if a.is_primary)

        for schedule_date in request.schedule_dates:
            weekday = working_weekday(schedule_date)
            if weekday is None:
                continue
            for shift_type in request.shift_types:
                need = shift_type.need_for(weekday)
                assigned = counts.get((schedule_date, shift_type.id), 0)
                if assigned < need:
                    result.add_warning(
                        ValidationError(
                            error_type=ValidationErrorType.UNDERSTAFFED,
                            message=f"{shift_type.name} has {assigned} of {need} positions filled",
                            schedule_date=schedule_date,
                            details={"shift_id": shift_type.id, "need": need, "assigned": assigned},
                        )
                    )

    def validate_statistics(
        self,
        schedule: ScheduleResult,
        request: ScheduleRequest,
        default_target_percentage: float = 100.0,
    ) -> ValidationResult:
        """Check reported statistics against a replay of the assignments.

        Args:
            schedule: The result whose statistics are checked.
            request: Original request.
            default_target_percentage: Default used when the run was made.

        Returns:
            ValidationResult with a STATISTICS_MISMATCH error per difference.
        """
        result = ValidationResult(is_valid=True)
        statistics = schedule.statistics

        if statistics.total_assignments != len(schedule.assignments):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.STATISTICS_MISMATCH,
                    message=(
                        f"total_assignments is {statistics.total_assignments} but "
                        f"{len(schedule.assignments)} assignments exist"
                    ),
                )
            )

        replayed = WorkloadTracker.from_assignments(
            employees=request.employees,
            teams=request.teams,
            shift_types=request.shift_types,
            assignments=schedule.assignments,
            default_target_percentage=default_target_percentage,
        ).snapshot()

        for employee_id, expected in replayed.items():
            reported = statistics.employee_workloads.get(employee_id)
            if reported is None or not _same_workload(reported, expected):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.STATISTICS_MISMATCH,
                        message="Reported workload differs from replayed assignments",
                        employee_id=employee_id,
                    )
                )

        return result


def _same_workload(a, b) -> bool:
    return (
        abs(a.hours - b.hours) < 1e-9
        and a.shift_count == b.shift_count
        and a.target_percentage == b.target_percentage
        and a.days_worked == b.days_worked
    )

