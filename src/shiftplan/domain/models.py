"""Domain models for the scheduling system.

This module contains the core data structures shared by the scheduling
engine and its collaborators: employees, teams, shift types, rules,
assignments and the result of a scheduling run.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from shiftplan.domain.calendar import (
    NOON_HOUR,
    HalfDay,
    Weekday,
    date_range,
    parse_time,
    shift_duration_hours,
    time_to_minutes,
    to_iso,
    working_dates,
)

AvailabilityKey = tuple[Weekday, HalfDay]

DEFAULT_TARGET_PERCENTAGE = 100.0


class EmployeeType(Enum):
    """Employment type of an employee."""

    REGULAR = "regular"
    TRAINEE = "trainee"  # Subject to learning-year restrictions


class RuleType(Enum):
    """Kinds of sequencing rules between shift types."""

    FORBIDDEN_SEQUENCE = "forbidden_sequence"
    MANDATORY_FOLLOW_UP = "mandatory_follow_up"


class ConflictType(Enum):
    """Categories of non-fatal problems reported by a scheduling run."""

    UNASSIGNED_SHIFT = "unassigned_shift"
    EMERGENCY_ASSIGNMENT = "emergency_assignment"
    FOLLOW_UP_SLOT_OCCUPIED = "follow_up_slot_occupied"
    FOLLOW_UP_NOT_QUALIFIED = "follow_up_not_qualified"
    FOLLOW_UP_NOT_AVAILABLE = "follow_up_not_available"


@dataclass
class Team:
    """A team whose target shift percentage is the default for its members.

    Attributes:
        id: Unique identifier for the team.
        name: Display name.
        overall_shift_percentage: Target share of shifts (0-100).
    """

    id: str
    name: str
    overall_shift_percentage: float = DEFAULT_TARGET_PERCENTAGE


@dataclass
class ShiftType:
    """A recurring shift with a daily headcount need per weekday.

    Attributes:
        id: Unique identifier for the shift type.
        name: Display name.
        start_time: Start time of day as "HH:MM".
        end_time: End time of day as "HH:MM". May lie before start_time,
            in which case the shift runs past midnight.
        weekly_needs: Headcount needed on each working weekday.
        short_name: Optional abbreviation used in compact rosters.
    """

    id: str
    name: str
    start_time: str
    end_time: str
    weekly_needs: dict[Weekday, int] = field(default_factory=dict)
    short_name: Optional[str] = None

    @property
    def start_minutes(self) -> int:
        """Minutes from midnight when the shift starts."""
        return time_to_minutes(self.start_time)

    @property
    def start_hour(self) -> int:
        return parse_time(self.start_time)[0]

    @property
    def end_hour(self) -> int:
        return parse_time(self.end_time)[0]

    @property
    def is_overnight(self) -> bool:
        """True if the shift ends on the following calendar day."""
        return time_to_minutes(self.end_time) < self.start_minutes

    @property
    def starts_before_noon(self) -> bool:
        return self.start_hour < NOON_HOUR

    @property
    def touches_afternoon(self) -> bool:
        """True if any part of the shift falls in the PM half of its start day."""
        return self.end_hour >= NOON_HOUR or self.start_hour >= NOON_HOUR

    @property
    def duration_hours(self) -> float:
        """Length of the shift in hours, corrected for midnight wraparound."""
        return shift_duration_hours(self.start_time, self.end_time)

    @property
    def label(self) -> str:
        return self.short_name or self.name

    def need_for(self, weekday: Weekday) -> int:
        """Headcount needed on a weekday (0 if not declared)."""
        return self.weekly_needs.get(weekday, 0)


@dataclass
class Employee:
    """Represents an employee who can be scheduled.

    Attributes:
        id: Unique identifier for the employee.
        name: Display name.
        short_code: Optional initials used in compact rosters.
        employee_type: Regular employee or trainee.
        trainee_year: Training year, only meaningful for trainees.
        grade: Employment grade as a percentage (1-100).
        team_id: Team the employee belongs to.
        shift_percentage: Optional override of the team's target percentage.
        allowed_shifts: Shift type IDs the employee may work.
        availability: Half-day availability flags. A missing key means
            available; only an explicit False blocks a half day.
    """

    id: str
    name: str
    short_code: Optional[str] = None
    employee_type: EmployeeType = EmployeeType.REGULAR
    trainee_year: Optional[int] = None
    grade: int = 100
    team_id: Optional[str] = None
    shift_percentage: Optional[float] = None
    allowed_shifts: set[str] = field(default_factory=set)
    availability: dict[AvailabilityKey, bool] = field(default_factory=dict)

    @property
    def is_trainee(self) -> bool:
        return self.employee_type == EmployeeType.TRAINEE

    @property
    def display_code(self) -> str:
        return self.short_code or self.name

    def is_available(self, weekday: Weekday, half_day: HalfDay) -> bool:
        """Check a single half-day flag (default available)."""
        return self.availability.get((weekday, half_day), True) is not False

    def can_work(self, shift_id: str) -> bool:
        """Check the employee's own allowed-shift list."""
        return shift_id in self.allowed_shifts

    def effective_target_percentage(
        self,
        team: Optional[Team],
        default: float = DEFAULT_TARGET_PERCENTAGE,
    ) -> float:
        """Own override, else the team's target, else the global default."""
        if self.shift_percentage is not None:
            return self.shift_percentage
        if team is not None:
            return team.overall_shift_percentage
        return default


@dataclass
class LearningYearQualification:
    """Shift types trainees of one training year may work.

    Attributes:
        year: Training year (1-4).
        qualified_shift_types: Shift type IDs open to trainees of this year.
        default_availability: Availability template for new trainees of this
            year. Not consulted by the engine.
    """

    year: int
    qualified_shift_types: set[str] = field(default_factory=set)
    default_availability: dict[AvailabilityKey, bool] = field(default_factory=dict)

    def allows(self, shift_id: str) -> bool:
        return shift_id in self.qualified_shift_types


@dataclass
class ShiftRule:
    """A sequencing rule between two shift types.

    Forbidden sequences forbid `from_shift_id` followed by any target shift,
    either on the same date (`same_day`) or on the next date. Mandatory
    follow-ups require `to_shift_id` on the same date as `from_shift_id`.

    Attributes:
        id: Unique identifier for the rule.
        rule_type: Kind of rule.
        name: Display name used in conflict descriptions.
        from_shift_id: Shift type that triggers the rule.
        to_shift_id: Single target (the follow-up shift for mandatory rules).
        to_shift_ids: Multiple targets for forbidden sequences.
        same_day: Forbidden sequences only: compare against the same date
            instead of the previous date.
    """

    id: str
    rule_type: RuleType
    name: str
    from_shift_id: str
    to_shift_id: Optional[str] = None
    to_shift_ids: list[str] = field(default_factory=list)
    same_day: bool = False

    @property
    def has_targets(self) -> bool:
        return bool(self.to_shift_id) or bool(self.to_shift_ids)

    def targets(self, shift_id: str) -> bool:
        """Check if a shift type is a target of this rule."""
        return shift_id in self.to_shift_ids or self.to_shift_id == shift_id


@dataclass
class ShiftAssignment:
    """One employee assigned to one shift type on one date.

    Attributes:
        employee_id: ID of the assigned employee.
        shift_id: ID of the shift type.
        schedule_date: Date of the shift (the start date for overnight shifts).
        locked: Set by editors to protect the assignment from regeneration.
        is_follow_up: True for assignments attached by a mandatory follow-up
            rule. Follow-ups do not occupy the primary (date, shift) slot.
    """

    employee_id: str
    shift_id: str
    schedule_date: date
    locked: bool = False
    is_follow_up: bool = False

    @property
    def is_primary(self) -> bool:
        return not self.is_follow_up

    @property
    def slot_key(self) -> tuple[date, str]:
        return (self.schedule_date, self.shift_id)

    def __repr__(self) -> str:
        kind = "follow-up" if self.is_follow_up else "primary"
        return (
            f"ShiftAssignment({self.employee_id}: {self.shift_id} "
            f"on {to_iso(self.schedule_date)}, {kind})"
        )


@dataclass
class WorkloadStats:
    """Accumulated workload of one employee.

    Attributes:
        hours: Total hours of all assignments, follow-ups included.
        shift_count: Number of assignments, follow-ups included.
        target_percentage: Effective target shift percentage. Informational;
            not used for ordering.
        days_worked: Dates with at least one assignment.
    """

    hours: float = 0.0
    shift_count: int = 0
    target_percentage: float = DEFAULT_TARGET_PERCENTAGE
    days_worked: set[date] = field(default_factory=set)

    @property
    def ordering_key(self) -> tuple[int, float]:
        return (self.shift_count, self.hours)

    def copy(self) -> "WorkloadStats":
        return WorkloadStats(
            hours=self.hours,
            shift_count=self.shift_count,
            target_percentage=self.target_percentage,
            days_worked=set(self.days_worked),
        )


@dataclass
class ScheduleRequest:
    """Input for generating a schedule over a horizon of dates.

    Attributes:
        start_date: First date of the horizon (inclusive).
        end_date: Last date of the horizon (inclusive).
        employees: Employees in priority order; the order breaks workload ties.
        teams: Teams providing default target percentages.
        shift_types: Shift types with weekly needs.
        qualifications: Learning-year qualifications for trainees.
        rules: Forbidden-sequence and mandatory-follow-up rules.
        existing_assignments: Assignments that already exist (e.g. locked
            ones). They are kept untouched and occupy their slots.
    """

    start_date: date
    end_date: date
    employees: list[Employee] = field(default_factory=list)
    teams: list[Team] = field(default_factory=list)
    shift_types: list[ShiftType] = field(default_factory=list)
    qualifications: list[LearningYearQualification] = field(default_factory=list)
    rules: list[ShiftRule] = field(default_factory=list)
    existing_assignments: list[ShiftAssignment] = field(default_factory=list)

    @property
    def schedule_dates(self) -> list[date]:
        """All dates of the horizon, weekends included."""
        return list(date_range(self.start_date, self.end_date))

    @property
    def working_dates(self) -> list[tuple[date, Weekday]]:
        """Monday-Friday dates of the horizon with their weekday."""
        return working_dates(self.start_date, self.end_date)

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        for employee in self.employees:
            if employee.id == employee_id:
                return employee
        return None

    def get_team(self, team_id: Optional[str]) -> Optional[Team]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def get_shift_type(self, shift_id: Optional[str]) -> Optional[ShiftType]:
        for shift_type in self.shift_types:
            if shift_type.id == shift_id:
                return shift_type
        return None

    def get_qualification(self, year: int) -> Optional[LearningYearQualification]:
        for qualification in self.qualifications:
            if qualification.year == year:
                return qualification
        return None


@dataclass
class Conflict:
    """A constraint a scheduling run could not fully satisfy.

    Conflicts are never fatal; the run continues and reports them in the
    order they occurred.
    """

    conflict_type: ConflictType
    message: str
    employee_id: Optional[str] = None
    shift_id: Optional[str] = None
    schedule_date: Optional[date] = None

    def __str__(self) -> str:
        return self.message


@dataclass
class ScheduleStatistics:
    """Summary figures of a scheduling run.

    Attributes:
        total_assignments: Length of the final assignment list.
        unassigned_shifts: Open primary positions over the horizon,
            recomputed after the follow-up sweep.
        employee_workloads: Workload per employee ID.
    """

    total_assignments: int = 0
    unassigned_shifts: int = 0
    employee_workloads: dict[str, WorkloadStats] = field(default_factory=dict)


@dataclass
class ScheduleResult:
    """Output of a scheduling run.

    Attributes:
        assignments: Pre-existing assignments followed by the new ones in
            commit order.
        conflict_details: Conflicts in the order they were recorded.
        statistics: Summary figures.
    """

    assignments: list[ShiftAssignment] = field(default_factory=list)
    conflict_details: list[Conflict] = field(default_factory=list)
    statistics: ScheduleStatistics = field(default_factory=ScheduleStatistics)

    @property
    def conflicts(self) -> list[str]:
        """Human-readable conflict messages in recorded order."""
        return [c.message for c in self.conflict_details]

    def get_conflicts_by_type(self, conflict_type: ConflictType) -> list[Conflict]:
        return [c for c in self.conflict_details if c.conflict_type == conflict_type]

    def get_employee_assignments(self, employee_id: str) -> list[ShiftAssignment]:
        return [a for a in self.assignments if a.employee_id == employee_id]

    def get_date_assignments(self, schedule_date: date) -> list[ShiftAssignment]:
        return [a for a in self.assignments if a.schedule_date == schedule_date]
