"""Domain models and business rules for shift scheduling."""

from shiftplan.domain.calendar import HalfDay, Weekday, shift_duration_hours
from shiftplan.domain.models import (
    Conflict,
    ConflictType,
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
    WorkloadStats,
)
from shiftplan.domain.policies import (
    AvailabilityPolicy,
    DefaultAvailabilityPolicy,
    DefaultQualificationPolicy,
    QualificationPolicy,
)
from shiftplan.domain.serialization import (
    SchedulingInputError,
    dump_result,
    load_request,
    request_from_dict,
    request_to_dict,
    result_to_dict,
)

__all__ = [
    # Calendar
    "HalfDay",
    "Weekday",
    "shift_duration_hours",
    # Models
    "Conflict",
    "ConflictType",
    "Employee",
    "EmployeeType",
    "LearningYearQualification",
    "RuleType",
    "ScheduleRequest",
    "ScheduleResult",
    "ScheduleStatistics",
    "ShiftAssignment",
    "ShiftRule",
    "ShiftType",
    "Team",
    "WorkloadStats",
    # Policies
    "AvailabilityPolicy",
    "DefaultAvailabilityPolicy",
    "DefaultQualificationPolicy",
    "QualificationPolicy",
    # Serialization
    "SchedulingInputError",
    "dump_result",
    "load_request",
    "request_from_dict",
    "request_to_dict",
    "result_to_dict",
]
