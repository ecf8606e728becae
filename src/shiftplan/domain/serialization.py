"""JSON interchange for schedule requests and results.

Documents use ISO dates, "HH:MM" times, weekday names for weekly needs and
"<weekday>_<AM|PM>" keys for availability, e.g.:

    {
      "start_date": "2024-01-01",
      "end_date": "2024-01-26",
      "shift_types": [{"id": "early", "name": "Early", "start_time": "06:00",
                       "end_time": "14:00", "weekly_needs": {"monday": 1}}],
      "employees": [{"id": "e1", "name": "Alice", "allowed_shifts": ["early"],
                     "availability": {"monday_AM": false}}]
    }
"""

import json
from pathlib import Path
from typing import Any, Union

from shiftplan.domain.calendar import HalfDay, Weekday, from_iso, to_iso
from shiftplan.domain.models import (
    AvailabilityKey,
    Employee,
    EmployeeType,
    LearningYearQualification,
    RuleType,
    ScheduleRequest,
    ScheduleResult,
    ShiftAssignment,
    ShiftRule,
    ShiftType,
    Team,
    WorkloadStats,
)


class SchedulingInputError(ValueError):
    """Raised when an input document cannot be turned into a request."""


def _require(data: dict, key: str, context: str) -> Any:
    if key not in data:
        raise SchedulingInputError(f"{context}: missing required field '{key}'")
    return data[key]


def _parse_date(value: Any, context: str):
    try:
        return from_iso(value)
    except (TypeError, ValueError):
        raise SchedulingInputError(f"{context}: invalid date {value!r} (expected YYYY-MM-DD)")


def _parse_enum(enum_cls, value: Any, context: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise SchedulingInputError(f"{context}: invalid value {value!r} (expected one of {allowed})")


def _parse_int(value: Any, context: str) -> int:
    if isinstance(value, bool):
        raise SchedulingInputError(f"{context}: invalid number {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise SchedulingInputError(f"{context}: invalid number {value!r}")


def _parse_float(value: Any, context: str) -> float:
    if isinstance(value, bool):
        raise SchedulingInputError(f"{context}: invalid number {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise SchedulingInputError(f"{context}: invalid number {value!r}")


def _parse_bool(value: Any, context: str) -> bool:
    # Only JSON true/false; the string "false" would otherwise read as True
    if not isinstance(value, bool):
        raise SchedulingInputError(f"{context}: invalid flag {value!r} (expected true or false)")
    return value


def _require_object(data: Any, context: str) -> None:
    if not isinstance(data, dict):
        raise SchedulingInputError(f"{context}: expected an object, got {type(data).__name__}")


def parse_availability(data: dict, context: str) -> dict[AvailabilityKey, bool]:
    """Parse {"monday_AM": false, ...} into (Weekday, HalfDay) keys.

    Keys for weekend days are ignored; they are never consulted.
    """
    availability = {}
    _require_object(data, f"{context} availability")
    for key, value in data.items():
        weekday_name, _, half_name = key.rpartition("_")
        if weekday_name in ("saturday", "sunday"):
            continue
        weekday = _parse_enum(Weekday, weekday_name, f"{context} availability '{key}'")
        half_day = _parse_enum(HalfDay, half_name, f"{context} availability '{key}'")
        availability[(weekday, half_day)] = _parse_bool(
            value, f"{context} availability '{key}'"
        )
    return availability


def format_availability(availability: dict[AvailabilityKey, bool]) -> dict[str, bool]:
    return {
        f"{weekday.value}_{half_day.value}": flag
        for (weekday, half_day), flag in availability.items()
    }


def parse_weekly_needs(data: dict, context: str) -> dict[Weekday, int]:
    needs = {}
    _require_object(data, f"{context} weekly needs")
    for key, value in data.items():
        if key in ("saturday", "sunday"):
            continue
        weekday = _parse_enum(Weekday, key, f"{context} weekly need")
        needs[weekday] = _parse_int(value, f"{context} weekly need '{key}'")
    return needs


def team_from_dict(data: dict) -> Team:
    context = f"team {data.get('id', '?')}"
    return Team(
        id=str(_require(data, "id", context)),
        name=_require(data, "name", context),
        overall_shift_percentage=_parse_float(
            data.get("overall_shift_percentage", 100.0), f"{context} overall_shift_percentage"
        ),
    )


def shift_type_from_dict(data: dict) -> ShiftType:
    context = f"shift type {data.get('id', '?')}"
    return ShiftType(
        id=str(_require(data, "id", context)),
        name=_require(data, "name", context),
        start_time=_require(data, "start_time", context),
        end_time=_require(data, "end_time", context),
        weekly_needs=parse_weekly_needs(data.get("weekly_needs", {}), context),
        short_name=data.get("short_name"),
    )


def qualification_from_dict(data: dict) -> LearningYearQualification:
    context = f"learning year {data.get('year', '?')}"
    return LearningYearQualification(
        year=_parse_int(_require(data, "year", context), f"{context} year"),
        qualified_shift_types=set(data.get("qualified_shift_types", [])),
        default_availability=parse_availability(
            data.get("default_availability", {}), context
        ),
    )


def employee_from_dict(
    data: dict,
    qualifications: list[LearningYearQualification],
) -> Employee:
    """Build an employee.

    A trainee without an "availability" entry gets a copy of the default
    availability template of their training year.
    """
    context = f"employee {data.get('id', '?')}"
    employee_type = _parse_enum(EmployeeType, data.get("employee_type", "regular"), context)
    trainee_year = data.get("trainee_year")
    if trainee_year is not None:
        trainee_year = _parse_int(trainee_year, f"{context} trainee_year")

    if "availability" in data:
        availability = parse_availability(data["availability"], context)
    else:
        availability = {}
        if employee_type == EmployeeType.TRAINEE and trainee_year:
            for qualification in qualifications:
                if qualification.year == trainee_year:
                    availability = dict(qualification.default_availability)
                    break

    shift_percentage = data.get("shift_percentage")
    return Employee(
        id=str(_require(data, "id", context)),
        name=_require(data, "name", context),
        short_code=data.get("short_code"),
        employee_type=employee_type,
        trainee_year=trainee_year,
        grade=_parse_int(data.get("grade", 100), f"{context} grade"),
        team_id=data.get("team_id"),
        shift_percentage=(
            _parse_float(shift_percentage, f"{context} shift_percentage")
            if shift_percentage is not None
            else None
        ),
        allowed_shifts=set(data.get("allowed_shifts", [])),
        availability=availability,
    )


def rule_from_dict(data: dict) -> ShiftRule:
    context = f"rule {data.get('id', '?')}"
    rule_id = str(_require(data, "id", context))
    return ShiftRule(
        id=rule_id,
        rule_type=_parse_enum(RuleType, _require(data, "type", context), context),
        name=data.get("name", rule_id),
        from_shift_id=_require(data, "from_shift_id", context),
        to_shift_id=data.get("to_shift_id"),
        to_shift_ids=list(data.get("to_shift_ids", [])),
        same_day=_parse_bool(data.get("same_day", False), f"{context} same_day"),
    )


def assignment_from_dict(data: dict) -> ShiftAssignment:
    context = "assignment"
    return ShiftAssignment(
        employee_id=str(_require(data, "employee_id", context)),
        shift_id=str(_require(data, "shift_id", context)),
        schedule_date=_parse_date(_require(data, "date", context), context),
        locked=_parse_bool(data.get("locked", False), f"{context} locked"),
        is_follow_up=_parse_bool(data.get("is_follow_up", False), f"{context} is_follow_up"),
    )


def assignment_to_dict(assignment: ShiftAssignment) -> dict:
    return {
        "employee_id": assignment.employee_id,
        "shift_id": assignment.shift_id,
        "date": to_iso(assignment.schedule_date),
        "locked": assignment.locked,
        "is_follow_up": assignment.is_follow_up,
    }


def request_from_dict(data: dict) -> ScheduleRequest:
    """Build a ScheduleRequest from a decoded JSON document.

    Raises:
        SchedulingInputError: If a required field is missing or a value
            cannot be parsed.
    """
    qualifications = [qualification_from_dict(q) for q in data.get("qualifications", [])]

    return ScheduleRequest(
        start_date=_parse_date(_require(data, "start_date", "request"), "request start_date"),
        end_date=_parse_date(_require(data, "end_date", "request"), "request end_date"),
        employees=[employee_from_dict(e, qualifications) for e in data.get("employees", [])],
        teams=[team_from_dict(t) for t in data.get("teams", [])],
        shift_types=[shift_type_from_dict(s) for s in data.get("shift_types", [])],
        qualifications=qualifications,
        rules=[rule_from_dict(r) for r in data.get("rules", [])],
        existing_assignments=[
            assignment_from_dict(a) for a in data.get("existing_assignments", [])
        ],
    )


def load_request(path: Union[str, Path]) -> ScheduleRequest:
    """Read a request document from a JSON file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise SchedulingInputError("request document must be a JSON object")
    return request_from_dict(data)


def workload_to_dict(stats: WorkloadStats) -> dict:
    return {
        "hours": stats.hours,
        "shift_count": stats.shift_count,
        "target_percentage": stats.target_percentage,
        "days_worked": sorted(to_iso(d) for d in stats.days_worked),
    }


def result_to_dict(result: ScheduleResult) -> dict:
    """Convert a result to a JSON-serializable dict."""
    statistics = result.statistics
    return {
        "assignments": [assignment_to_dict(a) for a in result.assignments],
        "conflicts": result.conflicts,
        "statistics": {
            "total_assignments": statistics.total_assignments,
            "unassigned_shifts": statistics.unassigned_shifts,
            "employee_workloads": {
                employee_id: workload_to_dict(stats)
                for employee_id, stats in statistics.employee_workloads.items()
            },
        },
    }


def dump_result(result: ScheduleResult, path: Union[str, Path]) -> None:
    """Write a result document as indented JSON."""
    Path(path).write_text(json.dumps(result_to_dict(result), indent=2), encoding="utf-8")


def request_to_dict(request: ScheduleRequest) -> dict:
    """Convert a request to a document that `request_from_dict` accepts."""
    return {
        "start_date": to_iso(request.start_date),
        "end_date": to_iso(request.end_date),
        "teams": [
            {
                "id": t.id,
                "name": t.name,
                "overall_shift_percentage": t.overall_shift_percentage,
            }
            for t in request.teams
        ],
        "shift_types": [
            {
                "id": s.id,
                "name": s.name,
                "short_name": s.short_name,
                "start_time": s.start_time,
                "end_time": s.end_time,
                "weekly_needs": {w.value: n for w, n in s.weekly_needs.items()},
            }
            for s in request.shift_types
        ],
        "qualifications": [
            {
                "year": q.year,
                "qualified_shift_types": sorted(q.qualified_shift_types),
                "default_availability": format_availability(q.default_availability),
            }
            for q in request.qualifications
        ],
        "employees": [
            {
                "id": e.id,
                "name": e.name,
                "short_code": e.short_code,
                "employee_type": e.employee_type.value,
                "trainee_year": e.trainee_year,
                "grade": e.grade,
                "team_id": e.team_id,
                "shift_percentage": e.shift_percentage,
                "allowed_shifts": sorted(e.allowed_shifts),
                "availability": format_availability(e.availability),
            }
            for e in request.employees
        ],
        "rules": [
            {
                "id": r.id,
                "type": r.rule_type.value,
                "name": r.name,
                "from_shift_id": r.from_shift_id,
                "to_shift_id": r.to_shift_id,
                "to_shift_ids": list(r.to_shift_ids),
                "same_day": r.same_day,
            }
            for r in request.rules
        ],
        "existing_assignments": [assignment_to_dict(a) for a in request.existing_assignments],
    }
