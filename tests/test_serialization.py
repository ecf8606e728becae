"""Tests for JSON interchange of requests and results."""

import json
from datetime import date

import pytest

from shiftplan.domain.calendar import HalfDay, Weekday
from shiftplan.domain.models import EmployeeType, RuleType
from shiftplan.domain.serialization import (
    SchedulingInputError,
    dump_result,
    load_request,
    request_from_dict,
    request_to_dict,
    result_to_dict,
)
from shiftplan.scheduling.scheduler import generate_shift_schedule


@pytest.fixture
def document():
    return {
        "start_date": "2024-01-01",
        "end_date": "2024-01-05",
        "teams": [{"id": "t1", "name": "Team 1", "overall_shift_percentage": 80}],
        "shift_types": [
            {
                "id": "late",
                "name": "Late",
                "start_time": "14:00",
                "end_time": "22:00",
                "weekly_needs": {"monday": 1, "tuesday": 1, "saturday": 3},
            },
            {"id": "oncall", "name": "On-call", "start_time": "22:00", "end_time": "23:00"},
        ],
        "qualifications": [
            {
                "year": 1,
                "qualified_shift_types": ["late"],
                "default_availability": {"friday_PM": False},
            }
        ],
        "employees": [
            {
                "id": "e1",
                "name": "Alice",
                "team_id": "t1",
                "allowed_shifts": ["late", "oncall"],
                "availability": {"tuesday_PM": False, "sunday_AM": False},
            },
            {
                "id": "t1",
                "name": "Tom",
                "employee_type": "trainee",
                "trainee_year": 1,
                "allowed_shifts": ["late"],
            },
        ],
        "rules": [
            {
                "id": "r1",
                "type": "mandatory_follow_up",
                "name": "On-call after late",
                "from_shift_id": "late",
                "to_shift_id": "oncall",
            }
        ],
        "existing_assignments": [
            {"employee_id": "e1", "shift_id": "late", "date": "2024-01-01", "locked": True}
        ],
    }


class TestRequestFromDict:
    """Tests for building requests from documents."""

    def test_parses_entities(self, document):
        request = request_from_dict(document)

        assert request.start_date == date(2024, 1, 1)
        assert request.end_date == date(2024, 1, 5)
        assert request.teams[0].overall_shift_percentage == 80.0
        assert request.shift_types[0].weekly_needs == {Weekday.MONDAY: 1, Weekday.TUESDAY: 1}
        assert request.rules[0].rule_type == RuleType.MANDATORY_FOLLOW_UP
        assert request.existing_assignments[0].locked is True
        assert request.existing_assignments[0].schedule_date == date(2024, 1, 1)

    def test_availability_keys(self, document):
        alice = request_from_dict(document).employees[0]
        # Weekend keys are dropped
        assert alice.availability == {(Weekday.TUESDAY, HalfDay.PM): False}

    def test_trainee_gets_default_availability(self, document):
        tom = request_from_dict(document).employees[1]
        assert tom.employee_type == EmployeeType.TRAINEE
        assert tom.trainee_year == 1
        assert tom.availability == {(Weekday.FRIDAY, HalfDay.PM): False}

    def test_missing_required_field(self, document):
        del document["shift_types"][0]["start_time"]
        with pytest.raises(SchedulingInputError, match="start_time"):
            request_from_dict(document)

    def test_invalid_enum_value(self, document):
        document["rules"][0]["type"] = "sometimes"
        with pytest.raises(SchedulingInputError, match="sometimes"):
            request_from_dict(document)

    def test_invalid_date(self, document):
        document["end_date"] = "05/01/2024"
        with pytest.raises(SchedulingInputError):
            request_from_dict(document)

    def test_non_numeric_weekly_need(self, document):
        document["shift_types"][0]["weekly_needs"]["monday"] = "two"
        with pytest.raises(SchedulingInputError, match="weekly need 'monday'"):
            request_from_dict(document)

    @pytest.mark.parametrize("field", ["trainee_year", "grade"])
    def test_non_numeric_employee_field(self, document, field):
        document["employees"][1][field] = "first"
        with pytest.raises(SchedulingInputError, match=field):
            request_from_dict(document)

    def test_non_numeric_learning_year(self, document):
        document["qualifications"][0]["year"] = "one"
        with pytest.raises(SchedulingInputError, match="year"):
            request_from_dict(document)

    def test_availability_must_be_object(self, document):
        document["employees"][0]["availability"] = ["monday_AM"]
        with pytest.raises(SchedulingInputError, match="expected an object"):
            request_from_dict(document)

    def test_weekly_needs_must_be_object(self, document):
        document["shift_types"][0]["weekly_needs"] = [1, 1]
        with pytest.raises(SchedulingInputError, match="expected an object"):
            request_from_dict(document)

    def test_string_flags_are_rejected(self, document):
        document["employees"][0]["availability"]["tuesday_PM"] = "false"
        with pytest.raises(SchedulingInputError, match="tuesday_PM"):
            request_from_dict(document)

    def test_string_same_day_is_rejected(self, document):
        document["rules"][0]["same_day"] = "false"
        with pytest.raises(SchedulingInputError, match="same_day"):
            request_from_dict(document)

    def test_round_trip_through_request_to_dict(self, document):
        request = request_from_dict(document)
        assert request_from_dict(request_to_dict(request)) == request


class TestFiles:
    """Tests for reading requests and writing results."""

    def test_load_request(self, document, tmp_path):
        path = tmp_path / "request.json"
        path.write_text(json.dumps(document))
        assert len(load_request(path).employees) == 2

    def test_load_rejects_non_object(self, tmp_path):
        path = tmp_path / "request.json"
        path.write_text("[]")
        with pytest.raises(SchedulingInputError):
            load_request(path)

    def test_result_document(self, document, tmp_path):
        request = request_from_dict(document)
        result = generate_shift_schedule(request)

        data = result_to_dict(result)
        assert data["statistics"]["total_assignments"] == len(data["assignments"])
        assert data["conflicts"] == result.conflicts
        assert data["assignments"][0] == {
            "employee_id": "e1",
            "shift_id": "late",
            "date": "2024-01-01",
            "locked": True,
            "is_follow_up": False,
        }
        assert data["statistics"]["employee_workloads"]["t1"]["target_percentage"] == 100.0

        path = tmp_path / "result.json"
        dump_result(result, path)
        assert json.loads(path.read_text()) == data
