"""Tests for text report and PDF roster output."""

from datetime import date

import pytest

from shiftplan.cli import create_sample_request
from shiftplan.domain.models import ScheduleRequest
from shiftplan.output.pdf_generator import PDFGenerator
from shiftplan.output.report_generator import ReportGenerator
from shiftplan.scheduling.scheduler import generate_shift_schedule


@pytest.fixture
def schedule_request():
    return create_sample_request(employee_count=6, weeks=2, start_date=date(2024, 1, 1))


@pytest.fixture
def result(schedule_request):
    return generate_shift_schedule(schedule_request)


class TestReportGenerator:
    """Tests for ReportGenerator."""

    def test_sections(self, result, schedule_request):
        text = ReportGenerator().generate_to_string(result, schedule_request)

        assert text.startswith("=" * 80)
        assert "SHIFT PLAN REPORT - 2024-01-01 to 2024-01-12" in text
        assert "COVERAGE BY SHIFT TYPE" in text
        assert "EMPLOYEE WORKLOAD" in text
        assert "ROSTER" in text
        assert "CONFLICTS" in text
        assert text.rstrip().endswith("=" * 80)
        assert f"Total assignments: {result.statistics.total_assignments}" in text

    def test_roster_lists_every_assigned_employee(self, result, schedule_request):
        text = ReportGenerator().generate_to_string(result, schedule_request)
        names = {e.id: e.name for e in schedule_request.employees}
        for employee_id in {a.employee_id for a in result.assignments}:
            assert names[employee_id] in text

    def test_follow_ups_are_marked(self, result, schedule_request):
        text = ReportGenerator().generate_to_string(result, schedule_request)
        assert "[follow-up]" in text

    def test_conflicts_listed(self, schedule_request):
        schedule_request.employees = schedule_request.employees[:1]
        result = generate_shift_schedule(schedule_request)
        text = ReportGenerator().generate_to_string(result, schedule_request)
        assert result.conflicts
        for message in result.conflicts:
            assert message in text

    def test_empty_schedule(self):
        request = ScheduleRequest(start_date=date(2024, 1, 1), end_date=date(2024, 1, 5))
        result = generate_shift_schedule(request)
        text = ReportGenerator().generate_to_string(result, request)
        assert "None" in text

    def test_generate_writes_file(self, result, schedule_request, tmp_path):
        path = tmp_path / "report.txt"
        content = ReportGenerator().generate(result, schedule_request, path)
        assert path.read_text(encoding="utf-8") == content


class TestPDFGenerator:
    """Tests for PDFGenerator."""

    def test_generate_to_buffer(self, result, schedule_request):
        buffer = PDFGenerator().generate_to_buffer(result, schedule_request)
        assert buffer.read(4) == b"%PDF"

    def test_generate_file(self, result, schedule_request, tmp_path):
        path = tmp_path / "roster.pdf"
        PDFGenerator().generate(result, schedule_request, path)
        assert path.read_bytes().startswith(b"%PDF")

    def test_without_summary(self, result, schedule_request):
        buffer = PDFGenerator().generate_to_buffer(
            result, schedule_request, include_summary=False
        )
        assert buffer.getvalue().startswith(b"%PDF")
