"""Plain-text report output for schedule analysis.

This module creates a text report of a scheduling run showing:
- Overall statistics and coverage per shift type
- Per-employee workload and fairness spread
- A per-date roster
- All conflicts in the order they were recorded
"""

from collections import defaultdict
from pathlib import Path
from typing import Union

from shiftplan.domain.calendar import to_iso, working_weekday
from shiftplan.domain.models import ScheduleRequest, ScheduleResult


class ReportGenerator:
    """Generates text reports for scheduling results.

    Example:
        >>> generator = ReportGenerator()
        >>> text = generator.generate_to_string(result, request)
    """

    def __init__(self, width: int = 80):
        self.width = width

    def generate(
        self,
        result: ScheduleResult,
        request: ScheduleRequest,
        output_path: Union[str, Path],
    ) -> str:
        """Generate the report and save it to a file.

        Args:
            result: The scheduling result to describe.
            request: The request the result was generated from.
            output_path: Path to save the text file.

        Returns:
            The generated text content.
        """
        content = self._generate_content(result, request)
        Path(output_path).write_text(content, encoding="utf-8")
        return content

    def generate_to_string(self, result: ScheduleResult, request: ScheduleRequest) -> str:
        """Generate the report and return it as a string."""
        return self._generate_content(result, request)

    def _generate_content(self, result: ScheduleResult, request: ScheduleRequest) -> str:
        lines = []
        employees = {e.id: e for e in reversed(request.employees)}
        shift_types = {s.id: s for s in reversed(request.shift_types)}
        stats = result.statistics

        # Header
        lines.append("=" * self.width)
        lines.append(
            f"SHIFT PLAN REPORT - {to_iso(request.start_date)} to {to_iso(request.end_date)}"
        )
        lines.append("=" * self.width)
        lines.append("")

        lines.append(f"Employees: {len(request.employees)}")
        lines.append(f"Shift types: {len(request.shift_types)}")
        lines.append(f"Working days: {len(request.working_dates)}")
        lines.append(f"Total assignments: {stats.total_assignments}")
        follow_ups = sum(1 for a in result.assignments if a.is_follow_up)
        lines.append(f"  of which follow-ups: {follow_ups}")
        lines.append(f"Unassigned positions: {stats.unassigned_shifts}")
        lines.append(f"Conflicts: {len(result.conflict_details)}")
        lines.append("")

        # Coverage per shift type
        lines.append("-" * self.width)
        lines.append("COVERAGE BY SHIFT TYPE")
        lines.append("-" * self.width)
        lines.append(f"{'Shift':<24} {'Time':^13} {'Needed':>8} {'Filled':>8} {'Rate':>8}")

        filled = defaultdict(int)
        for assignment in result.assignments:
            if assignment.is_primary:
                filled[assignment.slot_key] += 1

        for shift_type in request.shift_types:
            needed = 0
            covered = 0
            for schedule_date, weekday in request.working_dates:
                need = shift_type.need_for(weekday)
                needed += need
                covered += min(need, filled[(schedule_date, shift_type.id)])
            rate = f"{100 * covered / needed:.0f}%" if needed else "-"
            time_str = f"{shift_type.start_time}-{shift_type.end_time}"
            lines.append(
                f"{shift_type.name[:24]:<24} {time_str:^13} {needed:>8} {covered:>8} {rate:>8}"
            )
        lines.append("")

        # Workload per employee
        lines.append("-" * self.width)
        lines.append("EMPLOYEE WORKLOAD (sorted by shifts, then hours)")
        lines.append("-" * self.width)
        lines.append(f"{'#':>3} {'Name':<24} {'Shifts':>7} {'Hours':>8} {'Days':>6} {'Target':>8}")

        workloads = sorted(
            stats.employee_workloads.items(),
            key=lambda item: (item[1].shift_count, item[1].hours),
        )
        for i, (employee_id, workload) in enumerate(workloads, 1):
            employee = employees.get(employee_id)
            name = (employee.name if employee else employee_id)[:24]
            lines.append(
                f"{i:>3} {name:<24} {workload.shift_count:>7} {workload.hours:>8.1f} "
                f"{len(workload.days_worked):>6} {workload.target_percentage:>7.0f}%"
            )

        if workloads:
            hours = [w.hours for _, w in workloads]
            avg = sum(hours) / len(hours)
            std_dev = (sum((h - avg) ** 2 for h in hours) / len(hours)) ** 0.5
            lines.append("")
            lines.append(
                f"Hours: min={min(hours):.1f}, max={max(hours):.1f}, "
                f"avg={avg:.1f}, std dev={std_dev:.1f}"
            )
        lines.append("")

        # Roster per date
        lines.append("-" * self.width)
        lines.append("ROSTER")
        lines.append("-" * self.width)

        by_date = defaultdict(list)
        for assignment in result.assignments:
            by_date[assignment.schedule_date].append(assignment)

        for schedule_date in sorted(by_date):
            weekday = working_weekday(schedule_date)
            day_name = weekday.value.capitalize() if weekday else schedule_date.strftime("%A")
            lines.append(f"\n{to_iso(schedule_date)} ({day_name}):")

            day_assignments = sorted(
                by_date[schedule_date],
                key=lambda a: (
                    shift_types[a.shift_id].start_minutes if a.shift_id in shift_types else 0,
                    a.is_follow_up,
                ),
            )
            for assignment in day_assignments:
                shift_type = shift_types.get(assignment.shift_id)
                employee = employees.get(assignment.employee_id)
                shift_name = shift_type.name if shift_type else assignment.shift_id
                name = employee.name if employee else assignment.employee_id
                flags = []
                if assignment.is_follow_up:
                    flags.append("follow-up")
                if assignment.locked:
                    flags.append("locked")
                flag_str = f" [{', '.join(flags)}]" if flags else ""
                lines.append(f"  {shift_name:<24} {name}{flag_str}")
        lines.append("")

        # Conflicts
        lines.append("-" * self.width)
        lines.append("CONFLICTS")
        lines.append("-" * self.width)
        if result.conflict_details:
            for i, conflict in enumerate(result.conflict_details, 1):
                lines.append(f"{i:>3}. {conflict.message}")
        else:
            lines.append("None")

        lines.append("")
        lines.append("=" * self.width)
        lines.append("END OF REPORT")
        lines.append("=" * self.width)

        return "\n".join(lines)
