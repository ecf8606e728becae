"""Per-employee workload tracking for fair candidate ordering."""

from datetime import date
from typing import Iterable, Optional

from shiftplan.domain.models import (
    DEFAULT_TARGET_PERCENTAGE,
    Employee,
    ShiftAssignment,
    ShiftType,
    Team,
    WorkloadStats,
)


class WorkloadTracker:
    """Tracks hours, shift counts and worked dates per employee.

    Every recorded assignment adds the shift's duration and one shift to its
    employee, follow-ups included. Assignments of unknown employees or shift
    types are ignored. The tracker state can always be rebuilt by replaying
    an assignment list from empty (see `from_assignments`).

    Example:
        >>> tracker = WorkloadTracker(employees, teams)
        >>> tracker.record(assignment, shift_type)
        >>> least_loaded = tracker.ordered_employees()[0]
    """

    def __init__(
        self,
        employees: list[Employee],
        teams: Optional[list[Team]] = None,
        default_target_percentage: float = DEFAULT_TARGET_PERCENTAGE,
    ):
        self._employees = list(employees)
        teams_by_id = {t.id: t for t in reversed(teams or [])}

        self._stats: dict[str, WorkloadStats] = {}
        for employee in self._employees:
            team = teams_by_id.get(employee.team_id) if employee.team_id else None
            self._stats[employee.id] = WorkloadStats(
                target_percentage=employee.effective_target_percentage(
                    team, default_target_percentage
                ),
            )

    @classmethod
    def from_assignments(
        cls,
        employees: list[Employee],
        teams: Optional[list[Team]],
        shift_types: list[ShiftType],
        assignments: Iterable[ShiftAssignment],
        default_target_percentage: float = DEFAULT_TARGET_PERCENTAGE,
    ) -> "WorkloadTracker":
        """Build a tracker by replaying assignments in order."""
        tracker = cls(employees, teams, default_target_percentage)
        shift_types_by_id = {s.id: s for s in reversed(shift_types)}
        for assignment in assignments:
            shift_type = shift_types_by_id.get(assignment.shift_id)
            if shift_type is not None:
                tracker.record(assignment, shift_type)
        return tracker

    def get(self, employee_id: str) -> Optional[WorkloadStats]:
        return self._stats.get(employee_id)

    def record(self, assignment: ShiftAssignment, shift_type: ShiftType) -> None:
        """Add an assignment to its employee's workload."""
        stats = self._stats.get(assignment.employee_id)
        if stats is None:
            return

        stats.hours += shift_type.duration_hours
        stats.shift_count += 1
        stats.days_worked.add(assignment.schedule_date)

    def has_worked(self, employee_id: str, shift_date: date) -> bool:
        stats = self._stats.get(employee_id)
        return stats is not None and shift_date in stats.days_worked

    def ordered_employees(self) -> list[Employee]:
        """Employees sorted by (shift count, hours), least loaded first.

        The sort is stable, so ties keep the input order of employees.
        """
        return sorted(self._employees, key=lambda e: self._stats[e.id].ordering_key)

    def snapshot(self) -> dict[str, WorkloadStats]:
        """Independent copies of all workload entries keyed by employee ID."""
        return {employee_id: stats.copy() for employee_id, stats in self._stats.items()}
