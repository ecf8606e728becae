"""Mutable assignment list shared by the scheduling components.

The store is the single source of truth during a run. It starts as a copy
of the pre-existing assignments and only grows; removing or locking
assignments is left to the editors that prepare the next request.
"""

from datetime import date
from typing import Iterable, Iterator, Optional

from shiftplan.domain.models import ShiftAssignment


class AssignmentStore:
    """Ordered collection of shift assignments with slot-occupancy queries.

    Invariants maintained by `add`:
    - No two primary assignments share a (date, shift) slot.
    - An employee holds at most one primary assignment per date.

    Follow-up assignments bypass both checks. Pre-existing assignments are
    taken as given and are not checked.
    """

    def __init__(self, existing: Optional[Iterable[ShiftAssignment]] = None):
        self._assignments: list[ShiftAssignment] = list(existing or [])

    def __len__(self) -> int:
        return len(self._assignments)

    def __iter__(self) -> Iterator[ShiftAssignment]:
        return iter(self._assignments)

    @property
    def assignments(self) -> list[ShiftAssignment]:
        """A copy of all assignments in insertion order."""
        return list(self._assignments)

    def primary_assignments(self) -> list[ShiftAssignment]:
        return [a for a in self._assignments if a.is_primary]

    def is_slot_occupied(self, shift_date: date, shift_id: str) -> bool:
        """Check if a primary assignment holds the (date, shift) slot."""
        return any(
            a.is_primary and a.schedule_date == shift_date and a.shift_id == shift_id
            for a in self._assignments
        )

    def count_primary(self, shift_date: date, shift_id: str) -> int:
        """Number of primary assignments in a (date, shift) slot."""
        return sum(
            1
            for a in self._assignments
            if a.is_primary and a.schedule_date == shift_date and a.shift_id == shift_id
        )

    def has_primary_on(self, employee_id: str, shift_date: date) -> bool:
        """Check if an employee already holds a primary assignment on a date."""
        return any(
            a.is_primary and a.employee_id == employee_id and a.schedule_date == shift_date
            for a in self._assignments
        )

    def has_assignment(self, employee_id: str, shift_date: date, shift_id: str) -> bool:
        """Check for any assignment, primary or follow-up, of an employee to a shift."""
        return any(
            a.employee_id == employee_id
            and a.schedule_date == shift_date
            and a.shift_id == shift_id
            for a in self._assignments
        )

    def for_employee(self, employee_id: str) -> list[ShiftAssignment]:
        return [a for a in self._assignments if a.employee_id == employee_id]

    def add(
        self,
        employee_id: str,
        shift_id: str,
        shift_date: date,
        is_follow_up: bool = False,
    ) -> Optional[ShiftAssignment]:
        """Append a new assignment if it keeps the store consistent.

        Args:
            employee_id: ID of the employee to assign.
            shift_id: ID of the shift type.
            shift_date: Date of the shift.
            is_follow_up: Attach as a follow-up, which may share a slot with
                a primary assignment and with other follow-ups.

        Returns:
            The new assignment, or None if a primary assignment was rejected
            because the slot or the employee's day is already taken.
        """
        if not is_follow_up:
            if self.is_slot_occupied(shift_date, shift_id):
                return None
            if self.has_primary_on(employee_id, shift_date):
                return None

        assignment = ShiftAssignment(
            employee_id=employee_id,
            shift_id=shift_id,
            schedule_date=shift_date,
            locked=False,
            is_follow_up=is_follow_up,
        )
        self._assignments.append(assignment)
        return assignment
