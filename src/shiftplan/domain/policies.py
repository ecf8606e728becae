"""Policy definitions for employee eligibility.

This module contains the policies that decide whether an employee may be
placed on a shift: half-day availability and shift qualifications. Policies
are kept separate from the scheduling engine to allow independent testing
and easy modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, timedelta

from shiftplan.domain.calendar import NOON_HOUR, HalfDay, working_weekday
from shiftplan.domain.models import Employee, LearningYearQualification, ShiftType


class AvailabilityPolicy(ABC):
    """Abstract base class for availability policies."""

    @abstractmethod
    def is_available(self, employee: Employee, shift_date: date, shift_type: ShiftType) -> bool:
        """Check if an employee may work a shift on a date.

        Args:
            employee: The employee to check.
            shift_date: Date the shift starts on.
            shift_type: The shift to work.

        Returns:
            True if nothing in the employee's availability forbids the shift.
        """
        pass


class QualificationPolicy(ABC):
    """Abstract base class for qualification policies."""

    @abstractmethod
    def is_qualified(self, employee: Employee, shift_type: ShiftType) -> bool:
        """Check if an employee is permitted to work a shift type."""
        pass


class DefaultAvailabilityPolicy(AvailabilityPolicy):
    """Half-day availability check.

    A working day is split at noon into AM and PM. A flag blocks a half day
    only when it is explicitly False; missing flags mean available.

    - Shift starts before noon: the day's AM flag applies.
    - Shift ends at/after noon or starts at/after noon: the day's PM flag
      applies.
    - Overnight shift ending in the morning: the next day's AM flag applies
      too, if the next day is a working day.

    Saturdays and Sundays are never available. Hours are compared on the
    hour component only, so a shift ending at 12:30 counts as reaching
    the afternoon and one ending at 11:59 does not.
    """

    def is_available(self, employee: Employee, shift_date: date, shift_type: ShiftType) -> bool:
        weekday = working_weekday(shift_date)
        if weekday is None:
            return False

        if shift_type.starts_before_noon:
            if not employee.is_available(weekday, HalfDay.AM):
                return False

        if shift_type.touches_afternoon:
            if not employee.is_available(weekday, HalfDay.PM):
                return False

        if shift_type.is_overnight:
            next_weekday = working_weekday(shift_date + timedelta(days=1))
            end_hour = shift_type.end_hour
            # Shifts ending in hour 0 do not reach into the next morning.
            if next_weekday is not None and 0 < end_hour < NOON_HOUR:
                if not employee.is_available(next_weekday, HalfDay.AM):
                    return False

        return True


@dataclass
class DefaultQualificationPolicy(QualificationPolicy):
    """Allowed-shift check with a learning-year layer for trainees.

    The shift must be in the employee's allowed shifts. Trainees with a
    training year must additionally have a qualification for that year that
    lists the shift. Trainees without a year skip the second check.
    """

    qualifications: list[LearningYearQualification] = field(default_factory=list)

    def __post_init__(self):
        self._by_year = {q.year: q for q in reversed(self.qualifications)}

    def is_qualified(self, employee: Employee, shift_type: ShiftType) -> bool:
        if not employee.can_work(shift_type.id):
            return False

        if employee.is_trainee and employee.trainee_year:
            qualification = self._by_year.get(employee.trainee_year)
            if qualification is None or not qualification.allows(shift_type.id):
                return False

        return True
