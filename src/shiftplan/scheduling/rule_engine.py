"""Evaluation of shift sequencing rules.

Two rule kinds exist:
1. Forbidden sequences: a `from` shift may not be followed by one of the
   target shifts on the same date (same-day rules) or on the next date.
2. Mandatory follow-ups: a `from` shift must be accompanied by the `to`
   shift for the same employee on the same date.

The engine only answers questions; committing assignments is left to the
solver so that all writes go through one path.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from shiftplan.domain.models import (
    Employee,
    RuleType,
    ShiftAssignment,
    ShiftRule,
    ShiftType,
)
from shiftplan.domain.policies import AvailabilityPolicy, QualificationPolicy
from shiftplan.scheduling.assignment_store import AssignmentStore

logger = logging.getLogger(__name__)


class FollowUpStatus(Enum):
    """Outcome of checking one mandatory follow-up requirement."""

    READY = "ready"  # Can be committed
    ALREADY_PRESENT = "already_present"
    SLOT_OCCUPIED = "slot_occupied"
    NOT_QUALIFIED = "not_qualified"
    NOT_AVAILABLE = "not_available"


@dataclass
class FollowUpCheck:
    """A mandatory follow-up requirement and whether it can be met.

    Attributes:
        rule: The mandatory follow-up rule.
        source: The primary assignment that triggered the rule.
        employee: Employee holding the source assignment.
        follow_up_shift: The shift type that must follow.
        status: Whether the follow-up can be committed, and if not, why.
    """

    rule: ShiftRule
    source: ShiftAssignment
    employee: Employee
    follow_up_shift: ShiftType
    status: FollowUpStatus


class RuleEngine:
    """Evaluates forbidden sequences and mandatory follow-ups.

    Rules are evaluated in input order. Rules referencing shift types that
    do not exist are skipped silently.
    """

    def __init__(
        self,
        rules: list[ShiftRule],
        shift_types: list[ShiftType],
        availability_policy: AvailabilityPolicy,
        qualification_policy: QualificationPolicy,
    ):
        self.rules = list(rules)
        self.availability_policy = availability_policy
        self.qualification_policy = qualification_policy
        self._shift_types = {s.id: s for s in reversed(shift_types)}

    @property
    def forbidden_sequences(self) -> list[ShiftRule]:
        return [
            r
            for r in self.rules
            if r.rule_type == RuleType.FORBIDDEN_SEQUENCE and r.from_shift_id and r.has_targets
        ]

    @property
    def mandatory_follow_ups(self) -> list[ShiftRule]:
        return [r for r in self.rules if r.rule_type == RuleType.MANDATORY_FOLLOW_UP]

    def find_sequence_conflict(
        self,
        store: AssignmentStore,
        employee: Employee,
        shift_date: date,
        shift_type: ShiftType,
    ) -> Optional[str]:
        """Describe the first forbidden sequence a candidate would create.

        Same-day rules look for the `from` shift on the candidate date; all
        other rules look for it on the previous date. Follow-up assignments
        count as holding the `from` shift.

        Returns:
            A description of the violated rule, or None if the candidate
            breaks no forbidden sequence.
        """
        for rule in self.forbidden_sequences:
            if not rule.targets(shift_type.id):
                continue

            if rule.same_day:
                if store.has_assignment(employee.id, shift_date, rule.from_shift_id):
                    return f"Forbidden same-day sequence: {rule.name}"
            else:
                previous_date = shift_date - timedelta(days=1)
                if store.has_assignment(employee.id, previous_date, rule.from_shift_id):
                    return f"Forbidden next-day sequence: {rule.name}"

        return None

    def immediate_follow_up(
        self,
        employee: Employee,
        shift_date: date,
        shift_type: ShiftType,
    ) -> Optional[ShiftType]:
        """Pick the follow-up shift to attach right after a primary commit.

        The first mandatory rule triggered by `shift_type` whose target
        exists and suits the employee on that date wins. Slot occupancy is
        not checked because follow-ups do not occupy primary slots.
        """
        for rule in self.mandatory_follow_ups:
            if rule.from_shift_id != shift_type.id or not rule.to_shift_id:
                continue

            follow_up = self._shift_types.get(rule.to_shift_id)
            if follow_up is None:
                continue

            if self.qualification_policy.is_qualified(
                employee, follow_up
            ) and self.availability_policy.is_available(employee, shift_date, follow_up):
                return follow_up

        return None

    def pending_follow_ups(
        self,
        store: AssignmentStore,
        employees_by_id: dict[str, Employee],
    ) -> list[tuple[ShiftRule, ShiftAssignment, Employee, ShiftType]]:
        """All (rule, source, employee, follow-up shift) requirements to sweep.

        Sources are the primary assignments holding a rule's `from` shift,
        pre-existing ones included, taken rule by rule in store order. The
        list is a snapshot; assignments added while sweeping are not
        revisited.
        """
        requirements = []
        for rule in self.mandatory_follow_ups:
            if not rule.to_shift_id:
                continue

            sources = [
                a for a in store if a.is_primary and a.shift_id == rule.from_shift_id
            ]
            for source in sources:
                employee = employees_by_id.get(source.employee_id)
                follow_up = self._shift_types.get(rule.to_shift_id)
                if employee is None or follow_up is None:
                    continue
                requirements.append((rule, source, employee, follow_up))

        return requirements

    def check_follow_up(
        self,
        store: AssignmentStore,
        rule: ShiftRule,
        source: ShiftAssignment,
        employee: Employee,
        follow_up: ShiftType,
    ) -> FollowUpCheck:
        """Decide whether a swept follow-up can be attached, in check order:
        already present, slot occupied, not qualified, not available."""
        shift_date = source.schedule_date

        if store.has_assignment(employee.id, shift_date, follow_up.id):
            status = FollowUpStatus.ALREADY_PRESENT
        elif store.is_slot_occupied(shift_date, follow_up.id):
            status = FollowUpStatus.SLOT_OCCUPIED
        elif not self.qualification_policy.is_qualified(employee, follow_up):
            status = FollowUpStatus.NOT_QUALIFIED
        elif not self.availability_policy.is_available(employee, shift_date, follow_up):
            status = FollowUpStatus.NOT_AVAILABLE
        else:
            status = FollowUpStatus.READY

        logger.debug(
            "Follow-up %s for %s on %s (rule %s): %s",
            follow_up.id,
            employee.id,
            shift_date,
            rule.name,
            status.value,
        )
        return FollowUpCheck(
            rule=rule,
            source=source,
            employee=employee,
            follow_up_shift=follow_up,
            status=status,
        )
