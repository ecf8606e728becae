"""Greedy heuristic solver for multi-week shift assignment.

This module implements a single-pass greedy approach:
1. Walk the working days of the horizon in order
2. Fill each shift type's open positions, earliest shifts first
3. Escalate per position from strict to relaxed to emergency candidates
4. Attach mandatory follow-ups as primary assignments commit
5. Sweep all primary assignments for missing follow-ups at the end

There is no backtracking: a committed assignment is never revisited.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from shiftplan.domain.calendar import Weekday, to_iso
from shiftplan.domain.models import (
    DEFAULT_TARGET_PERCENTAGE,
    Conflict,
    ConflictType,
    Employee,
    ShiftAssignment,
    ShiftType,
)
from shiftplan.domain.policies import AvailabilityPolicy, QualificationPolicy
from shiftplan.scheduling.assignment_store import AssignmentStore
from shiftplan.scheduling.rule_engine import FollowUpStatus, RuleEngine
from shiftplan.scheduling.workload import WorkloadTracker

logger = logging.getLogger(__name__)


class AssignmentStrategy(Enum):
    """Candidate filters, tried in this order for every open position."""

    STRICT = "strict"  # Qualification, availability and forbidden sequences
    RELAXED = "relaxed"  # Qualification and availability
    EMERGENCY = "emergency"  # Qualification only, reported as a conflict


@dataclass
class SolverConfig:
    """Configuration for the heuristic solver.

    Attributes:
        enable_relaxed_strategy: Retry without forbidden-sequence checks.
        enable_emergency_strategy: Retry ignoring availability and rules.
        immediate_follow_ups: Attach follow-ups as soon as a primary commits.
        enforce_follow_up_sweep: Sweep all primary assignments for missing
            follow-ups after the horizon is processed.
        default_target_percentage: Target percentage for employees without
            an override or a known team.
    """

    enable_relaxed_strategy: bool = True
    enable_emergency_strategy: bool = True
    immediate_follow_ups: bool = True
    enforce_follow_up_sweep: bool = True
    default_target_percentage: float = DEFAULT_TARGET_PERCENTAGE

    @property
    def strategies(self) -> list[AssignmentStrategy]:
        """Escalation ladder implied by the flags."""
        ladder = [AssignmentStrategy.STRICT]
        if self.enable_relaxed_strategy:
            ladder.append(AssignmentStrategy.RELAXED)
        if self.enable_emergency_strategy:
            ladder.append(AssignmentStrategy.EMERGENCY)
        return ladder


@dataclass
class DayPlan:
    """Shift types needed on one working day, in processing order."""

    schedule_date: date
    weekday: Weekday
    needs: list[tuple[ShiftType, int]] = field(default_factory=list)


class HeuristicSolver:
    """Greedy per-slot solver with escalating strategies.

    The solver owns no state of its own: the assignment store and workload
    tracker are handed in and mutated in place, and conflicts are appended
    to the given list. All writes go through `assign_shift`.
    """

    def __init__(
        self,
        employees: list[Employee],
        shift_types: list[ShiftType],
        availability_policy: AvailabilityPolicy,
        qualification_policy: QualificationPolicy,
        rule_engine: RuleEngine,
        config: Optional[SolverConfig] = None,
    ):
        self.employees = list(employees)
        self.shift_types = list(shift_types)
        self.availability_policy = availability_policy
        self.qualification_policy = qualification_policy
        self.rule_engine = rule_engine
        self.config = config or SolverConfig()

        self._employees_by_id = {e.id: e for e in reversed(self.employees)}

    def plan_day(self, schedule_date: date, weekday: Weekday) -> DayPlan:
        """Collect the shift types with a need on a day.

        Shift types are ordered by start time of day; the sort is stable so
        shift types starting together keep their input order.
        """
        needs = [
            (shift_type, shift_type.need_for(weekday))
            for shift_type in self.shift_types
            if shift_type.need_for(weekday) > 0
        ]
        needs.sort(key=lambda item: item[0].start_minutes)
        return DayPlan(schedule_date=schedule_date, weekday=weekday, needs=needs)

    def solve_day(
        self,
        schedule_date: date,
        weekday: Weekday,
        store: AssignmentStore,
        workload: WorkloadTracker,
        conflicts: list[Conflict],
    ) -> None:
        """Fill every open position of one working day."""
        plan = self.plan_day(schedule_date, weekday)

        for shift_type, required in plan.needs:
            needed = required - store.count_primary(schedule_date, shift_type.id)

            for position in range(needed):
                assigned = False
                for strategy in self.config.strategies:
                    assigned = self._try_strategy(
                        strategy, schedule_date, shift_type, store, workload, conflicts
                    )
                    if assigned:
                        break

                if not assigned:
                    message = (
                        f"Unassigned shift: {shift_type.name} on {to_iso(schedule_date)} "
                        f"(Position {position + 1})"
                    )
                    logger.warning(message)
                    conflicts.append(
                        Conflict(
                            conflict_type=ConflictType.UNASSIGNED_SHIFT,
                            message=message,
                            shift_id=shift_type.id,
                            schedule_date=schedule_date,
                        )
                    )

    def _try_strategy(
        self,
        strategy: AssignmentStrategy,
        schedule_date: date,
        shift_type: ShiftType,
        store: AssignmentStore,
        workload: WorkloadTracker,
        conflicts: list[Conflict],
    ) -> bool:
        """Assign the first suitable employee in workload order.

        Returns:
            True if an employee was committed to the position.
        """
        for employee in workload.ordered_employees():
            if store.has_primary_on(employee.id, schedule_date):
                continue

            if not self.qualification_policy.is_qualified(employee, shift_type):
                continue

            if strategy != AssignmentStrategy.EMERGENCY:
                if not self.availability_policy.is_available(employee, schedule_date, shift_type):
                    continue

            rule_conflict = None
            if strategy != AssignmentStrategy.EMERGENCY:
                rule_conflict = self.rule_engine.find_sequence_conflict(
                    store, employee, schedule_date, shift_type
                )
            if rule_conflict and strategy == AssignmentStrategy.STRICT:
                logger.debug(
                    "Skipping %s for %s on %s: %s",
                    employee.id,
                    shift_type.id,
                    schedule_date,
                    rule_conflict,
                )
                continue

            if not self.assign_shift(employee, schedule_date, shift_type, store, workload):
                continue

            if rule_conflict and strategy == AssignmentStrategy.RELAXED:
                logger.warning(
                    "Relaxed assignment of %s to %s on %s ignores rule: %s",
                    employee.id,
                    shift_type.id,
                    schedule_date,
                    rule_conflict,
                )

            if strategy == AssignmentStrategy.EMERGENCY:
                message = (
                    f"Emergency assignment: {employee.name} assigned to {shift_type.name} "
                    f"on {to_iso(schedule_date)} (may violate availability or rules)"
                )
                logger.warning(message)
                conflicts.append(
                    Conflict(
                        conflict_type=ConflictType.EMERGENCY_ASSIGNMENT,
                        message=message,
                        employee_id=employee.id,
                        shift_id=shift_type.id,
                        schedule_date=schedule_date,
                    )
                )

            logger.debug(
                "Assigned %s to %s on %s (%s)",
                employee.id,
                shift_type.id,
                schedule_date,
                strategy.value,
            )
            return True

        return False

    def assign_shift(
        self,
        employee: Employee,
        schedule_date: date,
        shift_type: ShiftType,
        store: AssignmentStore,
        workload: WorkloadTracker,
        is_follow_up: bool = False,
    ) -> Optional[ShiftAssignment]:
        """Commit an assignment and update the employee's workload.

        A committed primary assignment immediately receives its mandatory
        follow-up when one applies. Follow-ups never trigger further
        follow-ups.

        Returns:
            The committed assignment, or None if the store rejected it.
        """
        assignment = store.add(employee.id, shift_type.id, schedule_date, is_follow_up)
        if assignment is None:
            return None

        workload.record(assignment, shift_type)

        if not is_follow_up and self.config.immediate_follow_ups:
            follow_up = self.rule_engine.immediate_follow_up(employee, schedule_date, shift_type)
            if follow_up is not None:
                self.assign_shift(
                    employee, schedule_date, follow_up, store, workload, is_follow_up=True
                )
                logger.debug(
                    "Attached follow-up %s to %s on %s",
                    follow_up.id,
                    employee.id,
                    schedule_date,
                )

        return assignment

    def enforce_follow_ups(
        self,
        store: AssignmentStore,
        workload: WorkloadTracker,
        conflicts: list[Conflict],
    ) -> int:
        """Attach missing mandatory follow-ups across the whole store.

        Covers pre-existing assignments too, which the immediate check never
        sees. Follow-ups that cannot be attached are reported; their primary
        assignment stays.

        Returns:
            Number of follow-ups attached by the sweep.
        """
        attached = 0
        requirements = self.rule_engine.pending_follow_ups(store, self._employees_by_id)

        for rule, source, employee, follow_up in requirements:
            check = self.rule_engine.check_follow_up(store, rule, source, employee, follow_up)
            shift_date = source.schedule_date
            date_str = to_iso(shift_date)

            if check.status == FollowUpStatus.ALREADY_PRESENT:
                continue

            if check.status == FollowUpStatus.READY:
                self.assign_shift(
                    employee, shift_date, follow_up, store, workload, is_follow_up=True
                )
                attached += 1
                continue

            if check.status == FollowUpStatus.SLOT_OCCUPIED:
                conflict_type = ConflictType.FOLLOW_UP_SLOT_OCCUPIED
                message = (
                    f"Mandatory follow-up conflict: {employee.name} needs {follow_up.name} "
                    f"on {date_str} but slot is occupied"
                )
            elif check.status == FollowUpStatus.NOT_QUALIFIED:
                conflict_type = ConflictType.FOLLOW_UP_NOT_QUALIFIED
                message = (
                    f"Mandatory follow-up conflict: {employee.name} not qualified for "
                    f"{follow_up.name} on {date_str}"
                )
            else:
                conflict_type = ConflictType.FOLLOW_UP_NOT_AVAILABLE
                message = (
                    f"Mandatory follow-up conflict: {employee.name} not available for "
                    f"{follow_up.name} on {date_str}"
                )

            logger.warning(message)
            conflicts.append(
                Conflict(
                    conflict_type=conflict_type,
                    message=message,
                    employee_id=employee.id,
                    shift_id=follow_up.id,
                    schedule_date=shift_date,
                )
            )

        return attached
