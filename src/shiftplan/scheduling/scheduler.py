"""Main scheduler interface.

This module provides the high-level ShiftScheduler class that seeds the
assignment store and workload tracker from a request, drives the heuristic
solver over the horizon and assembles the result with its statistics.
"""

import logging
from typing import Optional

from shiftplan.domain.models import (
    Conflict,
    ScheduleRequest,
    ScheduleResult,
    ScheduleStatistics,
)
from shiftplan.domain.policies import (
    AvailabilityPolicy,
    DefaultAvailabilityPolicy,
    DefaultQualificationPolicy,
    QualificationPolicy,
)
from shiftplan.scheduling.assignment_store import AssignmentStore
from shiftplan.scheduling.heuristic_solver import HeuristicSolver, SolverConfig
from shiftplan.scheduling.rule_engine import RuleEngine
from shiftplan.scheduling.workload import WorkloadTracker

logger = logging.getLogger(__name__)


class ShiftScheduler:
    """High-level scheduler for generating multi-week shift plans.

    Each instance owns one assignment store and one workload tracker, both
    seeded from the request's existing assignments at construction. Running
    `schedule` again starts over from the same seed, so repeated runs give
    identical results.

    Example:
        >>> request = ScheduleRequest(
        ...     start_date=date(2024, 1, 1),
        ...     end_date=date(2024, 1, 28),
        ...     employees=employees,
        ...     shift_types=shift_types,
        ... )
        >>> result = ShiftScheduler(request).schedule()
        >>> result.statistics.unassigned_shifts
        0
    """

    def __init__(
        self,
        request: ScheduleRequest,
        config: Optional[SolverConfig] = None,
        availability_policy: Optional[AvailabilityPolicy] = None,
        qualification_policy: Optional[QualificationPolicy] = None,
    ):
        """Initialize scheduler with a request and policies.

        Args:
            request: Horizon, entity collections and existing assignments.
            config: Solver configuration.
            availability_policy: Policy for half-day availability.
            qualification_policy: Policy for shift qualifications. Defaults
                to the learning-year aware policy built from the request.
        """
        self.request = request
        self.config = config or SolverConfig()
        self.availability_policy = availability_policy or DefaultAvailabilityPolicy()
        self.qualification_policy = qualification_policy or DefaultQualificationPolicy(
            qualifications=request.qualifications
        )

        self.rule_engine = RuleEngine(
            rules=request.rules,
            shift_types=request.shift_types,
            availability_policy=self.availability_policy,
            qualification_policy=self.qualification_policy,
        )
        self.solver = HeuristicSolver(
            employees=request.employees,
            shift_types=request.shift_types,
            availability_policy=self.availability_policy,
            qualification_policy=self.qualification_policy,
            rule_engine=self.rule_engine,
            config=self.config,
        )

        self._initialize_state()

    def _initialize_state(self) -> None:
        """Seed store and workload from the existing assignments."""
        self.store = AssignmentStore(self.request.existing_assignments)
        self.workload = WorkloadTracker.from_assignments(
            employees=self.request.employees,
            teams=self.request.teams,
            shift_types=self.request.shift_types,
            assignments=self.store,
            default_target_percentage=self.config.default_target_percentage,
        )
        self.conflicts: list[Conflict] = []
        self._has_run = False

    def schedule(self) -> ScheduleResult:
        """Generate assignments for every working day of the horizon.

        Returns:
            ScheduleResult with all assignments (existing first), conflicts
            in recorded order and final statistics.
        """
        if self._has_run:
            self._initialize_state()
        self._has_run = True

        working_dates = self.request.working_dates
        logger.info(
            "Scheduling %d working days (%s to %s) for %d employees and %d shift types",
            len(working_dates),
            self.request.start_date,
            self.request.end_date,
            len(self.request.employees),
            len(self.request.shift_types),
        )

        for schedule_date, weekday in working_dates:
            self.solver.solve_day(
                schedule_date, weekday, self.store, self.workload, self.conflicts
            )

        if self.config.enforce_follow_up_sweep:
            attached = self.solver.enforce_follow_ups(self.store, self.workload, self.conflicts)
            logger.debug("Follow-up sweep attached %d assignments", attached)

        statistics = ScheduleStatistics(
            total_assignments=len(self.store),
            unassigned_shifts=self.count_unassigned_shifts(),
            employee_workloads=self.workload.snapshot(),
        )
        logger.info(
            "Scheduling finished: %d assignments, %d unassigned positions, %d conflicts",
            statistics.total_assignments,
            statistics.unassigned_shifts,
            len(self.conflicts),
        )

        return ScheduleResult(
            assignments=self.store.assignments,
            conflict_details=list(self.conflicts),
            statistics=statistics,
        )

    def count_unassigned_shifts(self) -> int:
        """Recount open primary positions over the whole horizon.

        Independent of the conflicts recorded while solving: walks every
        working day and shift type again and sums max(0, need - assigned).
        """
        unassigned = 0
        for schedule_date, weekday in self.request.working_dates:
            for shift_type in self.request.shift_types:
                need = shift_type.need_for(weekday)
                assigned = self.store.count_primary(schedule_date, shift_type.id)
                unassigned += max(0, need - assigned)
        return unassigned


def generate_shift_schedule(
    request: ScheduleRequest,
    config: Optional[SolverConfig] = None,
) -> ScheduleResult:
    """Run one scheduling pass with default policies."""
    return ShiftScheduler(request, config=config).schedule()
