"""Scheduling engine for generating multi-week shift plans."""

from shiftplan.scheduling.assignment_store import AssignmentStore
from shiftplan.scheduling.heuristic_solver import (
    AssignmentStrategy,
    HeuristicSolver,
    SolverConfig,
)
from shiftplan.scheduling.rule_engine import FollowUpCheck, FollowUpStatus, RuleEngine
from shiftplan.scheduling.scheduler import ShiftScheduler, generate_shift_schedule
from shiftplan.scheduling.workload import WorkloadTracker

__all__ = [
    # Core scheduler
    "ShiftScheduler",
    "generate_shift_schedule",
    # Solver
    "HeuristicSolver",
    "AssignmentStrategy",
    "SolverConfig",
    # State and rules
    "AssignmentStore",
    "WorkloadTracker",
    "RuleEngine",
    "FollowUpCheck",
    "FollowUpStatus",
]
