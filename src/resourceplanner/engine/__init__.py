"""
ResourcePlanner Allocation Engine

Components, leaf-first:
- calendar: Weekend/working-day classification, day ranges, overlap
- capacity: CapacityCalculator - available hours after deductions
- allocation_index: AllocationIndex - per-cell, per-period and duplicate queries
- evaluator: ConflictEvaluator - duplicate / overallocation / clean
- mutator: AllocationMutator - create, confirm, move, resize, delete
"""

from .allocation_index import AllocationIndex
from .calendar import (
    days_in_range,
    is_weekend,
    is_working_day,
    overlap_days,
    parse_day,
    ranges_overlap,
)
from .capacity import (
    CapacityBreakdown,
    CapacityCalculator,
    DailyUtilization,
    DayKind,
    EmployeeCapacity,
    compute_capacity,
)
from .evaluator import (
    AllocationProposal,
    Clean,
    ConflictEvaluator,
    ConflictSeverity,
    ConflictSummary,
    ConflictType,
    DuplicateProjectConflict,
    OutcomeKind,
    OverallocationWarning,
)
from .mutator import (
    AllocationMutator,
    MutationResult,
    MutationStatus,
    MutationType,
    PendingAllocation,
    RecomputeTotal,
    ResizeEdge,
)
from .operations import (
    allocated_hours,
    confirm_allocation,
    create_allocation,
    delete_allocation,
    evaluate_allocation_change,
    move_allocation,
    resize_allocation,
)

__all__ = [
    # Calendar arithmetic
    "is_working_day",
    "is_weekend",
    "days_in_range",
    "overlap_days",
    "ranges_overlap",
    "parse_day",
    # Capacity
    "CapacityCalculator",
    "CapacityBreakdown",
    "DailyUtilization",
    "DayKind",
    "EmployeeCapacity",
    "compute_capacity",
    # Allocation index
    "AllocationIndex",
    # Evaluation
    "ConflictEvaluator",
    "AllocationProposal",
    "OutcomeKind",
    "Clean",
    "DuplicateProjectConflict",
    "OverallocationWarning",
    "ConflictType",
    "ConflictSeverity",
    "ConflictSummary",
    # Mutation
    "AllocationMutator",
    "MutationResult",
    "MutationStatus",
    "MutationType",
    "PendingAllocation",
    "RecomputeTotal",
    "ResizeEdge",
    # Function surface
    "allocated_hours",
    "evaluate_allocation_change",
    "create_allocation",
    "confirm_allocation",
    "move_allocation",
    "resize_allocation",
    "delete_allocation",
]
