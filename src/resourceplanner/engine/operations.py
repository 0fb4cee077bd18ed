"""
Function-style entry points for the CRUD/API layer.

Each call builds the components it needs from the data it is handed, so no
state survives between calls.
"""

from typing import Any, Dict, Mapping, Optional, Sequence, Union

from resourceplanner.domain.models import (
    Allocation,
    Employee,
    Holiday,
    PlannerSettings,
    Project,
)
from resourceplanner.domain.snapshot import PlanningSnapshot
from .allocation_index import AllocationIndex
from .calendar import DayLike
from .capacity import PeriodLike, compute_capacity, resolve_period
from .evaluator import AllocationProposal, ConflictEvaluator, EvaluationOutcome
from .mutator import AllocationMutator, MutationResult, PendingAllocation, ResizeEdge

__all__ = [
    "compute_capacity",
    "allocated_hours",
    "evaluate_allocation_change",
    "create_allocation",
    "confirm_allocation",
    "move_allocation",
    "resize_allocation",
    "delete_allocation",
]


def allocated_hours(
    employee_id: str,
    period: PeriodLike,
    allocations: Sequence[Allocation],
    holidays: Sequence[Holiday] = (),
    employee: Optional[Employee] = None,
) -> float:
    """Hours allocated to an employee on working days of ``period``."""
    return AllocationIndex(allocations).allocated_hours_for_period(
        str(employee_id), resolve_period(period), holidays, employee
    )


def evaluate_allocation_change(
    proposal: Union[AllocationProposal, Mapping[str, Any]],
    allocations: Sequence[Allocation],
    employees: Sequence[Employee],
    settings: PlannerSettings,
    projects: Sequence[Project] = (),
    holidays: Sequence[Holiday] = (),
) -> EvaluationOutcome:
    """
    Classify a proposed allocation state.

    ``proposal`` may be a mapping of raw fields. Without ``projects`` the
    project id is not checked and the warning names the project by its id.
    """
    if not isinstance(proposal, AllocationProposal):
        proposal = AllocationProposal.build(**proposal)
    snapshot = PlanningSnapshot(
        employees=tuple(employees),
        projects=tuple(projects),
        holidays=tuple(holidays),
        allocations=tuple(allocations),
        settings=settings,
    )
    return ConflictEvaluator(snapshot).evaluate(proposal)


def create_allocation(
    snapshot: PlanningSnapshot,
    employee_id: str,
    project_id: str,
    day: DayLike,
    hours_per_day: Optional[float] = None,
) -> MutationResult:
    return AllocationMutator(snapshot).create(employee_id, project_id, day, hours_per_day)


def confirm_allocation(
    snapshot: PlanningSnapshot,
    pending: PendingAllocation,
    hours_per_day: Optional[float] = None,
    adjustments: Optional[Dict[str, float]] = None,
) -> MutationResult:
    return AllocationMutator(snapshot).confirm(pending, hours_per_day, adjustments)


def move_allocation(
    snapshot: PlanningSnapshot,
    allocation_id: str,
    new_start: DayLike,
    acknowledge_overallocation: bool = False,
) -> MutationResult:
    return AllocationMutator(snapshot).move(allocation_id, new_start, acknowledge_overallocation)


def resize_allocation(
    snapshot: PlanningSnapshot,
    allocation_id: str,
    edge: ResizeEdge,
    new_date: DayLike,
    acknowledge_overallocation: bool = False,
) -> MutationResult:
    return AllocationMutator(snapshot).resize(
        allocation_id, edge, new_date, acknowledge_overallocation
    )


def delete_allocation(snapshot: PlanningSnapshot, allocation_id: str) -> MutationResult:
    return AllocationMutator(snapshot).delete(allocation_id)
