"""
Allocation Mutator

Applies create / move / resize / delete intents to a planning snapshot.
Every intent is evaluated atomically before it is applied:

- Duplicate conflict -> rejected, snapshot unchanged
- Overallocation -> pending confirmation, snapshot unchanged
- Clean (or acknowledged) -> applied, snapshot replaced

Applied mutations carry ``RecomputeTotal`` instructions for the caller to
persist; the mutator itself never touches storage.

Usage:
    mutator = AllocationMutator(snapshot)

    result = mutator.create(employee_id, project_id, "2024-01-15")
    if result.status == MutationStatus.PENDING_CONFIRMATION:
        result = mutator.confirm(result.pending, hours_per_day=4, adjustments={"a1": 4})

    mutator.move(allocation_id, "2024-01-22")
    mutator.resize(allocation_id, ResizeEdge.END, "2024-01-26")
"""

import math
import uuid
from datetime import date
from enum import Enum
from typing import Callable, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, Field

from resourceplanner.domain.models import Allocation, AllocationStatus
from resourceplanner.domain.snapshot import PlanningSnapshot
from resourceplanner.errors import CapacityComputationError, PlannerError, ValidationError
from resourceplanner.platform.logging import get_logger
from .allocation_index import AllocationIndex
from .base import EngineComponent
from .calendar import DayLike, is_weekend, parse_day
from .evaluator import (
    MAX_HOURS_PER_DAY,
    AllocationProposal,
    ConflictEvaluator,
    DuplicateProjectConflict,
    OutcomeKind,
    OverallocationWarning,
)

logger = get_logger(__name__)


class MutationStatus(str, Enum):
    APPLIED = "applied"
    REJECTED = "rejected"
    PENDING_CONFIRMATION = "pending_confirmation"


class MutationType(str, Enum):
    CREATE = "create"
    MOVE = "move"
    RESIZE = "resize"
    UPDATE_HOURS = "update_hours"
    DELETE = "delete"
    DELETE_EMPLOYEE = "delete_employee"
    DELETE_PROJECT = "delete_project"


class ResizeEdge(str, Enum):
    START = "start"
    END = "end"

    @classmethod
    def _missing_(cls, value):
        aliases = {"left": cls.START, "right": cls.END}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


class RecomputeTotal(BaseModel):
    """Instruction to persist a recomputed cached allocated-hours total."""
    entity_type: Literal["employee", "project"]
    entity_id: str
    allocated_hours: float


class PendingAllocation(BaseModel):
    """An intent suspended on an overallocation warning."""
    operation: MutationType
    proposal: AllocationProposal
    warning: OverallocationWarning


class MutationResult(BaseModel):
    operation: MutationType
    status: MutationStatus
    allocation: Optional[Allocation] = None
    updated: List[Allocation] = Field(default_factory=list)
    removed: List[Allocation] = Field(default_factory=list)
    deleted_entity_id: Optional[str] = None  # employee or project removed by a cascade
    conflict: Optional[DuplicateProjectConflict] = None
    warning: Optional[OverallocationWarning] = None
    pending: Optional[PendingAllocation] = None
    side_effects: List[RecomputeTotal] = Field(default_factory=list)
    snapshot: PlanningSnapshot

    @property
    def applied(self) -> bool:
        return self.status == MutationStatus.APPLIED


def _input_day(value: DayLike, field_name: str) -> date:
    try:
        return parse_day(value)
    except CapacityComputationError as exc:
        raise ValidationError(
            f"{field_name} must be a valid date",
            details={"field": field_name, "value": str(value)},
        ) from exc


def _new_id() -> str:
    return str(uuid.uuid4())


class AllocationMutator(EngineComponent):
    """
    Validated allocation mutations over a planning snapshot.

    ``self.snapshot`` is replaced after every applied mutation so a sequence of
    intents within one cycle sees its own changes.
    """

    def __init__(
        self,
        snapshot: PlanningSnapshot,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        super().__init__(snapshot)
        self.id_factory = id_factory or _new_id

    @property
    def evaluator(self) -> ConflictEvaluator:
        return ConflictEvaluator(self.snapshot)

    # =========================================================================
    # Create
    # =========================================================================

    def default_hours_per_day(self, employee_id: str, day: DayLike) -> float:
        """Standard daily rate, or 0 on weekends and the employee's holidays."""
        employee = self.get_employee(employee_id)
        day = _input_day(day, "date")
        if is_weekend(day) or self.is_holiday_for(employee, day):
            return 0.0
        return self.max_daily_hours(employee)

    def create(
        self,
        employee_id: str,
        project_id: str,
        day: DayLike,
        hours_per_day: Optional[float] = None,
    ) -> MutationResult:
        """
        Create a single-day allocation.

        Args:
            employee_id: Assignee
            project_id: Project being assigned
            day: The dropped-on day (start == end)
            hours_per_day: Override of the default daily rate

        Returns:
            MutationResult (applied, rejected or pending confirmation)
        """
        day = _input_day(day, "date")
        if hours_per_day is None:
            hours_per_day = self.default_hours_per_day(employee_id, day)

        proposal = AllocationProposal.build(
            employee_id=employee_id,
            project_id=project_id,
            start_date=day,
            end_date=day,
            hours_per_day=hours_per_day,
        )
        return self._submit(MutationType.CREATE, proposal, acknowledge_overallocation=False)

    def confirm(
        self,
        pending: PendingAllocation,
        hours_per_day: Optional[float] = None,
        adjustments: Optional[Dict[str, float]] = None,
    ) -> MutationResult:
        """
        Apply a pending intent with caller-chosen hours.

        Args:
            pending: The suspended intent returned with the warning
            hours_per_day: Hours for the created/changed allocation
                (defaults to the proposed hours)
            adjustments: New hours per contributing allocation id

        Returns:
            MutationResult (applied, or rejected if a duplicate appeared meanwhile)
        """
        proposal = pending.proposal
        if hours_per_day is not None:
            proposal = proposal.model_copy(update={"hours_per_day": hours_per_day})

        adjusted = self._adjusted_allocations(proposal, adjustments or {})
        previous = self.snapshot
        if adjusted:
            self.snapshot = self.snapshot.with_allocations(
                adjusted.get(a.id, a) for a in self.snapshot.allocations
            )

        try:
            result = self._submit(pending.operation, proposal, acknowledge_overallocation=True)
        except PlannerError:
            self.snapshot = previous
            raise
        if not result.applied:
            # Adjustments are dropped together with the rejected intent
            self.snapshot = result.snapshot = previous
        elif adjusted:
            # The changed allocation itself is reported once, in its final state
            result.updated = [
                a for a in adjusted.values() if a.id != proposal.allocation_id
            ] + result.updated
            result.side_effects = self._recompute(
                employee_ids=[proposal.employee_id],
                project_ids=[proposal.project_id, *(a.project_id for a in adjusted.values())],
            )
        return result

    def _adjusted_allocations(
        self,
        proposal: AllocationProposal,
        adjustments: Dict[str, float],
    ) -> Dict[str, Allocation]:
        adjusted = {}
        errors = []
        for allocation_id, hours in adjustments.items():
            allocation = self.snapshot.allocation(allocation_id)
            if allocation.employee_id != proposal.employee_id:
                errors.append(
                    f"Allocation {allocation_id} does not belong to employee {proposal.employee_id}"
                )
            elif not math.isfinite(hours) or not 0 <= hours <= MAX_HOURS_PER_DAY:
                errors.append(f"Hours per day for {allocation_id} must be between 0 and 24")
            else:
                adjusted[allocation.id] = allocation.model_copy(update={"hours_per_day": float(hours)})
        if errors:
            raise ValidationError("Invalid hour adjustments", errors=errors)
        return adjusted

    # =========================================================================
    # Move / resize / hours
    # =========================================================================

    def move(
        self,
        allocation_id: str,
        new_start: DayLike,
        acknowledge_overallocation: bool = False,
    ) -> MutationResult:
        """Shift both edges by the same delta; the duration is preserved."""
        allocation = self.snapshot.allocation(allocation_id)
        new_start = _input_day(new_start, "new_start")
        try:
            new_end = allocation.end_date + (new_start - allocation.start_date)
        except OverflowError as exc:
            raise ValidationError(
                "new_start moves the allocation past the last representable date",
                details={"field": "new_start", "value": new_start.isoformat()},
            ) from exc
        proposal = self._proposal_for(allocation, start_date=new_start, end_date=new_end)
        return self._submit(MutationType.MOVE, proposal, acknowledge_overallocation)

    def resize(
        self,
        allocation_id: str,
        edge: ResizeEdge,
        new_date: DayLike,
        acknowledge_overallocation: bool = False,
    ) -> MutationResult:
        """
        Move one edge. Dragging past the opposite edge clamps to a single day;
        the range never inverts.
        """
        allocation = self.snapshot.allocation(allocation_id)
        edge = ResizeEdge(edge)
        new_date = _input_day(new_date, "new_date")

        if edge == ResizeEdge.START:
            proposal = self._proposal_for(
                allocation,
                start_date=min(new_date, allocation.end_date),
                end_date=allocation.end_date,
            )
        else:
            proposal = self._proposal_for(
                allocation,
                start_date=allocation.start_date,
                end_date=max(new_date, allocation.start_date),
            )
        return self._submit(MutationType.RESIZE, proposal, acknowledge_overallocation)

    def update_hours(
        self,
        allocation_id: str,
        hours_per_day: float,
        acknowledge_overallocation: bool = False,
    ) -> MutationResult:
        allocation = self.snapshot.allocation(allocation_id)
        proposal = self._proposal_for(allocation, hours_per_day=hours_per_day)
        return self._submit(MutationType.UPDATE_HOURS, proposal, acknowledge_overallocation)

    def _proposal_for(self, allocation: Allocation, **changes) -> AllocationProposal:
        data = {
            "employee_id": allocation.employee_id,
            "project_id": allocation.project_id,
            "start_date": allocation.start_date,
            "end_date": allocation.end_date,
            "hours_per_day": allocation.hours_per_day,
            "allocation_id": allocation.id,
        }
        data.update(changes)
        return AllocationProposal.build(**data)

    # =========================================================================
    # Delete
    # =========================================================================

    def delete(self, allocation_id: str) -> MutationResult:
        allocation = self.snapshot.allocation(allocation_id)
        self.snapshot = self.snapshot.remove_allocations([allocation.id])
        logger.info(
            "allocation_deleted",
            allocation_id=allocation.id,
            employee_id=allocation.employee_id,
            project_id=allocation.project_id,
        )
        return MutationResult(
            operation=MutationType.DELETE,
            status=MutationStatus.APPLIED,
            removed=[allocation],
            side_effects=self._recompute(
                employee_ids=[allocation.employee_id],
                project_ids=[allocation.project_id],
            ),
            snapshot=self.snapshot,
        )

    def delete_employee(self, employee_id: str) -> MutationResult:
        """Remove an employee with their allocations and vacations."""
        employee = self.get_employee(employee_id)
        removed = AllocationIndex(self.snapshot.allocations).for_employee(employee.id)
        self.snapshot = self.snapshot.without_employee(employee.id)
        logger.info(
            "employee_deleted",
            employee_id=employee.id,
            cascaded_allocations=len(removed),
        )
        return MutationResult(
            operation=MutationType.DELETE_EMPLOYEE,
            deleted_entity_id=employee.id,
            status=MutationStatus.APPLIED,
            removed=removed,
            side_effects=self._recompute(project_ids=[a.project_id for a in removed]),
            snapshot=self.snapshot,
        )

    def delete_project(self, project_id: str) -> MutationResult:
        """Remove a project with its allocations."""
        project = self.get_project(project_id)
        removed = AllocationIndex(self.snapshot.allocations).for_project(project.id)
        self.snapshot = self.snapshot.without_project(project.id)
        logger.info(
            "project_deleted",
            project_id=project.id,
            cascaded_allocations=len(removed),
        )
        return MutationResult(
            operation=MutationType.DELETE_PROJECT,
            deleted_entity_id=project.id,
            status=MutationStatus.APPLIED,
            removed=removed,
            side_effects=self._recompute(employee_ids=[a.employee_id for a in removed]),
            snapshot=self.snapshot,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _submit(
        self,
        operation: MutationType,
        proposal: AllocationProposal,
        acknowledge_overallocation: bool,
    ) -> MutationResult:
        outcome = self.evaluator.evaluate(proposal)

        if outcome.kind == OutcomeKind.DUPLICATE:
            logger.info(
                "mutation_rejected",
                operation=operation.value,
                allocation_id=proposal.allocation_id,
                reason=outcome.kind.value,
            )
            return MutationResult(
                operation=operation,
                status=MutationStatus.REJECTED,
                conflict=outcome,
                snapshot=self.snapshot,
            )

        if outcome.kind == OutcomeKind.OVERALLOCATION and not acknowledge_overallocation:
            logger.info(
                "mutation_pending_confirmation",
                operation=operation.value,
                allocation_id=proposal.allocation_id,
                employee_id=proposal.employee_id,
            )
            return MutationResult(
                operation=operation,
                status=MutationStatus.PENDING_CONFIRMATION,
                warning=outcome,
                pending=PendingAllocation(
                    operation=operation, proposal=proposal, warning=outcome
                ),
                snapshot=self.snapshot,
            )

        if proposal.allocation_id is None:
            allocation = Allocation(
                id=self.id_factory(),
                employee_id=proposal.employee_id,
                project_id=proposal.project_id,
                start_date=proposal.start_date,
                end_date=proposal.end_date,
                hours_per_day=proposal.hours_per_day,
                status=AllocationStatus.ACTIVE,
                sequence=self.snapshot.next_sequence(),
            )
            self.snapshot = self.snapshot.add_allocation(allocation)
            updated: List[Allocation] = []
        else:
            current = self.snapshot.allocation(proposal.allocation_id)
            allocation = Allocation.model_validate({
                **current.model_dump(),
                "start_date": proposal.start_date,
                "end_date": proposal.end_date,
                "hours_per_day": proposal.hours_per_day,
            })
            self.snapshot = self.snapshot.replace_allocation(allocation)
            updated = [allocation]

        logger.info(
            "mutation_applied",
            operation=operation.value,
            allocation_id=allocation.id,
            employee_id=allocation.employee_id,
            project_id=allocation.project_id,
            start_date=allocation.start_date.isoformat(),
            end_date=allocation.end_date.isoformat(),
            hours_per_day=allocation.hours_per_day,
            overallocated=outcome.kind == OutcomeKind.OVERALLOCATION,
        )
        return MutationResult(
            operation=operation,
            status=MutationStatus.APPLIED,
            allocation=allocation,
            updated=updated,
            warning=outcome if outcome.kind == OutcomeKind.OVERALLOCATION else None,
            side_effects=self._recompute(
                employee_ids=[allocation.employee_id],
                project_ids=[allocation.project_id],
            ),
            snapshot=self.snapshot,
        )

    def _recompute(
        self,
        employee_ids: Iterable[str] = (),
        project_ids: Iterable[str] = (),
    ) -> List[RecomputeTotal]:
        """Recomputed cached totals for the given (still existing) entities."""
        index = AllocationIndex(self.snapshot.allocations)
        employees = self.snapshot.employees_by_id()
        holidays = self.snapshot.holidays
        effects = []
        for employee_id in dict.fromkeys(employee_ids):
            employee = employees.get(employee_id)
            if employee is None:
                continue
            effects.append(RecomputeTotal(
                entity_type="employee",
                entity_id=employee_id,
                allocated_hours=index.total_allocated_hours(employee, holidays),
            ))
        for project_id in dict.fromkeys(project_ids):
            if self.snapshot.find_project(project_id) is None:
                continue
            effects.append(RecomputeTotal(
                entity_type="project",
                entity_id=project_id,
                allocated_hours=index.project_allocated_hours(project_id, employees, holidays),
            ))
        return effects
