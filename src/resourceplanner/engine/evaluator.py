"""
Conflict & Overallocation Evaluator

Classifies a proposed allocation create/move/resize before it is committed,
and sweeps existing allocations for rule violations.

Decision order (first match wins):
- Duplicate conflict: same employee+project overlapping an active allocation (hard reject)
- Overallocation: current + proposed hours exceed the daily maximum on any day (soft warning)
- Clean

Usage:
    evaluator = ConflictEvaluator(snapshot)

    # Classify a proposal
    outcome = evaluator.evaluate(proposal)
    if outcome.kind == OutcomeKind.DUPLICATE:
        ...

    # Sweep a month for existing problems
    summary = evaluator.scan(DateRange.for_month(2024, 1))
"""

import datetime
import math
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from resourceplanner.domain.models import Allocation, DateRange, Employee
from resourceplanner.errors import ValidationError
from resourceplanner.platform.logging import get_logger
from .allocation_index import AllocationIndex
from .base import EngineComponent

logger = get_logger(__name__)

MAX_HOURS_PER_DAY = 24.0


class OutcomeKind(str, Enum):
    CLEAN = "clean"
    DUPLICATE = "duplicate_project_conflict"
    OVERALLOCATION = "overallocation_warning"


class AllocationProposal(BaseModel):
    """A prospective allocation state to be evaluated."""
    employee_id: str
    project_id: str
    start_date: datetime.date
    end_date: datetime.date
    hours_per_day: float
    allocation_id: Optional[str] = None  # set for move/resize

    @field_validator("employee_id", "project_id", "allocation_id", mode="before")
    @classmethod
    def _canonical_ids(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @classmethod
    def build(cls, **fields: Any) -> "AllocationProposal":
        """
        Construct a proposal from raw input.

        Raises:
            ValidationError: a field is missing or malformed (e.g. 2024-02-30)
        """
        try:
            return cls(**fields)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid allocation proposal",
                errors=[
                    f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                    for error in exc.errors()
                ],
                details={key: str(value) for key, value in fields.items()},
            ) from exc

    @property
    def range(self) -> DateRange:
        return DateRange(start=self.start_date, end=self.end_date)


class ConflictingAllocation(BaseModel):
    """An existing allocation contributing to a conflict, with its current hours."""
    allocation_id: str
    project_id: str
    start_date: datetime.date
    end_date: datetime.date
    hours_per_day: float

    @classmethod
    def of(cls, allocation: Allocation) -> "ConflictingAllocation":
        return cls(
            allocation_id=allocation.id,
            project_id=allocation.project_id,
            start_date=allocation.start_date,
            end_date=allocation.end_date,
            hours_per_day=allocation.hours_per_day,
        )


class Clean(BaseModel):
    kind: Literal[OutcomeKind.CLEAN] = OutcomeKind.CLEAN
    proposal: AllocationProposal


class DuplicateProjectConflict(BaseModel):
    """Hard rejection: the employee already has this project on an overlapping range."""
    kind: Literal[OutcomeKind.DUPLICATE] = OutcomeKind.DUPLICATE
    employee_id: str
    project_id: str
    start_date: datetime.date
    end_date: datetime.date
    conflicting_allocations: List[ConflictingAllocation]

    @property
    def message(self) -> str:
        return (
            f"Project {self.project_id} is already allocated to employee "
            f"{self.employee_id} during {self.start_date.isoformat()}..{self.end_date.isoformat()}"
        )


class OverallocatedDay(BaseModel):
    date: datetime.date
    current_allocated_hours: float
    proposed_hours: float
    total_hours: float
    max_daily_hours: float
    overage_hours: float
    allocation_percentage: float
    conflicting_allocations: List[ConflictingAllocation]


class OverallocationWarning(BaseModel):
    """
    Soft warning: the proposal pushes at least one day over the daily maximum.

    The top-level ``date``/``current_allocated_hours``/``conflicting_allocations``
    describe the first overallocated day; ``days`` lists every one of them.
    """
    kind: Literal[OutcomeKind.OVERALLOCATION] = OutcomeKind.OVERALLOCATION
    employee_id: str
    employee_name: str
    project_id: str
    project_name: str
    date: datetime.date
    current_allocated_hours: float
    proposed_hours_per_day: float
    max_daily_hours: float
    conflicting_allocations: List[ConflictingAllocation]
    days: List[OverallocatedDay] = Field(default_factory=list)

    @property
    def overage_hours(self) -> float:
        return max((d.overage_hours for d in self.days), default=0.0)

    @property
    def peak_percentage(self) -> float:
        return max((d.allocation_percentage for d in self.days), default=0.0)


EvaluationOutcome = Union[Clean, DuplicateProjectConflict, OverallocationWarning]


# =============================================================================
# Sweep results
# =============================================================================

class ConflictType(str, Enum):
    """Types of conflicts found by a sweep."""
    OVERALLOCATION = "overallocation"
    DUPLICATE_PROJECT = "duplicate_project"


class ConflictSeverity(str, Enum):
    """Severity levels for conflicts."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class Conflict:
    """Represents a detected conflict."""
    conflict_type: ConflictType
    severity: ConflictSeverity

    employee_id: str
    employee_name: str
    allocation_ids: List[str]

    description: str
    date_range: Dict[str, str]
    allocation_percentage: Optional[float] = None

    suggested_actions: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ConflictSummary:
    """Summary of a conflict sweep."""
    total_conflicts: int
    by_type: Dict[str, int]
    by_severity: Dict[str, int]
    conflicts: List[Conflict]

    @property
    def critical_issues(self) -> List[Conflict]:
        return [c for c in self.conflicts if c.severity == ConflictSeverity.CRITICAL]


class ConflictEvaluator(EngineComponent):
    """
    Evaluates allocation proposals against the duplicate and capacity rules.

    The evaluator never mutates the snapshot.
    """

    # Severity thresholds for overallocated days (percent of daily maximum)
    OVERALLOCATION_THRESHOLD = 100.0
    MEDIUM_THRESHOLD = 105.0
    HIGH_THRESHOLD = 110.0
    CRITICAL_THRESHOLD = 120.0

    def __init__(self, snapshot):
        super().__init__(snapshot)
        self.index = AllocationIndex(snapshot.allocations)

    def validate(self, proposal: AllocationProposal) -> Employee:
        """
        Reject structurally invalid proposals.

        Raises:
            UnknownReferenceError: employee, project or allocation id not found
            ValidationError: inverted range or hours outside [0, 24]

        Project ids are only checked when the snapshot carries projects.
        """
        employee = self.get_employee(proposal.employee_id)
        if self.snapshot.projects:
            self.get_project(proposal.project_id)
        if proposal.allocation_id is not None:
            self.snapshot.allocation(proposal.allocation_id)

        errors = []
        hours = proposal.hours_per_day
        if proposal.end_date < proposal.start_date:
            errors.append("End date must not be before start date")
        if not math.isfinite(hours):
            errors.append("Hours per day must be a finite number")
        elif hours < 0:
            errors.append("Hours per day must be a positive number")
        elif hours > MAX_HOURS_PER_DAY:
            errors.append("Hours per day cannot exceed 24")
        if errors:
            raise ValidationError(
                "Invalid allocation proposal",
                errors=errors,
                details=proposal.model_dump(mode="json"),
            )
        return employee

    def evaluate(self, proposal: AllocationProposal) -> EvaluationOutcome:
        """
        Classify a proposal as clean, duplicate conflict or overallocation.

        Args:
            proposal: Proposed allocation state

        Returns:
            Clean | DuplicateProjectConflict | OverallocationWarning
        """
        employee = self.validate(proposal)

        duplicates = self.index.find_duplicate_conflicts(
            proposal.employee_id,
            proposal.project_id,
            proposal.range,
            exclude_allocation_id=proposal.allocation_id,
        )
        if duplicates:
            logger.info(
                "duplicate_project_conflict",
                employee_id=proposal.employee_id,
                project_id=proposal.project_id,
                range=str(proposal.range),
                conflicting=[a.id for a in duplicates],
            )
            return DuplicateProjectConflict(
                employee_id=proposal.employee_id,
                project_id=proposal.project_id,
                start_date=proposal.start_date,
                end_date=proposal.end_date,
                conflicting_allocations=[ConflictingAllocation.of(a) for a in duplicates],
            )

        days = self._overallocated_days(employee, proposal)
        if days:
            first = days[0]
            project = self.snapshot.find_project(proposal.project_id)
            logger.info(
                "overallocation_warning",
                employee_id=employee.id,
                project_id=proposal.project_id,
                days=len(days),
                first_day=first.date.isoformat(),
                max_daily_hours=first.max_daily_hours,
            )
            return OverallocationWarning(
                employee_id=employee.id,
                employee_name=employee.name,
                project_id=proposal.project_id,
                project_name=project.name if project is not None else proposal.project_id,
                date=first.date,
                current_allocated_hours=first.current_allocated_hours,
                proposed_hours_per_day=proposal.hours_per_day,
                max_daily_hours=first.max_daily_hours,
                conflicting_allocations=first.conflicting_allocations,
                days=days,
            )

        return Clean(proposal=proposal)

    def _overallocated_days(
        self,
        employee: Employee,
        proposal: AllocationProposal,
    ) -> List[OverallocatedDay]:
        max_daily = self.max_daily_hours(employee)
        days = []
        for day in proposal.range.days():
            existing = [
                a for a in self.index.allocations_on_day(employee.id, day)
                if a.id != proposal.allocation_id
            ]
            current = sum(a.hours_per_day for a in existing)
            total = current + proposal.hours_per_day
            if total <= max_daily:
                continue
            days.append(OverallocatedDay(
                date=day,
                current_allocated_hours=current,
                proposed_hours=proposal.hours_per_day,
                total_hours=total,
                max_daily_hours=max_daily,
                overage_hours=total - max_daily,
                allocation_percentage=total / max_daily * 100,
                conflicting_allocations=[ConflictingAllocation.of(a) for a in existing],
            ))
        return days

    # --- Sweep ---

    def scan(
        self,
        period: DateRange,
        employee_ids: Optional[List[str]] = None,
    ) -> ConflictSummary:
        """
        Detect existing duplicate overlaps and overallocated days in a period.

        Args:
            period: Days to inspect
            employee_ids: Limit to these employees (None = everyone)

        Returns:
            ConflictSummary with all detected conflicts
        """
        self.logger.info(f"Running conflict sweep over {period}")
        wanted = set(employee_ids) if employee_ids is not None else None
        employees = [
            e for e in self.snapshot.employees
            if wanted is None or e.id in wanted
        ]

        conflicts: List[Conflict] = []
        conflicts.extend(self._scan_duplicates(employees, period))
        for employee in employees:
            conflicts.extend(self._scan_overallocations(employee, period))

        by_type: Dict[str, int] = defaultdict(int)
        by_severity: Dict[str, int] = defaultdict(int)
        for conflict in conflicts:
            by_type[conflict.conflict_type.value] += 1
            by_severity[conflict.severity.value] += 1

        summary = ConflictSummary(
            total_conflicts=len(conflicts),
            by_type=dict(by_type),
            by_severity=dict(by_severity),
            conflicts=conflicts,
        )
        self.logger.info(
            f"Conflict sweep complete: {summary.total_conflicts} conflicts found, "
            f"{len(summary.critical_issues)} critical"
        )
        return summary

    def _scan_duplicates(self, employees: List[Employee], period: DateRange) -> List[Conflict]:
        names = {e.id: e.name for e in employees}
        conflicts = []
        for first, second in self.index.duplicate_pairs():
            if first.employee_id not in names:
                continue
            start = max(first.start_date, second.start_date)
            end = min(first.end_date, second.end_date)
            if end < period.start or start > period.end:
                continue
            conflicts.append(Conflict(
                conflict_type=ConflictType.DUPLICATE_PROJECT,
                severity=ConflictSeverity.CRITICAL,
                employee_id=first.employee_id,
                employee_name=names[first.employee_id],
                allocation_ids=[first.id, second.id],
                description=(
                    f"{names[first.employee_id]} has project {first.project_id} allocated "
                    f"twice between {start.isoformat()} and {end.isoformat()}"
                ),
                date_range={"start": start.isoformat(), "end": end.isoformat()},
                suggested_actions=[
                    {"type": "delete_allocation", "description": f"Delete allocation {second.id}"},
                    {"type": "merge_allocations", "description": "Merge both ranges into one allocation"},
                ],
            ))
        return conflicts

    def _scan_overallocations(self, employee: Employee, period: DateRange) -> List[Conflict]:
        max_daily = self.max_daily_hours(employee)
        conflicts = []
        for day in period.days():
            allocations = self.index.allocations_on_day(employee.id, day)
            total = sum(a.hours_per_day for a in allocations)
            percentage = total / max_daily * 100
            if percentage <= self.OVERALLOCATION_THRESHOLD:
                continue

            excess = total - max_daily
            conflicts.append(Conflict(
                conflict_type=ConflictType.OVERALLOCATION,
                severity=self._severity(percentage),
                employee_id=employee.id,
                employee_name=employee.name,
                allocation_ids=[a.id for a in allocations],
                description=(
                    f"{employee.name} is overallocated at {percentage:.0f}% on "
                    f"{day.isoformat()} ({excess:.1f}h over {max_daily:.1f}h)"
                ),
                date_range={"start": day.isoformat(), "end": day.isoformat()},
                allocation_percentage=percentage,
                suggested_actions=[
                    {"type": "reduce_hours", "description": f"Reduce allocated hours by {excess:.1f}h"},
                    {"type": "move_allocation", "description": "Move an allocation to a free day"},
                ],
            ))
        return conflicts

    def _severity(self, percentage: float) -> ConflictSeverity:
        if percentage > self.CRITICAL_THRESHOLD:
            return ConflictSeverity.CRITICAL
        if percentage > self.HIGH_THRESHOLD:
            return ConflictSeverity.HIGH
        if percentage > self.MEDIUM_THRESHOLD:
            return ConflictSeverity.MEDIUM
        return ConflictSeverity.LOW
