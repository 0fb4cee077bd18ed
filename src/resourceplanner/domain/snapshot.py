"""
Planning snapshot - the consistent in-memory view one evaluate-then-mutate
cycle works against.

Snapshots are never mutated in place; the ``with_*`` helpers return a new
snapshot sharing the untouched collections.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from resourceplanner.domain.models import (
    Allocation,
    Employee,
    Holiday,
    PlannerSettings,
    Project,
    Vacation,
)
from resourceplanner.errors import UnknownReferenceError


class PlanningSnapshot(BaseModel):
    """Employees, projects, holidays, vacations, allocations and settings."""

    model_config = ConfigDict(frozen=True)

    employees: Tuple[Employee, ...] = ()
    projects: Tuple[Project, ...] = ()
    holidays: Tuple[Holiday, ...] = ()
    vacations: Tuple[Vacation, ...] = ()
    allocations: Tuple[Allocation, ...] = ()
    settings: PlannerSettings = Field(default_factory=PlannerSettings)

    # --- Lookups ---

    def find_employee(self, employee_id: str) -> Optional[Employee]:
        return next((e for e in self.employees if e.id == str(employee_id)), None)

    def find_project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.id == str(project_id)), None)

    def find_allocation(self, allocation_id: str) -> Optional[Allocation]:
        return next((a for a in self.allocations if a.id == str(allocation_id)), None)

    def employee(self, employee_id: str) -> Employee:
        found = self.find_employee(employee_id)
        if found is None:
            raise UnknownReferenceError("employee", str(employee_id))
        return found

    def project(self, project_id: str) -> Project:
        found = self.find_project(project_id)
        if found is None:
            raise UnknownReferenceError("project", str(project_id))
        return found

    def allocation(self, allocation_id: str) -> Allocation:
        found = self.find_allocation(allocation_id)
        if found is None:
            raise UnknownReferenceError("allocation", str(allocation_id))
        return found

    def employees_by_id(self) -> Dict[str, Employee]:
        return {e.id: e for e in self.employees}

    def vacations_for(self, employee_id: str) -> List[Vacation]:
        return [v for v in self.vacations if v.employee_id == str(employee_id)]

    def next_sequence(self) -> int:
        """Creation-order value for the next allocation."""
        return max((a.sequence for a in self.allocations), default=0) + 1

    # --- Copy-on-write ---

    def with_allocations(self, allocations: Iterable[Allocation]) -> "PlanningSnapshot":
        return self.model_copy(update={"allocations": tuple(allocations)})

    def with_settings(self, settings: PlannerSettings) -> "PlanningSnapshot":
        return self.model_copy(update={"settings": settings})

    def replace_allocation(self, allocation: Allocation) -> "PlanningSnapshot":
        return self.with_allocations(
            allocation if a.id == allocation.id else a for a in self.allocations
        )

    def add_allocation(self, allocation: Allocation) -> "PlanningSnapshot":
        return self.with_allocations((*self.allocations, allocation))

    def remove_allocations(self, allocation_ids: Iterable[str]) -> "PlanningSnapshot":
        doomed = set(allocation_ids)
        return self.with_allocations(a for a in self.allocations if a.id not in doomed)

    def without_employee(self, employee_id: str) -> "PlanningSnapshot":
        employee_id = str(employee_id)
        return self.model_copy(update={
            "employees": tuple(e for e in self.employees if e.id != employee_id),
            "vacations": tuple(v for v in self.vacations if v.employee_id != employee_id),
            "allocations": tuple(a for a in self.allocations if a.employee_id != employee_id),
        })

    def without_project(self, project_id: str) -> "PlanningSnapshot":
        project_id = str(project_id)
        return self.model_copy(update={
            "projects": tuple(p for p in self.projects if p.id != project_id),
            "allocations": tuple(a for a in self.allocations if a.project_id != project_id),
        })
