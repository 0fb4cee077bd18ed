"""ResourcePlanner domain - entities, settings and planning snapshots."""

from .models import (
    Allocation,
    AllocationStatus,
    Country,
    DateRange,
    Employee,
    Holiday,
    HolidayScope,
    PlannerSettings,
    Project,
    ProjectStatus,
    Vacation,
    VacationType,
)
from .snapshot import PlanningSnapshot

__all__ = [
    # Entities
    "Employee",
    "Project",
    "Holiday",
    "Vacation",
    "Allocation",
    # Enums
    "Country",
    "HolidayScope",
    "ProjectStatus",
    "AllocationStatus",
    "VacationType",
    # Values
    "DateRange",
    "PlannerSettings",
    "PlanningSnapshot",
]
