"""ResourcePlanner Storage Layer - SQLAlchemy planning store (SQLite by default)."""

from .base import StorageAdapter
from .sql_adapter import SqlStorageAdapter
from .snapshot_repository import SnapshotRepository
from .models import (
    AllocationModel,
    Base,
    EmployeeModel,
    HolidayModel,
    PlannerSettingsModel,
    ProjectModel,
    VacationModel,
)

__all__ = [
    "StorageAdapter",
    "SqlStorageAdapter",
    "SnapshotRepository",
    "Base",
    "EmployeeModel",
    "ProjectModel",
    "HolidayModel",
    "VacationModel",
    "AllocationModel",
    "PlannerSettingsModel",
]
