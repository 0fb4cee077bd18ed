from typing import Any, Dict, List, Optional, Type
from sqlalchemy.orm import Session
from sqlalchemy import select, delete
import logging

from resourceplanner.domain.models import (
    Allocation,
    Employee,
    Holiday,
    PlannerSettings,
    Project,
    Vacation,
)
from resourceplanner.domain.snapshot import PlanningSnapshot
from resourceplanner.engine.mutator import MutationResult, MutationType
from resourceplanner.platform.config import Settings, get_settings
from .models import (
    AllocationModel,
    Base,
    EmployeeModel,
    HolidayModel,
    PlannerSettingsModel,
    ProjectModel,
    VacationModel,
)

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


class SnapshotRepository:
    """
    Loads planning snapshots from, and persists mutation results to, SQL tables.

    Methods take an open session and never commit; the caller owns the
    transaction (see ``SqlStorageAdapter.get_session``).
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or get_settings()

    # --- Snapshot ---

    def load_snapshot(self, session: Session) -> PlanningSnapshot:
        employees = session.scalars(select(EmployeeModel).order_by(EmployeeModel.id)).all()
        projects = session.scalars(select(ProjectModel).order_by(ProjectModel.id)).all()
        holidays = session.scalars(select(HolidayModel).order_by(HolidayModel.holiday_date)).all()
        vacations = session.scalars(select(VacationModel).order_by(VacationModel.start_date)).all()
        allocations = session.scalars(
            select(AllocationModel).order_by(AllocationModel.sequence, AllocationModel.id)
        ).all()

        return PlanningSnapshot(
            employees=tuple(_to_employee(row) for row in employees),
            projects=tuple(_to_project(row) for row in projects),
            holidays=tuple(_to_holiday(row) for row in holidays),
            vacations=tuple(_to_vacation(row) for row in vacations),
            allocations=tuple(_to_allocation(row) for row in allocations),
            settings=self.load_settings(session),
        )

    def save_snapshot(self, session: Session, snapshot: PlanningSnapshot) -> None:
        """Upsert every entity of ``snapshot`` (seeding / import)."""
        for employee in snapshot.employees:
            self.save_employee(session, employee)
        for project in snapshot.projects:
            self.save_project(session, project)
        for holiday in snapshot.holidays:
            self.save_holiday(session, holiday)
        for vacation in snapshot.vacations:
            self.save_vacation(session, vacation)
        for allocation in snapshot.allocations:
            self.save_allocation(session, allocation)
        self.save_settings(session, snapshot.settings)
        session.flush()

    # --- Settings ---

    def load_settings(self, session: Session) -> PlannerSettings:
        """Stored policy, or the application defaults when none was saved."""
        row = session.get(PlannerSettingsModel, SETTINGS_ROW_ID)
        if row is None:
            return PlannerSettings.from_config(self.config)
        return PlannerSettings(
            buffer_percentage=row.buffer_percentage,
            weekly_hours=row.weekly_hours,
            working_days_per_week=row.working_days_per_week,
        )

    def save_settings(self, session: Session, settings: PlannerSettings) -> PlannerSettingsModel:
        return _upsert(session, PlannerSettingsModel, SETTINGS_ROW_ID, {
            "buffer_percentage": settings.buffer_percentage,
            "weekly_hours": {country.value: hours for country, hours in settings.weekly_hours.items()},
            "working_days_per_week": settings.working_days_per_week,
        })

    # --- Entities ---

    def save_employee(self, session: Session, employee: Employee) -> EmployeeModel:
        return _upsert(session, EmployeeModel, employee.id, {
            "name": employee.name,
            "role": employee.role,
            "country": employee.country.value,
            "allocated_hours": employee.allocated_hours,
        })

    def save_project(self, session: Session, project: Project) -> ProjectModel:
        return _upsert(session, ProjectModel, project.id, {
            "name": project.name,
            "color": project.color,
            "start_date": project.start_date,
            "end_date": project.end_date,
            "status": project.status.value,
            "allocated_hours": project.allocated_hours,
        })

    def save_holiday(self, session: Session, holiday: Holiday) -> HolidayModel:
        return _upsert(session, HolidayModel, holiday.id, {
            "name": holiday.name,
            "holiday_date": holiday.date,
            "country": holiday.country.value,
        })

    def save_vacation(self, session: Session, vacation: Vacation) -> VacationModel:
        return _upsert(session, VacationModel, vacation.id, {
            "employee_id": vacation.employee_id,
            "start_date": vacation.start_date,
            "end_date": vacation.end_date,
            "type": vacation.type.value,
        })

    def save_allocation(self, session: Session, allocation: Allocation) -> AllocationModel:
        return _upsert(session, AllocationModel, allocation.id, {
            "employee_id": allocation.employee_id,
            "project_id": allocation.project_id,
            "start_date": allocation.start_date,
            "end_date": allocation.end_date,
            "hours_per_day": allocation.hours_per_day,
            "status": allocation.status.value,
            "sequence": allocation.sequence,
        })

    # --- Mutation results ---

    def apply(self, session: Session, result: MutationResult) -> bool:
        """
        Persist an applied mutation: allocation inserts/updates/deletes,
        cascaded entity removal and the recomputed cached totals.

        Returns False (and writes nothing) for rejected or pending results.
        """
        if not result.applied:
            logger.debug(f"Skipping {result.status.value} {result.operation.value} result")
            return False

        removed_ids = [a.id for a in result.removed]
        if removed_ids:
            session.execute(delete(AllocationModel).where(AllocationModel.id.in_(removed_ids)))

        if result.operation == MutationType.DELETE_EMPLOYEE:
            session.execute(delete(VacationModel).where(VacationModel.employee_id == result.deleted_entity_id))
            session.execute(delete(EmployeeModel).where(EmployeeModel.id == result.deleted_entity_id))
        elif result.operation == MutationType.DELETE_PROJECT:
            session.execute(delete(ProjectModel).where(ProjectModel.id == result.deleted_entity_id))

        written: List[str] = []
        for allocation in [result.allocation, *result.updated]:
            if allocation is None or allocation.id in written:
                continue
            self.save_allocation(session, allocation)
            written.append(allocation.id)

        for effect in result.side_effects:
            model = EmployeeModel if effect.entity_type == "employee" else ProjectModel
            row = session.get(model, effect.entity_id)
            if row is None:
                logger.warning(f"Cannot recompute total for missing {effect.entity_type} {effect.entity_id}")
                continue
            row.allocated_hours = effect.allocated_hours

        session.flush()
        logger.info(
            f"Persisted {result.operation.value}: {len(written)} written, "
            f"{len(removed_ids)} removed, {len(result.side_effects)} totals recomputed"
        )
        return True


def _upsert(session: Session, model: Type[Base], row_id: Any, values: Dict[str, Any]):
    row = session.get(model, row_id)
    if row is None:
        row = model(id=row_id, **values)
        session.add(row)
    else:
        for key, value in values.items():
            setattr(row, key, value)
    return row


def _to_employee(row: EmployeeModel) -> Employee:
    return Employee(
        id=row.id,
        name=row.name,
        role=row.role,
        country=row.country,
        allocated_hours=row.allocated_hours or 0.0,
    )


def _to_project(row: ProjectModel) -> Project:
    return Project(
        id=row.id,
        name=row.name,
        color=row.color,
        start_date=row.start_date,
        end_date=row.end_date,
        status=row.status,
        allocated_hours=row.allocated_hours or 0.0,
    )


def _to_holiday(row: HolidayModel) -> Holiday:
    return Holiday(id=row.id, name=row.name, date=row.holiday_date, country=row.country)


def _to_vacation(row: VacationModel) -> Vacation:
    return Vacation(
        id=row.id,
        employee_id=row.employee_id,
        start_date=row.start_date,
        end_date=row.end_date,
        type=row.type,
    )


def _to_allocation(row: AllocationModel) -> Allocation:
    return Allocation(
        id=row.id,
        employee_id=row.employee_id,
        project_id=row.project_id,
        start_date=row.start_date,
        end_date=row.end_date,
        hours_per_day=row.hours_per_day,
        status=row.status,
        sequence=row.sequence,
    )
