from datetime import date, datetime
from typing import Any, Dict, Optional
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import (
    String, Integer, Float, Date, JSON, DateTime, ForeignKey, Index, func
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP

class Base(DeclarativeBase):
    pass

# Helper to support both Postgres JSONB and generic JSON (SQLite default)
JSON_TYPE = JSON().with_variant(JSONB, 'postgresql')
TIMESTAMP_TYPE = DateTime(timezone=True).with_variant(TIMESTAMP(timezone=True), 'postgresql')

# --- Employees ---

class EmployeeModel(Base):
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    country: Mapped[str] = mapped_column(String, nullable=False, index=True)
    allocated_hours: Mapped[float] = mapped_column(Float, server_default='0')
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now(), onupdate=func.now())

# --- Projects ---

class ProjectModel(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(7), server_default='#3b82f6')
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    end_date: Mapped[Optional[date]] = mapped_column(Date)
    status: Mapped[str] = mapped_column(String, server_default='active', index=True)
    allocated_hours: Mapped[float] = mapped_column(Float, server_default='0')
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now(), onupdate=func.now())

# --- Holidays ---

class HolidayModel(Base):
    __tablename__ = "holidays"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    holiday_date: Mapped[date] = mapped_column("date", Date, nullable=False, index=True)
    country: Mapped[str] = mapped_column(String, server_default='Both')

# --- Vacations ---

class VacationModel(Base):
    __tablename__ = "vacations"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    employee_id: Mapped[str] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String, server_default='vacation')

# --- Allocations ---

class AllocationModel(Base):
    __tablename__ = "allocations"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    employee_id: Mapped[str] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours_per_day: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String, server_default='active', index=True)
    sequence: Mapped[int] = mapped_column(Integer, server_default='0')
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('ix_allocations_employee_dates', 'employee_id', 'start_date', 'end_date'),
        Index('ix_allocations_project', 'project_id'),
    )

# --- Planner Settings ---

class PlannerSettingsModel(Base):
    """Single-row table (id=1) holding the capacity policy."""
    __tablename__ = "planner_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    buffer_percentage: Mapped[float] = mapped_column(Float, server_default='20')
    weekly_hours: Mapped[Dict[str, Any]] = mapped_column(JSON_TYPE, nullable=False)
    working_days_per_week: Mapped[int] = mapped_column(Integer, server_default='5')
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP_TYPE, server_default=func.now(), onupdate=func.now())
