"""
Domain models for the allocation engine.

Entities are plain pydantic models supplied by the CRUD layer. Dates are
calendar days (timezone-naive) and accept ISO ``YYYY-MM-DD`` strings;
identifiers are normalised to ``str`` at the boundary.
"""

import calendar
import datetime
import re
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterator, Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from resourceplanner.errors import ConfigurationError


HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
DEFAULT_PROJECT_COLOR = "#3b82f6"
MAX_WEEKLY_HOURS = 168.0  # 7 days * 24 hours


class Country(str, Enum):
    """Countries with a distinct standard weekly-hours policy."""
    CANADA = "Canada"
    BRAZIL = "Brazil"


class HolidayScope(str, Enum):
    """Which employees a holiday applies to."""
    CANADA = "Canada"
    BRAZIL = "Brazil"
    BOTH = "Both"


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class AllocationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class VacationType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    COMPENSATION = "compensation"
    OTHER = "other"


def _normalize_id(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


class EntityModel(BaseModel):
    """Base for identified entities."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1)

    @field_validator("id", mode="before")
    @classmethod
    def _canonical_id(cls, value: Any) -> Any:
        return _normalize_id(value)


# =============================================================================
# Date ranges
# =============================================================================

class DateRange(BaseModel):
    """Closed interval of calendar days, ``start <= end``."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError(
                f"end ({self.end.isoformat()}) must not be before start ({self.start.isoformat()})"
            )
        return self

    @classmethod
    def single(cls, day: date) -> "DateRange":
        return cls(start=day, end=day)

    @classmethod
    def for_month(cls, year: int, month: int) -> "DateRange":
        last_day = calendar.monthrange(year, month)[1]
        return cls(start=date(year, month, 1), end=date(year, month, last_day))

    @classmethod
    def month_of(cls, day: date) -> "DateRange":
        return cls.for_month(day.year, day.month)

    def shift_months(self, months: int) -> "DateRange":
        """The calendar month ``months`` away from the month containing ``start``."""
        anchor = self.start + relativedelta(months=months)
        return DateRange.for_month(anchor.year, anchor.month)

    @property
    def length(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        for offset in range(self.length):
            yield self.start + timedelta(days=offset)

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


# =============================================================================
# Entities
# =============================================================================

class Employee(EntityModel):
    """A team member whose capacity is tracked."""
    name: str = Field(..., min_length=2, max_length=100)
    role: str = Field(..., min_length=2, max_length=50)
    country: Country
    allocated_hours: float = Field(default=0.0, ge=0)

    @field_validator("name", "role", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class Project(EntityModel):
    name: str = Field(..., min_length=2, max_length=100)
    color: str = DEFAULT_PROJECT_COLOR
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    allocated_hours: float = Field(default=0.0, ge=0)

    @field_validator("color")
    @classmethod
    def _hex_color(cls, value: str) -> str:
        if not HEX_COLOR.match(value):
            raise ValueError("Color must be a valid hex color (e.g., #3b82f6)")
        return value

    @model_validator(mode="after")
    def _bounds(self) -> "Project":
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValueError("End date must be after start date")
        return self


class Holiday(EntityModel):
    """A public holiday, global or scoped to one country. Immutable."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=2, max_length=100)
    date: datetime.date
    country: HolidayScope = HolidayScope.BOTH

    def applies_to(self, country: Country) -> bool:
        return self.country == HolidayScope.BOTH or self.country.value == country.value


class Vacation(EntityModel):
    employee_id: str
    start_date: date
    end_date: date
    type: VacationType = VacationType.VACATION

    @field_validator("employee_id", mode="before")
    @classmethod
    def _canonical_employee(cls, value: Any) -> Any:
        return _normalize_id(value)

    @model_validator(mode="after")
    def _ordered(self) -> "Vacation":
        if self.end_date < self.start_date:
            raise ValueError("End date must not be before start date")
        return self

    @property
    def range(self) -> DateRange:
        return DateRange(start=self.start_date, end=self.end_date)


class Allocation(EntityModel):
    """A date-ranged, hours-per-day assignment of one employee to one project."""

    model_config = ConfigDict(frozen=True)

    employee_id: str
    project_id: str
    start_date: date
    end_date: date
    hours_per_day: float = Field(..., ge=0, le=24)
    status: AllocationStatus = AllocationStatus.ACTIVE
    sequence: int = Field(default=0, ge=0)  # creation order

    @field_validator("employee_id", "project_id", mode="before")
    @classmethod
    def _canonical_refs(cls, value: Any) -> Any:
        return _normalize_id(value)

    @model_validator(mode="after")
    def _ordered(self) -> "Allocation":
        if self.end_date < self.start_date:
            raise ValueError("End date must not be before start date")
        return self

    @property
    def range(self) -> DateRange:
        return DateRange(start=self.start_date, end=self.end_date)

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days

    @property
    def is_active(self) -> bool:
        return self.status == AllocationStatus.ACTIVE


# =============================================================================
# Settings
# =============================================================================

def _default_weekly_hours() -> Dict[Country, float]:
    return {Country.CANADA: 37.5, Country.BRAZIL: 44.0}


class PlannerSettings(BaseModel):
    """
    Capacity policy passed explicitly into every computation.

    ``weekly_hours`` may legitimately be edited to zero or have a country
    removed; computations for that country then raise ``ConfigurationError``.
    """

    model_config = ConfigDict(frozen=True)

    buffer_percentage: float = Field(default=20.0, ge=0, le=100)
    weekly_hours: Dict[Country, float] = Field(default_factory=_default_weekly_hours)
    working_days_per_week: int = Field(default=5, ge=1, le=7)

    @field_validator("weekly_hours")
    @classmethod
    def _hours_in_bounds(cls, value: Dict[Country, float]) -> Dict[Country, float]:
        for country, hours in value.items():
            if hours < 0:
                raise ValueError(f"{country.value} hours must be a positive number")
            if hours > MAX_WEEKLY_HOURS:
                raise ValueError(f"{country.value} hours cannot exceed 168 hours per week")
        return value

    @classmethod
    def from_config(cls, config) -> "PlannerSettings":
        """Build settings from the application config defaults."""
        return cls(
            buffer_percentage=config.DEFAULT_BUFFER_PERCENTAGE,
            weekly_hours={
                Country.CANADA: config.CANADA_WEEKLY_HOURS,
                Country.BRAZIL: config.BRAZIL_WEEKLY_HOURS,
            },
            working_days_per_week=config.WORKING_DAYS_PER_WEEK,
        )

    def weekly_hours_for_country(self, country: Country) -> float:
        hours = self.weekly_hours.get(country)
        if not hours:
            raise ConfigurationError(
                f"No weekly hours policy configured for {Country(country).value}",
                details={"country": Country(country).value, "weekly_hours": hours},
            )
        return hours

    def daily_hours_for_country(self, country: Country) -> float:
        return self.weekly_hours_for_country(country) / self.working_days_per_week
