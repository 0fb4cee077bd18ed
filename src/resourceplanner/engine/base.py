"""
Base class for snapshot-backed engine components.

Provides common functionality for entity lookup, holiday resolution and logging.
"""

import logging
from datetime import date
from typing import Iterable, Optional, Set

from resourceplanner.domain.models import (
    Country,
    DateRange,
    Employee,
    Holiday,
    PlannerSettings,
    Project,
)
from resourceplanner.domain.snapshot import PlanningSnapshot


class EngineComponent:
    """
    Base class for components that read a ``PlanningSnapshot``.

    Provides:
    - Entity lookup (unknown ids raise ``UnknownReferenceError``)
    - Country-aware holiday resolution
    - A per-class logger
    """

    def __init__(self, snapshot: PlanningSnapshot):
        """
        Initialize the component.

        Args:
            snapshot: Consistent view of employees, projects, holidays,
                vacations, allocations and settings
        """
        self.snapshot = snapshot
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def settings(self) -> PlannerSettings:
        return self.snapshot.settings

    def get_employee(self, employee_id: str) -> Employee:
        return self.snapshot.employee(employee_id)

    def get_project(self, project_id: str) -> Project:
        return self.snapshot.project(project_id)

    def max_daily_hours(self, employee: Employee) -> float:
        """Standard daily rate for the employee's country."""
        return self.settings.daily_hours_for_country(employee.country)

    def is_holiday_for(self, employee: Employee, day: date) -> bool:
        return day in holiday_dates(self.snapshot.holidays, employee.country)


def holiday_dates(
    holidays: Iterable[Holiday],
    country: Optional[Country] = None,
    period: Optional[DateRange] = None,
) -> Set[date]:
    """
    Distinct holiday dates, optionally limited to a country and a period.

    Args:
        holidays: Holidays to consider
        country: Only holidays applying to this country (None = all)
        period: Only dates inside this range (None = all)

    Returns:
        Set of dates
    """
    return {
        holiday.date
        for holiday in holidays
        if (country is None or holiday.applies_to(country))
        and (period is None or period.contains(holiday.date))
    }
