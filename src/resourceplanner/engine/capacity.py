"""
Capacity Calculator

Computes how many hours an employee can actually work in a period once
weekends, holidays, vacations and the configured buffer are subtracted.

Convention: total calendar hours count every calendar day (weekends included)
at the daily rate and the buffer is taken from that total; weekend hours are
then subtracted explicitly so the breakdown is auditable.

Usage:
    calculator = CapacityCalculator(snapshot)

    # Monthly breakdown
    breakdown = calculator.breakdown(employee_id, DateRange.for_month(2024, 1))

    # Utilisation
    percentage = calculator.allocation_percentage(employee_id, period)
"""

import logging
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Set, Union

from pydantic import BaseModel

from resourceplanner.domain.models import (
    DateRange,
    Employee,
    Holiday,
    PlannerSettings,
    Vacation,
)
from resourceplanner.errors import CapacityComputationError
from .allocation_index import AllocationIndex
from .base import EngineComponent, holiday_dates
from .calendar import DayLike, DayRange, is_weekend, is_working_day, parse_day

logger = logging.getLogger(__name__)

PeriodLike = Union[DateRange, DayLike]


class CapacityBreakdown(BaseModel):
    """Auditable capacity figures for one employee and period."""
    employee_id: str
    period_start: date
    period_end: date

    weekly_hours: float
    daily_hours: float

    total_calendar_hours: float
    buffer_hours: float
    holiday_hours: float
    vacation_hours: float
    weekend_hours: float
    available_hours: float  # may be zero or negative

    calendar_days: int
    weekend_days: int
    holiday_days: int
    vacation_days: int


class DayKind(str, Enum):
    WORKING = "working"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    VACATION = "vacation"


class DailyUtilization(BaseModel):
    """How full one employee's day is."""
    employee_id: str
    day: date
    kind: DayKind
    allocated_hours: float
    max_daily_hours: float
    percentage: float  # may exceed 100
    has_weekend_work: bool = False


class EmployeeCapacity(BaseModel):
    employee_id: str
    employee_name: str
    breakdown: CapacityBreakdown
    allocated_hours: float
    allocation_percentage: float


def resolve_period(period: PeriodLike) -> DateRange:
    """A ``DateRange`` as-is, or the calendar month containing a day."""
    if isinstance(period, DateRange):
        return period
    return DateRange.month_of(parse_day(period))


def vacation_working_days(
    vacations: Iterable[Vacation],
    employee_id: str,
    period: DateRange,
) -> Set[date]:
    """Distinct working days inside ``period`` covered by the employee's vacations."""
    days: Set[date] = set()
    for vacation in vacations:
        if vacation.employee_id != employee_id:
            continue
        start = max(vacation.start_date, period.start)
        end = min(vacation.end_date, period.end)
        days.update(day for day in DayRange(start, end) if is_working_day(day))
    return days


def compute_capacity(
    employee: Employee,
    period: PeriodLike,
    settings: PlannerSettings,
    holidays: Sequence[Holiday] = (),
    vacations: Sequence[Vacation] = (),
) -> CapacityBreakdown:
    """
    Compute the capacity breakdown for an employee over a period.

    Args:
        employee: Employee whose capacity is computed
        period: Date range, or any day of the target month
        settings: Buffer and weekly-hours policy
        holidays: All known holidays (filtered by country and period here)
        vacations: All known vacations (filtered by employee here)

    Returns:
        CapacityBreakdown

    Raises:
        ConfigurationError: weekly hours missing or zero for the country
        CapacityComputationError: malformed dates or arithmetic failure
    """
    weekly_hours = settings.weekly_hours_for_country(employee.country)

    try:
        period = resolve_period(period)
        daily_hours = weekly_hours / settings.working_days_per_week

        calendar_days = period.length
        total_calendar_hours = calendar_days * daily_hours
        buffer_hours = total_calendar_hours * settings.buffer_percentage / 100

        holiday_days = sum(
            1 for day in holiday_dates(holidays, employee.country, period)
            if is_working_day(day)
        )
        vacation_days = len(vacation_working_days(vacations, employee.id, period))
        weekend_days = sum(1 for day in period.days() if is_weekend(day))

        holiday_hours = holiday_days * daily_hours
        vacation_hours = vacation_days * daily_hours
        weekend_hours = weekend_days * daily_hours

        available_hours = (
            total_calendar_hours
            - buffer_hours
            - holiday_hours
            - vacation_hours
            - weekend_hours
        )
    except CapacityComputationError:
        raise
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise CapacityComputationError(
            f"Capacity computation failed for employee {employee.id}: {exc}",
            details={"employee_id": employee.id},
        ) from exc

    logger.debug(
        f"Capacity for {employee.id} over {period}: "
        f"{available_hours:.1f}h available of {total_calendar_hours:.1f}h"
    )

    return CapacityBreakdown(
        employee_id=employee.id,
        period_start=period.start,
        period_end=period.end,
        weekly_hours=weekly_hours,
        daily_hours=daily_hours,
        total_calendar_hours=total_calendar_hours,
        buffer_hours=buffer_hours,
        holiday_hours=holiday_hours,
        vacation_hours=vacation_hours,
        weekend_hours=weekend_hours,
        available_hours=available_hours,
        calendar_days=calendar_days,
        weekend_days=weekend_days,
        holiday_days=holiday_days,
        vacation_days=vacation_days,
    )


def allocation_percentage(allocated_hours: float, breakdown: CapacityBreakdown) -> float:
    """Allocated share of available hours; over 100 means overallocated."""
    if breakdown.available_hours <= 0:
        return 0.0
    return allocated_hours / breakdown.available_hours * 100


class CapacityCalculator(EngineComponent):
    """
    Capacity queries over a planning snapshot.

    Settings are read from the snapshot on every call; nothing is cached
    between calls.
    """

    def breakdown(self, employee_id: str, period: PeriodLike) -> CapacityBreakdown:
        employee = self.get_employee(employee_id)
        return compute_capacity(
            employee,
            period,
            self.settings,
            self.snapshot.holidays,
            self.snapshot.vacations,
        )

    def available_hours(self, employee_id: str, period: PeriodLike) -> float:
        return self.breakdown(employee_id, period).available_hours

    def allocation_percentage(self, employee_id: str, period: PeriodLike) -> float:
        """Share of available hours already allocated (may exceed 100)."""
        employee = self.get_employee(employee_id)
        breakdown = self.breakdown(employee_id, period)
        allocated = self._index().allocated_hours_for_period(
            employee.id, resolve_period(period), self.snapshot.holidays, employee
        )
        return allocation_percentage(allocated, breakdown)

    def daily_utilization(self, employee_id: str, day: DayLike) -> DailyUtilization:
        """
        Utilisation of a single day.

        Holidays and vacation days report 0%. Weekends report 0% and flag
        ``has_weekend_work`` when allocations exist.
        """
        employee = self.get_employee(employee_id)
        day = parse_day(day)
        max_daily = self.max_daily_hours(employee)
        allocations = self._index().allocations_on_day(employee.id, day)
        allocated = sum(a.hours_per_day for a in allocations)

        kind = DayKind.WORKING
        if self.is_holiday_for(employee, day):
            kind = DayKind.HOLIDAY
        elif day in vacation_working_days(
            self.snapshot.vacations, employee.id, DateRange.single(day)
        ):
            kind = DayKind.VACATION
        elif is_weekend(day):
            kind = DayKind.WEEKEND

        percentage = 0.0
        if kind == DayKind.WORKING and max_daily > 0:
            percentage = allocated / max_daily * 100

        return DailyUtilization(
            employee_id=employee.id,
            day=day,
            kind=kind,
            allocated_hours=allocated,
            max_daily_hours=max_daily,
            percentage=percentage,
            has_weekend_work=kind == DayKind.WEEKEND and bool(allocations),
        )

    def team_capacity(
        self,
        period: PeriodLike,
        employee_ids: Optional[Iterable[str]] = None,
    ) -> List[EmployeeCapacity]:
        """Breakdown, allocated hours and utilisation for each employee."""
        period = resolve_period(period)
        wanted = set(employee_ids) if employee_ids is not None else None
        index = self._index()
        results = []
        for employee in self.snapshot.employees:
            if wanted is not None and employee.id not in wanted:
                continue
            breakdown = compute_capacity(
                employee, period, self.settings,
                self.snapshot.holidays, self.snapshot.vacations,
            )
            allocated = index.allocated_hours_for_period(
                employee.id, period, self.snapshot.holidays, employee
            )
            results.append(EmployeeCapacity(
                employee_id=employee.id,
                employee_name=employee.name,
                breakdown=breakdown,
                allocated_hours=allocated,
                allocation_percentage=allocation_percentage(allocated, breakdown),
            ))
        self.logger.info(f"Computed team capacity for {len(results)} employees over {period}")
        return results

    def _index(self) -> AllocationIndex:
        return AllocationIndex(self.snapshot.allocations)
