"""
Allocation Index

Read-only queries over an allocation collection: per-cell lookup, allocated
hours for a period, cached totals and duplicate-conflict detection.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from resourceplanner.domain.models import (
    Allocation,
    AllocationStatus,
    DateRange,
    Employee,
    Holiday,
)
from .base import holiday_dates
from .calendar import DayLike, parse_day, ranges_overlap, working_days_in_range


def _ordering(allocation: Allocation) -> Tuple[int, str]:
    return (allocation.sequence, allocation.id)


class AllocationIndex:
    """
    Queries over a fixed allocation collection.

    Nothing here mutates the collection. "Active" means status ``active``;
    hours totals ignore only cancelled allocations, so completed work still
    counts toward an employee's allocated hours.
    """

    def __init__(self, allocations: Iterable[Allocation]):
        self._allocations: Tuple[Allocation, ...] = tuple(allocations)
        self._by_employee: Dict[str, List[Allocation]] = defaultdict(list)
        for allocation in self._allocations:
            self._by_employee[allocation.employee_id].append(allocation)

    def __len__(self) -> int:
        return len(self._allocations)

    def __iter__(self):
        return iter(self._allocations)

    # --- Lookups ---

    def get(self, allocation_id: str) -> Optional[Allocation]:
        return next((a for a in self._allocations if a.id == str(allocation_id)), None)

    def for_employee(self, employee_id: str) -> List[Allocation]:
        return sorted(self._by_employee.get(str(employee_id), []), key=_ordering)

    def for_project(self, project_id: str) -> List[Allocation]:
        return sorted(
            (a for a in self._allocations if a.project_id == str(project_id)),
            key=_ordering,
        )

    def allocations_on_day(self, employee_id: str, day: DayLike) -> List[Allocation]:
        """
        Active allocations covering ``day``, first-created first.

        Args:
            employee_id: Employee whose cell is queried
            day: Calendar day

        Returns:
            Allocations ordered by creation sequence ascending
        """
        day = parse_day(day)
        return sorted(
            (
                a for a in self._by_employee.get(str(employee_id), [])
                if a.is_active and a.start_date <= day <= a.end_date
            ),
            key=_ordering,
        )

    def allocated_hours_on_day(
        self,
        employee_id: str,
        day: DayLike,
        exclude_allocation_id: Optional[str] = None,
    ) -> float:
        return sum(
            a.hours_per_day
            for a in self.allocations_on_day(employee_id, day)
            if a.id != exclude_allocation_id
        )

    # --- Hours totals ---

    def allocated_hours_for_period(
        self,
        employee_id: str,
        period: DateRange,
        holidays: Sequence[Holiday] = (),
        employee: Optional[Employee] = None,
    ) -> float:
        """
        Sum ``hours_per_day x working days in overlap`` for one employee.

        Weekends are always excluded. Holidays are excluded only when the
        employee is supplied, and only those applying to the employee's country.
        """
        excluded: Set[date] = set()
        if employee is not None:
            excluded = holiday_dates(holidays, employee.country, period)

        total = 0.0
        for allocation in self._by_employee.get(str(employee_id), []):
            if allocation.status == AllocationStatus.CANCELLED:
                continue
            if not ranges_overlap(allocation.range, period):
                continue
            start = max(allocation.start_date, period.start)
            end = min(allocation.end_date, period.end)
            total += allocation.hours_per_day * working_days_in_range(start, end, excluded)
        return total

    def total_allocated_hours(
        self,
        employee: Employee,
        holidays: Sequence[Holiday] = (),
    ) -> float:
        """Employee's cached total: every allocation over its full range."""
        excluded = holiday_dates(holidays, employee.country)
        return sum(
            a.hours_per_day * working_days_in_range(a.start_date, a.end_date, excluded)
            for a in self._by_employee.get(employee.id, [])
            if a.status != AllocationStatus.CANCELLED
        )

    def project_allocated_hours(
        self,
        project_id: str,
        employees: Mapping[str, Employee],
        holidays: Sequence[Holiday] = (),
    ) -> float:
        """Project's cached total, using each assignee's country holidays."""
        total = 0.0
        for allocation in self.for_project(project_id):
            if allocation.status == AllocationStatus.CANCELLED:
                continue
            employee = employees.get(allocation.employee_id)
            excluded = holiday_dates(holidays, employee.country) if employee else set()
            total += allocation.hours_per_day * working_days_in_range(
                allocation.start_date, allocation.end_date, excluded
            )
        return total

    # --- Duplicate conflicts ---

    def find_duplicate_conflicts(
        self,
        employee_id: str,
        project_id: str,
        date_range: DateRange,
        exclude_allocation_id: Optional[str] = None,
    ) -> List[Allocation]:
        """Other active allocations of the same employee+project overlapping ``date_range``."""
        return sorted(
            (
                a for a in self._by_employee.get(str(employee_id), [])
                if a.id != exclude_allocation_id
                and a.is_active
                and a.project_id == str(project_id)
                and ranges_overlap(a.range, date_range)
            ),
            key=_ordering,
        )

    def has_duplicate_conflict(
        self,
        employee_id: str,
        project_id: str,
        date_range: DateRange,
        exclude_allocation_id: Optional[str] = None,
    ) -> bool:
        return bool(self.find_duplicate_conflicts(
            employee_id, project_id, date_range, exclude_allocation_id
        ))

    def duplicate_pairs(self) -> List[Tuple[Allocation, Allocation]]:
        """Every pair of active allocations already violating the duplicate rule."""
        pairs = []
        groups: Dict[Tuple[str, str], List[Allocation]] = defaultdict(list)
        for allocation in self._allocations:
            if allocation.is_active:
                groups[(allocation.employee_id, allocation.project_id)].append(allocation)
        for members in groups.values():
            members.sort(key=_ordering)
            for i, first in enumerate(members):
                for second in members[i + 1:]:
                    if ranges_overlap(first.range, second.range):
                        pairs.append((first, second))
        return pairs
