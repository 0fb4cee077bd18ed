"""
Calendar arithmetic.

Date-only helpers used by every capacity and allocation computation:
weekend/working-day classification, inclusive day ranges and range overlap.
No time-of-day component is ever considered.
"""

from datetime import date, datetime, timedelta
from typing import Collection, Iterator, Optional, Union

from resourceplanner.domain.models import DateRange
from resourceplanner.errors import CapacityComputationError

DayLike = Union[date, datetime, str]

SATURDAY = 5
SUNDAY = 6


def parse_day(value: DayLike) -> date:
    """Coerce an ISO ``YYYY-MM-DD`` string, date or datetime to a calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise CapacityComputationError(
                f"Malformed date '{value}'", details={"value": value}
            ) from exc
    raise CapacityComputationError(
        f"Unsupported date value {value!r}", details={"value": repr(value)}
    )


def is_weekend(day: date) -> bool:
    return day.weekday() in (SATURDAY, SUNDAY)


def is_working_day(day: date) -> bool:
    """False on Saturday and Sunday, True otherwise."""
    return not is_weekend(day)


class DayRange:
    """
    Inclusive, restartable sequence of calendar days.

    Iterating twice yields the same days; an end before start is empty.
    """

    __slots__ = ("start", "end")

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[date]:
        for offset in range(len(self)):
            yield self.start + timedelta(days=offset)

    def __len__(self) -> int:
        return max(0, (self.end - self.start).days + 1)

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end

    def __repr__(self) -> str:
        return f"DayRange({self.start.isoformat()}, {self.end.isoformat()})"


def days_in_range(start: DayLike, end: DayLike) -> DayRange:
    return DayRange(parse_day(start), parse_day(end))


def ranges_overlap(a: DateRange, b: DateRange) -> bool:
    """Touching, containment and partial overlap all count; adjacency does not."""
    return a.start <= b.end and b.start <= a.end


def intersect(a: DateRange, b: DateRange) -> Optional[DateRange]:
    if not ranges_overlap(a, b):
        return None
    return DateRange(start=max(a.start, b.start), end=min(a.end, b.end))


def overlap_days(a: DateRange, b: DateRange) -> int:
    """Inclusive day count of the intersection of two closed ranges (0 if disjoint)."""
    overlap = intersect(a, b)
    return overlap.length if overlap else 0


def weekend_days_in_range(start: date, end: date) -> int:
    return sum(1 for day in DayRange(start, end) if is_weekend(day))


def working_days_in_range(
    start: date,
    end: date,
    excluded: Collection[date] = (),
) -> int:
    """Count weekdays in ``start..end`` that are not in ``excluded``."""
    return sum(
        1 for day in DayRange(start, end)
        if is_working_day(day) and day not in excluded
    )
