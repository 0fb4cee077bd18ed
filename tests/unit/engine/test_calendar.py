import pytest
from datetime import date, datetime

from resourceplanner.domain.models import DateRange
from resourceplanner.engine.calendar import (
    DayRange,
    days_in_range,
    intersect,
    is_weekend,
    is_working_day,
    overlap_days,
    parse_day,
    ranges_overlap,
    weekend_days_in_range,
    working_days_in_range,
)
from resourceplanner.errors import CapacityComputationError


def r(start: str, end: str) -> DateRange:
    return DateRange(start=start, end=end)


class TestParseDay:
    def test_accepts_iso_string(self):
        assert parse_day("2024-01-15") == date(2024, 1, 15)

    def test_drops_time_component(self):
        assert parse_day(datetime(2024, 1, 15, 23, 59)) == date(2024, 1, 15)
        assert parse_day("2024-01-15T08:30:00") == date(2024, 1, 15)

    def test_passes_dates_through(self):
        day = date(2024, 2, 29)
        assert parse_day(day) is day

    def test_malformed_string_raises_computation_error(self):
        with pytest.raises(CapacityComputationError) as exc:
            parse_day("2024-13-45")
        assert exc.value.kind == "capacity_computation_error"
        assert exc.value.details["value"] == "2024-13-45"

    def test_unsupported_type_raises(self):
        with pytest.raises(CapacityComputationError):
            parse_day(20240115)


class TestWorkingDays:
    def test_weekend_classification(self):
        # 2024-01-06 is a Saturday
        assert is_weekend(date(2024, 1, 6))
        assert is_weekend(date(2024, 1, 7))
        assert not is_weekend(date(2024, 1, 8))

    def test_working_day_is_inverse_of_weekend(self):
        for day in days_in_range("2024-01-01", "2024-01-14"):
            assert is_working_day(day) is not is_weekend(day)

    def test_working_days_in_full_week(self):
        assert working_days_in_range(date(2024, 1, 1), date(2024, 1, 7)) == 5

    def test_excluded_days_are_skipped(self):
        excluded = {date(2024, 1, 1), date(2024, 1, 6)}  # a Monday and a Saturday
        assert working_days_in_range(date(2024, 1, 1), date(2024, 1, 7), excluded) == 4

    def test_weekend_days_in_april_2024(self):
        assert weekend_days_in_range(date(2024, 4, 1), date(2024, 4, 30)) == 8


class TestDayRange:
    def test_inclusive_and_restartable(self):
        days = days_in_range("2024-01-30", "2024-02-02")
        first = list(days)
        second = list(days)
        assert first == second
        assert first == [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 2)]
        assert len(days) == 4

    def test_end_before_start_is_empty(self):
        days = DayRange(date(2024, 1, 5), date(2024, 1, 1))
        assert list(days) == []
        assert len(days) == 0

    def test_membership(self):
        days = days_in_range("2024-01-01", "2024-01-31")
        assert date(2024, 1, 15) in days
        assert date(2024, 2, 1) not in days
        assert "2024-01-15" not in days

    def test_leap_day_included(self):
        assert len(days_in_range("2024-02-01", "2024-02-29")) == 29


class TestOverlap:
    def test_partial_overlap(self):
        assert ranges_overlap(r("2024-01-01", "2024-01-05"), r("2024-01-03", "2024-01-10"))
        assert overlap_days(r("2024-01-01", "2024-01-05"), r("2024-01-03", "2024-01-10")) == 3

    def test_touching_edge_counts(self):
        assert overlap_days(r("2024-01-01", "2024-01-05"), r("2024-01-05", "2024-01-09")) == 1

    def test_containment(self):
        outer, inner = r("2024-01-01", "2024-01-31"), r("2024-01-10", "2024-01-12")
        assert overlap_days(outer, inner) == 3
        assert intersect(outer, inner) == inner

    def test_adjacent_ranges_do_not_overlap(self):
        a, b = r("2024-01-01", "2024-01-05"), r("2024-01-06", "2024-01-10")
        assert not ranges_overlap(a, b)
        assert overlap_days(a, b) == 0
        assert intersect(a, b) is None

    @pytest.mark.parametrize("a, b", [
        (("2024-01-01", "2024-01-05"), ("2024-01-03", "2024-01-10")),
        (("2024-01-01", "2024-01-31"), ("2024-01-10", "2024-01-12")),
        (("2024-01-01", "2024-01-05"), ("2024-02-01", "2024-02-05")),
        (("2024-01-05", "2024-01-05"), ("2024-01-01", "2024-01-05")),
    ])
    def test_overlap_days_is_symmetric(self, a, b):
        first, second = r(*a), r(*b)
        assert overlap_days(first, second) == overlap_days(second, first)
