import pytest
from datetime import date

from resourceplanner.domain.models import AllocationStatus, DateRange
from resourceplanner.engine.evaluator import (
    AllocationProposal,
    ConflictEvaluator,
    ConflictSeverity,
    ConflictType,
    OutcomeKind,
)
from resourceplanner.errors import UnknownReferenceError, ValidationError


def proposal(day="2024-01-15", end=None, employee_id="1", project_id="2", hours=8.0, allocation_id=None):
    return AllocationProposal(
        employee_id=employee_id,
        project_id=project_id,
        start_date=day,
        end_date=end or day,
        hours_per_day=hours,
        allocation_id=allocation_id,
    )


@pytest.fixture
def full_day_snapshot(make_snapshot, make_allocation, eight_hour_settings):
    """Alice already at her 8h maximum on Mon 2024-01-15 with Apollo."""
    return make_snapshot(
        allocations=[make_allocation(project_id="1", start="2024-01-15", hours=8)],
        settings=eight_hour_settings,
    )


class TestEvaluate:
    def test_duplicate_project_conflict(self, make_snapshot, make_allocation):
        snapshot = make_snapshot(allocations=[
            make_allocation(project_id="1", start="2024-01-01", end="2024-01-05", hours=8),
        ])
        outcome = ConflictEvaluator(snapshot).evaluate(proposal("2024-01-03", project_id="1"))

        assert outcome.kind == OutcomeKind.DUPLICATE
        assert [c.allocation_id for c in outcome.conflicting_allocations] == ["a1"]
        assert "already allocated" in outcome.message

    def test_duplicate_wins_over_overallocation(self, full_day_snapshot):
        outcome = ConflictEvaluator(full_day_snapshot).evaluate(proposal(project_id="1"))
        assert outcome.kind == OutcomeKind.DUPLICATE

    def test_adjacent_range_is_not_a_duplicate(self, make_snapshot, make_allocation):
        snapshot = make_snapshot(allocations=[
            make_allocation(project_id="1", start="2024-01-01", end="2024-01-05", hours=2),
        ])
        outcome = ConflictEvaluator(snapshot).evaluate(proposal("2024-01-06", project_id="1", hours=0))
        assert outcome.kind == OutcomeKind.CLEAN

    def test_overallocation_warning(self, full_day_snapshot):
        outcome = ConflictEvaluator(full_day_snapshot).evaluate(proposal())

        assert outcome.kind == OutcomeKind.OVERALLOCATION
        assert outcome.date == date(2024, 1, 15)
        assert outcome.current_allocated_hours == 8
        assert outcome.max_daily_hours == 8
        assert outcome.proposed_hours_per_day == 8
        assert outcome.employee_name == "Alice Martin"
        assert outcome.project_name == "Borealis"
        assert [c.allocation_id for c in outcome.conflicting_allocations] == ["a1"]
        assert outcome.overage_hours == 8
        assert outcome.peak_percentage == 200

    def test_overallocation_lists_every_day(self, full_day_snapshot):
        outcome = ConflictEvaluator(full_day_snapshot).evaluate(
            proposal("2024-01-14", end="2024-01-16", hours=1)
        )
        assert outcome.kind == OutcomeKind.OVERALLOCATION
        assert [d.date for d in outcome.days] == [date(2024, 1, 15)]

    def test_within_capacity_is_clean(self, full_day_snapshot):
        outcome = ConflictEvaluator(full_day_snapshot).evaluate(proposal("2024-01-16"))
        assert outcome.kind == OutcomeKind.CLEAN
        assert outcome.proposal.hours_per_day == 8

    def test_exactly_at_maximum_is_clean(self, full_day_snapshot):
        outcome = ConflictEvaluator(full_day_snapshot).evaluate(proposal(hours=0))
        assert outcome.kind == OutcomeKind.CLEAN

    def test_moved_allocation_excludes_itself(self, full_day_snapshot):
        moved = proposal(project_id="1", end="2024-01-16", allocation_id="a1")
        assert ConflictEvaluator(full_day_snapshot).evaluate(moved).kind == OutcomeKind.CLEAN

    def test_cancelled_allocations_do_not_count(self, make_snapshot, make_allocation, eight_hour_settings):
        snapshot = make_snapshot(
            allocations=[make_allocation(project_id="1", start="2024-01-15", hours=8,
                                         status=AllocationStatus.CANCELLED)],
            settings=eight_hour_settings,
        )
        evaluator = ConflictEvaluator(snapshot)
        assert evaluator.evaluate(proposal()).kind == OutcomeKind.CLEAN
        assert evaluator.evaluate(proposal(project_id="1")).kind == OutcomeKind.CLEAN

    def test_integer_ids_are_normalised(self, full_day_snapshot):
        outcome = ConflictEvaluator(full_day_snapshot).evaluate(proposal(employee_id=1, project_id=2))
        assert outcome.kind == OutcomeKind.OVERALLOCATION
        assert outcome.employee_id == "1"


class TestValidation:
    def test_unknown_employee(self, full_day_snapshot):
        with pytest.raises(UnknownReferenceError) as exc:
            ConflictEvaluator(full_day_snapshot).evaluate(proposal(employee_id="42"))
        assert exc.value.details == {"entity_type": "employee", "entity_id": "42"}

    def test_unknown_project(self, full_day_snapshot):
        with pytest.raises(UnknownReferenceError):
            ConflictEvaluator(full_day_snapshot).evaluate(proposal(project_id="42"))

    def test_unknown_allocation(self, full_day_snapshot):
        with pytest.raises(UnknownReferenceError):
            ConflictEvaluator(full_day_snapshot).evaluate(proposal(allocation_id="nope"))

    def test_hours_out_of_bounds(self, full_day_snapshot):
        with pytest.raises(ValidationError) as exc:
            ConflictEvaluator(full_day_snapshot).evaluate(proposal(hours=25))
        assert exc.value.errors == ["Hours per day cannot exceed 24"]

    @pytest.mark.parametrize("hours", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_hours(self, full_day_snapshot, hours):
        with pytest.raises(ValidationError) as exc:
            ConflictEvaluator(full_day_snapshot).evaluate(proposal(hours=hours))
        assert exc.value.errors == ["Hours per day must be a finite number"]

    def test_project_unchecked_without_projects(self, full_day_snapshot):
        snapshot = full_day_snapshot.model_copy(update={"projects": ()})
        outcome = ConflictEvaluator(snapshot).evaluate(proposal(project_id="42"))

        assert outcome.kind == OutcomeKind.OVERALLOCATION
        assert outcome.project_name == "42"

    def test_impossible_date_in_raw_proposal(self):
        with pytest.raises(ValidationError) as exc:
            AllocationProposal.build(
                employee_id="1", project_id="1",
                start_date="2024-02-30", end_date="2024-03-01", hours_per_day=4,
            )
        assert exc.value.to_dict()["kind"] == "validation_error"
        assert exc.value.errors[0].startswith("start_date:")
        assert exc.value.details["start_date"] == "2024-02-30"

    def test_inverted_range(self, full_day_snapshot):
        with pytest.raises(ValidationError) as exc:
            ConflictEvaluator(full_day_snapshot).evaluate(proposal("2024-01-10", end="2024-01-05"))
        assert exc.value.to_dict()["kind"] == "validation_error"


class TestScan:
    @pytest.fixture
    def busy_snapshot(self, make_snapshot, make_allocation, eight_hour_settings):
        return make_snapshot(
            allocations=[
                make_allocation(project_id="1", start="2024-01-15", end="2024-01-18", hours=8),
                make_allocation(project_id="2", start="2024-01-15", hours=0.2),   # 102.5%
                make_allocation(project_id="2", start="2024-01-16", hours=0.6),   # 107.5%
                make_allocation(project_id="2", start="2024-01-17", hours=1),     # 112.5%
                make_allocation(project_id="2", start="2024-01-18", hours=2),     # 125%
                make_allocation(employee_id="2", project_id="1", start="2024-01-08", end="2024-01-10", hours=1),
                make_allocation(employee_id="2", project_id="1", start="2024-01-10", end="2024-01-12", hours=1),
            ],
            settings=eight_hour_settings,
        )

    def test_overallocation_severities(self, busy_snapshot):
        summary = ConflictEvaluator(busy_snapshot).scan(DateRange.for_month(2024, 1), employee_ids=["1"])

        severities = [c.severity for c in summary.conflicts]
        assert severities == [
            ConflictSeverity.LOW,
            ConflictSeverity.MEDIUM,
            ConflictSeverity.HIGH,
            ConflictSeverity.CRITICAL,
        ]
        assert summary.by_type == {"overallocation": 4}
        assert summary.conflicts[0].date_range == {"start": "2024-01-15", "end": "2024-01-15"}
        assert summary.conflicts[0].allocation_ids == ["a1", "a2"]

    def test_existing_duplicates_are_critical(self, busy_snapshot):
        summary = ConflictEvaluator(busy_snapshot).scan(DateRange.for_month(2024, 1), employee_ids=["2"])

        assert summary.total_conflicts == 1
        conflict = summary.conflicts[0]
        assert conflict.conflict_type == ConflictType.DUPLICATE_PROJECT
        assert conflict.severity == ConflictSeverity.CRITICAL
        assert conflict.allocation_ids == ["a6", "a7"]
        assert conflict.date_range == {"start": "2024-01-10", "end": "2024-01-10"}

    def test_summary_counts(self, busy_snapshot):
        summary = ConflictEvaluator(busy_snapshot).scan(DateRange.for_month(2024, 1))
        assert summary.total_conflicts == 5
        assert summary.by_type == {"duplicate_project": 1, "overallocation": 4}
        assert summary.by_severity["critical"] == 2
        assert len(summary.critical_issues) == 2

    def test_period_outside_conflicts_is_clean(self, busy_snapshot):
        summary = ConflictEvaluator(busy_snapshot).scan(DateRange.for_month(2024, 2))
        assert summary.total_conflicts == 0
        assert summary.conflicts == []
