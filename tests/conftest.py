"""
Pytest configuration and shared fixtures.
"""

import itertools
import os
import sys
import pytest

sys.path.append(os.path.join(os.getcwd(), "src"))

from resourceplanner.domain import (  # noqa: E402
    Allocation,
    AllocationStatus,
    Country,
    Employee,
    Holiday,
    HolidayScope,
    PlannerSettings,
    PlanningSnapshot,
    Project,
    Vacation,
)


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> None:
    """Set up test environment variables."""
    os.environ.setdefault("APP_ENV", "test")
    os.environ.setdefault("DEBUG", "true")
    os.environ.setdefault("DATABASE_URL", "sqlite://")


@pytest.fixture
def test_data_dir(tmp_path) -> str:
    """Create a temporary data directory for tests."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return str(data_dir)


# --- Planning data ---

@pytest.fixture
def planner_settings() -> PlannerSettings:
    """20% buffer, Canada 37.5h/week (7.5h/day), Brazil 44h/week (8.8h/day)."""
    return PlannerSettings()


@pytest.fixture
def eight_hour_settings() -> PlannerSettings:
    """Policy with an 8h daily maximum for Canada."""
    return PlannerSettings(weekly_hours={Country.CANADA: 40.0, Country.BRAZIL: 44.0})


@pytest.fixture
def alice() -> Employee:
    return Employee(id="1", name="Alice Martin", role="Developer", country=Country.CANADA)


@pytest.fixture
def bruno() -> Employee:
    return Employee(id="2", name="Bruno Silva", role="Designer", country=Country.BRAZIL)


@pytest.fixture
def apollo() -> Project:
    return Project(id="1", name="Apollo", color="#3b82f6")


@pytest.fixture
def borealis() -> Project:
    return Project(id="2", name="Borealis", color="#10b981")


@pytest.fixture
def make_allocation():
    """Factory for allocations with increasing ids (a1, a2, ...) and sequence."""
    counter = itertools.count(1)

    def _make(
        employee_id="1",
        project_id="1",
        start="2024-01-01",
        end=None,
        hours=7.5,
        status=AllocationStatus.ACTIVE,
        allocation_id=None,
    ) -> Allocation:
        sequence = next(counter)
        return Allocation(
            id=allocation_id or f"a{sequence}",
            employee_id=employee_id,
            project_id=project_id,
            start_date=start,
            end_date=end or start,
            hours_per_day=hours,
            status=status,
            sequence=sequence,
        )

    return _make


@pytest.fixture
def make_snapshot(alice, bruno, apollo, borealis, planner_settings):
    """Snapshot with Alice (Canada), Bruno (Brazil), Apollo and Borealis."""

    def _make(allocations=(), holidays=(), vacations=(), settings=None) -> PlanningSnapshot:
        return PlanningSnapshot(
            employees=(alice, bruno),
            projects=(apollo, borealis),
            holidays=tuple(holidays),
            vacations=tuple(vacations),
            allocations=tuple(allocations),
            settings=settings or planner_settings,
        )

    return _make


@pytest.fixture
def canada_day() -> Holiday:
    return Holiday(id="h1", name="Canada Day", date="2024-07-01", country=HolidayScope.CANADA)


@pytest.fixture
def new_year() -> Holiday:
    return Holiday(id="h2", name="New Year", date="2024-01-01", country=HolidayScope.BOTH)


@pytest.fixture
def alice_vacation() -> Vacation:
    """Mon 2024-04-15 .. Sun 2024-04-21: five working days."""
    return Vacation(id="v1", employee_id="1", start_date="2024-04-15", end_date="2024-04-21")
