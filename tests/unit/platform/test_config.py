from unittest.mock import patch

from resourceplanner.platform.config import Settings, get_settings


def test_defaults():
    config = Settings()
    assert config.APP_NAME == "ResourcePlanner"
    assert config.DEFAULT_BUFFER_PERCENTAGE == 20.0
    assert config.CANADA_WEEKLY_HOURS == 37.5
    assert config.BRAZIL_WEEKLY_HOURS == 44.0
    assert config.WORKING_DAYS_PER_WEEK == 5


def test_environment_overrides():
    """Verify config loads from env vars."""
    with patch.dict("os.environ", {
        "DEFAULT_BUFFER_PERCENTAGE": "15",
        "BRAZIL_WEEKLY_HOURS": "40",
        "DATABASE_URL": "sqlite:///tmp/planner.db",
    }):
        config = Settings()
        assert config.DEFAULT_BUFFER_PERCENTAGE == 15.0
        assert config.BRAZIL_WEEKLY_HOURS == 40.0
        assert config.DATABASE_URL == "sqlite:///tmp/planner.db"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
