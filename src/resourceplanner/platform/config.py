"""
ResourcePlanner Configuration Management

Uses Pydantic Settings for type-safe configuration from environment variables.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # =========================================================================
    # APPLICATION
    # =========================================================================
    APP_NAME: str = "ResourcePlanner"
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "info"
    VERSION: str = "0.1.0"

    # =========================================================================
    # CAPACITY POLICY (defaults for PlannerSettings)
    # =========================================================================
    DEFAULT_BUFFER_PERCENTAGE: float = 20.0
    CANADA_WEEKLY_HOURS: float = 37.5
    BRAZIL_WEEKLY_HOURS: float = 44.0
    WORKING_DAYS_PER_WEEK: int = 5

    # =========================================================================
    # DATABASE (Snapshot store)
    # =========================================================================
    DATABASE_URL: str = "sqlite:///data/resourceplanner.db"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_PRE_PING: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for easy import
settings = get_settings()
