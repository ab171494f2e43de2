"""Configuration management for chorecycle."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="data/chorecycle.db", description="Path to the SQLite database file")
    store_busy_timeout_seconds: float = Field(
        default=5.0, description="Seconds a transaction waits for the database write lock"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Household Configuration
    household_timezone: str = Field(
        default="UTC", description="IANA timezone used for calendar-day calculations (e.g., Europe/Oslo)"
    )

    # Spawn Retry Configuration
    spawn_max_attempts: int = Field(default=3, ge=1, description="Maximum attempts for a spawn transaction")
    spawn_retry_base_delay_seconds: float = Field(
        default=0.1, ge=0, description="Base delay in seconds for exponential backoff between spawn attempts"
    )

    # Reminders
    reminder_hour: int = Field(default=9, ge=0, le=23, description="Hour of the due date at which reminders fire")

    # Pagination
    list_page_size: int = Field(default=100, ge=1, description="Page size used when reading whole collections")


# Application Constants
class Constants:
    """Application-wide constants."""

    # Collections
    TASKS_COLLECTION: str = "tasks"
    HISTORY_COLLECTION: str = "history"

    # Overdue cutoff: minutes past midnight of the day after the due date
    OVERDUE_GRACE_MINUTES: int = 1


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
