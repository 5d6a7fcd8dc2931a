"""
Configuration management for the feedback results engine.

Centralizes all configuration using Pydantic settings with environment variable support.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./feedback_results.db",
        description="SQLAlchemy connection URL"
    )
    db_pool_size: int = Field(
        default=5,
        description="Database connection pool size (ignored for SQLite)"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections (ignored for SQLite)"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Connection pool timeout in seconds (ignored for SQLite)"
    )

    # Results Configuration
    csv_export_range: int = Field(
        default=10000,
        ge=1,
        description="Maximum responses exported for a whole session"
    )
    results_page_range: int = Field(
        default=200,
        ge=1,
        description="Maximum responses loaded for an on-screen results preview"
    )

    # Application Settings
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    Returns:
        Settings: Application settings
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings():
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None


def validate_required_settings():
    """
    Validate that all required settings are present at runtime.

    Raises ValueError if required settings are missing.
    """
    settings = get_settings()

    if not settings.database_url:
        raise ValueError("DATABASE_URL is required but not set")

    if settings.results_page_range > settings.csv_export_range:
        raise ValueError(
            "RESULTS_PAGE_RANGE must not exceed CSV_EXPORT_RANGE "
            f"({settings.results_page_range} > {settings.csv_export_range})"
        )

    return True
