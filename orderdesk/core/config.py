"""
Application configuration management with environment variables.

This module provides centralized configuration management using Pydantic
BaseSettings for type-safe environment variable handling with validation
and default values.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_DATABASE_SCHEMES = (
    "sqlite+aiosqlite://",
    "postgresql://",
    "postgresql+asyncpg://",
)


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables with the
    ORDERDESK_ prefix (e.g., ORDERDESK_DATABASE_URL, ORDERDESK_LOG_LEVEL).
    """

    model_config = SettingsConfigDict(
        env_prefix="ORDERDESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./orderdesk.db",
        description="Relational store connection URL",
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application logging level",
    )

    # Environment Configuration
    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Application environment",
    )

    # Application Configuration
    app_name: str = Field(
        default="orderdesk",
        description="Application name",
    )

    app_version: str = Field(
        default="1.0.0",
        description="Application version",
    )

    debug: bool = Field(
        default=False,
        description="Echo SQL statements",
    )

    # Database Pool Configuration
    db_pool_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Database connection pool size",
    )

    db_max_overflow: int = Field(
        default=10,
        ge=0,
        le=50,
        description="Maximum overflow connections for database pool",
    )

    # Business Rules
    enforce_shipment_transitions: bool = Field(
        default=False,
        description="Reject shipment status moves other than "
        "PREPARING -> IN_TRANSIT -> DELIVERED",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """
        Validate database URL format.

        Args:
            v: Database URL value

        Returns:
            Validated database URL

        Raises:
            ValueError: If database URL scheme is not supported
        """
        if not v.startswith(SUPPORTED_DATABASE_SCHEMES):
            raise ValueError(
                "Database URL must start with one of: "
                + ", ".join(f"'{scheme}'" for scheme in SUPPORTED_DATABASE_SCHEMES)
            )
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured store is SQLite."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    This function uses lru_cache to ensure settings are loaded only once
    and reused across the application lifecycle.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
