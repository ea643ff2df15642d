"""
Configuration management for Case Scheduler.

Uses Pydantic Settings for type-safe environment variable loading.
Configured via .env file in project root.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    """

    # Python & Application
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./data/case_scheduler.db",
        description="Database connection URL"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_reload: bool = Field(
        default=True,
        description="Enable auto-reload in development"
    )

    # Negotiation rules
    default_duration_minutes: int = Field(
        default=60,
        ge=1,
        description="Event request duration when the provider omits one"
    )
    required_proposed_dates: int = Field(
        default=3,
        ge=1,
        description="Exact number of candidate dates an individual must submit"
    )
    reminder_minutes_before: int = Field(
        default=60,
        ge=0,
        description="Reminder offset stamped on calendar entries created at confirmation"
    )
    provider_fallback_name: str = Field(
        default="Your Provider",
        description="Display name used when a provider has no name on record"
    )

    # Notification side-channel
    notification_webhook_url: str = Field(
        default="",
        description="Notification service endpoint (empty = log notifications only)"
    )
    notification_webhook_secret: str = Field(
        default="",
        description="Shared secret for HMAC-SHA256 notification signatures"
    )
    notification_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single notification delivery"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    @property
    def uses_postgresql(self) -> bool:
        """Check if PostgreSQL is the configured database."""
        return "postgresql" in self.database_url.lower()

    @property
    def uses_notification_webhook(self) -> bool:
        """Check if notifications are delivered to an external service."""
        return bool(self.notification_webhook_url)

    def validate_production_config(self) -> None:
        """
        Validate configuration for production environment.

        Raises:
            ValueError: If required production settings are missing or invalid
        """
        if not self.is_production:
            return

        errors = []

        if not self.uses_postgresql:
            errors.append(
                "Production requires PostgreSQL. "
                "Set DATABASE_URL to a PostgreSQL connection string."
            )

        if self.uses_notification_webhook and not self.notification_webhook_secret:
            errors.append(
                "NOTIFICATION_WEBHOOK_SECRET is required when "
                "NOTIFICATION_WEBHOOK_URL is set in production."
            )

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure we only load settings once.
    Use this function throughout the application to access settings.

    Returns:
        Settings instance loaded from environment
    """
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
