"""
Unit tests for case_scheduler/config.py

Tests Settings defaults, environment variable loading, production
validation and configuration caching.
"""

import pytest
from pydantic import ValidationError

from case_scheduler.config import Settings, get_settings


class TestSettingsDefaults:
    """Test Settings initialization with default values."""

    def test_settings_defaults(self, monkeypatch):
        """Settings should initialize with correct default values."""
        for name in ("PYTHON_ENV", "LOG_LEVEL", "DATABASE_URL", "NOTIFICATION_WEBHOOK_URL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.python_env == "development"
        assert settings.log_level == "INFO"
        assert settings.database_url == "sqlite:///./data/case_scheduler.db"
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 8000
        assert settings.api_reload is True

    def test_negotiation_defaults(self):
        """Negotiation rules should match the documented defaults."""
        settings = Settings(_env_file=None)

        assert settings.default_duration_minutes == 60
        assert settings.required_proposed_dates == 3
        assert settings.reminder_minutes_before == 60
        assert settings.provider_fallback_name == "Your Provider"

    def test_notifications_log_only_by_default(self, monkeypatch):
        """Without a webhook URL notifications are only logged."""
        monkeypatch.delenv("NOTIFICATION_WEBHOOK_URL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.uses_notification_webhook is False

    def test_is_production_when_set(self):
        """is_production should return True when python_env is production."""
        settings = Settings(_env_file=None, python_env="production")
        assert settings.is_production is True


class TestSettingsEnvironmentVariables:
    """Test Settings loading from environment variables."""

    def test_settings_from_env_vars(self, monkeypatch):
        """Settings should load values from environment variables."""
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/cases")
        monkeypatch.setenv("REQUIRED_PROPOSED_DATES", "2")
        monkeypatch.setenv("NOTIFICATION_WEBHOOK_URL", "https://notify.example.com/hook")

        settings = Settings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.database_url == "postgresql://localhost/cases"
        assert settings.uses_postgresql is True
        assert settings.required_proposed_dates == 2
        assert settings.uses_notification_webhook is True

    def test_invalid_log_level_rejected(self, monkeypatch):
        """Log level must be one of the supported literals."""
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_required_proposed_dates_must_be_positive(self):
        """Zero required dates is not a valid configuration."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, required_proposed_dates=0)


class TestProductionValidation:
    """Test validate_production_config()."""

    def test_development_skips_validation(self):
        """Development settings are never rejected."""
        Settings(_env_file=None).validate_production_config()

    def test_production_requires_postgresql(self):
        """SQLite is rejected in production."""
        settings = Settings(_env_file=None, python_env="production")

        with pytest.raises(ValueError, match="PostgreSQL"):
            settings.validate_production_config()

    def test_production_requires_webhook_secret(self):
        """An unsigned notification webhook is rejected in production."""
        settings = Settings(
            _env_file=None,
            python_env="production",
            database_url="postgresql://db/cases",
            notification_webhook_url="https://notify.example.com/hook",
        )

        with pytest.raises(ValueError, match="NOTIFICATION_WEBHOOK_SECRET"):
            settings.validate_production_config()

    def test_valid_production_config(self):
        """PostgreSQL plus a signed webhook passes."""
        settings = Settings(
            _env_file=None,
            python_env="production",
            database_url="postgresql://db/cases",
            notification_webhook_url="https://notify.example.com/hook",
            notification_webhook_secret="s3cret",
        )

        settings.validate_production_config()


class TestGetSettings:
    """Test get_settings() caching."""

    def test_get_settings_is_cached(self):
        """get_settings() should return the same instance."""
        assert get_settings() is get_settings()
