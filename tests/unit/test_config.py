"""Unit tests for BuildTrack configuration management.

Tests AppConfig loading from environment variables, validation, and defaults.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from buildtrack.config import (
    AppConfig,
    LoggingConfig,
    ScheduleConfig,
    get_config,
    reset_config,
)


class TestAppConfig:
    """Test AppConfig creation and validation."""

    def test_from_env_requires_database_url(self, monkeypatch):
        """Test DATABASE_URL is required."""
        monkeypatch.delenv("DATABASE_URL", raising=False)

        with pytest.raises(KeyError) as exc_info:
            AppConfig.from_env()

        assert "DATABASE_URL" in str(exc_info.value)

    def test_from_env_with_minimal_config(self, monkeypatch):
        """Test loading with only required env vars."""
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_FORMAT", raising=False)

        config = AppConfig.from_env()

        assert config.db.url == "sqlite+aiosqlite:///./test.db"
        assert config.logging == LoggingConfig(level="INFO", format="text")
        assert config.schedule == ScheduleConfig()

    def test_schedule_defaults(self):
        """Test two days per unit and a five-day floor stagger."""
        schedule = ScheduleConfig()

        assert schedule.rate_per_unit == Decimal("2")
        assert schedule.stagger_days == 5

    def test_schedule_from_env(self, monkeypatch):
        """Test schedule overrides."""
        monkeypatch.setenv("SCHEDULE_RATE_PER_UNIT", "1.5")
        monkeypatch.setenv("SCHEDULE_STAGGER_DAYS", "7")

        config = AppConfig.from_env()

        assert config.schedule.rate_per_unit == Decimal("1.5")
        assert config.schedule.stagger_days == 7

    def test_negative_schedule_rejected(self, monkeypatch):
        """Test negative stagger fails fast."""
        monkeypatch.setenv("SCHEDULE_STAGGER_DAYS", "-1")

        with pytest.raises(ValueError):
            AppConfig.from_env()

    def test_db_pool_settings(self, monkeypatch):
        """Test database pool configuration."""
        monkeypatch.setenv("DB_POOL_SIZE", "20")
        monkeypatch.setenv("DB_ECHO", "true")

        config = AppConfig.from_env()

        assert config.db.pool_size == 20
        assert config.db.echo is True


    def test_logging_from_env(self, monkeypatch):
        """Test LOG_LEVEL and LOG_FORMAT are normalised."""
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_FORMAT", "JSON")

        config = AppConfig.from_env()

        assert config.logging == LoggingConfig(level="WARNING", format="json")

    def test_logging_does_not_need_database_url(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        assert LoggingConfig.from_env().level == "ERROR"

    @pytest.mark.parametrize("name,value", [("LOG_LEVEL", "loud"), ("LOG_FORMAT", "xml")])
    def test_bad_logging_setting_rejected(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValueError):
            LoggingConfig.from_env()

class TestGetConfig:
    """Test the lazy singleton."""

    def test_singleton(self):
        assert get_config() is get_config()

    def test_reset_reloads_environment(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("LOG_FORMAT", "json")
        reset_config()

        second = get_config()

        assert second is not first
        assert second.logging.format == "json"
