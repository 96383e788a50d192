"""BuildTrack configuration management.

Loads configuration from environment variables with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class DBConfig:
    """Database connection configuration."""

    url: str
    pool_size: int = 10
    pool_max_overflow: int = 20
    pool_timeout: int = 30
    echo: bool = False  # SQL logging


@dataclass
class LoggingConfig:
    """Log verbosity and output format."""

    level: str = "INFO"
    format: str = "text"  # json or text

    @classmethod
    def from_env(cls) -> LoggingConfig:
        """Read LOG_LEVEL and LOG_FORMAT; DATABASE_URL is not needed here.

        Raises:
            ValueError: If LOG_LEVEL or LOG_FORMAT is not recognised
        """
        config = cls(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            format=os.getenv("LOG_FORMAT", "text").lower(),
        )
        if config.level not in LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {config.level}"
            )
        if config.format not in ("json", "text"):
            raise ValueError(f"LOG_FORMAT must be json or text, got {config.format}")
        return config


@dataclass
class ScheduleConfig:
    """Line-of-balance generator defaults."""

    rate_per_unit: Decimal = Decimal("2")  # Days per unit per phase per floor
    stagger_days: int = 5  # Offset between consecutive floor starts


@dataclass
class AppConfig:
    """Root application configuration.

    Loads from environment variables with fail-fast on missing required values.
    """

    db: DBConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Required environment variables:
        - DATABASE_URL: SQLAlchemy async connection string

        Optional (with defaults):
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - LOG_FORMAT: "json" or "text" (default: "text")
        - SCHEDULE_RATE_PER_UNIT: Days per unit per phase (default: 2)
        - SCHEDULE_STAGGER_DAYS: Floor start offset in days (default: 5)

        Raises:
            KeyError: If required environment variables are missing
            ValueError: If a schedule setting is negative or a log setting is
                not recognised
        """
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise KeyError(
                "DATABASE_URL environment variable is required. "
                "Example: sqlite+aiosqlite:///./buildtrack.db"
            )

        schedule = ScheduleConfig(
            rate_per_unit=Decimal(os.getenv("SCHEDULE_RATE_PER_UNIT", "2")),
            stagger_days=int(os.getenv("SCHEDULE_STAGGER_DAYS", "5")),
        )
        if schedule.rate_per_unit < 0 or schedule.stagger_days < 0:
            raise ValueError("SCHEDULE_RATE_PER_UNIT and SCHEDULE_STAGGER_DAYS must be non-negative")

        return cls(
            logging=LoggingConfig.from_env(),
            db=DBConfig(
                url=database_url,
                pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
                pool_max_overflow=int(os.getenv("DB_POOL_MAX_OVERFLOW", "20")),
                pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
                echo=os.getenv("DB_ECHO", "false").lower() == "true",
            ),
            schedule=schedule,
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Raises:
        KeyError: If required environment variables are missing
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Forget the cached config (tests change the environment between cases)."""
    global _config
    _config = None
