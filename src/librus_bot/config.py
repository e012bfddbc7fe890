"""
Configuration management for Librus Monitoring Bot.

Loads and validates all required environment variables with clear error messages.
Uses Pydantic Settings for type safety and validation.
"""

import logging
from datetime import tzinfo
from functools import lru_cache
from typing import Optional

from dateutil.tz import gettz
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TIMEZONE = "Europe/Warsaw"

PROD_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
DEV_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All required variables must be set, or the application will fail fast
    with a clear error message indicating which variables are missing.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Librus Synergia
    librus_login: str = Field(
        ...,
        description="Librus Synergia login"
    )
    librus_password: str = Field(
        ...,
        description="Librus Synergia password"
    )
    portal_base_url: str = Field(
        default="https://synergia.librus.pl",
        description="Base URL of the Synergia web portal"
    )

    # Discord webhook
    webhook_url: str = Field(
        ...,
        description="Discord webhook URL notifications are posted to"
    )

    # Optional Configuration
    debug_mode: bool = Field(
        default=False,
        description="Enable DEBUG logging (DEBUG_MODE=1)"
    )
    env: str = Field(
        default="prod",
        description="Environment tag, 'prod' or 'dev'. Only affects log formatting."
    )
    poll_interval: int = Field(
        default=600,
        gt=0,
        description="Seconds between polling rounds"
    )
    inbox_folder: int = Field(
        default=5,
        description="Inbox folder id to watch for unread messages"
    )
    inbox_window: int = Field(
        default=20,
        gt=0,
        description="How many of the newest messages are inspected per cycle"
    )
    student_index: Optional[int] = Field(
        default=None,
        description="Student's own number in the class register. Taken from the account if not set."
    )
    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="Timezone the portal reports dates in"
    )

    @field_validator("portal_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base URL doesn't have trailing slash."""
        return v.rstrip("/")

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Ensure environment tag is valid."""
        lower = v.lower()
        if lower not in {"prod", "dev"}:
            raise ValueError("ENV must be either 'prod' or 'dev'")
        return lower

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure timezone name is known."""
        if gettz(v) is None:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug_mode else "INFO"

    @property
    def tz(self) -> tzinfo:
        """Timezone object for date parsing."""
        return gettz(self.timezone)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Validated application settings

    Raises:
        ValidationError: If required environment variables are missing or invalid
    """
    return Settings()


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        settings: Optional settings instance, will be loaded if not provided

    Returns:
        logging.Logger: Configured logger instance
    """
    if settings is None:
        settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format=DEV_LOG_FORMAT if settings.env == "dev" else PROD_LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return logging.getLogger("librus_bot")
