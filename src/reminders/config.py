"""Configuration for reminder dispatch using pydantic-settings."""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.enums import NotifierKind


class ReminderSettings(BaseSettings):
    """Configuration for the reminder check.

    All settings are loaded from environment variables with the REMINDER_ prefix.

    :param utc_offset_hours: Fixed offset wall-clock times in rules are expressed in.
    :param send_timeout_seconds: Time limit for a single notification send.
    :param cleanup_max_age_minutes: Age after which sent markers are purged.
    :param cleanup_batch_size: Maximum markers purged per cleanup call.
    :param notifier: Transport used to deliver reminders.
    :param atomic_claims: Claim a marker before sending instead of check-then-mark.
    """

    model_config = SettingsConfigDict(
        env_prefix="REMINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    utc_offset_hours: int = Field(
        default=8,
        ge=-12,
        le=14,
        description="Fixed UTC offset of schedule wall-clock times",
    )
    send_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        le=55,
        description="Time limit for a single notification send",
    )
    cleanup_max_age_minutes: int = Field(
        default=60,
        ge=1,
        description="Age in minutes after which sent markers are purged",
    )
    cleanup_batch_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum markers purged per cleanup call",
    )
    notifier: NotifierKind = Field(
        default=NotifierKind.EMAIL,
        description="Transport used to deliver reminders",
    )
    atomic_claims: bool = Field(
        default=False,
        description="Claim the marker atomically before sending",
    )

    @property
    def utc_offset(self) -> timedelta:
        """Get the configured offset as a timedelta."""
        return timedelta(hours=self.utc_offset_hours)

    @property
    def cleanup_max_age(self) -> timedelta:
        """Get the marker cleanup horizon as a timedelta."""
        return timedelta(minutes=self.cleanup_max_age_minutes)


@lru_cache
def get_reminder_settings() -> ReminderSettings:
    """Get cached reminder settings.

    Settings are loaded once and cached for the lifetime of the process.

    :returns: Configured ReminderSettings instance.
    """
    return ReminderSettings()
