"""Central enum definitions for the project."""

from enum import StrEnum


class DeadlineType(StrEnum):
    """Recurrence rule variants, as stored in schedule documents."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    MONTHLY_SPECIFIC = "monthly-specific"
    INTERVAL = "interval"
    HOURLY = "hourly"
    PER_MINUTE = "per-minute"
    CUSTOM = "custom"


class ReminderType(StrEnum):
    """Reminder rule variants."""

    RELATIVE = "relative"
    ABSOLUTE = "absolute"


class ScheduleStatus(StrEnum):
    """Lifecycle status of a schedule. Only active schedules are dispatched."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Granularity(StrEnum):
    """Bucket size of a sent-reminder idempotency key."""

    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"


class OutcomeStatus(StrEnum):
    """Per-schedule outcome of a reminder dispatch run."""

    SENT = "sent"
    SKIPPED = "skipped"
    ERROR = "error"


class NotifierKind(StrEnum):
    """Notification transports available for reminder delivery."""

    EMAIL = "email"
    TELEGRAM = "telegram"
