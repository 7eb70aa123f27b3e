"""Reminder dispatch: idempotency tracking, marker stores and the dispatch service."""

from src.reminders.config import ReminderSettings, get_reminder_settings
from src.reminders.exceptions import (
    ConfigurationError,
    DispatchError,
    DispatchTimeoutError,
    NotifierError,
    StoreError,
)
from src.reminders.models import CronRunResult, ScheduleOutcome
from src.reminders.service import (
    DEFAULT_CREATED_AT,
    ReminderDispatchService,
    build_dispatch_service,
    handle_schedule_changed,
)
from src.reminders.sources import DatabaseScheduleSource, ScheduleSource
from src.reminders.stores import (
    DatabaseMarkerStore,
    InMemoryMarkerStore,
    MarkerStore,
    SentMarker,
)
from src.reminders.tracker import (
    ReminderMetadata,
    ReminderTracker,
    generate_idempotency_key,
    granularity_for,
)

__all__ = [
    "DEFAULT_CREATED_AT",
    "ConfigurationError",
    "CronRunResult",
    "DatabaseMarkerStore",
    "DatabaseScheduleSource",
    "DispatchError",
    "DispatchTimeoutError",
    "InMemoryMarkerStore",
    "MarkerStore",
    "NotifierError",
    "ReminderDispatchService",
    "ReminderMetadata",
    "ReminderSettings",
    "ReminderTracker",
    "ScheduleOutcome",
    "ScheduleSource",
    "SentMarker",
    "StoreError",
    "build_dispatch_service",
    "generate_idempotency_key",
    "get_reminder_settings",
    "granularity_for",
    "handle_schedule_changed",
]
