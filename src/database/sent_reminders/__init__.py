"""Database models and operations for sent-reminder markers."""

from src.database.sent_reminders.models import SentReminder
from src.database.sent_reminders.operations import (
    delete_sent_reminder,
    delete_sent_reminders_before,
    get_sent_reminders_by_keys,
    insert_sent_reminder_if_absent,
    sent_reminder_exists,
    upsert_sent_reminder,
)

__all__ = [
    # Models
    "SentReminder",
    # Operations
    "delete_sent_reminder",
    "delete_sent_reminders_before",
    "get_sent_reminders_by_keys",
    "insert_sent_reminder_if_absent",
    "sent_reminder_exists",
    "upsert_sent_reminder",
]
