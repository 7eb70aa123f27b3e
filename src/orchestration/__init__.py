"""Celery orchestration for the reminder check."""

from src.orchestration.celery_app import celery_app
from src.orchestration.tasks import send_reminders_task, sync_schedule_cache_task

__all__ = [
    "celery_app",
    "send_reminders_task",
    "sync_schedule_cache_task",
]
