"""Celery tasks for the reminder check and the schedule cache."""

import logging
from typing import Any

from celery import Celery, Task
from celery.schedules import crontab

from src.database.connection import get_session
from src.database.schedule_cache import sync_schedule_cache
from src.orchestration.celery_app import celery_app
from src.reminders.service import build_dispatch_service
from src.reminders.sources import DatabaseScheduleSource

logger = logging.getLogger(__name__)

# Default retry settings for tasks
DEFAULT_RETRY_KWARGS = {
    "max_retries": 3,
    "default_retry_delay": 60,  # 1 minute
}

# A tick not started within this many seconds is dropped; the next one covers it
REMINDER_TICK_EXPIRES_SECONDS = 55


class BaseTask(Task):
    """Base task class with common retry and error handling."""

    autoretry_for = (Exception,)
    retry_backoff = True
    retry_backoff_max = 600  # Max 10 minutes between retries
    retry_jitter = True


@celery_app.task(
    bind=True,
    name="src.orchestration.tasks.send_reminders_task",
)
def send_reminders_task(self: Task) -> dict[str, Any]:
    """Run one reminder check.

    Not retried: a retried tick would run outside its send window, and the
    next scheduled tick picks up anything still due.

    :param self: The Celery task instance (bound).
    :returns: Dictionary with the run summary counters.
    """
    logger.info("Starting reminder check task")

    try:
        with get_session() as session:
            result = build_dispatch_service(session).run()

    except Exception as exc:
        logger.exception(f"Reminder check failed: {exc}")
        raise

    stats: dict[str, Any] = {
        "checked": result.checked,
        "sent": result.sent,
        "skipped": result.skipped,
        "errors": result.errors,
        "cleaned_up": result.cleaned_up,
        "needs_sync": result.needs_sync,
    }
    logger.info(f"Reminder check complete: {stats}")
    return stats


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="src.orchestration.tasks.sync_schedule_cache_task",
    **DEFAULT_RETRY_KWARGS,
)
def sync_schedule_cache_task(self: Task) -> dict[str, Any]:
    """Rebuild the schedule cache from the schedules table.

    :param self: The Celery task instance (bound).
    :returns: Dictionary with the number of cached schedules.
    :raises RuntimeError: If the rebuild failed, so the task is retried.
    """
    logger.info("Starting schedule cache sync task")

    with get_session() as session:
        result = sync_schedule_cache(session, DatabaseScheduleSource(session))

    if not result.success:
        raise RuntimeError(f"Schedule cache sync failed: {result.error}")

    logger.info(f"Schedule cache sync complete: {result.count} schedules")
    return {"count": result.count}


# Beat schedule for periodic tasks
@celery_app.on_after_configure.connect
def setup_periodic_tasks(sender: Celery, **kwargs: Any) -> None:
    """Set up periodic tasks."""
    sender.add_periodic_task(
        crontab(),
        send_reminders_task.s(),
        name="send-reminders-every-minute",
        expires=REMINDER_TICK_EXPIRES_SECONDS,
    )
