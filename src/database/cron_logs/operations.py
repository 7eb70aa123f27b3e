"""Database operations for reminder check audit records."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from src.database.cron_logs.models import CronRunLog

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def get_last_cron_run(session: Session) -> CronRunLog | None:
    """Get the most recent run record.

    :param session: Database session.
    :returns: The latest run, or None if nothing has been recorded.
    """
    return session.scalars(
        select(CronRunLog).order_by(CronRunLog.timestamp.desc()).limit(1)
    ).first()


def record_cron_run(  # noqa: PLR0913
    session: Session,
    timestamp: datetime,
    checked: int,
    sent: int,
    skipped: int,
    errors: int,
) -> CronRunLog:
    """Record one run of the reminder check.

    The interval since the previous run is derived from the latest record so
    gaps in scheduling show up in the audit trail.

    :param session: Database session.
    :param timestamp: When the run started.
    :param checked: Number of schedules examined.
    :param sent: Number of reminders delivered.
    :param skipped: Number of schedules outside their window or already sent.
    :param errors: Number of schedules that failed.
    :returns: The created record.
    """
    previous = get_last_cron_run(session)
    interval_ms = None
    if previous is not None:
        interval_ms = int((timestamp - previous.timestamp).total_seconds() * 1000)

    run = CronRunLog(
        timestamp=timestamp,
        interval_ms=interval_ms,
        checked=checked,
        sent=sent,
        skipped=skipped,
        errors=errors,
    )
    session.add(run)
    session.flush()

    if interval_ms is None:
        logger.info(f"Recorded first cron run at {timestamp}")
    else:
        logger.info(f"Recorded cron run at {timestamp}, {interval_ms / 1000:.1f}s since last run")
    return run
