"""Database operations for sent-reminder markers."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert

from src.database.sent_reminders.models import SentReminder

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Columns overwritten when a marker is upserted
_UPSERT_COLUMNS = (
    "schedule_id",
    "bucket_date",
    "granularity",
    "sent_at",
    "person_email",
    "schedule_title",
    "message_id",
)


def sent_reminder_exists(session: Session, key: str) -> bool:
    """Check if a marker exists for an idempotency key.

    :param session: Database session.
    :param key: Idempotency key.
    :returns: True if a marker exists.
    """
    return session.get(SentReminder, key) is not None


def upsert_sent_reminder(session: Session, values: dict[str, Any]) -> None:
    """Insert a marker or overwrite the existing one with the same key.

    :param session: Database session.
    :param values: Column values, including ``key``.
    """
    statement = insert(SentReminder).values(**values)
    statement = statement.on_conflict_do_update(
        index_elements=[SentReminder.key],
        set_={column: statement.excluded[column] for column in _UPSERT_COLUMNS},
    )
    session.execute(statement)
    session.flush()
    logger.debug(f"Upserted sent reminder marker: key={values['key']}")


def insert_sent_reminder_if_absent(session: Session, values: dict[str, Any]) -> bool:
    """Insert a marker unless one with the same key already exists.

    Single-statement insert-if-absent, safe against concurrent callers.

    :param session: Database session.
    :param values: Column values, including ``key``.
    :returns: True if this call inserted the marker, False if it already existed.
    """
    statement = (
        insert(SentReminder)
        .values(**values)
        .on_conflict_do_nothing(index_elements=[SentReminder.key])
        .returning(SentReminder.key)
    )
    inserted = session.execute(statement).scalar_one_or_none()
    session.flush()
    claimed = inserted is not None
    logger.debug(f"Claim sent reminder marker: key={values['key']}, claimed={claimed}")
    return claimed


def delete_sent_reminder(session: Session, key: str) -> bool:
    """Delete the marker for an idempotency key.

    :param session: Database session.
    :param key: Idempotency key.
    :returns: True if a marker was deleted.
    """
    marker = session.get(SentReminder, key)
    if marker is None:
        return False

    session.delete(marker)
    session.flush()
    logger.info(f"Deleted sent reminder marker: key={key}")
    return True


def delete_sent_reminders_before(session: Session, cutoff: datetime, limit: int) -> int:
    """Delete one batch of markers sent before ``cutoff``.

    :param session: Database session.
    :param cutoff: Markers with ``sent_at`` strictly before this are deleted.
    :param limit: Maximum number of markers to delete.
    :returns: Number of markers deleted.
    """
    keys = list(
        session.scalars(
            select(SentReminder.key).where(SentReminder.sent_at < cutoff).limit(limit)
        )
    )
    if not keys:
        return 0

    session.execute(delete(SentReminder).where(SentReminder.key.in_(keys)))
    session.flush()
    logger.info(f"Deleted {len(keys)} sent reminder markers older than {cutoff}")
    return len(keys)


def get_sent_reminders_by_keys(session: Session, keys: list[str]) -> list[SentReminder]:
    """Fetch the markers for a set of idempotency keys in one query.

    :param session: Database session.
    :param keys: Idempotency keys.
    :returns: Markers that exist, in no particular order.
    """
    if not keys:
        return []
    return list(session.scalars(select(SentReminder).where(SentReminder.key.in_(keys))))
