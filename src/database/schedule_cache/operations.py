"""Database operations for the schedule cache snapshot.

The reminder check runs every minute. Reading every schedule on each tick is
wasteful, so active schedules are copied into a single snapshot row that the
check reads instead. The snapshot is rebuilt wholesale by an explicit sync;
there is no incremental update or invalidation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from src.database.schedule_cache.models import ScheduleCacheSnapshot
from src.engine.models import CachedSchedule
from src.enums import ScheduleStatus

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from src.reminders.sources import ScheduleSource

logger = logging.getLogger(__name__)

# Row holding the snapshot used by the reminder check
UPCOMING_REMINDERS_KEY = "upcoming_reminders"


@dataclass
class CacheSyncResult:
    """Result of rebuilding the schedule cache."""

    success: bool
    count: int
    error: str | None = None


@dataclass
class CacheStatus:
    """Diagnostic view of the schedule cache."""

    exists: bool
    last_synced: datetime | None = None
    schedule_count: int | None = None


def sync_schedule_cache(
    session: Session,
    source: ScheduleSource,
    now: datetime | None = None,
) -> CacheSyncResult:
    """Rebuild the snapshot from all active schedules in the source of truth.

    :param session: Database session the snapshot is written with.
    :param source: Source of truth for schedule definitions.
    :param now: Sync timestamp (defaults to now).
    :returns: Result with the number of cached schedules, or the error.
    """
    if now is None:
        now = datetime.now(UTC)

    try:
        # Savepoint, so a failure discards the snapshot write but not the
        # caller's pending changes in the same session
        with session.begin_nested():
            definitions = source.list_active()
            cached = [
                definition.to_cached()
                for definition in definitions
                if definition.status == ScheduleStatus.ACTIVE
            ]
            payload = [entry.model_dump(mode="json", by_alias=True) for entry in cached]

            snapshot = session.get(ScheduleCacheSnapshot, UPCOMING_REMINDERS_KEY)
            if snapshot is None:
                snapshot = ScheduleCacheSnapshot(cache_key=UPCOMING_REMINDERS_KEY)
                session.add(snapshot)

            snapshot.schedules = payload
            snapshot.schedule_count = len(payload)
            snapshot.last_synced = now
            session.flush()

    except SQLAlchemyError as e:
        logger.exception(f"Failed to sync schedule cache: {e}")
        return CacheSyncResult(success=False, count=0, error=str(e))

    logger.info(f"Schedule cache synced: {len(payload)} schedules")
    return CacheSyncResult(success=True, count=len(payload))


def get_cached_schedules(session: Session) -> list[CachedSchedule]:
    """Read the schedules in the snapshot.

    An empty list means the cache has never been synced (or could not be
    read) and needs a sync; it does not mean there are no schedules.

    :param session: Database session.
    :returns: Cached schedules. Entries that fail validation are skipped.
    """
    try:
        snapshot = session.get(ScheduleCacheSnapshot, UPCOMING_REMINDERS_KEY)
    except SQLAlchemyError as e:
        logger.exception(f"Failed to read schedule cache: {e}")
        return []

    if snapshot is None:
        logger.warning("Schedule cache not found - needs sync")
        return []

    schedules: list[CachedSchedule] = []
    for entry in snapshot.schedules or []:
        try:
            schedules.append(CachedSchedule.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping invalid cached schedule {entry.get('id')}: {e}")

    return schedules


def get_cache_status(session: Session) -> CacheStatus:
    """Describe the snapshot for diagnostics.

    :param session: Database session.
    :returns: Whether the snapshot exists, and when it was last synced.
    """
    try:
        snapshot = session.get(ScheduleCacheSnapshot, UPCOMING_REMINDERS_KEY)
    except SQLAlchemyError as e:
        logger.exception(f"Failed to read schedule cache status: {e}")
        return CacheStatus(exists=False)

    if snapshot is None:
        return CacheStatus(exists=False)

    return CacheStatus(
        exists=True,
        last_synced=snapshot.last_synced,
        schedule_count=snapshot.schedule_count,
    )
