"""Idempotency tracking for sent reminders.

A reminder is recorded under a key made of the schedule ID and the UTC time
bucket it was sent in, so at most one reminder goes out per schedule per
bucket. The bucket size follows the recurrence frequency.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from src.engine.clock import ensure_utc
from src.engine.models import HourlyRule, PerMinuteRule, RecurrenceRule
from src.enums import Granularity
from src.reminders.exceptions import StoreError
from src.reminders.stores import MarkerStore, SentMarker

logger = logging.getLogger(__name__)

# Markers older than this are purged by cleanup. Shorter than a day, so a
# day-granularity marker can be purged before its bucket ends.
DEFAULT_CLEANUP_MAX_AGE = timedelta(hours=1)
DEFAULT_CLEANUP_BATCH_SIZE = 100

_BUCKET_FORMATS = {
    Granularity.DAY: "%Y-%m-%d",
    Granularity.HOUR: "%Y-%m-%d_%H",
    Granularity.MINUTE: "%Y-%m-%d_%H:%M",
}


@dataclass(frozen=True)
class ReminderMetadata:
    """Delivery details stored alongside a sent marker."""

    person_email: str
    schedule_title: str
    message_id: str | None = None


def generate_idempotency_key(
    schedule_id: str,
    when: datetime,
    granularity: Granularity = Granularity.DAY,
) -> str:
    """Build the idempotency key for a schedule and time bucket.

    Buckets are taken from the UTC instant, e.g. ``abc_2025-01-06``,
    ``abc_2025-01-06_09`` or ``abc_2025-01-06_09:15``.

    :param schedule_id: Schedule ID.
    :param when: Instant falling in the bucket.
    :param granularity: Bucket size.
    :returns: The key.
    """
    bucket = ensure_utc(when).strftime(_BUCKET_FORMATS[granularity])
    return f"{schedule_id}_{bucket}"


def granularity_for(rule: RecurrenceRule) -> Granularity:
    """Choose the idempotency bucket size for a recurrence rule.

    :param rule: The recurrence rule.
    :returns: MINUTE for per-minute rules, HOUR for hourly rules, DAY otherwise.
    """
    if isinstance(rule, PerMinuteRule):
        return Granularity.MINUTE
    if isinstance(rule, HourlyRule):
        return Granularity.HOUR
    return Granularity.DAY


class ReminderTracker:
    """Records sent reminders in a marker store and answers has-it-been-sent.

    Store failures on reads are treated as "not sent": a possible duplicate
    is preferred over a missed reminder. Failures on writes are logged and
    not raised, so a delivered reminder is still counted as sent.
    """

    def __init__(self, store: MarkerStore) -> None:
        """Initialise the tracker.

        :param store: Marker store holding sent markers.
        """
        self._store = store

    def has_reminder_been_sent(
        self,
        schedule_id: str,
        when: datetime,
        granularity: Granularity = Granularity.DAY,
    ) -> bool:
        """Check whether a reminder was already sent in the bucket containing ``when``.

        :param schedule_id: Schedule ID.
        :param when: Instant to check.
        :param granularity: Bucket size.
        :returns: True if a marker exists. False if absent or the store failed.
        """
        key = generate_idempotency_key(schedule_id, when, granularity)
        try:
            return self._store.get(key) is not None
        except StoreError as e:
            logger.warning(f"Could not check sent reminder {key}, assuming not sent: {e}")
            return False

    def mark_reminder_sent(
        self,
        schedule_id: str,
        when: datetime,
        metadata: ReminderMetadata,
        granularity: Granularity = Granularity.DAY,
    ) -> None:
        """Record that a reminder was sent. Calling twice overwrites the marker.

        :param schedule_id: Schedule ID.
        :param when: Send instant, which also selects the bucket.
        :param metadata: Delivery details to store.
        :param granularity: Bucket size.
        """
        marker = _build_marker(schedule_id, when, metadata, granularity)
        try:
            self._store.upsert(marker)
        except StoreError as e:
            logger.error(f"Failed to mark reminder sent: key={marker.key}, error={e}")
            return
        logger.debug(f"Marked reminder sent: key={marker.key}")

    def claim_reminder(
        self,
        schedule_id: str,
        when: datetime,
        metadata: ReminderMetadata,
        granularity: Granularity = Granularity.DAY,
    ) -> bool:
        """Atomically write the marker unless another caller already has.

        Replaces the check-then-mark pair when overlapping runs must not
        both send. A store failure grants the claim.

        :param schedule_id: Schedule ID.
        :param when: Send instant, which also selects the bucket.
        :param metadata: Delivery details to store.
        :param granularity: Bucket size.
        :returns: True if this caller owns the bucket and should send.
        """
        marker = _build_marker(schedule_id, when, metadata, granularity)
        try:
            claimed = self._store.insert_if_absent(marker)
        except StoreError as e:
            logger.warning(f"Could not claim reminder {marker.key}, sending anyway: {e}")
            return True

        if not claimed:
            logger.debug(f"Reminder already claimed: key={marker.key}")
        return claimed

    def release_claim(
        self,
        schedule_id: str,
        when: datetime,
        granularity: Granularity = Granularity.DAY,
    ) -> bool:
        """Remove a claimed marker after the send failed, so a later run can retry.

        :param schedule_id: Schedule ID.
        :param when: Instant used when claiming.
        :param granularity: Bucket size.
        :returns: True if a marker was removed.
        """
        key = generate_idempotency_key(schedule_id, when, granularity)
        try:
            return self._store.delete(key)
        except StoreError as e:
            logger.error(f"Failed to release reminder claim {key}: {e}")
            return False

    def cleanup_old_reminders(
        self,
        now: datetime | None = None,
        max_age: timedelta = DEFAULT_CLEANUP_MAX_AGE,
        batch_size: int = DEFAULT_CLEANUP_BATCH_SIZE,
    ) -> int:
        """Purge one batch of markers older than ``max_age``.

        :param now: Current instant (defaults to now).
        :param max_age: Markers sent before ``now - max_age`` are purged.
        :param batch_size: Maximum markers purged in this call.
        :returns: Number of markers purged.
        """
        if now is None:
            now = datetime.now(UTC)

        cutoff = ensure_utc(now) - max_age
        try:
            deleted = self._store.delete_older_than(cutoff, batch_size)
        except StoreError as e:
            logger.error(f"Failed to clean up sent reminders: {e}")
            return 0

        if deleted:
            logger.info(f"Cleaned up {deleted} sent reminder markers older than {max_age}")
        return deleted

    def clear_todays_sent_reminder(self, schedule_id: str, now: datetime | None = None) -> bool:
        """Remove today's day-bucket marker so an edited schedule can fire again today.

        Hour and minute markers are not touched.

        :param schedule_id: Schedule ID.
        :param now: Current instant (defaults to now).
        :returns: True if a marker was removed.
        """
        if now is None:
            now = datetime.now(UTC)

        key = generate_idempotency_key(schedule_id, now, Granularity.DAY)
        try:
            cleared = self._store.delete(key)
        except StoreError as e:
            logger.error(f"Failed to clear today's sent reminder {key}: {e}")
            return False

        if cleared:
            logger.info(f"Cleared today's sent reminder for schedule {schedule_id}")
        return cleared

    def get_sent_today(
        self,
        schedule_ids: list[str],
        now: datetime | None = None,
    ) -> dict[str, datetime]:
        """Get the send instants of today's day-bucket markers.

        :param schedule_ids: Schedules to look up.
        :param now: Current instant (defaults to now).
        :returns: Mapping of schedule ID to sent instant, for schedules sent today.
        :raises StoreError: If the store is unavailable.
        """
        if now is None:
            now = datetime.now(UTC)

        keys = [generate_idempotency_key(sid, now, Granularity.DAY) for sid in schedule_ids]
        return {marker.schedule_id: marker.sent_at for marker in self._store.get_many(keys)}


def _build_marker(
    schedule_id: str,
    when: datetime,
    metadata: ReminderMetadata,
    granularity: Granularity,
) -> SentMarker:
    sent_at = ensure_utc(when)
    return SentMarker(
        key=generate_idempotency_key(schedule_id, sent_at, granularity),
        schedule_id=schedule_id,
        bucket_date=sent_at.strftime("%Y-%m-%d"),
        granularity=granularity,
        sent_at=sent_at,
        person_email=metadata.person_email,
        schedule_title=metadata.schedule_title,
        message_id=metadata.message_id,
    )
