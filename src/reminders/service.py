"""Reminder dispatch service run once per scheduler tick."""

import concurrent.futures
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.database.cron_logs import record_cron_run
from src.database.schedule_cache import (
    CacheSyncResult,
    get_cached_schedules,
    sync_schedule_cache,
)
from src.engine import (
    CachedSchedule,
    ComputationError,
    build_reminder_message,
    calculate_next_deadline,
    calculate_reminder_time,
    ensure_utc,
    is_in_prefilter_window,
    should_send_reminder,
)
from src.engine.clock import local_zone
from src.enums import OutcomeStatus
from src.notifications import Notifier, SendResult, get_notifier
from src.reminders.config import ReminderSettings, get_reminder_settings
from src.reminders.exceptions import DispatchError, DispatchTimeoutError, NotifierError
from src.reminders.models import CronRunResult
from src.reminders.sources import DatabaseScheduleSource
from src.reminders.stores import DatabaseMarkerStore
from src.reminders.tracker import ReminderMetadata, ReminderTracker, granularity_for

logger = logging.getLogger(__name__)

# Cached schedules carry no creation instant; interval rules are anchored here instead
DEFAULT_CREATED_AT = datetime(2024, 1, 1, tzinfo=local_zone())

NEEDS_SYNC_MESSAGE = "No schedules in cache - please sync"
NO_CANDIDATES_MESSAGE = "No reminders in window"


@dataclass
class _Candidate:
    """A cached schedule whose reminder falls near the current tick."""

    schedule: CachedSchedule
    deadline: datetime
    reminder_at: datetime


class ReminderDispatchService:
    """Sends due reminders from the schedule cache, at most once per bucket.

    A run reads the cache, narrows it to schedules whose reminder is close to
    now, then for each candidate checks the send window, checks the tracker,
    sends, and marks it sent. Schedules are isolated from each other: a
    failure is counted and the run continues.
    """

    def __init__(
        self,
        session: Session,
        notifier: Notifier,
        tracker: ReminderTracker,
        settings: ReminderSettings | None = None,
    ) -> None:
        """Initialise the dispatch service.

        :param session: Database session for the cache and the audit log.
        :param notifier: Transport reminders are delivered with.
        :param tracker: Idempotency tracker for sent reminders.
        :param settings: Reminder settings. Loaded from the environment if omitted.
        """
        self._session = session
        self._notifier = notifier
        self._tracker = tracker
        self._settings = settings or get_reminder_settings()

    def run(self, now: datetime | None = None) -> CronRunResult:
        """Run one reminder check.

        :param now: Instant of the tick (defaults to now).
        :returns: Summary of the run.
        """
        started = time.monotonic()
        now = ensure_utc(now or datetime.now(UTC))

        result = CronRunResult()
        schedules = get_cached_schedules(self._session)
        result.total_cached = len(schedules)
        result.cache_hit = bool(schedules)
        logger.info(f"Reminder check at {now.isoformat()}: {len(schedules)} cached schedules")

        if not schedules:
            logger.warning("No schedules in cache - needs sync")
            result.needs_sync = True
            result.message = NEEDS_SYNC_MESSAGE
            result.cleaned_up = self._cleanup(now)
            return self._finish(result, now, started)

        candidates = self._select_candidates(schedules, now, result)
        result.checked = len(candidates)

        for candidate in candidates:
            self._process(candidate, now, result)

        # Cleanup stalls while errors persist
        if result.errors == 0 and result.checked > 0:
            result.cleaned_up = self._cleanup(now)

        if not candidates:
            result.message = NO_CANDIDATES_MESSAGE
        else:
            result.message = f"Processed {result.checked} schedules"

        logger.info(
            f"Reminder check complete: {result.checked} checked, {result.sent} sent, "
            f"{result.skipped} skipped, {result.errors} errors, {result.cleaned_up} cleaned up"
        )
        return self._finish(result, now, started)

    def _select_candidates(
        self,
        schedules: list[CachedSchedule],
        now: datetime,
        result: CronRunResult,
    ) -> list[_Candidate]:
        """Keep the schedules whose reminder falls within a few minutes of now.

        :param schedules: Cached schedules.
        :param now: Instant of the tick.
        :param result: Run summary; computation failures are recorded on it.
        :returns: Candidates with their computed deadline and reminder instants.
        """
        offset = self._settings.utc_offset
        candidates = []
        for schedule in schedules:
            try:
                deadline = calculate_next_deadline(
                    schedule.deadline, now, created_at=DEFAULT_CREATED_AT, utc_offset=offset
                )
                reminder_at = calculate_reminder_time(schedule.reminder, deadline, offset)
            except ComputationError as e:
                logger.warning(f"Could not compute reminder for schedule {schedule.id}: {e}")
                result.add_outcome(schedule.id, schedule.title, OutcomeStatus.ERROR, str(e))
                continue

            if is_in_prefilter_window(reminder_at, now):
                logger.debug(
                    f"Candidate schedule {schedule.id}: deadline={deadline.isoformat()}, "
                    f"reminder={reminder_at.isoformat()}"
                )
                candidates.append(_Candidate(schedule, deadline, reminder_at))

        return candidates

    def _process(self, candidate: _Candidate, now: datetime, result: CronRunResult) -> None:
        """Evaluate and, if due, deliver one candidate's reminder.

        :param candidate: Candidate schedule.
        :param now: Instant of the tick.
        :param result: Run summary the outcome is recorded on.
        """
        schedule = candidate.schedule

        if not should_send_reminder(candidate.reminder_at, now):
            diff_minutes = int((now - candidate.reminder_at).total_seconds() // 60)
            reason = (
                f"Not in window. Reminder: {candidate.reminder_at.isoformat()}, "
                f"Now: {now.isoformat()}, Diff: {diff_minutes}m"
            )
            result.add_outcome(schedule.id, schedule.title, OutcomeStatus.SKIPPED, reason)
            return

        granularity = granularity_for(schedule.deadline)
        metadata = ReminderMetadata(
            person_email=schedule.person_email,
            schedule_title=schedule.title,
        )
        already_sent_reason = f"Already sent ({granularity} granularity)"

        if self._settings.atomic_claims:
            if not self._tracker.claim_reminder(schedule.id, now, metadata, granularity):
                result.add_outcome(
                    schedule.id, schedule.title, OutcomeStatus.SKIPPED, already_sent_reason
                )
                return
        elif self._tracker.has_reminder_been_sent(schedule.id, now, granularity):
            result.add_outcome(
                schedule.id, schedule.title, OutcomeStatus.SKIPPED, already_sent_reason
            )
            return

        try:
            send_result = self._deliver(schedule, candidate.deadline)
        except Exception as e:
            if not isinstance(e, DispatchError):
                logger.exception(f"Unexpected error sending reminder for schedule {schedule.id}")
            if self._settings.atomic_claims:
                self._tracker.release_claim(schedule.id, now, granularity)
            result.add_outcome(schedule.id, schedule.title, OutcomeStatus.ERROR, str(e))
            return

        sent_metadata = ReminderMetadata(
            person_email=schedule.person_email,
            schedule_title=schedule.title,
            message_id=send_result.message_id,
        )
        # Claimed markers are rewritten so they carry the message ID
        self._tracker.mark_reminder_sent(schedule.id, now, sent_metadata, granularity)
        result.add_outcome(
            schedule.id,
            schedule.title,
            OutcomeStatus.SENT,
            f"Sent to {schedule.person_email}. Deadline: {candidate.deadline.isoformat()}. "
            f"Message ID: {send_result.message_id}",
        )

    def _deliver(self, schedule: CachedSchedule, deadline: datetime) -> SendResult:
        """Send a reminder with a time limit.

        :param schedule: Schedule being reminded about.
        :param deadline: Upcoming deadline instant.
        :returns: The notifier's successful result.
        :raises NotifierError: If the notifier reports a failed send.
        :raises DispatchTimeoutError: If the send exceeds the configured limit.
        """
        subject, body = build_reminder_message(schedule, deadline, self._settings.utc_offset)
        timeout = self._settings.send_timeout_seconds

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._notifier.send, schedule.person_email, subject, body)
        try:
            send_result = future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            logger.warning(
                f"Reminder send timed out: schedule={schedule.id}, timeout={timeout}s"
            )
            raise DispatchTimeoutError(timeout, schedule.id)
        finally:
            # Do not wait on a hung send
            executor.shutdown(wait=False, cancel_futures=True)

        if not send_result.success:
            logger.warning(
                f"Reminder send failed: schedule={schedule.id}, error={send_result.error}"
            )
            raise NotifierError(send_result.error or "Unknown notifier error", schedule.id)
        return send_result

    def _cleanup(self, now: datetime) -> int:
        """Purge one batch of expired sent markers.

        :param now: Instant of the tick.
        :returns: Number of markers purged.
        """
        return self._tracker.cleanup_old_reminders(
            now,
            max_age=self._settings.cleanup_max_age,
            batch_size=self._settings.cleanup_batch_size,
        )

    def _finish(self, result: CronRunResult, now: datetime, started: float) -> CronRunResult:
        """Stamp the duration and write the audit record.

        :param result: Run summary.
        :param now: Instant of the tick.
        :param started: Monotonic start time.
        :returns: The completed summary.
        """
        result.duration_ms = int((time.monotonic() - started) * 1000)
        try:
            record_cron_run(
                self._session,
                timestamp=now,
                checked=result.checked,
                sent=result.sent,
                skipped=result.skipped,
                errors=result.errors,
            )
            self._session.commit()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to record cron run: {e}")
            self._session.rollback()
        return result


def build_dispatch_service(
    session: Session,
    settings: ReminderSettings | None = None,
) -> ReminderDispatchService:
    """Build a dispatch service wired to the database and the configured notifier.

    :param session: Database session.
    :param settings: Reminder settings. Loaded from the environment if omitted.
    :returns: Ready-to-run dispatch service.
    """
    settings = settings or get_reminder_settings()
    return ReminderDispatchService(
        session=session,
        notifier=get_notifier(settings.notifier),
        tracker=ReminderTracker(DatabaseMarkerStore()),
        settings=settings,
    )


def handle_schedule_changed(
    session: Session,
    schedule_id: str,
    tracker: ReminderTracker | None = None,
) -> CacheSyncResult:
    """Refresh derived state after a schedule is created, edited or deactivated.

    Clears today's sent marker so an edited reminder can fire again today,
    then rebuilds the cache from the database.

    :param session: Database session holding the change.
    :param schedule_id: Schedule that changed.
    :param tracker: Tracker to clear the marker with. Database-backed if omitted.
    :returns: Result of the cache rebuild.
    """
    tracker = tracker or ReminderTracker(DatabaseMarkerStore())
    tracker.clear_todays_sent_reminder(schedule_id)
    result = sync_schedule_cache(session, DatabaseScheduleSource(session))
    if not result.success:
        logger.warning(f"Schedule {schedule_id} saved but cache rebuild failed: {result.error}")
    return result
