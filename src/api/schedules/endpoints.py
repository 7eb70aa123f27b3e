"""API endpoints for managing schedules and the schedule cache."""

import logging
import time
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from src.api.schedules.models import (
    CacheStatusResponse,
    CreateScheduleRequest,
    ScheduleResponse,
    SentTodayResponse,
    SyncCacheResponse,
    UpdateScheduleRequest,
)
from src.database.connection import get_session
from src.database.schedule_cache import get_cache_status, sync_schedule_cache
from src.database.schedules import (
    Schedule,
    create_schedule,
    deactivate_schedule,
    get_schedule_by_id,
    list_schedule_ids,
    schedule_to_definition,
    update_schedule,
)
from src.engine import (
    ComputationError,
    calculate_next_deadline,
    calculate_reminder_time,
    is_far_future_sentinel,
)
from src.reminders.config import get_reminder_settings
from src.reminders.exceptions import StoreError
from src.reminders.service import handle_schedule_changed
from src.reminders.sources import DatabaseScheduleSource
from src.reminders.stores import DatabaseMarkerStore
from src.reminders.tracker import ReminderTracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedules", tags=["Schedules"])


def _schedule_to_response(schedule: Schedule) -> ScheduleResponse:
    """Convert a schedule model to response, with its next deadline and reminder.

    Custom rules are not evaluated, so their placeholder deadline is reported
    as no upcoming deadline.

    :param schedule: The database model.
    :returns: API response model.
    """
    next_deadline = None
    next_reminder = None
    if schedule.is_active:
        offset = get_reminder_settings().utc_offset
        definition = schedule_to_definition(schedule)
        try:
            reference = datetime.now(UTC)
            deadline = calculate_next_deadline(
                definition.deadline,
                reference,
                created_at=definition.created_at,
                utc_offset=offset,
            )
            if not is_far_future_sentinel(deadline, reference):
                next_deadline = deadline
                next_reminder = calculate_reminder_time(definition.reminder, deadline, offset)
        except ComputationError as e:
            logger.warning(f"Could not compute next deadline for schedule {schedule.id}: {e}")

    return ScheduleResponse(
        id=schedule.id,
        title=schedule.title,
        description=schedule.description or "",
        deadline=schedule.deadline,
        reminder_date=schedule.reminder_date,
        person_assigned=schedule.person_assigned,
        person_email=schedule.person_email,
        status=schedule.status,
        next_deadline=next_deadline,
        next_reminder=next_reminder,
        created_at=schedule.created_at,
        updated_at=schedule.updated_at,
    )


@router.post(
    "/sync-cache",
    response_model=SyncCacheResponse,
    summary="Rebuild schedule cache",
)
def sync_cache() -> SyncCacheResponse:
    """Rebuild the schedule cache from all active schedules."""
    start = time.perf_counter()
    logger.info("Sync schedule cache")

    with get_session() as session:
        result = sync_schedule_cache(session, DatabaseScheduleSource(session))

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"Sync schedule cache complete: success={result.success}, "
        f"count={result.count}, elapsed={elapsed_ms:.0f}ms"
    )

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to sync schedule cache: {result.error}",
        )

    return SyncCacheResponse(success=result.success, count=result.count, error=result.error)


@router.get(
    "/cache-status",
    response_model=CacheStatusResponse,
    summary="Get schedule cache status",
)
def cache_status() -> CacheStatusResponse:
    """Report whether the schedule cache exists and when it was last synced."""
    with get_session() as session:
        cache = get_cache_status(session)

    return CacheStatusResponse(
        exists=cache.exists,
        last_synced=cache.last_synced,
        schedule_count=cache.schedule_count,
    )


@router.get(
    "/sent-today",
    response_model=SentTodayResponse,
    summary="Get today's sent reminders",
)
def sent_today() -> SentTodayResponse:
    """List the schedules whose daily reminder has been sent today (UTC day)."""
    now = datetime.now(UTC)

    with get_session() as session:
        schedule_ids = [str(schedule_id) for schedule_id in list_schedule_ids(session)]

    if not schedule_ids:
        return SentTodayResponse()

    tracker = ReminderTracker(DatabaseMarkerStore())
    try:
        sent = tracker.get_sent_today(schedule_ids, now)
    except StoreError as e:
        logger.exception("Failed to fetch sent reminders")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch sent reminders",
        ) from e

    logger.info(f"Sent today: {len(sent)} of {len(schedule_ids)} schedules")
    return SentTodayResponse(sent_today=sent)


@router.post(
    "",
    response_model=ScheduleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create schedule",
)
def create_schedule_endpoint(request: CreateScheduleRequest) -> ScheduleResponse:
    """Create a new active schedule and refresh the cache."""
    start = time.perf_counter()
    logger.info(f"Create schedule: title={request.title!r}, deadline={request.deadline.type}")

    with get_session() as session:
        schedule = create_schedule(
            session=session,
            title=request.title,
            deadline=request.deadline,
            reminder=request.reminder_date,
            person_assigned=request.person_assigned,
            person_email=request.person_email,
            description=request.description,
        )
        handle_schedule_changed(session, str(schedule.id))
        response = _schedule_to_response(schedule)

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Create schedule complete: id={response.id}, elapsed={elapsed_ms:.0f}ms")

    return response


@router.get(
    "/{schedule_id}",
    response_model=ScheduleResponse,
    summary="Get schedule",
)
def get_schedule(schedule_id: UUID) -> ScheduleResponse:
    """Get a specific schedule by ID."""
    with get_session() as session:
        schedule = get_schedule_by_id(session, schedule_id)
        if schedule is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Schedule not found: {schedule_id}",
            )
        return _schedule_to_response(schedule)


@router.patch(
    "/{schedule_id}",
    response_model=ScheduleResponse,
    summary="Update schedule",
)
def update_schedule_endpoint(
    schedule_id: UUID,
    request: UpdateScheduleRequest,
) -> ScheduleResponse:
    """Update a schedule.

    Clears today's sent marker so the edited reminder can fire again today,
    then refreshes the cache.
    """
    start = time.perf_counter()
    changes = request.model_dump(exclude_unset=True)
    logger.info(f"Update schedule: id={schedule_id}, fields={sorted(changes)}")

    with get_session() as session:
        schedule = update_schedule(
            session,
            schedule_id,
            **{field: getattr(request, field) for field in changes},
        )
        if schedule is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Schedule not found: {schedule_id}",
            )
        handle_schedule_changed(session, str(schedule_id))
        response = _schedule_to_response(schedule)

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Update schedule complete: id={schedule_id}, elapsed={elapsed_ms:.0f}ms")

    return response


@router.delete(
    "/{schedule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate schedule",
)
def deactivate_schedule_endpoint(schedule_id: UUID) -> None:
    """Deactivate a schedule so it no longer sends reminders.

    The schedule is kept for history and removed from the cache.
    """
    logger.info(f"Deactivate schedule: id={schedule_id}")

    with get_session() as session:
        schedule = deactivate_schedule(session, schedule_id)
        if schedule is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Schedule not found: {schedule_id}",
            )
        handle_schedule_changed(session, str(schedule_id))
