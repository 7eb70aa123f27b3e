"""Database operations for schedules."""

from __future__ import annotations

import logging
import uuid as uuid_module
from typing import TYPE_CHECKING, Any

from src.database.schedules.models import Schedule
from src.engine.models import ScheduleDefinition
from src.enums import ScheduleStatus

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from src.engine.models import RecurrenceRule, ReminderRule

logger = logging.getLogger(__name__)

# Fields a caller may change through update_schedule
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "deadline",
        "reminder_date",
        "person_assigned",
        "person_email",
        "status",
    }
)


def _rule_to_document(rule: RecurrenceRule | ReminderRule) -> dict[str, Any]:
    return rule.model_dump(mode="json", by_alias=True, exclude_none=True)


def create_schedule(  # noqa: PLR0913
    session: Session,
    title: str,
    deadline: RecurrenceRule,
    reminder: ReminderRule,
    person_assigned: str,
    person_email: str,
    description: str = "",
    user_id: str | None = None,
) -> Schedule:
    """Create a new active schedule.

    :param session: Database session.
    :param title: Schedule title.
    :param deadline: Recurrence rule for the deadline.
    :param reminder: Reminder rule.
    :param person_assigned: Name of the assignee.
    :param person_email: Address reminders are sent to.
    :param description: Optional description.
    :param user_id: Owner of the schedule, if known.
    :returns: The created schedule.
    """
    schedule = Schedule(
        title=title,
        description=description,
        deadline=_rule_to_document(deadline),
        reminder_date=_rule_to_document(reminder),
        person_assigned=person_assigned,
        person_email=person_email,
        status=ScheduleStatus.ACTIVE.value,
        user_id=user_id,
    )
    session.add(schedule)
    session.flush()
    logger.info(f"Created schedule: id={schedule.id}, deadline={deadline.type}")
    return schedule


def get_schedule_by_id(
    session: Session,
    schedule_id: uuid_module.UUID,
) -> Schedule | None:
    """Get a schedule by ID.

    :param session: Database session.
    :param schedule_id: Schedule ID.
    :returns: The schedule or None if not found.
    """
    return session.query(Schedule).filter(Schedule.id == schedule_id).first()


def update_schedule(
    session: Session,
    schedule_id: uuid_module.UUID,
    **changes: Any,
) -> Schedule | None:
    """Update fields of a schedule.

    Rule values may be passed as models or as already-serialised documents.

    :param session: Database session.
    :param schedule_id: Schedule ID.
    :param changes: Field names and new values. None values are ignored.
    :returns: The updated schedule or None if not found.
    :raises ValueError: If an unknown field is passed.
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update schedule fields: {sorted(unknown)}")

    schedule = get_schedule_by_id(session, schedule_id)
    if schedule is None:
        return None

    for field_name, value in changes.items():
        if value is None:
            continue
        if field_name in ("deadline", "reminder_date") and not isinstance(value, dict):
            value = _rule_to_document(value)
        setattr(schedule, field_name, value)

    session.flush()
    logger.info(f"Updated schedule: id={schedule_id}, fields={sorted(changes)}")
    return schedule


def deactivate_schedule(
    session: Session,
    schedule_id: uuid_module.UUID,
) -> Schedule | None:
    """Deactivate a schedule so it no longer sends reminders.

    :param session: Database session.
    :param schedule_id: Schedule ID.
    :returns: The deactivated schedule or None if not found.
    """
    schedule = get_schedule_by_id(session, schedule_id)
    if schedule is None:
        return None

    schedule.status = ScheduleStatus.INACTIVE.value
    session.flush()
    logger.info(f"Deactivated schedule: id={schedule_id}")
    return schedule


def list_active_schedules(session: Session) -> list[Schedule]:
    """List all active schedules.

    :param session: Database session.
    :returns: Active schedules ordered by creation time.
    """
    return (
        session.query(Schedule)
        .filter(Schedule.status == ScheduleStatus.ACTIVE.value)
        .order_by(Schedule.created_at)
        .all()
    )


def list_schedule_ids(session: Session) -> list[uuid_module.UUID]:
    """List the IDs of all schedules, active or not.

    :param session: Database session.
    :returns: Schedule IDs.
    """
    return [row.id for row in session.query(Schedule.id).all()]


def schedule_to_definition(schedule: Schedule) -> ScheduleDefinition:
    """Convert an ORM schedule into a validated schedule definition.

    :param schedule: The ORM schedule.
    :returns: The schedule definition.
    :raises pydantic.ValidationError: If the stored rule documents are malformed.
    """
    return ScheduleDefinition.model_validate(
        {
            "id": str(schedule.id),
            "title": schedule.title,
            "description": schedule.description or "",
            "deadline": schedule.deadline,
            "reminderDate": schedule.reminder_date,
            "personAssigned": schedule.person_assigned,
            "personEmail": schedule.person_email,
            "status": schedule.status,
            "createdAt": schedule.created_at,
        }
    )
