"""Source of truth for schedule definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError

from src.database.schedules import list_active_schedules, schedule_to_definition

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from src.engine.models import ScheduleDefinition

logger = logging.getLogger(__name__)


class ScheduleSource(Protocol):
    """Protocol for stores that hold the authoritative schedule definitions."""

    def list_active(self) -> list[ScheduleDefinition]:
        """List all schedules whose status is active.

        :returns: Active schedule definitions.
        """
        ...


class DatabaseScheduleSource:
    """Schedule source backed by the ``schedules`` table."""

    def __init__(self, session: Session) -> None:
        """Initialise the source.

        :param session: Database session to read schedules with.
        """
        self._session = session

    def list_active(self) -> list[ScheduleDefinition]:
        """List active schedules, skipping rows whose rule documents are invalid.

        :returns: Active schedule definitions.
        """
        definitions = []
        for schedule in list_active_schedules(self._session):
            try:
                definitions.append(schedule_to_definition(schedule))
            except ValidationError as e:
                logger.warning(f"Skipping schedule {schedule.id} with invalid rules: {e}")
        return definitions
