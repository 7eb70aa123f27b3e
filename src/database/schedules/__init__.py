"""Database models and operations for schedules."""

from src.database.schedules.models import Schedule
from src.database.schedules.operations import (
    create_schedule,
    deactivate_schedule,
    get_schedule_by_id,
    list_active_schedules,
    list_schedule_ids,
    schedule_to_definition,
    update_schedule,
)

__all__ = [
    # Models
    "Schedule",
    # Operations
    "create_schedule",
    "deactivate_schedule",
    "get_schedule_by_id",
    "list_active_schedules",
    "list_schedule_ids",
    "schedule_to_definition",
    "update_schedule",
]
