"""Pydantic models for schedule API endpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from src.api.models import CamelModel
from src.engine.models import RecurrenceRule, ReminderRule
from src.enums import ScheduleStatus

# Loose address check; delivery failures surface from the notifier
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CreateScheduleRequest(CamelModel):
    """Request model for creating a schedule."""

    title: str = Field(..., min_length=1, max_length=200, description="Schedule title")
    description: str = Field("", max_length=1000, description="Schedule description")
    deadline: RecurrenceRule
    reminder_date: ReminderRule
    person_assigned: str = Field(..., min_length=1, max_length=200, description="Assignee name")
    person_email: str = Field(..., pattern=EMAIL_PATTERN, description="Assignee e-mail")


class UpdateScheduleRequest(CamelModel):
    """Request model for updating a schedule. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    deadline: RecurrenceRule | None = None
    reminder_date: ReminderRule | None = None
    person_assigned: str | None = Field(None, min_length=1, max_length=200)
    person_email: str | None = Field(None, pattern=EMAIL_PATTERN)
    status: ScheduleStatus | None = None


class ScheduleResponse(CamelModel):
    """Response model for a schedule."""

    id: UUID = Field(..., description="Schedule ID")
    title: str = Field(..., description="Schedule title")
    description: str = Field(..., description="Schedule description")
    deadline: dict[str, Any] = Field(..., description="Recurrence rule document")
    reminder_date: dict[str, Any] = Field(..., description="Reminder rule document")
    person_assigned: str = Field(..., description="Assignee name")
    person_email: str = Field(..., description="Assignee e-mail")
    status: ScheduleStatus = Field(..., description="Lifecycle status")
    next_deadline: datetime | None = Field(None, description="Next deadline, if computable")
    next_reminder: datetime | None = Field(None, description="Next reminder, if computable")
    created_at: datetime = Field(..., description="When the schedule was created")
    updated_at: datetime = Field(..., description="When the schedule was last updated")


class SyncCacheResponse(CamelModel):
    """Response model for a cache rebuild."""

    success: bool = Field(..., description="Whether the rebuild succeeded")
    count: int = Field(..., description="Schedules written to the cache")
    error: str | None = Field(None, description="Error message on failure")


class CacheStatusResponse(CamelModel):
    """Response model for cache diagnostics."""

    exists: bool = Field(..., description="Whether the cache has been synced")
    last_synced: datetime | None = Field(None, description="When the cache was last synced")
    schedule_count: int | None = Field(None, description="Schedules in the cache")


class SentTodayResponse(CamelModel):
    """Response model for today's sent reminders."""

    sent_today: dict[str, datetime] = Field(
        default_factory=dict,
        description="Schedule ID to the instant today's reminder was sent",
    )
