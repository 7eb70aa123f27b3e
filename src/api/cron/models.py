"""Pydantic models for the scheduler trigger endpoint."""

from pydantic import Field

from src.api.models import CamelModel
from src.enums import OutcomeStatus


class ScheduleOutcomeResponse(CamelModel):
    """Outcome of one schedule in a reminder check."""

    schedule_id: str = Field(..., description="Schedule ID")
    title: str = Field(..., description="Schedule title")
    status: OutcomeStatus = Field(..., description="Outcome of the check")
    reason: str | None = Field(None, description="Why the schedule ended in this status")


class SendRemindersResponse(CamelModel):
    """Summary of a reminder check."""

    checked: int = Field(..., description="Schedules inside the candidate window")
    sent: int = Field(..., description="Reminders delivered")
    skipped: int = Field(..., description="Candidates not due or already sent")
    errors: int = Field(..., description="Schedules that failed")
    cleaned_up: int = Field(..., description="Old sent markers purged")
    cache_hit: bool = Field(..., description="Whether the cache held schedules")
    total_cached: int = Field(..., description="Schedules read from the cache")
    duration_ms: int = Field(..., description="Wall time of the check")
    needs_sync: bool = Field(..., description="Whether the cache must be synced")
    message: str | None = Field(None, description="Short status message")
    details: list[ScheduleOutcomeResponse] = Field(default_factory=list)
