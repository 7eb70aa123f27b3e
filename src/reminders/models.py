"""Pydantic models for reminder dispatch results."""

from pydantic import BaseModel, Field

from src.enums import OutcomeStatus


class ScheduleOutcome(BaseModel):
    """What happened to one schedule during a reminder check."""

    schedule_id: str = Field(..., description="Schedule ID")
    title: str = Field(..., description="Schedule title")
    status: OutcomeStatus = Field(..., description="Outcome of the check")
    reason: str | None = Field(None, description="Why the schedule ended in this status")


class CronRunResult(BaseModel):
    """Summary of one reminder check."""

    checked: int = Field(default=0, description="Schedules inside the candidate window")
    sent: int = Field(default=0, description="Reminders delivered")
    skipped: int = Field(default=0, description="Candidates not due or already sent")
    errors: int = Field(default=0, description="Schedules that failed")
    cleaned_up: int = Field(default=0, description="Old sent markers purged")
    cache_hit: bool = Field(default=False, description="Whether the cache held schedules")
    total_cached: int = Field(default=0, description="Schedules read from the cache")
    needs_sync: bool = Field(default=False, description="Whether the cache must be synced")
    duration_ms: int = Field(default=0, description="Wall time of the check")
    message: str | None = Field(None, description="Short status message")
    details: list[ScheduleOutcome] = Field(default_factory=list, description="Per-schedule log")

    def add_outcome(
        self,
        schedule_id: str,
        title: str,
        status: OutcomeStatus,
        reason: str | None = None,
    ) -> None:
        """Record a schedule outcome and bump the matching counter.

        :param schedule_id: Schedule ID.
        :param title: Schedule title.
        :param status: Outcome of the check.
        :param reason: Why the schedule ended in this status.
        """
        match status:
            case OutcomeStatus.SENT:
                self.sent += 1
            case OutcomeStatus.SKIPPED:
                self.skipped += 1
            case OutcomeStatus.ERROR:
                self.errors += 1
        self.details.append(
            ScheduleOutcome(schedule_id=schedule_id, title=title, status=status, reason=reason)
        )
