"""Pydantic models for schedule recurrence and reminder rules.

Rules are closed sum types discriminated on ``type``. Field names follow the
stored document format (camelCase) through aliases; Python code uses the
snake_case attribute names.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.enums import ScheduleStatus

# 24-hour HH:mm
TIME_PATTERN = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"


class _RuleModel(BaseModel):
    """Base configuration shared by all rule variants."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class DailyRule(_RuleModel):
    """Due every day at ``time``."""

    type: Literal["daily"] = "daily"
    time: str | None = Field(None, pattern=TIME_PATTERN, description="Deadline time (HH:mm)")


class WeeklyRule(_RuleModel):
    """Due every week on ``day_of_week`` (0=Sunday) at ``time``."""

    type: Literal["weekly"] = "weekly"
    day_of_week: int = Field(..., ge=0, le=6, alias="dayOfWeek", description="0=Sunday..6")
    time: str | None = Field(None, pattern=TIME_PATTERN, description="Deadline time (HH:mm)")


class MonthlyRule(_RuleModel):
    """Due every month on ``day_of_month``, clamped to the month's last day."""

    type: Literal["monthly"] = "monthly"
    day_of_month: int = Field(..., ge=1, le=31, alias="dayOfMonth", description="Day of month")
    time: str | None = Field(None, pattern=TIME_PATTERN, description="Deadline time (HH:mm)")


class MonthlySpecificRule(_RuleModel):
    """Due every year on ``month``/``day``, clamped to the month's last day."""

    type: Literal["monthly-specific"] = "monthly-specific"
    month: int = Field(..., ge=1, le=12, description="Month (1-12)")
    day: int = Field(..., ge=1, le=31, description="Day of month")
    time: str | None = Field(None, pattern=TIME_PATTERN, description="Deadline time (HH:mm)")


class IntervalRule(_RuleModel):
    """Due every ``days`` days, counted from the schedule's creation."""

    type: Literal["interval"] = "interval"
    days: int = Field(..., ge=1, description="Interval length in days")
    time: str | None = Field(None, pattern=TIME_PATTERN, description="Deadline time (HH:mm)")


class HourlyRule(_RuleModel):
    """Due every ``hours`` hours, bucketed from local midnight."""

    type: Literal["hourly"] = "hourly"
    hours: int = Field(1, ge=1, le=23, description="Interval length in hours")


class PerMinuteRule(_RuleModel):
    """Due every ``minutes`` minutes, bucketed from the start of the hour."""

    type: Literal["per-minute"] = "per-minute"
    minutes: int = Field(1, ge=1, le=59, description="Interval length in minutes")


class CustomRule(_RuleModel):
    """Cron-style rule. Not evaluated; resolves to a far-future sentinel."""

    type: Literal["custom"] = "custom"
    cron_expression: str = Field(..., min_length=1, alias="cronExpression")


RecurrenceRule = Annotated[
    DailyRule
    | WeeklyRule
    | MonthlyRule
    | MonthlySpecificRule
    | IntervalRule
    | HourlyRule
    | PerMinuteRule
    | CustomRule,
    Field(discriminator="type"),
]


class RelativeReminder(_RuleModel):
    """Remind ``days_before`` calendar days before the deadline at ``time``."""

    type: Literal["relative"] = "relative"
    days_before: int = Field(1, ge=0, alias="daysBefore", description="Days before the deadline")
    time: str | None = Field(None, pattern=TIME_PATTERN, description="Reminder time (HH:mm)")


class AbsoluteReminder(_RuleModel):
    """Remind at a fixed instant regardless of the deadline."""

    type: Literal["absolute"] = "absolute"
    date_time: datetime = Field(..., alias="dateTime", description="Reminder instant")


ReminderRule = Annotated[RelativeReminder | AbsoluteReminder, Field(discriminator="type")]


class CachedSchedule(BaseModel):
    """Denormalised schedule entry stored in the cache snapshot.

    Drops owner and audit fields, including the creation instant.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Schedule ID")
    title: str = Field(..., description="Schedule title")
    description: str = Field("", description="Schedule description")
    deadline: RecurrenceRule
    reminder: ReminderRule = Field(..., alias="reminderDate")
    person_assigned: str = Field(..., alias="personAssigned")
    person_email: str = Field(..., alias="personEmail")
    status: ScheduleStatus = Field(ScheduleStatus.ACTIVE)


class ScheduleDefinition(CachedSchedule):
    """Full schedule definition as held by the source of truth."""

    created_at: datetime | None = Field(None, alias="createdAt")

    def to_cached(self) -> CachedSchedule:
        """Reduce to the cache snapshot representation.

        :returns: Cached copy without the creation instant.
        """
        return CachedSchedule.model_validate(self.model_dump(exclude={"created_at"}))
