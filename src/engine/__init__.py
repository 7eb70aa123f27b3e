"""Recurrence and reminder calculation engine.

Pure functions only: no I/O, no reliance on the host timezone.
"""

from src.engine.clock import DEFAULT_UTC_OFFSET, ensure_utc
from src.engine.exceptions import ComputationError, ReminderEngineError
from src.engine.formatting import build_reminder_message, describe_recurrence
from src.engine.models import (
    AbsoluteReminder,
    CachedSchedule,
    CustomRule,
    DailyRule,
    HourlyRule,
    IntervalRule,
    MonthlyRule,
    MonthlySpecificRule,
    PerMinuteRule,
    RecurrenceRule,
    RelativeReminder,
    ReminderRule,
    ScheduleDefinition,
    WeeklyRule,
)
from src.engine.recurrence import calculate_next_deadline, is_far_future_sentinel
from src.engine.reminder import (
    calculate_reminder_time,
    is_in_prefilter_window,
    should_send_reminder,
)

__all__ = [
    "DEFAULT_UTC_OFFSET",
    "AbsoluteReminder",
    "CachedSchedule",
    "ComputationError",
    "CustomRule",
    "DailyRule",
    "HourlyRule",
    "IntervalRule",
    "MonthlyRule",
    "MonthlySpecificRule",
    "PerMinuteRule",
    "RecurrenceRule",
    "RelativeReminder",
    "ReminderEngineError",
    "ReminderRule",
    "ScheduleDefinition",
    "WeeklyRule",
    "build_reminder_message",
    "calculate_next_deadline",
    "calculate_reminder_time",
    "describe_recurrence",
    "ensure_utc",
    "is_far_future_sentinel",
    "is_in_prefilter_window",
    "should_send_reminder",
]
