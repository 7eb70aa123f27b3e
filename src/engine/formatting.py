"""Human-readable rendering of schedules for reminder messages."""

from datetime import datetime, timedelta
from typing import assert_never

from src.engine.clock import DEFAULT_UTC_OFFSET, ensure_utc, local_zone
from src.engine.models import (
    CachedSchedule,
    CustomRule,
    DailyRule,
    HourlyRule,
    IntervalRule,
    MonthlyRule,
    MonthlySpecificRule,
    PerMinuteRule,
    RecurrenceRule,
    WeeklyRule,
)

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

DEADLINE_FORMAT = "%A, %B %d, %Y at %I:%M %p"


def describe_recurrence(rule: RecurrenceRule) -> str:
    """Describe a recurrence rule in plain English.

    :param rule: The recurrence rule.
    :returns: Description such as "Every Monday at 09:00".
    """
    match rule:
        case DailyRule():
            return f"Daily{_at(rule.time)}"
        case WeeklyRule():
            return f"Every {WEEKDAY_NAMES[rule.day_of_week]}{_at(rule.time)}"
        case MonthlyRule():
            return f"Monthly on day {rule.day_of_month}{_at(rule.time)}"
        case MonthlySpecificRule():
            return f"Annually on {MONTH_NAMES[rule.month - 1]} {rule.day}{_at(rule.time)}"
        case IntervalRule():
            return f"Every {rule.days} day(s){_at(rule.time)}"
        case HourlyRule():
            return "Every hour" if rule.hours == 1 else f"Every {rule.hours} hours"
        case PerMinuteRule():
            return "Every minute" if rule.minutes == 1 else f"Every {rule.minutes} minutes"
        case CustomRule():
            return "Custom schedule"
        case _:
            assert_never(rule)


def format_deadline(deadline: datetime, utc_offset: timedelta = DEFAULT_UTC_OFFSET) -> str:
    """Format a deadline in the schedule's local time.

    :param deadline: The deadline instant.
    :param utc_offset: Local offset to display the deadline in.
    :returns: Formatted string, e.g. "Monday, January 06, 2025 at 05:00 PM".
    """
    return ensure_utc(deadline).astimezone(local_zone(utc_offset)).strftime(DEADLINE_FORMAT)


def build_reminder_message(
    schedule: CachedSchedule,
    deadline: datetime,
    utc_offset: timedelta = DEFAULT_UTC_OFFSET,
) -> tuple[str, str]:
    """Build the subject and plain-text body of a reminder.

    :param schedule: The schedule being reminded about.
    :param deadline: The upcoming deadline instant.
    :param utc_offset: Local offset to display the deadline in.
    :returns: Tuple of (subject, body).
    """
    formatted_deadline = format_deadline(deadline, utc_offset)
    subject = f"Reminder: {schedule.title}"

    lines = [f"REMINDER: {schedule.title}", ""]
    if schedule.description:
        lines.extend([schedule.description, ""])
    lines.extend(
        [
            f"Deadline: {formatted_deadline}",
            f"Schedule: {describe_recurrence(schedule.deadline)}",
            f"Assigned to: {schedule.person_assigned}",
            "",
            "---",
            "This is an automated reminder.",
        ]
    )
    return subject, "\n".join(lines)


def _at(time_str: str | None) -> str:
    return f" at {time_str}" if time_str else ""
