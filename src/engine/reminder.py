"""Reminder instant calculation and dispatch window checks."""

from datetime import UTC, datetime, time, timedelta
from typing import assert_never

from src.engine.clock import (
    DEFAULT_UTC_OFFSET,
    at_wall_time,
    ensure_utc,
    local_zone,
    parse_wall_time,
)
from src.engine.models import AbsoluteReminder, RelativeReminder, ReminderRule

# Reminder time used when a relative rule does not specify one
DEFAULT_REMINDER_TIME = time(9, 0)

# A reminder fires when now is within [reminder - 2min, reminder + 3min].
# Sized for a trigger that runs roughly once a minute.
SEND_WINDOW_BEFORE = timedelta(minutes=2)
SEND_WINDOW_AFTER = timedelta(minutes=3)

# Coarse window used to pick candidates before the precise check
PREFILTER_WINDOW = timedelta(minutes=3)


def calculate_reminder_time(
    rule: ReminderRule,
    deadline: datetime,
    utc_offset: timedelta = DEFAULT_UTC_OFFSET,
) -> datetime:
    """Calculate when the reminder for a deadline should be sent.

    Relative rules move back ``days_before`` calendar days from the deadline's
    local date and set the local time of day. A ``days_before`` of 0 means the
    same calendar day; the rule's time is not checked against the deadline's.
    Absolute rules return their stored instant and ignore the deadline.

    :param rule: The schedule's reminder rule.
    :param deadline: The deadline instant.
    :param utc_offset: Offset the rule's wall-clock time is expressed in.
    :returns: Aware UTC datetime for the reminder.
    :raises ComputationError: If the rule's time of day is malformed.
    """
    match rule:
        case RelativeReminder():
            local_deadline = ensure_utc(deadline).astimezone(local_zone(utc_offset))
            reminder_day = local_deadline - timedelta(days=rule.days_before)
            time_of_day = parse_wall_time(rule.time, default=DEFAULT_REMINDER_TIME)
            return at_wall_time(reminder_day, time_of_day).astimezone(UTC)
        case AbsoluteReminder():
            return ensure_utc(rule.date_time)
        case _:
            assert_never(rule)


def should_send_reminder(reminder_at: datetime, now: datetime | None = None) -> bool:
    """Check whether a reminder is due at ``now``.

    Example: a reminder at 11:14 fires for any now between 11:12:00 and
    11:17:00 inclusive.

    :param reminder_at: The calculated reminder instant.
    :param now: Current instant. Defaults to now.
    :returns: True if now is inside the dispatch window.
    """
    now = ensure_utc(now or datetime.now(UTC))
    diff = now - ensure_utc(reminder_at)
    return -SEND_WINDOW_BEFORE <= diff <= SEND_WINDOW_AFTER


def is_in_prefilter_window(reminder_at: datetime, now: datetime) -> bool:
    """Check whether a reminder is close enough to now to be worth a precise check.

    :param reminder_at: The calculated reminder instant.
    :param now: Current instant.
    :returns: True if the reminder is within PREFILTER_WINDOW of now.
    """
    return abs(ensure_utc(reminder_at) - ensure_utc(now)) <= PREFILTER_WINDOW
