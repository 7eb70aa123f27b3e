"""Next-deadline calculation for recurring schedules.

All wall-clock maths is done in the schedule's fixed local offset and the
result converted back to UTC. Every variant returns an instant strictly
after the reference instant.
"""

from datetime import UTC, datetime, timedelta
from typing import assert_never

from dateutil.relativedelta import relativedelta

from src.engine.clock import (
    DEFAULT_UTC_OFFSET,
    at_wall_time,
    ensure_utc,
    local_zone,
    parse_wall_time,
)
from src.engine.models import (
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

# Custom rules are not evaluated; they resolve to this far-future horizon
CUSTOM_RULE_HORIZON = timedelta(days=365)


def calculate_next_deadline(
    rule: RecurrenceRule,
    reference: datetime | None = None,
    created_at: datetime | None = None,
    utc_offset: timedelta = DEFAULT_UTC_OFFSET,
) -> datetime:
    """Calculate the next deadline for a recurrence rule.

    :param rule: The schedule's recurrence rule.
    :param reference: Instant to calculate from. Defaults to now.
    :param created_at: Creation instant anchoring interval rules. Defaults to reference.
    :param utc_offset: Offset the rule's wall-clock times are expressed in.
    :returns: Aware UTC datetime strictly after ``reference``.
    :raises ComputationError: If the rule's time of day is malformed.
    """
    reference = ensure_utc(reference or datetime.now(UTC))
    local_now = reference.astimezone(local_zone(utc_offset))

    match rule:
        case DailyRule():
            deadline = _next_daily(rule, reference, local_now)
        case WeeklyRule():
            deadline = _next_weekly(rule, reference, local_now)
        case MonthlyRule():
            deadline = _next_monthly(rule, reference, local_now)
        case MonthlySpecificRule():
            deadline = _next_monthly_specific(rule, reference, local_now)
        case IntervalRule():
            anchor = ensure_utc(created_at) if created_at else reference
            deadline = _next_interval(rule, reference, anchor, utc_offset)
        case HourlyRule():
            deadline = _next_hourly(rule, reference, local_now)
        case PerMinuteRule():
            deadline = _next_per_minute(rule, reference, local_now)
        case CustomRule():
            deadline = reference + CUSTOM_RULE_HORIZON
        case _:
            assert_never(rule)

    return deadline.astimezone(UTC)


def is_far_future_sentinel(deadline: datetime, reference: datetime) -> bool:
    """Check whether a deadline is the unresolved custom-rule placeholder.

    :param deadline: A deadline returned by calculate_next_deadline.
    :param reference: The reference instant it was calculated from.
    :returns: True if the deadline is the custom-rule horizon.
    """
    return ensure_utc(deadline) - ensure_utc(reference) >= CUSTOM_RULE_HORIZON


def _next_daily(rule: DailyRule, reference: datetime, local_now: datetime) -> datetime:
    deadline = at_wall_time(local_now, parse_wall_time(rule.time))
    if deadline <= reference:
        deadline += timedelta(days=1)
    return deadline


def _next_weekly(rule: WeeklyRule, reference: datetime, local_now: datetime) -> datetime:
    time_of_day = parse_wall_time(rule.time)

    # isoweekday() is 1=Monday..7=Sunday; rules use 0=Sunday..6
    current_day = local_now.isoweekday() % 7
    days_until = (rule.day_of_week - current_day) % 7

    if days_until == 0 and at_wall_time(local_now, time_of_day) <= reference:
        days_until = 7

    return at_wall_time(local_now + timedelta(days=days_until), time_of_day)


def _next_monthly(rule: MonthlyRule, reference: datetime, local_now: datetime) -> datetime:
    time_of_day = parse_wall_time(rule.time)

    # relativedelta(day=N) clamps N to the last day of the month
    deadline = at_wall_time(local_now + relativedelta(day=rule.day_of_month), time_of_day)
    if deadline <= reference:
        deadline = at_wall_time(
            local_now + relativedelta(months=1, day=rule.day_of_month),
            time_of_day,
        )
    return deadline


def _next_monthly_specific(
    rule: MonthlySpecificRule,
    reference: datetime,
    local_now: datetime,
) -> datetime:
    time_of_day = parse_wall_time(rule.time)

    deadline = at_wall_time(
        local_now + relativedelta(month=rule.month, day=rule.day),
        time_of_day,
    )
    if deadline <= reference:
        deadline = at_wall_time(
            local_now + relativedelta(years=1, month=rule.month, day=rule.day),
            time_of_day,
        )
    return deadline


def _next_interval(
    rule: IntervalRule,
    reference: datetime,
    anchor: datetime,
    utc_offset: timedelta,
) -> datetime:
    """Bucket the elapsed time into whole intervals from the anchor.

    Counting from the anchor rather than adding one interval to "now" keeps
    the deadlines on a fixed grid.
    """
    time_of_day = parse_wall_time(rule.time)
    interval = timedelta(days=rule.days)

    elapsed_days = (reference - anchor) // timedelta(days=1)
    periods_elapsed = elapsed_days // rule.days

    local_anchor = anchor.astimezone(local_zone(utc_offset))
    deadline = at_wall_time(local_anchor + periods_elapsed * interval, time_of_day)

    # Overwriting the time of day can land a whole interval behind the reference
    while deadline <= reference:
        deadline += interval
    return deadline


def _next_hourly(rule: HourlyRule, reference: datetime, local_now: datetime) -> datetime:
    bucket_hour = (local_now.hour // rule.hours) * rule.hours
    deadline = local_now.replace(hour=bucket_hour, minute=0, second=0, microsecond=0)
    if deadline <= reference:
        deadline += timedelta(hours=rule.hours)
    return deadline


def _next_per_minute(rule: PerMinuteRule, reference: datetime, local_now: datetime) -> datetime:
    bucket_minute = (local_now.minute // rule.minutes) * rule.minutes
    deadline = local_now.replace(minute=bucket_minute, second=0, microsecond=0)
    if deadline <= reference:
        deadline += timedelta(minutes=rule.minutes)
    return deadline
