"""Fixed-offset wall-clock helpers.

Schedule times are entered as local wall-clock values in a single fixed
offset (UTC+8 by default). Every conversion goes through an explicit
``timezone(offset)`` so results never depend on the host's timezone.
"""

from datetime import UTC, datetime, time, timedelta, timezone

from src.engine.exceptions import ComputationError

# Offset the wall-clock times in schedules are expressed in
DEFAULT_UTC_OFFSET = timedelta(hours=8)

# Deadline time used when a rule does not specify one
END_OF_DAY = time(23, 59)


def local_zone(utc_offset: timedelta = DEFAULT_UTC_OFFSET) -> timezone:
    """Build the fixed-offset tzinfo for schedule wall-clock times.

    :param utc_offset: Offset from UTC.
    :returns: A fixed-offset timezone.
    """
    return timezone(utc_offset)


def ensure_utc(value: datetime) -> datetime:
    """Normalise an instant to an aware UTC datetime.

    Naive datetimes are taken to already be in UTC.

    :param value: The instant.
    :returns: The same instant with ``tzinfo=UTC``.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_wall_time(value: str | None, default: time = END_OF_DAY) -> time:
    """Parse an ``HH:mm`` wall-clock string.

    :param value: The time string, or None to use the default.
    :param default: Time returned when value is None or empty.
    :returns: The parsed time of day.
    :raises ComputationError: If the string is not a valid 24-hour time.
    """
    if not value:
        return default

    try:
        hours_str, minutes_str = value.split(":")
        return time(int(hours_str), int(minutes_str))
    except ValueError as e:
        raise ComputationError(f"Invalid wall-clock time {value!r}, expected HH:mm") from e


def at_wall_time(local: datetime, time_of_day: time) -> datetime:
    """Return the instant for ``time_of_day`` on the local calendar date of ``local``.

    :param local: An aware datetime already converted to the local zone.
    :param time_of_day: Wall-clock time to set.
    :returns: Aware datetime in the same zone as ``local``.
    """
    return datetime.combine(local.date(), time_of_day, tzinfo=local.tzinfo)
