from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo


def utcnow_naive():
    """Return current UTC timestamp as naive datetime for DB timestamp columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def local_now(tz_name=None):
    """Current wall-clock time in the configured zone, as a naive datetime."""
    if tz_name:
        return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)
    return datetime.now()


def utc_to_local(value, tz_name=None):
    aware = value.replace(tzinfo=UTC)
    if tz_name:
        return aware.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)
    return aware.astimezone().replace(tzinfo=None)


def local_to_utc(value, tz_name=None):
    if tz_name:
        aware = value.replace(tzinfo=ZoneInfo(tz_name))
    else:
        aware = value.astimezone()
    return aware.astimezone(UTC).replace(tzinfo=None)


def local_day_bounds_utc(day, tz_name=None):
    """UTC [start, end) of a local calendar day, for filtering UTC columns."""
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1)
    return local_to_utc(start, tz_name), local_to_utc(end, tz_name)


def parse_time_of_day(value):
    """'18:00' / '18:00:00' / time -> (hour, minute)."""
    if isinstance(value, time):
        return value.hour, value.minute
    parts = str(value or '').strip().split(':')
    if len(parts) < 2:
        raise ValueError(f'Invalid time of day: {value!r}')
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f'Invalid time of day: {value!r}')
    return hour, minute


def strip_seconds(value):
    hour, minute = parse_time_of_day(value)
    return f'{hour:02d}:{minute:02d}'


def time_string(value):
    """datetime -> 'HH:MM'."""
    return f'{value.hour:02d}:{value.minute:02d}'


def is_same_day(first, second):
    return (
        first.year == second.year
        and first.month == second.month
        and first.day == second.day
    )
