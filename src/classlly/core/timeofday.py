from __future__ import annotations

from datetime import date, datetime, time


class InvalidTimeValue(ValueError):
    pass


def parse_time_of_day(value) -> time:
    """Extract the hour/minute of a stored time-of-day.

    Accepts a ``time``, a ``datetime`` (aware values are converted to local
    time first) or ``"HH:MM"`` / ``"HH:MM:SS"`` text.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return time(value.hour, value.minute)
    if isinstance(value, time):
        return time(value.hour, value.minute)
    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) not in (2, 3):
            raise InvalidTimeValue(f"Unsupported time-of-day: {value!r}")
        try:
            return time(int(parts[0]), int(parts[1]))
        except ValueError as exc:
            raise InvalidTimeValue(f"Unsupported time-of-day: {value!r}") from exc
    raise InvalidTimeValue(f"Unsupported time-of-day: {value!r}")


def normalize(time_of_day, onto: date) -> datetime:
    """Project a time-of-day onto the calendar day of ``onto`` (second = 0)."""
    tod = parse_time_of_day(time_of_day)
    tzinfo = onto.tzinfo if isinstance(onto, datetime) else None
    day = onto.date() if isinstance(onto, datetime) else onto
    return datetime(day.year, day.month, day.day, tod.hour, tod.minute, tzinfo=tzinfo)


def format_time_of_day(value) -> str:
    tod = parse_time_of_day(value)
    return f"{tod.hour:02d}:{tod.minute:02d}"


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes become naive local time; naive ones are returned unchanged."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
