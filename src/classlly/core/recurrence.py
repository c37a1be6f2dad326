from __future__ import annotations

from datetime import date
from enum import Enum

from classlly.models.entities import Frequency

# 1 = Sunday .. 7 = Saturday, the numbering used by MeetingPattern.days_of_week
WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


class RecurrenceMode(str, Enum):
    WEEK_NUMBER = "week-number"
    DATE = "date"


def weekday_number(on: date) -> int:
    return on.isoweekday() % 7 + 1


def weekday_name(number: int) -> str:
    return WEEKDAY_NAMES[(number - 1) % 7]


def _matches_parity(frequency: Frequency, week: int) -> bool:
    if frequency is Frequency.WEEKLY:
        return True
    if frequency is Frequency.BIWEEKLY_ODD:
        return week % 2 == 1
    return week % 2 == 0


def occurs_in_week(frequency: Frequency | str, week_number: int | None) -> bool:
    """Academic-week mode: parity is taken from the semester teaching week.

    Without a week number (no academic calendar configured) nothing occurs.
    """
    if week_number is None:
        return False
    return _matches_parity(Frequency(frequency), week_number)


def occurs_on_date(frequency: Frequency | str, on: date) -> bool:
    """Date mode: parity is taken from the ISO week-of-year of ``on``."""
    return _matches_parity(Frequency(frequency), on.isocalendar()[1])


def occurs(
    frequency: Frequency | str,
    on: date,
    week_number: int | None,
    mode: RecurrenceMode,
) -> bool:
    if mode is RecurrenceMode.WEEK_NUMBER:
        return occurs_in_week(frequency, week_number)
    return occurs_on_date(frequency, on)
