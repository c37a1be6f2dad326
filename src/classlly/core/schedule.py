from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Sequence

from classlly.core.agenda import Occurrence


class OccurrenceState(str, Enum):
    PAST = "past"
    CURRENT = "current"
    FUTURE = "future"


@dataclass(frozen=True)
class DaySchedule:
    current: Occurrence | None
    next: Occurrence | None
    remaining: list[Occurrence] = field(default_factory=list)


def is_past(occurrence: Occurrence, now: datetime) -> bool:
    return occurrence.end <= now


def classify(occurrence: Occurrence, now: datetime) -> OccurrenceState:
    if occurrence.start > now:
        return OccurrenceState.FUTURE
    if is_past(occurrence, now):
        return OccurrenceState.PAST
    return OccurrenceState.CURRENT


def current_occurrence(agenda: Sequence[Occurrence], now: datetime) -> Occurrence | None:
    # agenda is start-sorted, so overlapping classes resolve to the earliest one
    for occurrence in agenda:
        if occurrence.start <= now < occurrence.end:
            return occurrence
    return None


def _next_index(agenda: Sequence[Occurrence], now: datetime) -> int | None:
    for index, occurrence in enumerate(agenda):
        if occurrence.start > now:
            return index
    return None


def next_occurrence(agenda: Sequence[Occurrence], now: datetime) -> Occurrence | None:
    index = _next_index(agenda, now)
    return None if index is None else agenda[index]


def remaining_occurrences(agenda: Sequence[Occurrence], now: datetime) -> list[Occurrence]:
    index = _next_index(agenda, now)
    if index is None:
        return []
    return list(agenda[index + 1 :])


def summarize(agenda: Sequence[Occurrence], now: datetime) -> DaySchedule:
    return DaySchedule(
        current=current_occurrence(agenda, now),
        next=next_occurrence(agenda, now),
        remaining=remaining_occurrences(agenda, now),
    )


def next_boundary(agenda: Sequence[Occurrence], now: datetime) -> datetime | None:
    """Earliest start or end instant after ``now``; when the day's partition next changes."""
    upcoming = [instant for o in agenda for instant in (o.start, o.end) if instant > now]
    return min(upcoming, default=None)
