from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable

from classlly.core.recurrence import RecurrenceMode, occurs, weekday_number
from classlly.core.timeofday import InvalidTimeValue, normalize
from classlly.models.entities import MeetingPattern, Subject

logger = logging.getLogger(__name__)


class OccurrenceKind(str, Enum):
    COURSE = "course"
    SEMINAR = "seminar"


_KIND_ORDER = {OccurrenceKind.COURSE: 0, OccurrenceKind.SEMINAR: 1}


@dataclass(frozen=True)
class Occurrence:
    subject_id: int
    display_title: str
    room: str
    kind: OccurrenceKind
    start: datetime
    end: datetime
    instructor: str = ""
    color_hex: str = ""


def _meetings(subject: Subject) -> list[tuple[OccurrenceKind, MeetingPattern, str]]:
    return [
        (OccurrenceKind.COURSE, subject.course, subject.title),
        (OccurrenceKind.SEMINAR, subject.seminar, f"{subject.title} (Sem)"),
    ]


def build_agenda(
    subjects: Iterable[Subject],
    target_date: date,
    week_number: int | None = None,
    mode: RecurrenceMode | None = None,
) -> list[Occurrence]:
    """Expand every subject's course and seminar meetings for one day.

    With ``mode`` unset, the academic week number is used when given and the
    ISO week of ``target_date`` otherwise. Meetings whose times cannot be
    resolved are left out.
    """
    if mode is None:
        mode = RecurrenceMode.DATE if week_number is None else RecurrenceMode.WEEK_NUMBER
    day = target_date.date() if isinstance(target_date, datetime) else target_date
    weekday = weekday_number(day)

    occurrences: list[Occurrence] = []
    for subject in subjects:
        for kind, meeting, title in _meetings(subject):
            if not meeting.meets or weekday not in meeting.days_of_week:
                continue
            if not occurs(meeting.frequency, day, week_number, mode):
                continue
            try:
                start = normalize(meeting.start_time, target_date)
                end = normalize(meeting.end_time, target_date)
            except InvalidTimeValue as exc:
                logger.warning("Skipping %s of subject %s on %s: %s", kind.value, subject.id, day, exc)
                continue
            occurrences.append(
                Occurrence(
                    subject_id=subject.id,
                    display_title=title,
                    room=meeting.room,
                    kind=kind,
                    start=start,
                    end=end,
                    instructor=meeting.instructor,
                    color_hex=subject.color_hex,
                )
            )

    occurrences.sort(key=lambda o: (o.start, o.subject_id, _KIND_ORDER[o.kind]))
    return occurrences


def todays_subject_ids(agenda: Iterable[Occurrence]) -> list[int]:
    seen: list[int] = []
    for occurrence in agenda:
        if occurrence.subject_id not in seen:
            seen.append(occurrence.subject_id)
    return seen
