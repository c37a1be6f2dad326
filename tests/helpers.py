from datetime import datetime

from classlly.core.agenda import Occurrence, OccurrenceKind
from classlly.models.entities import Frequency, MeetingPattern, Subject

MONDAY = datetime(2026, 10, 19).date()
TUESDAY = datetime(2026, 10, 20).date()


def make_subject(subject_id=1, title="Algorithms", days=(2,), start="10:00", end="12:00",
                 frequency=Frequency.WEEKLY, seminar=None):
    return Subject(
        id=subject_id,
        title=title,
        course=MeetingPattern(days_of_week=set(days), start_time=start, end_time=end,
                              frequency=frequency, room="C310", instructor="Dr. Pop"),
        seminar=seminar or MeetingPattern(),
    )


def make_occurrence(start_hour, end_hour, subject_id=1, day=MONDAY):
    return Occurrence(
        subject_id=subject_id,
        display_title=f"Subject {subject_id}",
        room="",
        kind=OccurrenceKind.COURSE,
        start=datetime(day.year, day.month, day.day, start_hour),
        end=datetime(day.year, day.month, day.day, end_hour),
    )
