import unittest
from datetime import datetime

from classlly.core.agenda import OccurrenceKind, build_agenda, todays_subject_ids
from classlly.core.recurrence import RecurrenceMode
from classlly.models.entities import Frequency, MeetingPattern

from tests.helpers import MONDAY, TUESDAY, make_subject


class AgendaTests(unittest.TestCase):
    def test_weekly_subject_on_matching_day(self):
        agenda = build_agenda([make_subject()], MONDAY, week_number=5)
        self.assertEqual(len(agenda), 1)
        occurrence = agenda[0]
        self.assertEqual(occurrence.start, datetime(2026, 10, 19, 10, 0))
        self.assertEqual(occurrence.end, datetime(2026, 10, 19, 12, 0))
        self.assertEqual(occurrence.kind, OccurrenceKind.COURSE)
        self.assertEqual(occurrence.room, "C310")

    def test_no_occurrence_on_other_weekday(self):
        self.assertEqual(build_agenda([make_subject()], TUESDAY, week_number=5), [])

    def test_biweekly_follows_academic_week(self):
        subject = make_subject(frequency=Frequency.BIWEEKLY_ODD)
        self.assertEqual(build_agenda([subject], MONDAY, week_number=4), [])
        self.assertEqual(len(build_agenda([subject], MONDAY, week_number=5)), 1)

    def test_without_week_number_uses_iso_week(self):
        # 2026-10-19 is in ISO week 43
        odd = make_subject(frequency=Frequency.BIWEEKLY_ODD)
        even = make_subject(frequency=Frequency.BIWEEKLY_EVEN)
        self.assertEqual(len(build_agenda([odd], MONDAY)), 1)
        self.assertEqual(build_agenda([even], MONDAY), [])

    def test_forced_week_number_mode_without_week(self):
        agenda = build_agenda([make_subject()], MONDAY, mode=RecurrenceMode.WEEK_NUMBER)
        self.assertEqual(agenda, [])

    def test_meeting_without_days_is_skipped(self):
        empty = MeetingPattern(start_time="08:00", end_time="09:00", room="S1")
        self.assertFalse(empty.meets)
        agenda = build_agenda([make_subject(seminar=empty)], MONDAY, week_number=1)
        self.assertEqual([o.kind for o in agenda], [OccurrenceKind.COURSE])

    def test_course_and_seminar_are_independent(self):
        seminar = MeetingPattern(days_of_week={2}, start_time="08:00", end_time="09:00", room="S1")
        agenda = build_agenda([make_subject(seminar=seminar)], MONDAY, week_number=1)
        self.assertEqual([o.kind for o in agenda], [OccurrenceKind.SEMINAR, OccurrenceKind.COURSE])
        self.assertEqual(agenda[0].display_title, "Algorithms (Sem)")
        self.assertEqual(agenda[0].room, "S1")

    def test_sorted_by_start_then_subject_id(self):
        subjects = [
            make_subject(3, "Physics", start="14:00", end="15:00"),
            make_subject(2, "Chemistry", start="09:00", end="10:00"),
            make_subject(1, "Biology", start="09:00", end="10:00"),
        ]
        agenda = build_agenda(subjects, MONDAY, week_number=2)
        self.assertEqual([o.subject_id for o in agenda], [1, 2, 3])
        for earlier, later in zip(agenda, agenda[1:]):
            self.assertLessEqual(earlier.start, later.start)

    def test_invalid_time_is_skipped(self):
        subjects = [make_subject(1, start=None), make_subject(2, start="11:00", end="12:00")]
        with self.assertLogs("classlly.core.agenda", level="WARNING"):
            agenda = build_agenda(subjects, MONDAY, week_number=2)
        self.assertEqual([o.subject_id for o in agenda], [2])

    def test_idempotent_and_does_not_mutate_input(self):
        subjects = [make_subject(1), make_subject(2, start="08:00", end="09:00")]
        first = build_agenda(subjects, MONDAY, week_number=3)
        second = build_agenda(subjects, MONDAY, week_number=3)
        self.assertEqual(first, second)
        self.assertEqual(subjects[0].course.days_of_week, {2})

    def test_empty_input(self):
        self.assertEqual(build_agenda([], MONDAY, week_number=1), [])

    def test_todays_subject_ids_dedupes(self):
        seminar = MeetingPattern(days_of_week={2}, start_time="13:00", end_time="14:00")
        subjects = [make_subject(1, seminar=seminar), make_subject(2, start="11:00", end="12:00")]
        agenda = build_agenda(subjects, MONDAY, week_number=1)
        self.assertEqual(todays_subject_ids(agenda), [1, 2])


if __name__ == "__main__":
    unittest.main()
