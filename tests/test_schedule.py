import unittest
from datetime import datetime

from classlly.core.agenda import build_agenda
from classlly.core.schedule import (
    OccurrenceState,
    classify,
    current_occurrence,
    is_past,
    next_boundary,
    next_occurrence,
    remaining_occurrences,
    summarize,
)

from tests.helpers import MONDAY, make_occurrence, make_subject


def at(hour, minute=0):
    return datetime(2026, 10, 19, hour, minute)


class ScheduleTests(unittest.TestCase):
    def test_single_class_in_progress(self):
        agenda = build_agenda([make_subject()], MONDAY, week_number=5)
        now = at(11)
        self.assertEqual(current_occurrence(agenda, now), agenda[0])
        self.assertFalse(is_past(agenda[0], now))
        self.assertIsNone(next_occurrence(agenda, now))
        self.assertEqual(remaining_occurrences(agenda, now), [])

    def test_before_first_class(self):
        morning = make_occurrence(9, 10, subject_id=1)
        afternoon = make_occurrence(14, 15, subject_id=2)
        agenda = [morning, afternoon]
        now = at(8)
        self.assertIsNone(current_occurrence(agenda, now))
        self.assertEqual(next_occurrence(agenda, now), morning)
        self.assertEqual(remaining_occurrences(agenda, now), [afternoon])

    def test_next_is_reported_alongside_current(self):
        agenda = [make_occurrence(9, 11, 1), make_occurrence(10, 12, 2), make_occurrence(13, 14, 3)]
        now = at(9, 30)
        self.assertEqual(current_occurrence(agenda, now).subject_id, 1)
        self.assertEqual(next_occurrence(agenda, now).subject_id, 2)
        self.assertEqual([o.subject_id for o in remaining_occurrences(agenda, now)], [3])

    def test_overlap_returns_earliest_active(self):
        agenda = [make_occurrence(9, 12, 1), make_occurrence(10, 11, 2)]
        self.assertEqual(current_occurrence(agenda, at(10, 30)).subject_id, 1)

    def test_end_instant_is_exclusive(self):
        occurrence = make_occurrence(9, 10)
        self.assertTrue(is_past(occurrence, at(10)))
        self.assertIsNone(current_occurrence([occurrence], at(10)))
        self.assertEqual(current_occurrence([occurrence], at(9)), occurrence)

    def test_every_occurrence_has_exactly_one_state(self):
        agenda = [make_occurrence(8, 9, 1), make_occurrence(10, 12, 2), make_occurrence(13, 15, 3)]
        for hour in range(7, 17):
            for minute in (0, 30):
                now = at(hour, minute)
                for occurrence in agenda:
                    state = classify(occurrence, now)
                    self.assertEqual(state is OccurrenceState.PAST, is_past(occurrence, now))
                    self.assertEqual(state is OccurrenceState.FUTURE, occurrence.start > now)
                    self.assertEqual(
                        state is OccurrenceState.CURRENT,
                        occurrence.start <= now < occurrence.end,
                    )

    def test_summarize_and_next_boundary(self):
        agenda = [make_occurrence(9, 10, 1), make_occurrence(14, 15, 2)]
        day = summarize(agenda, at(9, 30))
        self.assertEqual(day.current.subject_id, 1)
        self.assertEqual(day.next.subject_id, 2)
        self.assertEqual(day.remaining, [])
        self.assertEqual(next_boundary(agenda, at(9, 30)), at(10))
        self.assertEqual(next_boundary(agenda, at(10)), at(14))
        self.assertIsNone(next_boundary(agenda, at(15)))

    def test_empty_agenda(self):
        day = summarize([], at(12))
        self.assertIsNone(day.current)
        self.assertIsNone(day.next)
        self.assertEqual(day.remaining, [])


if __name__ == "__main__":
    unittest.main()
