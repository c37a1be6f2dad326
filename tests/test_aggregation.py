import unittest
from datetime import date, datetime

from classlly.core.aggregation import (
    attendance_rate,
    latest_grade,
    required_grade,
    simple_mean,
    summarize_grades,
    weighted_average,
)
from classlly.models.entities import AttendanceEntry, AttendanceStatus, GradeEntry, Subject


def _attendance(*statuses):
    return [AttendanceEntry(date=date(2026, 10, day + 1), status=s) for day, s in enumerate(statuses)]


class AttendanceTests(unittest.TestCase):
    def test_untracked_subject_counts_as_fully_attended(self):
        self.assertEqual(attendance_rate([]), 1.0)

    def test_rate(self):
        history = _attendance(AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.PRESENT)
        self.assertAlmostEqual(attendance_rate(history), 2 / 3)

    def test_late_counts_as_attended_and_excused_does_not(self):
        history = _attendance(AttendanceStatus.LATE, AttendanceStatus.EXCUSED)
        self.assertAlmostEqual(attendance_rate(history), 0.5)


class GradeTests(unittest.TestCase):
    def test_weighted_average(self):
        history = [GradeEntry(score=8, weight=50), GradeEntry(score=10, weight=50)]
        self.assertAlmostEqual(weighted_average(history), 9.0)

        history.append(GradeEntry(score=0, weight=0))
        self.assertAlmostEqual(weighted_average(history), 9.0)
        self.assertEqual(summarize_grades(history).count, 3)

    def test_weighted_average_undefined(self):
        self.assertIsNone(weighted_average([]))
        self.assertIsNone(weighted_average([GradeEntry(score=7, weight=0)]))

    def test_equal_weights_match_simple_mean(self):
        history = [GradeEntry(score=s, weight=25) for s in (5, 7.5, 9, 10)]
        self.assertAlmostEqual(weighted_average(history), simple_mean(history))

    def test_negative_weight_is_used_as_is(self):
        history = [GradeEntry(score=10, weight=100), GradeEntry(score=4, weight=-50)]
        self.assertAlmostEqual(weighted_average(history), (1000 - 200) / 50)

    def test_latest_grade_ignores_insertion_order(self):
        history = [
            GradeEntry(score=9, date=datetime(2026, 10, 10)),
            GradeEntry(score=6, date=datetime(2026, 9, 1)),
        ]
        self.assertEqual(latest_grade(history), 9)

    def test_latest_grade_tie_goes_to_last_inserted(self):
        when = datetime(2026, 10, 10, 12)
        history = [GradeEntry(score=7, date=when), GradeEntry(score=8, date=when)]
        self.assertEqual(latest_grade(history), 8)
        self.assertIsNone(latest_grade([]))

    def test_required_grade(self):
        history = [GradeEntry(score=8, weight=60)]
        self.assertAlmostEqual(required_grade(history, target=9, new_weight=40), 10.5)
        self.assertEqual(required_grade([], target=9.5, new_weight=40), 9.5)
        self.assertIsNone(required_grade(history, target=9, new_weight=0))

    def test_subject_derived_values(self):
        subject = Subject(id=1, title="History")
        self.assertEqual(subject.attendance_rate, 1.0)
        self.assertIsNone(subject.current_grade)
        subject.grades.append(GradeEntry(score=6, weight=100))
        self.assertEqual(subject.current_grade, 6)
        self.assertEqual(subject.weighted_average, 6)


if __name__ == "__main__":
    unittest.main()
