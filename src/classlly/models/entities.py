from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum

from classlly.core import aggregation


class Frequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY_ODD = "biweekly-odd"
    BIWEEKLY_EVEN = "biweekly-even"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class TaskPriority(int, Enum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2


class ReminderOffset(str, Enum):
    NONE = "none"
    ON_TIME = "on-time"
    MINUTES_5 = "5-minutes"
    MINUTES_15 = "15-minutes"
    MINUTES_30 = "30-minutes"
    HOUR_1 = "1-hour"
    HOURS_2 = "2-hours"
    DAY_1 = "1-day"
    WEEK_1 = "1-week"

    @property
    def lead_time(self) -> timedelta | None:
        return _REMINDER_LEAD_TIMES[self]

    def reminder_at(self, due: datetime) -> datetime | None:
        lead = self.lead_time
        if lead is None:
            return None
        return due - lead


_REMINDER_LEAD_TIMES: dict[ReminderOffset, timedelta | None] = {
    ReminderOffset.NONE: None,
    ReminderOffset.ON_TIME: timedelta(0),
    ReminderOffset.MINUTES_5: timedelta(minutes=5),
    ReminderOffset.MINUTES_15: timedelta(minutes=15),
    ReminderOffset.MINUTES_30: timedelta(minutes=30),
    ReminderOffset.HOUR_1: timedelta(hours=1),
    ReminderOffset.HOURS_2: timedelta(hours=2),
    ReminderOffset.DAY_1: timedelta(days=1),
    ReminderOffset.WEEK_1: timedelta(weeks=1),
}


# A stored time-of-day: only hour and minute are meaningful.
TimeOfDay = time | datetime | str | None


@dataclass
class MeetingPattern:
    """One weekly meeting pattern of a subject (its course or its seminar).

    ``days_of_week`` uses 1 = Sunday .. 7 = Saturday. An empty set means the
    meeting does not take place.
    """

    days_of_week: set[int] = field(default_factory=set)
    start_time: TimeOfDay = None
    end_time: TimeOfDay = None
    frequency: Frequency = Frequency.WEEKLY
    instructor: str = ""
    room: str = ""

    @property
    def meets(self) -> bool:
        return bool(self.days_of_week)


@dataclass
class GradeEntry:
    score: float
    weight: float = 100.0
    date: datetime = field(default_factory=datetime.now)
    description: str = ""
    is_exam: bool = False
    id: int | None = None


@dataclass
class AttendanceEntry:
    date: date
    status: AttendanceStatus = AttendanceStatus.PRESENT
    note: str | None = None
    id: int | None = None

    @property
    def attended(self) -> bool:
        return self.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


@dataclass
class Task:
    title: str
    is_completed: bool = False
    due_date: datetime | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    reminder: ReminderOffset = ReminderOffset.NONE
    is_flagged: bool = False
    subject_id: int | None = None
    notes: str = ""
    id: int | None = None

    @property
    def reminder_at(self) -> datetime | None:
        if self.due_date is None:
            return None
        return self.reminder.reminder_at(self.due_date)


@dataclass
class Subject:
    id: int
    title: str
    code: str = ""
    credits: int = 3
    color_hex: str = "#0000FF"
    course: MeetingPattern = field(default_factory=MeetingPattern)
    seminar: MeetingPattern = field(default_factory=MeetingPattern)
    grades: list[GradeEntry] = field(default_factory=list)
    attendance: list[AttendanceEntry] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)

    @property
    def attendance_rate(self) -> float:
        return aggregation.attendance_rate(self.attendance)

    @property
    def current_grade(self) -> float | None:
        return aggregation.latest_grade(self.grades)

    @property
    def weighted_average(self) -> float | None:
        return aggregation.weighted_average(self.grades)
