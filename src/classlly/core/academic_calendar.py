from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class AcademicEventType(str, Enum):
    TEACHING = "teaching"
    BREAK = "break"
    EXAM = "exam"
    HOLIDAY = "holiday"
    OTHER = "other"


class AcademicEvent(BaseModel):
    start: date
    end: date
    type: AcademicEventType
    weeks: int = Field(default=1, ge=0)
    teaching_week_start: Optional[int] = None
    teaching_week_end: Optional[int] = None
    name: Optional[str] = None

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class AcademicCalendar(BaseModel):
    """A university year split into two semesters of dated periods.

    Teaching periods carry the index of their first teaching week; the week
    number of any day inside one counts whole weeks from the period start.
    """

    academic_year: str
    semester_1: List[AcademicEvent] = Field(default_factory=list)
    semester_2: List[AcademicEvent] = Field(default_factory=list)
    university_name: Optional[str] = None
    custom_name: Optional[str] = None

    @property
    def events(self) -> List[AcademicEvent]:
        return self.semester_1 + self.semester_2

    def event_on(self, day: date) -> Optional[AcademicEvent]:
        return next((event for event in self.events if event.contains(day)), None)

    def teaching_week(self, day: date) -> Optional[int]:
        for event in self.events:
            if event.type is not AcademicEventType.TEACHING or not event.contains(day):
                continue
            if event.teaching_week_start is None:
                continue
            return event.teaching_week_start + (day - event.start).days // 7
        return None

    def semester_on(self, day: date) -> int:
        if any(event.contains(day) for event in self.semester_2):
            return 2
        if any(event.contains(day) for event in self.semester_1):
            return 1
        first = self.semester_1[0].start if self.semester_1 else None
        return 1 if first is not None and day >= first else 2

    @classmethod
    def from_json(cls, text: str) -> "AcademicCalendar":
        return cls.model_validate_json(text)

    @classmethod
    def from_file(cls, path: str | Path) -> "AcademicCalendar":
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    @classmethod
    def build(
        cls,
        year: str,
        university_name: str,
        sem1_start: date,
        sem1_end: date,
        sem2_start: date,
        sem2_end: date,
    ) -> "AcademicCalendar":
        sem1_weeks = _span_weeks(sem1_start, sem1_end)
        sem2_weeks = _span_weeks(sem2_start, sem2_end)
        break_start = sem1_end + timedelta(days=1)
        break_end = sem2_start - timedelta(days=1)

        semester_1 = [
            AcademicEvent(
                start=sem1_start,
                end=sem1_end,
                type=AcademicEventType.TEACHING,
                weeks=sem1_weeks,
                teaching_week_start=1,
                teaching_week_end=sem1_weeks,
                name="Semester 1",
            )
        ]
        if break_start <= break_end:
            semester_1.append(
                AcademicEvent(
                    start=break_start,
                    end=break_end,
                    type=AcademicEventType.BREAK,
                    weeks=_span_weeks(break_start, break_end),
                    name="Winter Break",
                )
            )
        semester_2 = [
            AcademicEvent(
                start=sem2_start,
                end=sem2_end,
                type=AcademicEventType.TEACHING,
                weeks=sem2_weeks,
                teaching_week_start=1,
                teaching_week_end=sem2_weeks,
                name="Semester 2",
            )
        ]
        return cls(
            academic_year=year,
            semester_1=semester_1,
            semester_2=semester_2,
            university_name=university_name,
            custom_name=f"{university_name} {year}",
        )


def _span_weeks(start: date, end: date) -> int:
    return (end - start).days // 7 + 1


def load_calendar(path: str | None) -> Optional[AcademicCalendar]:
    if not path or not Path(path).exists():
        return None
    return AcademicCalendar.from_file(path)
