import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional, Tuple

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from classlly.config.logging_setup import setup_logging
from classlly.config.settings import settings
from classlly.core.academic_calendar import AcademicCalendar, load_calendar
from classlly.core.aggregation import attended_count, required_grade, summarize_grades
from classlly.core.agenda import Occurrence, build_agenda, todays_subject_ids
from classlly.core.recurrence import RecurrenceMode, weekday_name
from classlly.core.schedule import next_boundary, summarize
from classlly.core.tasks import is_overdue, pending_tasks
from classlly.core.timeofday import InvalidTimeValue, format_time_of_day, to_local_naive
from classlly.models.entities import (
    AttendanceEntry,
    AttendanceStatus,
    Frequency,
    GradeEntry,
    MeetingPattern,
    ReminderOffset,
    Subject,
    Task,
    TaskPriority,
)
from classlly.services.storage import NotFoundError, Storage, StorageError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    yield


app = FastAPI(title="Classlly API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_origin_regex=settings.cors_allow_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class MeetingPayload(BaseModel):
    days_of_week: List[int] = Field(default_factory=list)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    frequency: Frequency = Frequency.WEEKLY
    instructor: str = ""
    room: str = ""

    def to_pattern(self) -> MeetingPattern:
        if any(day < 1 or day > 7 for day in self.days_of_week):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="days_of_week uses 1=Sunday..7=Saturday")
        return MeetingPattern(
            days_of_week=set(self.days_of_week),
            start_time=self.start_time,
            end_time=self.end_time,
            frequency=self.frequency,
            instructor=self.instructor,
            room=self.room,
        )


class SubjectPayload(BaseModel):
    title: str
    code: str = ""
    credits: int = Field(default=3, ge=0)
    color_hex: str = "#0000FF"
    course: MeetingPayload = Field(default_factory=MeetingPayload)
    seminar: MeetingPayload = Field(default_factory=MeetingPayload)


class GradePayload(BaseModel):
    score: float
    weight: float = 100.0
    date: Optional[datetime] = None
    description: str = ""
    is_exam: bool = False


class AttendancePayload(BaseModel):
    date: date
    status: AttendanceStatus = AttendanceStatus.PRESENT
    note: Optional[str] = None


class TaskPayload(BaseModel):
    title: str
    due_date: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    reminder: ReminderOffset = ReminderOffset.NONE
    is_flagged: bool = False
    subject_id: Optional[int] = None
    notes: str = ""


class TaskCompletionPayload(BaseModel):
    completed: bool


def get_store() -> Iterator[Storage]:
    store = Storage.from_settings()
    try:
        yield store
    finally:
        store.close()


def get_calendar() -> Optional[AcademicCalendar]:
    return load_calendar(settings.academic_calendar_path)


def _storage_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _format_time(value) -> Optional[str]:
    try:
        return None if value is None else format_time_of_day(value)
    except InvalidTimeValue:
        logger.warning("Stored time-of-day %r is not readable", value)
        return None


def _meeting_dict(meeting: MeetingPattern) -> Dict:
    return {
        "days_of_week": sorted(meeting.days_of_week),
        "days": [weekday_name(d) for d in sorted(meeting.days_of_week)],
        "start_time": _format_time(meeting.start_time),
        "end_time": _format_time(meeting.end_time),
        "frequency": meeting.frequency.value,
        "instructor": meeting.instructor,
        "room": meeting.room,
    }


def _subject_dict(subject: Subject) -> Dict:
    return {
        "id": subject.id,
        "title": subject.title,
        "code": subject.code,
        "credits": subject.credits,
        "color_hex": subject.color_hex,
        "course": _meeting_dict(subject.course),
        "seminar": _meeting_dict(subject.seminar),
        "attendance_rate": subject.attendance_rate,
        "current_grade": subject.current_grade,
    }


def _occurrence_dict(occurrence: Optional[Occurrence]) -> Optional[Dict]:
    if occurrence is None:
        return None
    return {
        "subject_id": occurrence.subject_id,
        "title": occurrence.display_title,
        "room": occurrence.room,
        "instructor": occurrence.instructor,
        "kind": occurrence.kind.value,
        "start": occurrence.start.isoformat(),
        "end": occurrence.end.isoformat(),
        "color_hex": occurrence.color_hex,
    }


def _task_dict(task: Task, now: datetime) -> Dict:
    return {
        "id": task.id,
        "title": task.title,
        "is_completed": task.is_completed,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "priority": task.priority.name.lower(),
        "reminder": task.reminder.value,
        "reminder_at": task.reminder_at.isoformat() if task.reminder_at else None,
        "is_flagged": task.is_flagged,
        "is_overdue": is_overdue(task, now),
        "subject_id": task.subject_id,
        "notes": task.notes,
    }


def _resolve_week(
    day: date,
    week_number: Optional[int],
    calendar: Optional[AcademicCalendar],
) -> Tuple[Optional[int], RecurrenceMode]:
    if week_number is not None:
        return week_number, RecurrenceMode.WEEK_NUMBER
    if calendar is not None:
        # breaks and exam periods have no teaching week, so nothing meets
        return calendar.teaching_week(day), RecurrenceMode.WEEK_NUMBER
    return None, RecurrenceMode.DATE


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/subjects")
def list_subjects(store: Storage = Depends(get_store)) -> List[Dict]:
    return [_subject_dict(s) for s in store.list_subjects()]


@app.post("/subjects", status_code=status.HTTP_201_CREATED)
def create_subject(payload: SubjectPayload, store: Storage = Depends(get_store)) -> Dict[str, int]:
    try:
        subject_id = store.add_subject(
            payload.title,
            course=payload.course.to_pattern(),
            seminar=payload.seminar.to_pattern(),
            code=payload.code,
            credits=payload.credits,
            color_hex=payload.color_hex,
        )
        return {"id": subject_id}
    except (StorageError, InvalidTimeValue) as exc:
        raise _storage_error(exc) from exc


@app.get("/subjects/{subject_id}")
def get_subject(subject_id: int, store: Storage = Depends(get_store)) -> Dict:
    try:
        return _subject_dict(store.get_subject(subject_id))
    except StorageError as exc:
        raise _storage_error(exc) from exc


@app.put("/subjects/{subject_id}")
def update_subject(subject_id: int, payload: SubjectPayload, store: Storage = Depends(get_store)) -> Dict[str, str]:
    try:
        store.update_subject(
            subject_id,
            payload.title,
            course=payload.course.to_pattern(),
            seminar=payload.seminar.to_pattern(),
            code=payload.code,
            credits=payload.credits,
            color_hex=payload.color_hex,
        )
        return {"status": "updated"}
    except (StorageError, InvalidTimeValue) as exc:
        raise _storage_error(exc) from exc


@app.delete("/subjects/{subject_id}")
def delete_subject(subject_id: int, store: Storage = Depends(get_store)) -> Dict[str, str]:
    try:
        store.delete_subject(subject_id)
        return {"status": "deleted"}
    except StorageError as exc:
        raise _storage_error(exc) from exc


@app.get("/subjects/{subject_id}/summary")
def subject_summary(subject_id: int, store: Storage = Depends(get_store)) -> Dict:
    try:
        subject = store.get_subject(subject_id)
    except StorageError as exc:
        raise _storage_error(exc) from exc
    grades = summarize_grades(subject.grades)
    return {
        "subject_id": subject.id,
        "attendance_rate": subject.attendance_rate,
        "attended_classes": attended_count(subject.attendance),
        "total_classes": len(subject.attendance),
        "current_grade": grades.latest,
        "weighted_average": grades.weighted_average,
        "grade_count": grades.count,
        "open_tasks": sum(1 for t in subject.tasks if not t.is_completed),
    }


@app.get("/subjects/{subject_id}/required-grade")
def subject_required_grade(
    subject_id: int,
    target: float,
    weight: float,
    store: Storage = Depends(get_store),
) -> Dict:
    try:
        subject = store.get_subject(subject_id)
    except StorageError as exc:
        raise _storage_error(exc) from exc
    return {
        "subject_id": subject.id,
        "target": target,
        "weight": weight,
        "required": required_grade(subject.grades, target, weight),
    }


@app.post("/subjects/{subject_id}/grades", status_code=status.HTTP_201_CREATED)
def add_grade(subject_id: int, payload: GradePayload, store: Storage = Depends(get_store)) -> Dict[str, int]:
    entry = GradeEntry(
        score=payload.score,
        weight=payload.weight,
        date=payload.date or datetime.now(),
        description=payload.description,
        is_exam=payload.is_exam,
    )
    try:
        return {"id": store.add_grade(subject_id, entry)}
    except StorageError as exc:
        raise _storage_error(exc) from exc


@app.delete("/grades/{grade_id}")
def delete_grade(grade_id: int, store: Storage = Depends(get_store)) -> Dict[str, str]:
    try:
        store.delete_grade(grade_id)
        return {"status": "deleted"}
    except StorageError as exc:
        raise _storage_error(exc) from exc


@app.post("/subjects/{subject_id}/attendance", status_code=status.HTTP_201_CREATED)
def add_attendance(subject_id: int, payload: AttendancePayload, store: Storage = Depends(get_store)) -> Dict[str, int]:
    entry = AttendanceEntry(date=payload.date, status=payload.status, note=payload.note)
    try:
        return {"id": store.add_attendance(subject_id, entry)}
    except StorageError as exc:
        raise _storage_error(exc) from exc


@app.delete("/attendance/{attendance_id}")
def delete_attendance(attendance_id: int, store: Storage = Depends(get_store)) -> Dict[str, str]:
    try:
        store.delete_attendance(attendance_id)
        return {"status": "deleted"}
    except StorageError as exc:
        raise _storage_error(exc) from exc


@app.get("/tasks")
def list_tasks(include_completed: bool = True, store: Storage = Depends(get_store)) -> List[Dict]:
    now = datetime.now()
    tasks = store.list_tasks(include_completed=include_completed)
    if not include_completed:
        tasks = pending_tasks(tasks)
    return [_task_dict(t, now) for t in tasks]


@app.post("/tasks", status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskPayload, store: Storage = Depends(get_store)) -> Dict[str, int]:
    try:
        return {"id": store.add_task(Task(**payload.model_dump()))}
    except StorageError as exc:
        raise _storage_error(exc) from exc


@app.patch("/tasks/{task_id}/completed")
def set_task_completed(
    task_id: int,
    payload: TaskCompletionPayload,
    store: Storage = Depends(get_store),
) -> Dict[str, str]:
    try:
        store.set_task_completed(task_id, payload.completed)
        return {"status": "updated"}
    except StorageError as exc:
        raise _storage_error(exc) from exc


@app.delete("/tasks/{task_id}")
def delete_task(task_id: int, store: Storage = Depends(get_store)) -> Dict[str, str]:
    try:
        store.delete_task(task_id)
        return {"status": "deleted"}
    except StorageError as exc:
        raise _storage_error(exc) from exc


@app.get("/agenda")
def get_agenda(
    date: Optional[date] = None,
    week_number: Optional[int] = None,
    mode: Optional[RecurrenceMode] = None,
    store: Storage = Depends(get_store),
    calendar: Optional[AcademicCalendar] = Depends(get_calendar),
) -> Dict:
    day = date or datetime.now().date()
    week, resolved_mode = _resolve_week(day, week_number, calendar)
    agenda = build_agenda(store.list_subjects(), day, week, mode or resolved_mode)
    return {
        "date": day.isoformat(),
        "week_number": week,
        "occurrences": [_occurrence_dict(o) for o in agenda],
        "subject_ids": todays_subject_ids(agenda),
    }


@app.get("/schedule/now")
def get_schedule_now(
    at: Optional[datetime] = None,
    week_number: Optional[int] = None,
    store: Storage = Depends(get_store),
    calendar: Optional[AcademicCalendar] = Depends(get_calendar),
) -> Dict:
    now = to_local_naive(at) if at else datetime.now()
    week, mode = _resolve_week(now.date(), week_number, calendar)
    agenda = build_agenda(store.list_subjects(), now, week, mode)
    day = summarize(agenda, now)
    boundary = next_boundary(agenda, now)
    return {
        "at": now.isoformat(),
        "week_number": week,
        "current": _occurrence_dict(day.current),
        "next": _occurrence_dict(day.next),
        "remaining": [_occurrence_dict(o) for o in day.remaining],
        "refresh_at": boundary.isoformat() if boundary else None,
    }


@app.get("/calendar/week")
def get_calendar_week(
    date: Optional[date] = None,
    calendar: Optional[AcademicCalendar] = Depends(get_calendar),
) -> Dict:
    if calendar is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No academic calendar configured")
    day = date or datetime.now().date()
    event = calendar.event_on(day)
    return {
        "date": day.isoformat(),
        "academic_year": calendar.academic_year,
        "semester": calendar.semester_on(day),
        "teaching_week": calendar.teaching_week(day),
        "period": event.name if event else None,
        "period_type": event.type.value if event else None,
    }
