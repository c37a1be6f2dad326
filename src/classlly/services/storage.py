from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from classlly.config.settings import settings
from classlly.core.timeofday import format_time_of_day, to_local_naive
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

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class NotFoundError(StorageError):
    pass


def _days_to_text(days: set[int]) -> str:
    return ",".join(str(d) for d in sorted(days))


def _days_from_text(value: str | None) -> set[int]:
    return {int(item) for item in (value or "").split(",") if item.strip()}


def _time_to_text(value) -> str | None:
    return None if value is None else format_time_of_day(value)


def _dt_to_text(value: datetime | date | None) -> str | None:
    if isinstance(value, datetime):
        value = to_local_naive(value)
    return None if value is None else value.isoformat()


class Storage:
    """sqlite-backed store for subjects and the records they own.

    Each write runs in its own transaction. Subject ownership is enforced by
    ``ON DELETE CASCADE`` foreign keys.
    """

    def __init__(self, db_path: str = "classlly.db") -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    @classmethod
    def from_settings(cls) -> "Storage":
        return cls(settings.database_path)

    def close(self) -> None:
        self.conn.close()

    def _init_schema(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS subjects (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              title TEXT NOT NULL,
              code TEXT NOT NULL DEFAULT '',
              credits INTEGER NOT NULL DEFAULT 3,
              color_hex TEXT NOT NULL DEFAULT '#0000FF',
              course_days TEXT NOT NULL DEFAULT '',
              course_start TEXT,
              course_end TEXT,
              course_frequency TEXT NOT NULL DEFAULT 'weekly',
              course_instructor TEXT NOT NULL DEFAULT '',
              course_room TEXT NOT NULL DEFAULT '',
              seminar_days TEXT NOT NULL DEFAULT '',
              seminar_start TEXT,
              seminar_end TEXT,
              seminar_frequency TEXT NOT NULL DEFAULT 'weekly',
              seminar_instructor TEXT NOT NULL DEFAULT '',
              seminar_room TEXT NOT NULL DEFAULT ''
            );

            CREATE TABLE IF NOT EXISTS grade_entries (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              subject_id INTEGER NOT NULL,
              score REAL NOT NULL,
              weight REAL NOT NULL DEFAULT 100,
              recorded_at TEXT NOT NULL,
              description TEXT NOT NULL DEFAULT '',
              is_exam INTEGER NOT NULL DEFAULT 0,
              FOREIGN KEY(subject_id) REFERENCES subjects(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS attendance_entries (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              subject_id INTEGER NOT NULL,
              attended_on TEXT NOT NULL,
              status TEXT NOT NULL,
              note TEXT,
              FOREIGN KEY(subject_id) REFERENCES subjects(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS tasks (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              title TEXT NOT NULL,
              is_completed INTEGER NOT NULL DEFAULT 0,
              due_at TEXT,
              priority INTEGER NOT NULL DEFAULT 1,
              reminder TEXT NOT NULL DEFAULT 'none',
              is_flagged INTEGER NOT NULL DEFAULT 0,
              subject_id INTEGER,
              notes TEXT NOT NULL DEFAULT '',
              FOREIGN KEY(subject_id) REFERENCES subjects(id) ON DELETE CASCADE
            );
            """
        )
        self.conn.commit()

    # Subjects

    @staticmethod
    def _meeting_values(meeting: MeetingPattern) -> tuple:
        return (
            _days_to_text(meeting.days_of_week),
            _time_to_text(meeting.start_time),
            _time_to_text(meeting.end_time),
            Frequency(meeting.frequency).value,
            meeting.instructor,
            meeting.room,
        )

    def add_subject(
        self,
        title: str,
        course: MeetingPattern | None = None,
        seminar: MeetingPattern | None = None,
        code: str = "",
        credits: int = 3,
        color_hex: str = "#0000FF",
    ) -> int:
        course = course or MeetingPattern()
        seminar = seminar or MeetingPattern()
        with self.conn:
            cur = self.conn.execute(
                """INSERT INTO subjects(
                       title, code, credits, color_hex,
                       course_days, course_start, course_end, course_frequency, course_instructor, course_room,
                       seminar_days, seminar_start, seminar_end, seminar_frequency, seminar_instructor, seminar_room)
                   VALUES(?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)""",
                (title, code, credits, color_hex, *self._meeting_values(course), *self._meeting_values(seminar)),
            )
        subject_id = int(cur.lastrowid)
        logger.info("Created subject %s (%s)", subject_id, title)
        return subject_id

    def update_subject(
        self,
        subject_id: int,
        title: str,
        course: MeetingPattern,
        seminar: MeetingPattern,
        code: str = "",
        credits: int = 3,
        color_hex: str = "#0000FF",
    ) -> None:
        with self.conn:
            cur = self.conn.execute(
                """UPDATE subjects SET
                       title=?, code=?, credits=?, color_hex=?,
                       course_days=?, course_start=?, course_end=?, course_frequency=?, course_instructor=?, course_room=?,
                       seminar_days=?, seminar_start=?, seminar_end=?, seminar_frequency=?, seminar_instructor=?, seminar_room=?
                   WHERE id=?""",
                (
                    title,
                    code,
                    credits,
                    color_hex,
                    *self._meeting_values(course),
                    *self._meeting_values(seminar),
                    subject_id,
                ),
            )
        if cur.rowcount == 0:
            raise NotFoundError(f"Subject {subject_id} does not exist")

    def delete_subject(self, subject_id: int) -> None:
        with self.conn:
            cur = self.conn.execute("DELETE FROM subjects WHERE id=?", (subject_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Subject {subject_id} does not exist")
        logger.info("Deleted subject %s with its grades, attendance and tasks", subject_id)

    def get_subject(self, subject_id: int) -> Subject:
        row = self.conn.execute("SELECT * FROM subjects WHERE id=?", (subject_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Subject {subject_id} does not exist")
        return self._hydrate(row)

    def list_subjects(self) -> list[Subject]:
        rows = self.conn.execute("SELECT * FROM subjects ORDER BY title, id").fetchall()
        return [self._hydrate(row) for row in rows]

    def _hydrate(self, row: sqlite3.Row) -> Subject:
        subject_id = int(row["id"])
        return Subject(
            id=subject_id,
            title=row["title"],
            code=row["code"],
            credits=int(row["credits"]),
            color_hex=row["color_hex"],
            course=self._meeting_from_row(row, "course"),
            seminar=self._meeting_from_row(row, "seminar"),
            grades=self.list_grades(subject_id),
            attendance=self.list_attendance(subject_id),
            tasks=self.list_tasks(subject_id=subject_id),
        )

    @staticmethod
    def _meeting_from_row(row: sqlite3.Row, prefix: str) -> MeetingPattern:
        return MeetingPattern(
            days_of_week=_days_from_text(row[f"{prefix}_days"]),
            start_time=row[f"{prefix}_start"],
            end_time=row[f"{prefix}_end"],
            frequency=Frequency(row[f"{prefix}_frequency"]),
            instructor=row[f"{prefix}_instructor"],
            room=row[f"{prefix}_room"],
        )

    def _require_subject(self, subject_id: int) -> None:
        if self.conn.execute("SELECT 1 FROM subjects WHERE id=?", (subject_id,)).fetchone() is None:
            raise NotFoundError(f"Subject {subject_id} does not exist")

    # Grades

    def add_grade(self, subject_id: int, entry: GradeEntry) -> int:
        self._require_subject(subject_id)
        with self.conn:
            cur = self.conn.execute(
                """INSERT INTO grade_entries(subject_id, score, weight, recorded_at, description, is_exam)
                   VALUES(?,?,?,?,?,?)""",
                (subject_id, entry.score, entry.weight, _dt_to_text(entry.date), entry.description, int(entry.is_exam)),
            )
        return int(cur.lastrowid)

    def list_grades(self, subject_id: int) -> list[GradeEntry]:
        rows = self.conn.execute(
            "SELECT * FROM grade_entries WHERE subject_id=? ORDER BY id", (subject_id,)
        ).fetchall()
        return [
            GradeEntry(
                id=int(r["id"]),
                score=float(r["score"]),
                weight=float(r["weight"]),
                date=datetime.fromisoformat(r["recorded_at"]),
                description=r["description"],
                is_exam=bool(r["is_exam"]),
            )
            for r in rows
        ]

    def delete_grade(self, grade_id: int) -> None:
        with self.conn:
            cur = self.conn.execute("DELETE FROM grade_entries WHERE id=?", (grade_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Grade entry {grade_id} does not exist")

    # Attendance

    def add_attendance(self, subject_id: int, entry: AttendanceEntry) -> int:
        self._require_subject(subject_id)
        with self.conn:
            cur = self.conn.execute(
                "INSERT INTO attendance_entries(subject_id, attended_on, status, note) VALUES(?,?,?,?)",
                (subject_id, entry.date.isoformat(), AttendanceStatus(entry.status).value, entry.note),
            )
        return int(cur.lastrowid)

    def list_attendance(self, subject_id: int) -> list[AttendanceEntry]:
        rows = self.conn.execute(
            "SELECT * FROM attendance_entries WHERE subject_id=? ORDER BY attended_on, id", (subject_id,)
        ).fetchall()
        return [
            AttendanceEntry(
                id=int(r["id"]),
                date=date.fromisoformat(r["attended_on"][:10]),
                status=AttendanceStatus(r["status"]),
                note=r["note"],
            )
            for r in rows
        ]

    def delete_attendance(self, attendance_id: int) -> None:
        with self.conn:
            cur = self.conn.execute("DELETE FROM attendance_entries WHERE id=?", (attendance_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Attendance entry {attendance_id} does not exist")

    # Tasks

    def add_task(self, task: Task) -> int:
        if task.subject_id is not None:
            self._require_subject(task.subject_id)
        with self.conn:
            cur = self.conn.execute(
                """INSERT INTO tasks(title, is_completed, due_at, priority, reminder, is_flagged, subject_id, notes)
                   VALUES(?,?,?,?,?,?,?,?)""",
                (
                    task.title,
                    int(task.is_completed),
                    _dt_to_text(task.due_date),
                    int(task.priority),
                    ReminderOffset(task.reminder).value,
                    int(task.is_flagged),
                    task.subject_id,
                    task.notes,
                ),
            )
        return int(cur.lastrowid)

    def list_tasks(self, subject_id: int | None = None, include_completed: bool = True) -> list[Task]:
        query = "SELECT * FROM tasks WHERE 1=1"
        params: list = []
        if subject_id is not None:
            query += " AND subject_id=?"
            params.append(subject_id)
        if not include_completed:
            query += " AND is_completed=0"
        rows = self.conn.execute(query + " ORDER BY id", params).fetchall()
        return [
            Task(
                id=int(r["id"]),
                title=r["title"],
                is_completed=bool(r["is_completed"]),
                due_date=datetime.fromisoformat(r["due_at"]) if r["due_at"] else None,
                priority=TaskPriority(int(r["priority"])),
                reminder=ReminderOffset(r["reminder"]),
                is_flagged=bool(r["is_flagged"]),
                subject_id=r["subject_id"],
                notes=r["notes"],
            )
            for r in rows
        ]

    def set_task_completed(self, task_id: int, completed: bool) -> None:
        with self.conn:
            cur = self.conn.execute("UPDATE tasks SET is_completed=? WHERE id=?", (1 if completed else 0, task_id))
        if cur.rowcount == 0:
            raise NotFoundError(f"Task {task_id} does not exist")

    def delete_task(self, task_id: int) -> None:
        with self.conn:
            cur = self.conn.execute("DELETE FROM tasks WHERE id=?", (task_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Task {task_id} does not exist")
