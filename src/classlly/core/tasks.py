from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from classlly.models.entities import Task


def _due_key(task: Task) -> tuple:
    # undated tasks sort last; among equal dates, higher priority first
    return (task.due_date is None, task.due_date or datetime.max, -int(task.priority))


def pending_tasks(tasks: Iterable[Task]) -> list[Task]:
    return sorted((t for t in tasks if not t.is_completed), key=_due_key)


def tasks_due_on(tasks: Iterable[Task], day: date) -> list[Task]:
    return sorted(
        (t for t in tasks if t.due_date is not None and t.due_date.date() == day),
        key=_due_key,
    )


def is_overdue(task: Task, now: datetime) -> bool:
    return not task.is_completed and task.due_date is not None and task.due_date < now
