from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from classlly.config.logging_setup import setup_logging
from classlly.config.settings import settings
from classlly.core.academic_calendar import AcademicCalendar, load_calendar
from classlly.core.agenda import Occurrence, build_agenda
from classlly.core.recurrence import RecurrenceMode
from classlly.core.schedule import next_boundary, summarize
from classlly.services.storage import Storage

logger = logging.getLogger(__name__)


class WidgetClass(BaseModel):
    subject_id: int
    title: str
    room: str
    kind: str
    start: datetime
    end: datetime
    color_hex: str = ""

    @classmethod
    def from_occurrence(cls, occurrence: Occurrence) -> "WidgetClass":
        return cls(
            subject_id=occurrence.subject_id,
            title=occurrence.display_title,
            room=occurrence.room,
            kind=occurrence.kind.value,
            start=occurrence.start,
            end=occurrence.end,
            color_hex=occurrence.color_hex,
        )


class WidgetSnapshot(BaseModel):
    generated_at: datetime
    week_number: Optional[int] = None
    current: Optional[WidgetClass] = None
    next: Optional[WidgetClass] = None
    remaining: List[WidgetClass] = []
    refresh_at: datetime


def _next_midnight(now: datetime) -> datetime:
    return datetime.combine(now.date() + timedelta(days=1), datetime.min.time(), tzinfo=now.tzinfo)


def refresh_instant(agenda: List[Occurrence], now: datetime, max_minutes: int) -> datetime:
    """Next class boundary, else the next midnight, never later than ``max_minutes`` away."""
    boundary = next_boundary(agenda, now) or _next_midnight(now)
    return min(boundary, now + timedelta(minutes=max_minutes))


def build_snapshot(
    store: Storage,
    now: datetime,
    calendar: AcademicCalendar | None = None,
    max_refresh_minutes: int | None = None,
) -> WidgetSnapshot:
    if calendar is not None:
        # outside teaching periods there is no week number, so nothing meets
        week_number = calendar.teaching_week(now.date())
        mode = RecurrenceMode.WEEK_NUMBER
    else:
        week_number = None
        mode = RecurrenceMode.DATE
    agenda = build_agenda(store.list_subjects(), now, week_number, mode)
    day = summarize(agenda, now)
    if max_refresh_minutes is None:
        max_refresh_minutes = settings.widget_max_refresh_minutes

    return WidgetSnapshot(
        generated_at=now,
        week_number=week_number,
        current=WidgetClass.from_occurrence(day.current) if day.current else None,
        next=WidgetClass.from_occurrence(day.next) if day.next else None,
        remaining=[WidgetClass.from_occurrence(o) for o in day.remaining],
        refresh_at=refresh_instant(agenda, now, max_refresh_minutes),
    )


def write_snapshot(snapshot: WidgetSnapshot, path: str | Path) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(target.suffix + ".tmp")
    tmp.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
    tmp.replace(target)


def refresh_once(store: Storage, snapshot_path: str | Path, now: datetime | None = None) -> WidgetSnapshot:
    now = now or datetime.now()
    calendar = load_calendar(settings.academic_calendar_path)
    snapshot = build_snapshot(store, now, calendar)
    write_snapshot(snapshot, snapshot_path)
    logger.info(
        "Widget snapshot written: current=%s next=%s refresh_at=%s",
        snapshot.current.title if snapshot.current else None,
        snapshot.next.title if snapshot.next else None,
        snapshot.refresh_at.isoformat(),
    )
    return snapshot


def run_forever() -> None:
    setup_logging()
    store = Storage.from_settings()
    try:
        while True:
            snapshot = refresh_once(store, settings.widget_snapshot_path)
            delay = (snapshot.refresh_at - datetime.now()).total_seconds()
            time.sleep(max(delay, 1.0))
    finally:
        store.close()


if __name__ == "__main__":
    run_forever()
