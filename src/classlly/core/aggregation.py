from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from classlly.models.entities import AttendanceEntry, GradeEntry


def attended_count(history: Sequence[AttendanceEntry]) -> int:
    return sum(1 for entry in history if entry.attended)


def attendance_rate(history: Sequence[AttendanceEntry]) -> float:
    """Share of recorded classes attended; an untracked subject counts as fully attended."""
    if not history:
        return 1.0
    return attended_count(history) / len(history)


def latest_grade(history: Sequence[GradeEntry]) -> float | None:
    """Score of the most recently dated entry; on equal dates the later-inserted one wins."""
    if not history:
        return None
    _, _, latest = max((entry.date, index, entry) for index, entry in enumerate(history))
    return latest.score


def weighted_average(history: Sequence[GradeEntry]) -> float | None:
    """
    Σ(score * weight) / Σ(weight)
    Zero-weight entries add nothing to either sum.
    """
    weighted = 0.0
    total_weight = 0.0
    for entry in history:
        weighted += entry.score * entry.weight
        total_weight += entry.weight
    if total_weight == 0:
        return None
    return weighted / total_weight


def simple_mean(history: Sequence[GradeEntry]) -> float | None:
    if not history:
        return None
    return sum(entry.score for entry in history) / len(history)


def required_grade(history: Sequence[GradeEntry], target: float, new_weight: float) -> float | None:
    """Score needed on a new entry of ``new_weight`` to bring the weighted average to ``target``."""
    if new_weight <= 0:
        return None
    if not history:
        return target

    weighted = 0.0
    total_weight = 0.0
    for entry in history:
        weighted += entry.score * entry.weight
        total_weight += entry.weight
    return (target * (total_weight + new_weight) - weighted) / new_weight


@dataclass(frozen=True)
class GradeSummary:
    count: int
    latest: float | None
    weighted_average: float | None


def summarize_grades(history: Sequence[GradeEntry]) -> GradeSummary:
    return GradeSummary(
        count=len(history),
        latest=latest_grade(history),
        weighted_average=weighted_average(history),
    )
