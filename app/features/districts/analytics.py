"""Pure dashboard calculations over loaded student rows."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from app.common.errors import InvalidInput
from app.common.utils import ensure_utc, round_half_up

SCHOOL_SORT_KEYS = ("avg_score", "student_count", "school")
ACTIVE_WINDOW = timedelta(days=3)


@dataclass(frozen=True)
class SchoolStudent:
    school: Optional[str]
    attempt_count: int
    scores: Sequence[Optional[int]] = ()


@dataclass
class SchoolPerformance:
    school: str
    avg_score: int
    student_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _sort_key(name: str) -> str:
    aliases = {"avgscore": "avg_score", "studentcount": "student_count"}
    key = aliases.get(name.replace("_", "").lower(), name)
    if key not in SCHOOL_SORT_KEYS:
        raise InvalidInput(f"Invalid sortBy '{name}'.")
    return key


def school_performance(
    students: Iterable[SchoolStudent],
    sort_by: str = "avg_score",
    order: str = "desc",
    search: Optional[str] = None,
) -> List[SchoolPerformance]:
    """Average score per school over students who attempted at least one quiz."""
    key = _sort_key(sort_by)
    if order not in ("asc", "desc"):
        raise InvalidInput("order must be 'asc' or 'desc'.")
    needle = (search or "").strip().lower()

    totals: Dict[str, List[int]] = {}
    for student in students:
        if not student.school or student.attempt_count <= 0:
            continue
        if needle and needle not in student.school.lower():
            continue
        bucket = totals.setdefault(student.school, [0, 0, 0])
        scored = [s for s in student.scores if s is not None]
        bucket[0] += sum(scored)
        bucket[1] += len(scored)
        bucket[2] += 1

    rows = [
        SchoolPerformance(
            school=school,
            avg_score=round_half_up(total / count) if count else 0,
            student_count=n,
        )
        for school, (total, count, n) in totals.items()
    ]
    if key == "school":
        rows.sort(key=lambda r: r.school.lower(), reverse=order == "desc")
    else:
        rows.sort(key=lambda r: (getattr(r, key), r.school.lower()), reverse=order == "desc")
    return rows


def engagement(last_seen: Iterable[Optional[datetime]], now: datetime) -> Dict[str, int]:
    """Bucket students by last activity: under a day, under three days, otherwise."""
    one_day = now - timedelta(days=1)
    three_days = now - ACTIVE_WINDOW
    out = {"highly_active": 0, "moderately_active": 0, "inactive": 0}
    for seen in last_seen:
        seen = ensure_utc(seen)
        if seen is not None and seen >= one_day:
            out["highly_active"] += 1
        elif seen is not None and seen >= three_days:
            out["moderately_active"] += 1
        else:
            out["inactive"] += 1
    return out


def is_active(last_seen: Optional[datetime], now: datetime) -> bool:
    seen = ensure_utc(last_seen)
    return seen is not None and seen > now - ACTIVE_WINDOW
