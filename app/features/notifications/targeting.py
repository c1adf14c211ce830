"""Audience selection for admin announcements.

District admins address students of their own district (``ALL``, ``LEVEL``,
``SCHOOL``); the master admin addresses the whole platform (``ALL_STUDENTS``,
``BY_LEVEL``, ``BY_DISTRICT``, ``COMPLETED_ALL_COURSES``, ``ACTIVE``,
``INACTIVE``). Callers load the candidate students; nothing here queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import AbstractSet, Iterable, List, Optional

from app.common.errors import InvalidInput, NotFound
from app.common.utils import ensure_utc
from app.features.levels.normalization import normalize_level

DISTRICT_TARGETS = ("ALL", "LEVEL", "SCHOOL")
GLOBAL_TARGETS = ("ALL_STUDENTS", "BY_LEVEL", "BY_DISTRICT", "COMPLETED_ALL_COURSES", "ACTIVE", "INACTIVE")
ACTIVE_WINDOW = timedelta(days=3)

_NEEDS_VALUE = {
    "LEVEL": "Level value is required for this target type.",
    "BY_LEVEL": "Level value is required for this target type.",
    "SCHOOL": "School value is required for this target type.",
    "BY_DISTRICT": "District ID is required for this target type.",
}


@dataclass(frozen=True)
class TargetStudent:
    id: str
    district_id: Optional[str] = None
    school: Optional[str] = None
    levels: AbstractSet[str] = frozenset()
    last_active_at: Optional[datetime] = None


def _matches(
    student: TargetStudent,
    kind: str,
    value: str,
    cutoff: Optional[datetime],
    completed_all_ids: AbstractSet[str],
) -> bool:
    if kind in ("LEVEL", "BY_LEVEL"):
        return value in student.levels
    if kind == "SCHOOL":
        return student.school == value
    if kind == "BY_DISTRICT":
        return student.district_id == value
    if kind == "COMPLETED_ALL_COURSES":
        return student.id in completed_all_ids
    if kind in ("ACTIVE", "INACTIVE"):
        seen = ensure_utc(student.last_active_at)
        active = seen is not None and seen >= cutoff
        return active if kind == "ACTIVE" else not active
    return True


def resolve_targets(
    students: Iterable[TargetStudent],
    target_type: str,
    target_value: Optional[str] = None,
    now: Optional[datetime] = None,
    completed_all_ids: AbstractSet[str] = frozenset(),
    allowed: Iterable[str] = GLOBAL_TARGETS,
) -> List[str]:
    """Ids of the students an announcement goes to.

    ``levels`` holds every level the student has a progress row on.
    ``completed_all_ids`` is only consulted for ``COMPLETED_ALL_COURSES``.
    Raises ``InvalidInput`` for an unknown type or a missing value and
    ``NotFound`` when nobody matches.
    """
    kind = (target_type or "").strip().upper()
    if kind not in tuple(allowed):
        raise InvalidInput("Invalid target type specified.")
    value = (target_value or "").strip()
    if kind in _NEEDS_VALUE and not value:
        raise InvalidInput(_NEEDS_VALUE[kind])
    if kind in ("LEVEL", "BY_LEVEL"):
        value = normalize_level(value)

    cutoff = None
    if kind in ("ACTIVE", "INACTIVE"):
        if now is None:
            raise InvalidInput("A reference time is required for activity targets.")
        cutoff = now - ACTIVE_WINDOW

    ids = [s.id for s in students if _matches(s, kind, value, cutoff, completed_all_ids)]
    if not ids:
        raise NotFound("No students found matching the target criteria.")
    return ids
