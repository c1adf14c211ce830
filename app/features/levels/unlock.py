"""Unlock / expiry resolution for a single level.

Pure functions: callers load the schedule, validity and progress rows and
pass plain values in. ``now`` always comes from the caller.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from app.common.utils import ensure_utc
from app.features.levels.normalization import level_number
from app.features.progress.models import COMPLETED, IN_PROGRESS

DAY_MS = 86_400_000


@dataclass(frozen=True)
class ProgressState:
    status: Optional[str] = None
    qualified: bool = False


@dataclass(frozen=True)
class UnlockStatus:
    is_unlocked: bool
    is_expired: bool
    is_locked: bool
    unlock_message: Optional[str] = None
    validity_message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def days_until(now: datetime, then: datetime) -> int:
    """Whole days from ``now`` to ``then``; a partial day counts as one."""
    delta_ms = (then - now).total_seconds() * 1000
    return math.ceil(delta_ms / DAY_MS)


def _validity_message(now: datetime, valid_until: datetime) -> str:
    if now > valid_until:
        return "Expired"
    days = days_until(now, valid_until)
    if days > 0:
        return f"Valid for {days} days"
    return "Valid until today"


def resolve_unlock(
    now: datetime,
    unlock_at: Optional[datetime] = None,
    valid_until: Optional[datetime] = None,
    progress: Optional[ProgressState] = None,
    is_first_level: bool = False,
) -> UnlockStatus:
    now = ensure_utc(now)
    unlock_at = ensure_utc(unlock_at)
    valid_until = ensure_utc(valid_until)
    state = progress or ProgressState()

    is_unlocked = unlock_at is None or now >= unlock_at
    is_expired = valid_until is not None and now > valid_until

    finished = state.status == COMPLETED and bool(state.qualified)
    is_locked = (
        not finished
        and state.status != IN_PROGRESS
        and not is_first_level
        and not is_unlocked
    )

    unlock_message = None
    if unlock_at is not None and not is_unlocked:
        unlock_message = f"Unlocks in {days_until(now, unlock_at)} days"

    validity_message = None
    if valid_until is not None:
        validity_message = _validity_message(now, valid_until)

    return UnlockStatus(
        is_unlocked=is_unlocked,
        is_expired=is_expired,
        is_locked=is_locked,
        unlock_message=unlock_message,
        validity_message=validity_message,
    )


def max_unlocked_level(rows: Iterable[tuple[Any, Optional[str], bool]], floor: int = 1) -> int:
    """Highest level a student may open in the learning path.

    ``rows`` are ``(level, status, qualified)`` tuples. The level after the
    highest completed+qualified numeric level is open; otherwise the
    in-progress level; otherwise ``floor``.
    """
    completed: list[int] = []
    in_progress: list[int] = []
    for level, status, qualified in rows:
        num = level_number(level)
        if num is None:
            continue
        if status == COMPLETED and qualified:
            completed.append(num)
        elif status == IN_PROGRESS:
            in_progress.append(num)
    if completed:
        return max(max(completed) + 1, floor)
    if in_progress:
        return max(max(in_progress), floor)
    return floor
