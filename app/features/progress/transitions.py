from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from app.common.errors import InvalidInput
from app.features.progress.models import COMPLETED, IN_PROGRESS, LOCKED, STATUSES

_RANK = {LOCKED: 0, IN_PROGRESS: 1, COMPLETED: 2}


def is_finished(status: Optional[str], qualified: Optional[bool]) -> bool:
    return status == COMPLETED and bool(qualified)


def apply_progress_patch(
    current_status: Optional[str],
    current_qualified: Optional[bool],
    patch: Mapping[str, Any],
) -> Tuple[str, bool]:
    """Merge ``patch`` into a progress row, forward only.

    Status only moves along locked -> in_progress -> completed, qualified
    never flips back to False, and qualified forces completed. Applying the
    same patch twice, or two patches in either order, lands on the same row.
    """
    status = current_status or LOCKED
    if status not in _RANK:
        raise InvalidInput(f"Unknown progress status: {status}")
    qualified = bool(current_qualified)

    requested = patch.get("status")
    if requested is not None:
        if requested not in STATUSES:
            raise InvalidInput(f"Unknown progress status: {requested}")
        if _RANK[requested] > _RANK[status]:
            status = requested

    if patch.get("qualified"):
        qualified = True
    if qualified:
        status = COMPLETED
    return status, qualified
