import math
from typing import Optional
from datetime import datetime, timezone


def total_pages(total: int, per_page: int) -> int:
    if per_page <= 0:
        return 0
    return (total + per_page - 1) // per_page


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on the way back)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching the dashboards' rounding."""
    return int(math.floor(value + 0.5))


def safe_percent(part: float, whole: float) -> int:
    """Whole-number percentage; 0 when ``whole`` is 0."""
    if not whole:
        return 0
    return round_half_up(part / whole * 100)
