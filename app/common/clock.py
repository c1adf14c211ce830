from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_now() -> datetime:
    """FastAPI dependency; tests override it to pin the clock."""
    return utcnow()


__all__ = ["utcnow", "get_now"]
