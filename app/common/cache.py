from __future__ import annotations

import os
import time
from typing import Any, Callable, Optional

_DEFAULT_TTL = int(os.getenv("READ_CACHE_SECONDS", "60"))
_DISABLED = os.getenv("READ_CACHE_DISABLED", "false").lower() == "true"

_STORE: dict[str, tuple[Any, float]] = {}


def get(key: str) -> Any | None:
    if _DISABLED:
        return None
    now = time.time()
    item = _STORE.get(key)
    if not item:
        return None
    value, exp = item
    if now < exp:
        return value
    _STORE.pop(key, None)
    return None


def set(key: str, value: Any, ttl: Optional[int] = None) -> None:
    if _DISABLED:
        return
    ttl_s = int(ttl if ttl is not None else _DEFAULT_TTL)
    _STORE[key] = (value, time.time() + max(1, ttl_s))


def cached(key: str, loader: Callable[[], Any], ttl: Optional[int] = None) -> Any:
    """Read-through: return the cached value or load, store and return it."""
    hit = get(key)
    if hit is not None:
        return hit
    value = loader()
    if value is not None:
        set(key, value, ttl)
    return value


def clear(prefix: Optional[str] = None) -> None:
    if prefix is None:
        _STORE.clear()
    else:
        keys = [k for k in _STORE.keys() if k.startswith(prefix)]
        for k in keys:
            _STORE.pop(k, None)
