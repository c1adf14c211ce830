"""Canonical level and class identifiers.

Stored rows and incoming requests spell levels many ways ("Level 1",
"level 01", "1"). Everything that reads or writes by (class, level) goes
through these helpers so the engines only ever see the canonical form.
"""

from __future__ import annotations

import re
from typing import Any, Tuple

from app.common.errors import InvalidInput
from app.Core.config import get_settings

_DIGITS = re.compile(r"\d+")


def normalize_level(raw: Any) -> str:
    """``"Level 1"``, ``"level 01"``, ``" 1 "`` and ``1`` all become ``"1"``.

    Values without digits are kept as trimmed free text.
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidInput("Level is required")
    if isinstance(raw, int):
        return str(raw)
    text = str(raw).strip()
    if not text:
        raise InvalidInput("Level is required")
    match = _DIGITS.search(text)
    if match is None:
        return text
    return str(int(match.group(0)))


def normalize_class_level(raw: Any) -> str:
    if raw is None:
        raise InvalidInput("Class level is required")
    text = str(raw).strip()
    if not text:
        raise InvalidInput("Class level is required")
    return text


def level_number(level: Any) -> int | None:
    try:
        canonical = normalize_level(level)
    except InvalidInput:
        return None
    return int(canonical) if canonical.isdigit() else None


def level_sort_key(level: Any) -> Tuple[int, int, str]:
    """Numeric levels first in numeric order, then free text alphabetically."""
    num = level_number(level)
    if num is not None:
        return (0, num, "")
    return (1, 0, str(level or "").strip().lower())


def is_first_level(level: Any) -> bool:
    try:
        return normalize_level(level) == get_settings().default_level
    except InvalidInput:
        return False
