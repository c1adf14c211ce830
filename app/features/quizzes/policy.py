from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from app.common.errors import AttemptNotAllowed
from app.common.utils import ensure_utc
from app.Core.config import Settings, get_settings
from app.features.quizzes.grading import GradeResult


@dataclass(frozen=True)
class AttemptPolicy:
    """Retake rules for a quiz. The defaults allow unlimited attempts."""

    max_attempts: Optional[int] = None
    cooldown_seconds: int = 0
    xp_on_pass: int = 10
    xp_on_fail: int = 0

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AttemptPolicy":
        s = settings or get_settings()
        return cls(
            max_attempts=s.quiz_max_attempts,
            cooldown_seconds=s.quiz_attempt_cooldown_seconds,
            xp_on_pass=s.quiz_xp_on_pass,
            xp_on_fail=s.quiz_xp_on_fail,
        )


def check_attempt_allowed(
    policy: AttemptPolicy,
    previous_attempts: Sequence[datetime],
    now: datetime,
) -> None:
    """Raise AttemptNotAllowed when the cap or the cool-down blocks a new attempt.

    ``previous_attempts`` are completion instants of earlier attempts on
    the same quiz by the same student.
    """
    if policy.max_attempts is not None and len(previous_attempts) >= policy.max_attempts:
        raise AttemptNotAllowed(f"Maximum of {policy.max_attempts} attempts reached")

    if policy.cooldown_seconds > 0 and previous_attempts:
        last = max(ensure_utc(t) for t in previous_attempts)
        ready_at = last + timedelta(seconds=policy.cooldown_seconds)
        now = ensure_utc(now)
        if now < ready_at:
            wait = math.ceil((ready_at - now).total_seconds())
            raise AttemptNotAllowed(f"Please wait {wait} seconds before retrying")


def xp_for(result: GradeResult, policy: AttemptPolicy) -> int:
    return policy.xp_on_pass if result.passed else policy.xp_on_fail
