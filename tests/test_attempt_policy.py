from datetime import datetime, timedelta, timezone

import pytest

from app.common.errors import AttemptNotAllowed, InvalidInput
from app.features.quizzes.grading import GradeResult
from app.features.quizzes.policy import AttemptPolicy, check_attempt_allowed, xp_for

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def test_default_policy_is_unlimited():
    check_attempt_allowed(AttemptPolicy(), [NOW - timedelta(seconds=1)] * 50, NOW)


def test_attempt_cap():
    policy = AttemptPolicy(max_attempts=2)
    check_attempt_allowed(policy, [NOW - timedelta(days=1)], NOW)
    with pytest.raises(AttemptNotAllowed, match="Maximum of 2 attempts"):
        check_attempt_allowed(policy, [NOW - timedelta(days=2), NOW - timedelta(days=1)], NOW)


def test_cooldown_reports_wait():
    policy = AttemptPolicy(cooldown_seconds=600)
    with pytest.raises(AttemptNotAllowed, match="wait 300 seconds"):
        check_attempt_allowed(policy, [NOW - timedelta(minutes=5)], NOW)
    check_attempt_allowed(policy, [NOW - timedelta(minutes=10)], NOW)


def test_attempt_errors_are_input_errors():
    assert issubclass(AttemptNotAllowed, InvalidInput)


def test_xp_for():
    policy = AttemptPolicy(xp_on_pass=15, xp_on_fail=2)
    passed = GradeResult(score=80, correct_count=4, total_questions=5, passed=True, required_percent=70)
    failed = GradeResult(score=20, correct_count=1, total_questions=5, passed=False, required_percent=70)
    assert xp_for(passed, policy) == 15
    assert xp_for(failed, policy) == 2
