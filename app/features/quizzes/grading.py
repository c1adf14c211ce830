"""Quiz grading.

``grade_submission`` scores one submission; ``plan_submission_writes`` turns
the result into the rows the service must persist. Both are pure.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Optional, Sequence

from app.common.errors import NotFound
from app.common.utils import ensure_utc, round_half_up
from app.features.progress.models import COMPLETED

LETTERS = ("A", "B", "C", "D")
_OPTION_RE = re.compile(r"^(?:option\s*)?([a-d])$", re.IGNORECASE)


def normalize_option(value: Any) -> Optional[str]:
    """Map ``"a"``, ``"Option A"``, ``0`` or ``"0"`` to ``"A"``; anything else to None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return LETTERS[value] if 0 <= value < len(LETTERS) else None
    text = str(value).strip()
    if text.isdigit():
        idx = int(text)
        return LETTERS[idx] if idx < len(LETTERS) else None
    match = _OPTION_RE.match(text)
    return match.group(1).upper() if match else None


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


@dataclass(frozen=True)
class GradeResult:
    score: int
    correct_count: int
    total_questions: int
    passed: bool
    required_percent: int


def grade_submission(
    quiz: Any,
    questions: Sequence[Any],
    answers: Any,
    pass_threshold_override: Optional[int] = None,
    default_pass_percentage: int = 70,
    served_ids: Optional[Iterable[Any]] = None,
) -> GradeResult:
    """Score ``answers`` (question id -> option) against ``questions``.

    Without ``served_ids`` every question of the bank counts. With them only
    those ids are graded and their count is the denominator; an id that is not
    in the bank counts as wrong. Anything other than a mapping for ``answers``
    scores zero.
    """
    if quiz is None:
        raise NotFound("Quiz not found")

    if served_ids is None:
        graded = list(questions)
        total = len(graded)
    else:
        served = {str(qid) for qid in served_ids}
        graded = [q for q in questions if str(_field(q, "id")) in served]
        total = len(served)

    correct = 0
    if isinstance(answers, Mapping):
        keyed = {str(k): v for k, v in answers.items()}
        for question in graded:
            expected = normalize_option(_field(question, "correct_option"))
            given = normalize_option(keyed.get(str(_field(question, "id"))))
            if expected is not None and given == expected:
                correct += 1

    pass_percentage = _field(quiz, "pass_percentage")
    if pass_threshold_override is not None:
        required = int(pass_threshold_override)
    elif pass_percentage is not None:
        required = int(pass_percentage)
    else:
        required = default_pass_percentage

    if total == 0:
        return GradeResult(score=0, correct_count=0, total_questions=0, passed=False, required_percent=required)

    score = round_half_up(correct / total * 100)
    return GradeResult(
        score=score,
        correct_count=correct,
        total_questions=total,
        passed=score >= required,
        required_percent=required,
    )


@dataclass(frozen=True)
class CreateExamAttempt:
    id: str
    student_id: str
    quiz_id: str
    started_at: datetime
    completed_at: datetime
    score: int
    correct_count: int
    total_questions: int
    passed: bool


@dataclass(frozen=True)
class UpsertStudentProgress:
    student_id: str
    course_id: str
    status: str
    qualified: bool
    attempt_id: str

    def patch(self) -> dict:
        return {"status": self.status, "qualified": self.qualified, "attempt_id": self.attempt_id}


@dataclass(frozen=True)
class SubmissionWrites:
    attempt: CreateExamAttempt
    progress: Optional[UpsertStudentProgress] = None


def plan_submission_writes(
    result: GradeResult,
    student_id: str,
    quiz_id: str,
    course_id: str,
    now: datetime,
    started_at: Optional[datetime] = None,
    time_spent_seconds: Optional[float] = None,
) -> SubmissionWrites:
    now = ensure_utc(now)
    if started_at is not None:
        start = ensure_utc(started_at)
    elif time_spent_seconds:
        start = now - timedelta(seconds=max(0.0, float(time_spent_seconds)))
    else:
        start = now

    attempt = CreateExamAttempt(
        id=str(uuid.uuid4()),
        student_id=student_id,
        quiz_id=quiz_id,
        started_at=start,
        completed_at=now,
        score=result.score,
        correct_count=result.correct_count,
        total_questions=result.total_questions,
        passed=result.passed,
    )
    progress = None
    if result.passed:
        progress = UpsertStudentProgress(
            student_id=student_id,
            course_id=course_id,
            status=COMPLETED,
            qualified=True,
            attempt_id=attempt.id,
        )
    return SubmissionWrites(attempt=attempt, progress=progress)
