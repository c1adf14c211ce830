from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from app.common.errors import InvalidInput, NotFound
from app.common.utils import ensure_utc
from app.Core.config import get_settings
from app.features.levels.repository import CourseRepository, ValidityRepository
from app.features.progress.repository import ProgressRepository
from app.features.quizzes.grading import grade_submission, normalize_option, plan_submission_writes
from app.features.quizzes.models import Question
from app.features.quizzes.policy import AttemptPolicy, check_attempt_allowed, xp_for
from app.features.quizzes.repository import AttemptRepository, PassingMarkRepository, QuizRepository

logger = logging.getLogger("quizzes.service")


def public_question(q: Question) -> Dict[str, Any]:
    """Question as shown to a student: no correct option."""
    return {
        "id": q.id,
        "question": q.question,
        "optionA": q.option_a,
        "optionB": q.option_b,
        "optionC": q.option_c,
        "optionD": q.option_d,
    }


def sample_questions(
    questions: Sequence[Question],
    limit: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Dict[str, Any]]:
    limit = limit if limit is not None else get_settings().random_question_limit
    pool = list(questions)
    (rng or random).shuffle(pool)
    return [public_question(q) for q in pool[:limit]]


def answers_from_list(items: Any) -> Dict[str, Any]:
    """``[{questionId, selectedOption}]`` -> ``{questionId: selectedOption}``.

    Malformed entries are skipped; a non-list yields no answers.
    """
    out: Dict[str, Any] = {}
    if not isinstance(items, list):
        return out
    for item in items:
        if not isinstance(item, Mapping):
            continue
        qid = item.get("questionId", item.get("question_id"))
        if qid is None:
            continue
        out[str(qid)] = item.get("selectedOption", item.get("selected_option"))
    return out


class QuizService:
    @staticmethod
    def submit(
        db: Session,
        student_id: str,
        quiz_id: str,
        answers: Any,
        now: datetime,
        started_at: Optional[datetime] = None,
        time_spent_seconds: Optional[float] = None,
        policy: Optional[AttemptPolicy] = None,
        served_ids: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """Grade one submission, record the attempt and credit progress on a pass.

        The whole bank is graded unless ``served_ids`` names the questions the
        student was given. A pass after the level's validity window is
        recorded but not credited.
        """
        settings = get_settings()
        now = ensure_utc(now)
        quiz = QuizRepository.get(db, quiz_id)
        questions = QuizRepository.questions(quiz) if quiz is not None else []
        course = quiz.course if quiz is not None else None

        override = None
        valid_until = None
        if course is not None:
            override = PassingMarkRepository.find(db, course.class_level, course.level)
            valid_until = ValidityRepository.find(db, course.class_level, course.level)

        if quiz is not None:
            policy = policy or AttemptPolicy.from_settings(settings)
            check_attempt_allowed(policy, AttemptRepository.completion_times(db, student_id, quiz.id), now)

        result = grade_submission(
            quiz,
            questions,
            answers,
            pass_threshold_override=override,
            default_pass_percentage=settings.default_pass_percentage,
            served_ids=served_ids,
        )
        writes = plan_submission_writes(
            result,
            student_id=student_id,
            quiz_id=quiz.id,
            course_id=course.id,
            now=now,
            started_at=started_at,
            time_spent_seconds=time_spent_seconds,
        )

        expired = valid_until is not None and now > ensure_utc(valid_until)
        attempt = AttemptRepository.create(db, writes.attempt)
        progress = None
        if writes.progress is not None and not expired:
            progress = ProgressRepository.upsert_student_progress(
                db, writes.progress.student_id, writes.progress.course_id, writes.progress.patch()
            )
        db.commit()

        logger.info(
            "attempt_recorded student=%s quiz=%s score=%s passed=%s credited=%s",
            student_id,
            quiz.id,
            result.score,
            result.passed,
            not expired,
        )
        return {
            "attempt_id": attempt.id,
            "quiz_id": quiz.id,
            "course_id": course.id,
            "class_level": course.class_level,
            "level": course.level,
            "score": result.score,
            "correct_count": result.correct_count,
            "total_questions": result.total_questions,
            "passed": result.passed,
            "required_percent": result.required_percent,
            "credited": not expired,
            "certificate_eligible": result.score >= settings.certificate_threshold,
            "xp_earned": 0 if expired else xp_for(result, policy),
            "time_spent": int((writes.attempt.completed_at - writes.attempt.started_at).total_seconds()),
            "submitted_at": writes.attempt.completed_at,
            "progress_status": progress.status if progress is not None else None,
            "qualified": bool(progress.qualified) if progress is not None else False,
        }

    @staticmethod
    def submit_for_level(
        db: Session,
        student_id: str,
        class_id: str,
        level_id: str,
        answers: Any,
        now: datetime,
        time_spent_seconds: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Submission addressed by (class, level); answers arrive as a list.

        The answered question ids are the served set, and it must be as large
        as the set a student is served from this bank.
        """
        course = CourseRepository.find(db, class_id, level_id)
        if course is None:
            raise NotFound("Course not found for the specified class and level.")
        quizzes = QuizRepository.for_course(db, course.id)
        if not quizzes:
            raise NotFound("No quiz found for this course.")
        quiz = quizzes[0]
        answer_map = answers_from_list(answers)
        expected = min(len(QuizRepository.questions(quiz)), get_settings().random_question_limit)
        if len(answer_map) < expected:
            raise InvalidInput(f"Expected answers for {expected} questions, got {len(answer_map)}.")
        return QuizService.submit(
            db,
            student_id,
            quiz.id,
            answer_map,
            now,
            time_spent_seconds=time_spent_seconds,
            served_ids=list(answer_map),
        )

    @staticmethod
    def random_questions(db: Session, class_level: str, level: str, rng: Optional[random.Random] = None) -> Dict[str, Any]:
        course = CourseRepository.find(db, class_level, level)
        if course is None:
            raise NotFound(f"No course found for classLevel: {class_level} and level: {level}")
        pool: List[Question] = []
        for quiz in QuizRepository.for_course(db, course.id):
            pool.extend(QuizRepository.questions(quiz))
        if not pool:
            raise NotFound(f"No questions found for classLevel: {class_level} and level: {level}")
        picked = sample_questions(pool, rng=rng)
        return {
            "class_level": course.class_level,
            "level": course.level,
            "course_id": course.id,
            "course_title": course.title,
            "total_questions_available": len(pool),
            "questions_returned": len(picked),
            "questions": picked,
        }

    @staticmethod
    def quiz_view(db: Session, quiz_id: str) -> Dict[str, Any]:
        quiz = QuizRepository.get(db, quiz_id)
        if quiz is None:
            raise NotFound("Quiz not found.")
        return {
            "id": quiz.id,
            "course_id": quiz.course_id,
            "course_title": quiz.course.title if quiz.course else None,
            "class_level": quiz.class_level,
            "num_questions": quiz.num_questions,
            "pass_percentage": quiz.pass_percentage,
            "questions": [public_question(q) for q in QuizRepository.questions(quiz)],
        }

    # Admin

    @staticmethod
    def create_quiz(
        db: Session,
        class_level: str,
        level: str,
        questions: Sequence[Mapping[str, Any]],
        pass_percentage: Optional[int] = None,
    ):
        rows: List[Dict[str, Any]] = []
        for q in questions:
            fields = {
                "question": str(q.get("question") or "").strip(),
                "option_a": str(q.get("option_a") or "").strip(),
                "option_b": str(q.get("option_b") or "").strip(),
                "option_c": str(q.get("option_c") or "").strip(),
                "option_d": str(q.get("option_d") or "").strip(),
                "correct_option": normalize_option(q.get("correct_option")),
                "explanation": q.get("explanation"),
            }
            # Incomplete rows are skipped, same as a partially filled sheet
            if not all(fields[k] for k in ("question", "option_a", "option_b", "option_c", "option_d", "correct_option")):
                continue
            rows.append(fields)
        if not rows:
            raise InvalidInput("No valid questions could be parsed. Please check the format.")
        course = CourseRepository.find_or_create(db, class_level, level)
        percent = pass_percentage if pass_percentage is not None else get_settings().default_pass_percentage
        return QuizRepository.create_with_bank(db, course, rows, pass_percentage=percent)

    @staticmethod
    def update_quiz(db: Session, quiz_id: str, num_questions: Optional[int], pass_percentage: Optional[int]):
        if num_questions is None and pass_percentage is None:
            raise InvalidInput("At least one of numQuestions or passingMarks is required.")
        quiz = QuizRepository.get(db, quiz_id)
        if quiz is None:
            raise NotFound("Quiz not found.")
        return QuizRepository.update(db, quiz, num_questions, pass_percentage)

    @staticmethod
    def delete_quiz(db: Session, quiz_id: str) -> None:
        quiz = QuizRepository.get(db, quiz_id)
        if quiz is None:
            raise NotFound("Quiz not found.")
        QuizRepository.delete(db, quiz)
