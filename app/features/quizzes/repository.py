from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.common.errors import InvalidInput
from app.features.levels.models import Course
from app.features.levels.normalization import normalize_class_level, normalize_level
from app.features.quizzes.grading import CreateExamAttempt
from app.features.quizzes.models import ExamAttempt, PassingMark, Question, QuestionBank, Quiz

logger = logging.getLogger("quizzes.repo")

class QuizRepository:
    @staticmethod
    def get(db: Session, quiz_id: str) -> Optional[Quiz]:
        stmt = (
            select(Quiz)
            .where(Quiz.id == quiz_id)
            .options(selectinload(Quiz.question_bank).selectinload(QuestionBank.questions), selectinload(Quiz.course))
        )
        return db.execute(stmt).scalars().first()

    @staticmethod
    def for_course(db: Session, course_id: str) -> List[Quiz]:
        stmt = (
            select(Quiz)
            .where(Quiz.course_id == course_id)
            .options(selectinload(Quiz.question_bank).selectinload(QuestionBank.questions))
            .order_by(Quiz.created_at)
        )
        return list(db.execute(stmt).scalars().all())

    @staticmethod
    def questions(quiz: Quiz) -> List[Question]:
        if quiz.question_bank is None:
            return []
        return sorted(quiz.question_bank.questions, key=lambda q: q.id)

    @staticmethod
    def create_with_bank(
        db: Session,
        course: Course,
        questions: Sequence[Mapping[str, Any]],
        pass_percentage: int = 70,
    ) -> Quiz:
        bank = QuestionBank(questions=[Question(**q) for q in questions])
        db.add(bank)
        db.flush()
        quiz = Quiz(
            course_id=course.id,
            class_level=course.class_level,
            num_questions=len(questions),
            pass_percentage=pass_percentage,
            question_bank_id=bank.id,
        )
        db.add(quiz)
        db.commit()
        db.refresh(quiz)
        logger.info("quiz_created id=%s course=%s questions=%d", quiz.id, course.id, len(questions))
        return quiz

    @staticmethod
    def update(db: Session, quiz: Quiz, num_questions: Optional[int], pass_percentage: Optional[int]) -> Quiz:
        if num_questions is not None:
            quiz.num_questions = num_questions
        if pass_percentage is not None:
            quiz.pass_percentage = pass_percentage
        db.commit()
        db.refresh(quiz)
        return quiz

    @staticmethod
    def delete(db: Session, quiz: Quiz) -> None:
        """Drop the quiz with its attempts and question bank."""
        from app.features.progress.models import StudentProgress

        attempt_ids = [a for (a,) in db.execute(select(ExamAttempt.id).where(ExamAttempt.quiz_id == quiz.id)).all()]
        if attempt_ids:
            db.query(StudentProgress).filter(StudentProgress.attempt_id.in_(attempt_ids)).update(
                {StudentProgress.attempt_id: None}, synchronize_session=False
            )
            db.query(ExamAttempt).filter(ExamAttempt.quiz_id == quiz.id).delete(synchronize_session=False)
        bank = quiz.question_bank
        db.delete(quiz)
        if bank is not None:
            db.delete(bank)
        db.commit()
        logger.info("quiz_deleted id=%s attempts=%d", quiz.id, len(attempt_ids))

class AttemptRepository:
    @staticmethod
    def create(db: Session, record: CreateExamAttempt) -> ExamAttempt:
        attempt = ExamAttempt(
            id=record.id,
            student_id=record.student_id,
            quiz_id=record.quiz_id,
            started_at=record.started_at,
            completed_at=record.completed_at,
            score=record.score,
            correct_count=record.correct_count,
            total_questions=record.total_questions,
            passed=record.passed,
        )
        db.add(attempt)
        db.flush()
        return attempt

    @staticmethod
    def for_student(db: Session, student_id: str, scored_only: bool = False) -> List[ExamAttempt]:
        stmt = select(ExamAttempt).where(ExamAttempt.student_id == student_id)
        if scored_only:
            stmt = stmt.where(ExamAttempt.score.is_not(None))
        return list(db.execute(stmt).scalars().all())

    @staticmethod
    def for_students(db: Session, student_ids: Iterable[str]) -> List[ExamAttempt]:
        ids = list(student_ids)
        if not ids:
            return []
        return list(db.execute(select(ExamAttempt).where(ExamAttempt.student_id.in_(ids))).scalars().all())

    @staticmethod
    def average_score(db: Session) -> Optional[float]:
        value = db.execute(select(func.avg(ExamAttempt.score)).where(ExamAttempt.score.is_not(None))).scalar()
        return float(value) if value is not None else None

    @staticmethod
    def completion_times(db: Session, student_id: str, quiz_id: str) -> List[datetime]:
        stmt = select(ExamAttempt.completed_at, ExamAttempt.started_at).where(
            ExamAttempt.student_id == student_id,
            ExamAttempt.quiz_id == quiz_id,
        )
        return [done or started for done, started in db.execute(stmt).all()]

    @staticmethod
    def latest_by_quiz(db: Session, student_id: str, quiz_ids: Iterable[str]) -> Dict[str, ExamAttempt]:
        ids = list(quiz_ids)
        if not ids:
            return {}
        rows = db.execute(
            select(ExamAttempt)
            .where(ExamAttempt.student_id == student_id, ExamAttempt.quiz_id.in_(ids))
            .order_by(ExamAttempt.completed_at)
        ).scalars().all()
        latest: Dict[str, ExamAttempt] = {}
        for row in rows:
            latest[row.quiz_id] = row
        return latest

class PassingMarkRepository:
    @staticmethod
    def find(db: Session, class_id: str, level_id: Any) -> Optional[int]:
        stmt = select(PassingMark.passing_marks).where(
            PassingMark.class_id == normalize_class_level(class_id),
            PassingMark.level_id == normalize_level(level_id),
        )
        return db.execute(stmt).scalars().first()

    @staticmethod
    def upsert_many(db: Session, payload: Mapping[str, Mapping[str, Any]]) -> int:
        """``{"6th": {"level1": 80, "2": 75}}``; level keys are normalized."""
        saved = 0
        for class_raw, levels in payload.items():
            if not isinstance(levels, Mapping):
                continue
            class_id = normalize_class_level(class_raw)
            for level_raw, marks in levels.items():
                level_id = normalize_level(level_raw)
                try:
                    marks = int(marks)
                except (TypeError, ValueError) as exc:
                    raise InvalidInput(f"Passing marks for {class_id}/{level_id} must be a number") from exc
                if not 0 <= marks <= 100:
                    raise InvalidInput(f"Passing marks for {class_id}/{level_id} must be between 0 and 100")
                row = db.execute(
                    select(PassingMark).where(PassingMark.class_id == class_id, PassingMark.level_id == level_id)
                ).scalars().first()
                if row is None:
                    db.add(PassingMark(class_id=class_id, level_id=level_id, passing_marks=marks))
                    db.flush()
                else:
                    row.passing_marks = marks
                saved += 1
        db.commit()
        return saved

    @staticmethod
    def as_nested(db: Session, class_id: Optional[str] = None, level_id: Optional[str] = None) -> Dict[str, Dict[str, int]]:
        stmt = select(PassingMark)
        if class_id:
            stmt = stmt.where(PassingMark.class_id == normalize_class_level(class_id))
        if level_id:
            stmt = stmt.where(PassingMark.level_id == normalize_level(level_id))
        out: Dict[str, Dict[str, int]] = {}
        for row in db.execute(stmt).scalars().all():
            out.setdefault(row.class_id, {})[row.level_id] = row.passing_marks
        return out
