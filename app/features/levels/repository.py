from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.common import cache
from app.features.levels.models import (
    CompletionMessage,
    Course,
    CourseLevelConfig,
    CoursePdf,
    CourseVideo,
    LevelSchedule,
    QuizValidity,
)
from app.features.levels.normalization import (
    level_sort_key,
    normalize_class_level,
    normalize_level,
)

logger = logging.getLogger("levels.repo")

CACHE_PREFIX = "levels:"


def _invalidate() -> None:
    cache.clear(CACHE_PREFIX)


class CourseRepository:
    @staticmethod
    def list_courses(
        db: Session,
        class_level: Optional[str] = None,
        level: Optional[str] = None,
        with_content: bool = False,
    ) -> List[Course]:
        stmt = select(Course)
        if class_level:
            stmt = stmt.where(Course.class_level == normalize_class_level(class_level))
        if level:
            stmt = stmt.where(Course.level == normalize_level(level))
        if with_content:
            stmt = stmt.options(
                selectinload(Course.videos),
                selectinload(Course.pdfs),
                selectinload(Course.quizzes),
            )
        rows = list(db.execute(stmt).scalars().all())
        rows.sort(key=lambda c: (c.class_level, level_sort_key(c.level)))
        return rows

    @staticmethod
    def count(db: Session) -> int:
        return db.execute(select(func.count(Course.id))).scalar_one()

    @staticmethod
    def get(db: Session, course_id: str) -> Optional[Course]:
        return db.get(Course, course_id)

    @staticmethod
    def find(db: Session, class_level: str, level: Any) -> Optional[Course]:
        stmt = select(Course).where(
            Course.class_level == normalize_class_level(class_level),
            Course.level == normalize_level(level),
        )
        return db.execute(stmt).scalars().first()

    @staticmethod
    def find_or_create(db: Session, class_level: str, level: Any) -> Course:
        class_level = normalize_class_level(class_level)
        level = normalize_level(level)
        course = CourseRepository.find(db, class_level, level)
        if course is not None:
            return course
        course = Course(
            class_level=class_level,
            level=level,
            title=f"Class {class_level} - Level {level}",
            description=f"Course materials for Class {class_level}, Level {level}.",
        )
        db.add(course)
        db.flush()
        logger.info("course_created id=%s class=%s level=%s", course.id, class_level, level)
        _invalidate()
        return course

    @staticmethod
    def distinct_levels(db: Session) -> List[str]:
        rows = db.execute(select(Course.level).distinct()).scalars().all()
        return sorted(set(rows), key=level_sort_key)

    @staticmethod
    def update_title(db: Session, course: Course, title: str) -> Course:
        course.title = title
        db.commit()
        db.refresh(course)
        _invalidate()
        return course

    @staticmethod
    def add_video(db: Session, course: Course, **fields: Any) -> CourseVideo:
        video = CourseVideo(course_id=course.id, **fields)
        db.add(video)
        db.commit()
        db.refresh(video)
        _invalidate()
        return video

    @staticmethod
    def add_pdf(db: Session, course: Course, title: str, url: str) -> CoursePdf:
        pdf = CoursePdf(course_id=course.id, title=title, url=url)
        db.add(pdf)
        db.commit()
        db.refresh(pdf)
        _invalidate()
        return pdf

    @staticmethod
    def get_video(db: Session, video_id: str) -> Optional[CourseVideo]:
        return db.get(CourseVideo, video_id)

    @staticmethod
    def get_pdf(db: Session, pdf_id: str) -> Optional[CoursePdf]:
        return db.get(CoursePdf, pdf_id)

    @staticmethod
    def update_content(db: Session, row: Any, fields: Dict[str, Any]) -> Any:
        for key, value in fields.items():
            if value is not None:
                setattr(row, key, value)
        db.commit()
        db.refresh(row)
        _invalidate()
        return row

    @staticmethod
    def delete_row(db: Session, row: Any) -> None:
        db.delete(row)
        db.commit()
        _invalidate()


class ScheduleRepository:
    """(class, level) -> unlock instant."""

    @staticmethod
    def list(db: Session, class_id: Optional[str] = None) -> List[LevelSchedule]:
        stmt = select(LevelSchedule)
        if class_id:
            stmt = stmt.where(LevelSchedule.class_id == normalize_class_level(class_id))
        rows = list(db.execute(stmt).scalars().all())
        rows.sort(key=lambda r: (r.class_id, level_sort_key(r.level)))
        return rows

    @staticmethod
    def get(db: Session, schedule_id: str) -> Optional[LevelSchedule]:
        return db.get(LevelSchedule, schedule_id)

    @staticmethod
    def upsert(db: Session, class_id: str, level: Any, unlock_at: datetime) -> LevelSchedule:
        class_id = normalize_class_level(class_id)
        level = normalize_level(level)
        row = db.execute(
            select(LevelSchedule).where(LevelSchedule.class_id == class_id, LevelSchedule.level == level)
        ).scalars().first()
        if row is None:
            row = LevelSchedule(class_id=class_id, level=level, unlock_at=unlock_at)
            db.add(row)
        else:
            row.unlock_at = unlock_at
        db.commit()
        db.refresh(row)
        _invalidate()
        return row

    @staticmethod
    def update(db: Session, row: LevelSchedule, class_id: str, level: Any, unlock_at: datetime) -> LevelSchedule:
        row.class_id = normalize_class_level(class_id)
        row.level = normalize_level(level)
        row.unlock_at = unlock_at
        db.commit()
        db.refresh(row)
        _invalidate()
        return row

    @staticmethod
    def delete(db: Session, row: LevelSchedule) -> None:
        db.delete(row)
        db.commit()
        _invalidate()

    @staticmethod
    def map_for_class(db: Session, class_id: str) -> Dict[str, datetime]:
        class_id = normalize_class_level(class_id)

        def _load() -> Dict[str, datetime]:
            rows = db.execute(
                select(LevelSchedule.level, LevelSchedule.unlock_at).where(LevelSchedule.class_id == class_id)
            ).all()
            return {level: unlock_at for level, unlock_at in rows}

        return cache.cached(f"{CACHE_PREFIX}schedule:{class_id}", _load)


class ValidityRepository:
    """(class, level) -> quiz valid-until instant."""

    @staticmethod
    def list(db: Session, class_id: Optional[str] = None) -> List[QuizValidity]:
        stmt = select(QuizValidity)
        if class_id:
            stmt = stmt.where(QuizValidity.class_id == normalize_class_level(class_id))
        rows = list(db.execute(stmt).scalars().all())
        rows.sort(key=lambda r: (r.class_id, level_sort_key(r.level)))
        return rows

    @staticmethod
    def get(db: Session, validity_id: str) -> Optional[QuizValidity]:
        return db.get(QuizValidity, validity_id)

    @staticmethod
    def upsert(db: Session, class_id: str, level: Any, valid_until: datetime) -> QuizValidity:
        class_id = normalize_class_level(class_id)
        level = normalize_level(level)
        row = db.execute(
            select(QuizValidity).where(QuizValidity.class_id == class_id, QuizValidity.level == level)
        ).scalars().first()
        if row is None:
            row = QuizValidity(class_id=class_id, level=level, valid_until=valid_until)
            db.add(row)
        else:
            row.valid_until = valid_until
        db.commit()
        db.refresh(row)
        _invalidate()
        return row

    @staticmethod
    def update(db: Session, row: QuizValidity, class_id: str, level: Any, valid_until: datetime) -> QuizValidity:
        row.class_id = normalize_class_level(class_id)
        row.level = normalize_level(level)
        row.valid_until = valid_until
        db.commit()
        db.refresh(row)
        _invalidate()
        return row

    @staticmethod
    def delete(db: Session, row: QuizValidity) -> None:
        db.delete(row)
        db.commit()
        _invalidate()

    @staticmethod
    def map_for_class(db: Session, class_id: str) -> Dict[str, datetime]:
        class_id = normalize_class_level(class_id)

        def _load() -> Dict[str, datetime]:
            rows = db.execute(
                select(QuizValidity.level, QuizValidity.valid_until).where(QuizValidity.class_id == class_id)
            ).all()
            return {level: valid_until for level, valid_until in rows}

        return cache.cached(f"{CACHE_PREFIX}validity:{class_id}", _load)

    @staticmethod
    def find(db: Session, class_id: str, level: Any) -> Optional[datetime]:
        return ValidityRepository.map_for_class(db, class_id).get(normalize_level(level))


class CourseLevelRepository:
    @staticmethod
    def all(db: Session) -> Dict[str, List[str]]:
        rows = db.execute(select(CourseLevelConfig)).scalars().all()
        return {row.class_id: list(row.levels or []) for row in rows}

    @staticmethod
    def set_levels(db: Session, class_id: str, levels: Sequence[Any]) -> CourseLevelConfig:
        class_id = normalize_class_level(class_id)
        canonical = sorted({normalize_level(lv) for lv in levels}, key=level_sort_key)
        row = db.get(CourseLevelConfig, class_id)
        if row is None:
            row = CourseLevelConfig(class_id=class_id, levels=canonical)
            db.add(row)
        else:
            row.levels = canonical
        db.commit()
        db.refresh(row)
        _invalidate()
        return row

    @staticmethod
    def available_classes(db: Session) -> List[str]:
        return sorted(set(db.execute(select(Course.class_level).distinct()).scalars().all()))

    @staticmethod
    def delete_level(db: Session, class_level: str, level: Any) -> Tuple[int, bool]:
        """Remove every course at (class, level) and drop the level from the config.

        Returns ``(deleted_courses, config_updated)``.
        """
        from app.features.progress.models import StudentProgress
        from app.features.quizzes.models import ExamAttempt

        class_level = normalize_class_level(class_level)
        level = normalize_level(level)
        courses = CourseRepository.list_courses(db, class_level, level, with_content=True)
        config = db.get(CourseLevelConfig, class_level)
        if not courses and config is None:
            return 0, False

        for course in courses:
            db.query(StudentProgress).filter(StudentProgress.course_id == course.id).delete(synchronize_session=False)
            for quiz in course.quizzes:
                db.query(ExamAttempt).filter(ExamAttempt.quiz_id == quiz.id).delete(synchronize_session=False)
            db.delete(course)

        if config is not None:
            remaining = [lv for lv in (config.levels or []) if lv != level]
            if remaining:
                config.levels = remaining
            else:
                db.delete(config)
        db.commit()
        _invalidate()
        logger.info("course_level_deleted class=%s level=%s courses=%d", class_level, level, len(courses))
        return len(courses), config is not None


class CompletionMessageRepository:
    @staticmethod
    def list(db: Session) -> List[CompletionMessage]:
        rows = list(db.execute(select(CompletionMessage)).scalars().all())
        rows.sort(key=lambda r: (r.class_id, level_sort_key(r.level_id)))
        return rows

    @staticmethod
    def get(db: Session, message_id: str) -> Optional[CompletionMessage]:
        return db.get(CompletionMessage, message_id)

    @staticmethod
    def find(db: Session, class_id: str, level_id: Any) -> Optional[CompletionMessage]:
        stmt = select(CompletionMessage).where(
            CompletionMessage.class_id == normalize_class_level(class_id),
            CompletionMessage.level_id == normalize_level(level_id),
        )
        return db.execute(stmt).scalars().first()

    @staticmethod
    def upsert(db: Session, class_id: str, level_id: Any, message: str) -> CompletionMessage:
        row = CompletionMessageRepository.find(db, class_id, level_id)
        if row is None:
            row = CompletionMessage(
                class_id=normalize_class_level(class_id),
                level_id=normalize_level(level_id),
                message=message,
            )
            db.add(row)
        else:
            row.message = message
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def delete(db: Session, row: CompletionMessage) -> None:
        db.delete(row)
        db.commit()
