from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.common.errors import InvalidInput, NotFound
from app.common.utils import ensure_utc
from app.Core.config import get_settings
from app.features.levels.models import Course
from app.features.levels.normalization import is_first_level, normalize_level
from app.features.levels.repository import (
    CompletionMessageRepository,
    CourseLevelRepository,
    CourseRepository,
    ScheduleRepository,
    ValidityRepository,
)
from app.features.levels.unlock import ProgressState, resolve_unlock
from app.features.progress.aggregation import CourseSnapshot, ProgressSnapshot, aggregate_student_progress

logger = logging.getLogger("levels.service")

EDUCATION_OPTIONS = [
    {"label": "High School", "value": "high_school", "classes": ["6th", "7th", "8th"]},
    {"label": "Senior Secondary", "value": "senior_secondary", "classes": ["9th", "10th", "11th", "12th"]},
    {"label": "College", "value": "college", "classes": ["UG", "PG", "PhD", "Working", "Others"]},
]


def combine_utc(day: date, at: Optional[time]) -> datetime:
    """Admin forms send a date and a wall-clock time; both are taken as UTC."""
    at = at or time(0, 0)
    return datetime.combine(day, at.replace(tzinfo=None), tzinfo=timezone.utc)


def questions_count(course: Course, limit: Optional[int] = None) -> int:
    """Questions a student actually sees: each quiz shows at most ``limit``."""
    cap = limit if limit is not None else get_settings().random_question_limit
    return sum(min(q.num_questions or 0, cap) for q in course.quizzes)


def course_snapshot(course: Course) -> CourseSnapshot:
    return CourseSnapshot(
        id=course.id,
        level=course.level,
        class_level=course.class_level,
        title=course.title,
        videos_count=len(course.videos),
        notes_count=len(course.pdfs),
        questions_count=questions_count(course),
    )


class LevelService:
    # Schedules

    @staticmethod
    def create_schedule(db: Session, class_id: str, level: str, day: date, at: Optional[time]):
        row = ScheduleRepository.upsert(db, class_id, level, combine_utc(day, at))
        logger.info("schedule_saved class=%s level=%s unlock_at=%s", row.class_id, row.level, row.unlock_at)
        return row

    @staticmethod
    def update_schedule(db: Session, schedule_id: str, class_id: str, level: str, day: date, at: Optional[time]):
        row = ScheduleRepository.get(db, schedule_id)
        if row is None:
            raise NotFound("Level schedule not found")
        return ScheduleRepository.update(db, row, class_id, level, combine_utc(day, at))

    @staticmethod
    def delete_schedule(db: Session, schedule_id: str) -> None:
        row = ScheduleRepository.get(db, schedule_id)
        if row is None:
            raise NotFound("Level schedule not found")
        ScheduleRepository.delete(db, row)

    # Validity windows

    @staticmethod
    def create_validity(db: Session, class_id: str, level: str, day: date, at: Optional[time]):
        row = ValidityRepository.upsert(db, class_id, level, combine_utc(day, at))
        logger.info("validity_saved class=%s level=%s valid_until=%s", row.class_id, row.level, row.valid_until)
        return row

    @staticmethod
    def update_validity(db: Session, validity_id: str, class_id: str, level: str, day: date, at: Optional[time]):
        row = ValidityRepository.get(db, validity_id)
        if row is None:
            raise NotFound("Quiz validity not found")
        return ValidityRepository.update(db, row, class_id, level, combine_utc(day, at))

    @staticmethod
    def delete_validity(db: Session, validity_id: str) -> None:
        row = ValidityRepository.get(db, validity_id)
        if row is None:
            raise NotFound("Quiz validity not found")
        ValidityRepository.delete(db, row)

    # Catalogue

    @staticmethod
    def all_courses_grouped(db: Session, class_level: Optional[str] = None, level: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        """class -> level -> course content, the admin catalogue view."""
        grouped: Dict[str, Dict[str, Any]] = {}
        for course in CourseRepository.list_courses(db, class_level, level, with_content=True):
            grouped.setdefault(course.class_level, {})[course.level] = {
                "id": course.id,
                "title": course.title,
                "videos": [
                    {
                        "id": v.id,
                        "title": v.title,
                        "url": v.url,
                        "youtubeId": v.youtube_id,
                        "thumbnail": v.thumbnail,
                        "iframeSnippet": v.iframe_snippet,
                    }
                    for v in course.videos
                ],
                "pdfs": [{"id": p.id, "title": p.title, "url": p.url} for p in course.pdfs],
                "quizzes": [
                    {
                        "id": q.id,
                        "classLevel": q.class_level,
                        "numQuestions": q.num_questions,
                        "passPercentage": q.pass_percentage,
                        "questions": [
                            {
                                "id": qq.id,
                                "question": qq.question,
                                "optionA": qq.option_a,
                                "optionB": qq.option_b,
                                "optionC": qq.option_c,
                                "optionD": qq.option_d,
                                "correctOption": qq.correct_option,
                            }
                            for qq in (q.question_bank.questions if q.question_bank else [])
                        ],
                    }
                    for q in course.quizzes
                ],
            }
        return grouped

    @staticmethod
    def add_video(db: Session, class_level: str, level: str, title: str, **fields: Any):
        if not (fields.get("iframe_snippet") or fields.get("url") or fields.get("youtube_id")):
            raise InvalidInput("One of iframeSnippet, url or youtubeId is required")
        course = CourseRepository.find_or_create(db, class_level, level)
        return CourseRepository.add_video(db, course, title=title, **fields)

    @staticmethod
    def add_note(db: Session, class_level: str, level: str, title: str, url: str):
        course = CourseRepository.find_or_create(db, class_level, level)
        return CourseRepository.add_pdf(db, course, title=title, url=url)

    @staticmethod
    def update_video(db: Session, video_id: str, fields: Dict[str, Any]):
        video = CourseRepository.get_video(db, video_id)
        if video is None:
            raise NotFound("Video not found")
        if not any(v is not None for v in fields.values()):
            raise InvalidInput("At least one field is required")
        return CourseRepository.update_content(db, video, fields)

    @staticmethod
    def delete_video(db: Session, video_id: str) -> None:
        video = CourseRepository.get_video(db, video_id)
        if video is None:
            raise NotFound("Video not found")
        CourseRepository.delete_row(db, video)

    @staticmethod
    def update_note(db: Session, pdf_id: str, fields: Dict[str, Any]):
        pdf = CourseRepository.get_pdf(db, pdf_id)
        if pdf is None:
            raise NotFound("Note not found")
        if not any(v is not None for v in fields.values()):
            raise InvalidInput("At least one field is required")
        return CourseRepository.update_content(db, pdf, fields)

    @staticmethod
    def delete_note(db: Session, pdf_id: str) -> None:
        pdf = CourseRepository.get_pdf(db, pdf_id)
        if pdf is None:
            raise NotFound("Note not found")
        CourseRepository.delete_row(db, pdf)

    @staticmethod
    def update_title(db: Session, class_level: str, level: str, title: str) -> Course:
        course = CourseRepository.find(db, class_level, level)
        if course is None:
            raise NotFound("Course not found for the specified class and level.")
        if not title.strip():
            raise InvalidInput("Title is required")
        return CourseRepository.update_title(db, course, title.strip())

    @staticmethod
    def course_levels(db: Session) -> Dict[str, Any]:
        return {
            "education_options": EDUCATION_OPTIONS,
            "class_levels": CourseLevelRepository.all(db),
            "available_classes": CourseLevelRepository.available_classes(db),
        }

    @staticmethod
    def delete_course_level(db: Session, class_level: str, level: str) -> Dict[str, Any]:
        deleted, config_updated = CourseLevelRepository.delete_level(db, class_level, level)
        if not deleted and not config_updated:
            raise NotFound("No courses or course level configuration found for the specified class and level.")
        return {"deleted_courses": deleted, "config_updated": config_updated}

    # Student view

    @staticmethod
    def course_statuses(db: Session, student_id: str, class_level: Optional[str], now: datetime) -> List[Dict[str, Any]]:
        """Every level of the student's class with unlock, validity and learning status."""
        from app.features.progress.repository import ProgressRepository

        courses = CourseRepository.list_courses(db, class_level, with_content=True)
        schedules = ScheduleRepository.map_for_class(db, class_level) if class_level else {}
        validity = ValidityRepository.map_for_class(db, class_level) if class_level else {}
        rows = {p.course_id: p for p in ProgressRepository.for_student(db, student_id)}

        summary = aggregate_student_progress(
            [course_snapshot(c) for c in courses],
            [ProgressSnapshot(r.course_id, r.status, r.qualified) for r in rows.values()],
            [],
            default_level=get_settings().default_level,
        )
        path = {entry.course_id: entry for entry in summary.learning_path}

        out: List[Dict[str, Any]] = []
        for course in courses:
            row = rows.get(course.id)
            unlock_at = schedules.get(course.level)
            valid_until = validity.get(course.level)
            state = resolve_unlock(
                now,
                unlock_at=unlock_at,
                valid_until=valid_until,
                progress=ProgressState(row.status, row.qualified) if row else None,
                is_first_level=is_first_level(course.level),
            )
            entry = path[course.id]
            out.append(
                {
                    "id": course.id,
                    "class_level": course.class_level,
                    "level": course.level,
                    "title": course.title,
                    "description": course.description,
                    "videos_count": entry.videos_count,
                    "notes_count": entry.notes_count,
                    "questions_count": entry.questions_count,
                    "status": entry.status,
                    "enabled": entry.enabled and not state.is_locked,
                    "unlock_at": ensure_utc(unlock_at),
                    "valid_until": ensure_utc(valid_until),
                    **state.to_dict(),
                }
            )
        return out

    # Completion messages

    @staticmethod
    def completion_message(db: Session, class_id: str, level_id: str):
        row = CompletionMessageRepository.find(db, class_id, normalize_level(level_id))
        if row is None:
            raise NotFound("No completion message found for this level")
        return row

    @staticmethod
    def update_completion_message(db: Session, message_id: str, message: str):
        row = CompletionMessageRepository.get(db, message_id)
        if row is None:
            raise NotFound("Completion message not found")
        return CompletionMessageRepository.upsert(db, row.class_id, row.level_id, message)

    @staticmethod
    def delete_completion_message(db: Session, message_id: str) -> None:
        row = CompletionMessageRepository.get(db, message_id)
        if row is None:
            raise NotFound("Completion message not found")
        CompletionMessageRepository.delete(db, row)
