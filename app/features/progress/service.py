from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.common.deps import CurrentUser
from app.common.errors import InvalidInput, NotFound
from app.common.utils import ensure_utc
from app.Core.config import get_settings
from app.features.districts.repository import DistrictRepository
from app.features.levels.models import Course
from app.features.levels.normalization import is_first_level
from app.features.levels.repository import CourseRepository, ScheduleRepository, ValidityRepository
from app.features.levels.service import course_snapshot
from app.features.levels.unlock import ProgressState, resolve_unlock
from app.features.notifications.repository import NotificationRepository
from app.features.progress.aggregation import (
    ProgressSnapshot,
    StudentProgressSummary,
    aggregate_student_progress,
)
from app.features.progress.models import COMPLETED, IN_PROGRESS
from app.features.progress.repository import ProgressRepository
from app.features.quizzes.repository import AttemptRepository, QuizRepository
from app.features.quizzes.service import sample_questions

logger = logging.getLogger("progress.service")


def content_complete(db: Session, student_id: str, course: Course) -> bool:
    """All videos watched, all PDFs read and (when the course has quizzes) one attempted."""
    videos = ProgressRepository.video_progress(db, student_id, [v.id for v in course.videos])
    pdfs = ProgressRepository.pdf_progress(db, student_id, [p.id for p in course.pdfs])
    all_watched = all(videos.get(v.id) is not None and videos[v.id].watched for v in course.videos)
    all_read = all(pdfs.get(p.id) is not None and pdfs[p.id].read for p in course.pdfs)
    quiz_ids = [q.id for q in course.quizzes]
    attempted = not quiz_ids or bool(AttemptRepository.latest_by_quiz(db, student_id, quiz_ids))
    return all_watched and all_read and attempted


class ProgressService:
    @staticmethod
    def summary(db: Session, user: CurrentUser) -> StudentProgressSummary:
        courses = CourseRepository.list_courses(db, user.class_level, with_content=True)
        rows = ProgressRepository.for_student(db, user.id)
        attempts = AttemptRepository.for_student(db, user.id, scored_only=True)
        return aggregate_student_progress(
            [course_snapshot(c) for c in courses],
            [ProgressSnapshot(r.course_id, r.status, r.qualified) for r in rows],
            attempts,
            default_level=get_settings().default_level,
        )

    @staticmethod
    def profile(db: Session, user: CurrentUser) -> Dict[str, Any]:
        s = ProgressService.summary(db, user)
        district = DistrictRepository.get(db, user.district_id) if user.district_id else None
        return {
            "name": user.name,
            "district": district.name if district else None,
            "class_level": user.class_level,
            "role": user.role,
            "current_level": s.current_level,
            "levels_completed": s.levels_completed,
            "total_levels": s.total_levels,
            "spiritual_progress": s.spiritual_progress_percent,
            "knowledge_points": s.knowledge_points,
        }

    @staticmethod
    def dashboard(db: Session, user: CurrentUser) -> Dict[str, Any]:
        s = ProgressService.summary(db, user)
        messages = NotificationRepository.for_user(db, user.id, offset=0, limit=3)
        return {
            "profile": ProgressService.profile(db, user),
            "learning_path": [asdict(e) for e in s.learning_path],
            "messages": [
                {"title": n.title, "content": n.content, "type": n.type, "created_at": n.created_at}
                for n in (r.notification for r in messages)
            ],
        }

    @staticmethod
    def learning_path(db: Session, user: CurrentUser) -> List[Dict[str, Any]]:
        return [asdict(e) for e in ProgressService.summary(db, user).learning_path]

    @staticmethod
    def level_content(db: Session, user: CurrentUser, class_level: str, level: str, now: datetime) -> Dict[str, Any]:
        course = CourseRepository.find(db, class_level, level)
        if course is None:
            raise NotFound("Course not found.")
        videos = sorted(course.videos, key=lambda v: (v.created_at is None, v.created_at, v.id))
        pdfs = sorted(course.pdfs, key=lambda p: (p.created_at is None, p.created_at, p.id))
        video_rows = ProgressRepository.video_progress(db, user.id, [v.id for v in videos])
        pdf_rows = ProgressRepository.pdf_progress(db, user.id, [p.id for p in pdfs])
        quizzes = QuizRepository.for_course(db, course.id)
        latest = AttemptRepository.latest_by_quiz(db, user.id, [q.id for q in quizzes])

        row = ProgressRepository.get(db, user.id, course.id)
        state = resolve_unlock(
            now,
            unlock_at=ScheduleRepository.map_for_class(db, course.class_level).get(course.level),
            valid_until=ValidityRepository.map_for_class(db, course.class_level).get(course.level),
            progress=ProgressState(row.status, row.qualified) if row else None,
            is_first_level=is_first_level(course.level),
        )

        video_out = [
            {
                "id": v.id,
                "title": v.title,
                "url": v.url,
                "iframe_snippet": v.iframe_snippet,
                "youtube_id": v.youtube_id,
                "thumbnail": v.thumbnail,
                "watched": bool(video_rows.get(v.id) and video_rows[v.id].watched),
                "watched_at": video_rows[v.id].watched_at if v.id in video_rows else None,
            }
            for v in videos
        ]
        pdf_out = [
            {
                "id": p.id,
                "title": p.title,
                "url": p.url,
                "read": bool(pdf_rows.get(p.id) and pdf_rows[p.id].read),
                "read_at": pdf_rows[p.id].read_at if p.id in pdf_rows else None,
            }
            for p in pdfs
        ]
        quiz_out = []
        for quiz in quizzes:
            attempt = latest.get(quiz.id)
            time_spent = None
            if attempt is not None and attempt.started_at and attempt.completed_at:
                time_spent = int((ensure_utc(attempt.completed_at) - ensure_utc(attempt.started_at)).total_seconds())
            quiz_out.append(
                {
                    "id": quiz.id,
                    "num_questions": quiz.num_questions,
                    "pass_percentage": quiz.pass_percentage,
                    "attempted": attempt is not None,
                    "score": attempt.score if attempt else None,
                    "passed": attempt.passed if attempt else None,
                    "time_spent": time_spent,
                    "last_attempt_at": attempt.completed_at if attempt else None,
                    "questions": sample_questions(QuizRepository.questions(quiz)),
                }
            )

        return {
            "course": {
                "id": course.id,
                "class_level": course.class_level,
                "level": course.level,
                "title": course.title,
                "description": course.description,
            },
            "unlock": state.to_dict(),
            "videos": video_out,
            "pdfs": pdf_out,
            "quizzes": quiz_out,
            "section_status": {
                "videos": "completed" if video_out and all(v["watched"] for v in video_out) else "pending",
                "pdfs": "completed" if pdf_out and all(p["read"] for p in pdf_out) else "pending",
                "quizzes": "completed" if quiz_out and all(q["attempted"] for q in quiz_out) else "pending",
            },
        }

    @staticmethod
    def _touch_course(db: Session, student_id: str, course: Course) -> Dict[str, Any]:
        """Move the course forward after a content interaction."""
        if content_complete(db, student_id, course):
            patch = {"status": COMPLETED, "qualified": True}
        else:
            patch = {"status": IN_PROGRESS}
        row = ProgressRepository.upsert_student_progress(db, student_id, course.id, patch)
        return {"status": row.status, "qualified": row.qualified}

    @staticmethod
    def mark_video_watched(db: Session, user: CurrentUser, video_id: Optional[str], now: datetime) -> Dict[str, Any]:
        if not video_id:
            raise InvalidInput("videoId is required.")
        video = CourseRepository.get_video(db, video_id)
        if video is None:
            raise NotFound("Video not found.")
        row = ProgressRepository.mark_video_watched(db, user.id, video.id, now)
        progress = ProgressService._touch_course(db, user.id, video.course)
        db.commit()
        logger.info("video_watched student=%s video=%s course_status=%s", user.id, video.id, progress["status"])
        return {"message": "Video marked as watched.", "video_id": video.id, "watched_at": row.watched_at, "progress": progress}

    @staticmethod
    def mark_pdf_read(db: Session, user: CurrentUser, pdf_id: Optional[str], now: datetime) -> Dict[str, Any]:
        if not pdf_id:
            raise InvalidInput("pdfId is required.")
        pdf = CourseRepository.get_pdf(db, pdf_id)
        if pdf is None:
            raise NotFound("PDF not found.")
        row = ProgressRepository.mark_pdf_read(db, user.id, pdf.id, now)
        progress = ProgressService._touch_course(db, user.id, pdf.course)
        db.commit()
        logger.info("pdf_read student=%s pdf=%s course_status=%s", user.id, pdf.id, progress["status"])
        return {"message": "PDF marked as read.", "pdf_id": pdf.id, "read_at": row.read_at, "progress": progress}

    @staticmethod
    def notes(db: Session, user: CurrentUser, level: Optional[str]) -> Dict[str, Any]:
        if not user.class_level:
            raise InvalidInput("Student has no class level.")
        level = level or get_settings().default_level
        course = CourseRepository.find(db, user.class_level, level)
        if course is None:
            raise NotFound("Course not found for the specified level.")
        return {
            "level": course.level,
            "course_title": course.title,
            "notes": [{"id": p.id, "title": p.title, "url": p.url} for p in course.pdfs],
        }
