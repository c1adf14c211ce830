from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.features.levels.models import Course
from app.features.progress.models import COMPLETED, PdfProgress, StudentProgress, VideoProgress
from app.features.progress.transitions import apply_progress_patch, is_finished

logger = logging.getLogger("progress.repo")


class ProgressRepository:
    @staticmethod
    def for_student(db: Session, student_id: str) -> List[StudentProgress]:
        return list(
            db.execute(select(StudentProgress).where(StudentProgress.student_id == student_id)).scalars().all()
        )

    @staticmethod
    def for_students(db: Session, student_ids: Iterable[str]) -> Dict[str, List[StudentProgress]]:
        ids = list(student_ids)
        if not ids:
            return {}
        rows = db.execute(
            select(StudentProgress)
            .where(StudentProgress.student_id.in_(ids))
            .options(selectinload(StudentProgress.course))
        ).scalars().all()
        out: Dict[str, List[StudentProgress]] = {}
        for row in rows:
            out.setdefault(row.student_id, []).append(row)
        return out

    @staticmethod
    def get(db: Session, student_id: str, course_id: str) -> Optional[StudentProgress]:
        stmt = select(StudentProgress).where(
            StudentProgress.student_id == student_id,
            StudentProgress.course_id == course_id,
        )
        return db.execute(stmt).scalars().first()

    @staticmethod
    def _merge(row: StudentProgress, patch: Mapping[str, Any]) -> None:
        was_finished = is_finished(row.status, row.qualified)
        row.status, row.qualified = apply_progress_patch(row.status, row.qualified, patch)
        attempt_id = patch.get("attempt_id")
        # The attempt that finished the course stays linked to it
        if attempt_id and (not was_finished or row.attempt_id is None):
            row.attempt_id = attempt_id

    @staticmethod
    def upsert_student_progress(
        db: Session,
        student_id: str,
        course_id: str,
        patch: Mapping[str, Any],
    ) -> StudentProgress:
        """Create or move forward the (student, course) row. Caller commits."""
        row = ProgressRepository.get(db, student_id, course_id)
        if row is None:
            row = StudentProgress(student_id=student_id, course_id=course_id, status=None, qualified=False)
            ProgressRepository._merge(row, patch)
            try:
                with db.begin_nested():
                    db.add(row)
                    db.flush()
            except IntegrityError:
                # Lost the insert race; the other writer's row wins and we merge into it
                row = ProgressRepository.get(db, student_id, course_id)
                if row is None:
                    raise
                ProgressRepository._merge(row, patch)
        else:
            ProgressRepository._merge(row, patch)
        db.flush()
        logger.info(
            "progress_upsert student=%s course=%s status=%s qualified=%s",
            student_id,
            course_id,
            row.status,
            row.qualified,
        )
        return row

    @staticmethod
    def completed_counts(db: Session, student_ids: Optional[Iterable[str]] = None) -> Dict[str, int]:
        """student_id -> number of completed+qualified rows."""
        stmt = (
            select(StudentProgress.student_id, func.count(StudentProgress.id))
            .where(StudentProgress.status == COMPLETED, StudentProgress.qualified.is_(True))
            .group_by(StudentProgress.student_id)
        )
        if student_ids is not None:
            stmt = stmt.where(StudentProgress.student_id.in_(list(student_ids)))
        return {sid: int(n) for sid, n in db.execute(stmt).all()}

    @staticmethod
    def completed_course_ids(db: Session, student_ids: Iterable[str]) -> Dict[str, Set[str]]:
        stmt = select(StudentProgress.student_id, StudentProgress.course_id).where(
            StudentProgress.student_id.in_(list(student_ids)),
            StudentProgress.status == COMPLETED,
            StudentProgress.qualified.is_(True),
        )
        out: Dict[str, Set[str]] = {}
        for sid, cid in db.execute(stmt).all():
            out.setdefault(sid, set()).add(cid)
        return out

    @staticmethod
    def count_completed_level(db: Session, level: str, student_ids: Optional[Iterable[str]] = None) -> int:
        """Distinct students with a completed+qualified course at ``level``."""
        stmt = (
            select(func.count(func.distinct(StudentProgress.student_id)))
            .join(Course, Course.id == StudentProgress.course_id)
            .where(
                Course.level == level,
                StudentProgress.status == COMPLETED,
                StudentProgress.qualified.is_(True),
            )
        )
        if student_ids is not None:
            stmt = stmt.where(StudentProgress.student_id.in_(list(student_ids)))
        return int(db.execute(stmt).scalar_one())

    # Content progress

    @staticmethod
    def mark_video_watched(db: Session, student_id: str, video_id: str, now: datetime) -> VideoProgress:
        row = db.execute(
            select(VideoProgress).where(VideoProgress.student_id == student_id, VideoProgress.video_id == video_id)
        ).scalars().first()
        if row is None:
            row = VideoProgress(student_id=student_id, video_id=video_id)
            db.add(row)
        row.watched = True
        row.watched_at = now
        db.flush()
        return row

    @staticmethod
    def mark_pdf_read(db: Session, student_id: str, pdf_id: str, now: datetime) -> PdfProgress:
        row = db.execute(
            select(PdfProgress).where(PdfProgress.student_id == student_id, PdfProgress.pdf_id == pdf_id)
        ).scalars().first()
        if row is None:
            row = PdfProgress(student_id=student_id, pdf_id=pdf_id)
            db.add(row)
        row.read = True
        row.read_at = now
        db.flush()
        return row

    @staticmethod
    def video_progress(db: Session, student_id: str, video_ids: Iterable[str]) -> Dict[str, VideoProgress]:
        ids = list(video_ids)
        if not ids:
            return {}
        rows = db.execute(
            select(VideoProgress).where(VideoProgress.student_id == student_id, VideoProgress.video_id.in_(ids))
        ).scalars().all()
        return {r.video_id: r for r in rows}

    @staticmethod
    def pdf_progress(db: Session, student_id: str, pdf_ids: Iterable[str]) -> Dict[str, PdfProgress]:
        ids = list(pdf_ids)
        if not ids:
            return {}
        rows = db.execute(
            select(PdfProgress).where(PdfProgress.student_id == student_id, PdfProgress.pdf_id.in_(ids))
        ).scalars().all()
        return {r.pdf_id: r for r in rows}
