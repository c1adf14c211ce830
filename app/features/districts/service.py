from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.common.utils import ensure_utc, round_half_up, safe_percent, total_pages
from app.Core.config import get_settings
from app.features.districts.analytics import (
    SchoolStudent,
    engagement,
    is_active,
    school_performance,
)
from app.features.districts.repository import DistrictRepository
from app.features.levels.normalization import level_sort_key, normalize_level
from app.features.levels.repository import CourseRepository
from app.features.progress.aggregation import (
    CourseSnapshot,
    DistrictSnapshot,
    StudentSnapshot,
    aggregate_district_performance,
    count_completed_all_courses_global,
)
from app.features.progress.models import COMPLETED, IN_PROGRESS
from app.features.progress.repository import ProgressRepository
from app.features.quizzes.models import ExamAttempt
from app.features.quizzes.repository import AttemptRepository
from app.features.users.models import User
from app.features.users.repository import StudentRepository

logger = logging.getLogger("districts.service")

_LEVEL_SEARCH = re.compile(r"level\s*(\d+)", re.IGNORECASE)


def _search_level(search: Optional[str]) -> Optional[str]:
    """'level 3' or a bare number in a search box means students currently on that level."""
    if not search:
        return None
    match = _LEVEL_SEARCH.search(search)
    if match:
        return str(int(match.group(1)))
    stripped = search.strip()
    if stripped.isdigit():
        return str(int(stripped))
    return None


def _latest(attempts: Iterable[ExamAttempt]) -> Optional[ExamAttempt]:
    latest = None
    for attempt in attempts:
        stamp = ensure_utc(attempt.completed_at or attempt.started_at)
        if latest is None or (stamp and stamp >= ensure_utc(latest.completed_at or latest.started_at)):
            latest = attempt
    return latest


def _student_rows(db: Session, students: List[User], now: datetime) -> List[Dict[str, Any]]:
    ids = [s.id for s in students]
    progress = ProgressRepository.for_students(db, ids)
    attempts: Dict[str, List[ExamAttempt]] = {}
    for attempt in AttemptRepository.for_students(db, ids):
        attempts.setdefault(attempt.student_id, []).append(attempt)
    per_class: Dict[str, int] = {}
    for course in CourseRepository.list_courses(db):
        per_class[course.class_level] = per_class.get(course.class_level, 0) + 1

    out = []
    for student in students:
        rows = [r for r in progress.get(student.id, []) if r.course is not None]
        current = max(rows, key=lambda r: level_sort_key(r.course.level)) if rows else None
        finished = sum(1 for r in rows if r.status == COMPLETED and r.qualified)
        last = _latest(attempts.get(student.id, []))
        out.append(
            {
                "id": student.id,
                "name": student.name,
                "school": student.school,
                "district": student.district.name if student.district else None,
                "class_level": student.class_level,
                "current_level": current.course.level if current else "N/A",
                "progress": f"{finished}/{per_class.get(student.class_level or '', 0)}",
                "score": (last.score or 0) if last else 0,
                "last_active": student.last_active_at,
                "status": "Active" if is_active(student.last_active_at, now) else "Inactive",
            }
        )
    return out


def _page(rows: List[Dict[str, Any]], total: int, page: int, page_size: int) -> Dict[str, Any]:
    return {
        "students": rows,
        "total": total,
        "total_pages": total_pages(total, page_size),
        "current_page": page,
    }


class DistrictService:
    # Master admin

    @staticmethod
    def master_stats(db: Session, now: datetime) -> Dict[str, Any]:
        settings = get_settings()
        avg = AttemptRepository.average_score(db)
        return {
            "total_students": StudentRepository.count(db),
            "total_districts": DistrictRepository.count(db),
            "active_students": StudentRepository.count(
                db, active_since=now - timedelta(hours=settings.active_window_hours)
            ),
            "course_completed": count_completed_all_courses_global(
                ProgressRepository.completed_counts(db), CourseRepository.count(db)
            ),
            "avg_score": round_half_up(avg) if avg is not None else 0,
        }

    @staticmethod
    def district_performance(db: Session) -> List[Dict[str, Any]]:
        courses = [
            CourseSnapshot(id=c.id, level=c.level, class_level=c.class_level, title=c.title)
            for c in CourseRepository.list_courses(db)
        ]
        students = StudentRepository.all(db)
        ids = [s.id for s in students]
        scores: Dict[str, List[Optional[int]]] = {}
        for attempt in AttemptRepository.for_students(db, ids):
            scores.setdefault(attempt.student_id, []).append(attempt.score)
        completed = ProgressRepository.completed_course_ids(db, ids)

        by_district: Dict[str, List[StudentSnapshot]] = {}
        for student in students:
            if not student.district_id:
                continue
            by_district.setdefault(student.district_id, []).append(
                StudentSnapshot(
                    id=student.id,
                    class_level=student.class_level,
                    attempt_scores=tuple(scores.get(student.id, ())),
                    completed_course_ids=frozenset(completed.get(student.id, ())),
                )
            )
        districts = [
            DistrictSnapshot(id=d.id, name=d.name, students=tuple(by_district.get(d.id, ())))
            for d in DistrictRepository.list(db)
        ]
        logger.info("district_performance districts=%s students=%s", len(districts), len(students))
        return [p.to_dict() for p in aggregate_district_performance(districts, courses)]

    @staticmethod
    def all_students(
        db: Session,
        now: datetime,
        search: Optional[str] = None,
        level: Optional[str] = None,
        district_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Dict[str, Any]:
        students, total = StudentRepository.search(
            db,
            district_id=district_id,
            search=search,
            level=normalize_level(level) if level else None,
            offset=(page - 1) * page_size,
            limit=page_size,
            newest_first=True,
        )
        return _page(_student_rows(db, students, now), total, page, page_size)

    # District admin

    @staticmethod
    def district_stats(db: Session, district_id: str, now: datetime) -> Dict[str, Any]:
        settings = get_settings()
        ids = [s.id for s in StudentRepository.all(db, district_id)]
        return {
            "total_students": len(ids),
            "active_students": StudentRepository.count(
                db, district_id, active_since=now - timedelta(hours=settings.active_window_hours)
            ),
            "completed_level1": ProgressRepository.count_completed_level(db, settings.default_level, ids),
            "course_completed": count_completed_all_courses_global(
                ProgressRepository.completed_counts(db, ids), CourseRepository.count(db)
            ),
        }

    @staticmethod
    def district_students(
        db: Session,
        district_id: str,
        now: datetime,
        search: Optional[str] = None,
        level: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Dict[str, Any]:
        students, total = StudentRepository.search(
            db,
            district_id=district_id,
            search=search,
            search_level=_search_level(search),
            level=normalize_level(level) if level else None,
            level_statuses=[IN_PROGRESS],
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return _page(_student_rows(db, students, now), total, page, page_size)

    @staticmethod
    def _school_students(db: Session, district_id: str) -> List[SchoolStudent]:
        students = StudentRepository.all(db, district_id)
        attempts: Dict[str, List[Optional[int]]] = {}
        for attempt in AttemptRepository.for_students(db, [s.id for s in students]):
            attempts.setdefault(attempt.student_id, []).append(attempt.score)
        return [
            SchoolStudent(
                school=s.school,
                attempt_count=len(attempts.get(s.id, ())),
                scores=tuple(attempts.get(s.id, ())),
            )
            for s in students
        ]

    @staticmethod
    def school_performance(
        db: Session,
        district_id: str,
        sort_by: str = "avg_score",
        order: str = "desc",
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        rows = school_performance(DistrictService._school_students(db, district_id), sort_by, order, search)
        return [r.to_dict() for r in rows]

    @staticmethod
    def analytics(db: Session, district_id: str, now: datetime) -> Dict[str, Any]:
        students = StudentRepository.all(db, district_id)
        ids = [s.id for s in students]
        rates = []
        for level in CourseRepository.distinct_levels(db):
            done = ProgressRepository.count_completed_level(db, level, ids)
            rates.append(
                {"level": level, "completed": done, "total": len(ids), "percentage": safe_percent(done, len(ids))}
            )
        schools = school_performance(DistrictService._school_students(db, district_id))
        return {
            "level_completion_rate": rates,
            "student_engagement": engagement((s.last_active_at for s in students), now),
            "top_performing_school": {"name": schools[0].school} if schools else None,
        }

    @staticmethod
    def schools(db: Session, district_id: str) -> List[str]:
        return StudentRepository.schools(db, district_id)
