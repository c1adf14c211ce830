from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import desc, func, or_, select
from sqlalchemy.orm import Session, selectinload

from app.features.levels.models import Course
from app.features.progress.models import StudentProgress
from app.features.users.models import STUDENT, User


def _students(district_id: Optional[str] = None):
    stmt = select(User).where(User.role == STUDENT)
    if district_id:
        stmt = stmt.where(User.district_id == district_id)
    return stmt


def _with_progress_at(level: str, statuses: Optional[Sequence[str]] = None):
    """Subquery of student ids holding a progress row on a course at ``level``."""
    sub = (
        select(StudentProgress.student_id)
        .join(Course, Course.id == StudentProgress.course_id)
        .where(Course.level == level)
    )
    if statuses:
        sub = sub.where(StudentProgress.status.in_(list(statuses)))
    return sub


class StudentRepository:
    @staticmethod
    def get(db: Session, user_id: str) -> Optional[User]:
        return db.get(User, user_id)

    @staticmethod
    def all(db: Session, district_id: Optional[str] = None) -> List[User]:
        return list(db.execute(_students(district_id)).scalars().all())

    @staticmethod
    def count(
        db: Session,
        district_id: Optional[str] = None,
        active_since: Optional[datetime] = None,
    ) -> int:
        stmt = select(func.count(User.id)).where(User.role == STUDENT)
        if district_id:
            stmt = stmt.where(User.district_id == district_id)
        if active_since is not None:
            stmt = stmt.where(User.last_active_at >= active_since)
        return int(db.execute(stmt).scalar_one())
    @staticmethod
    def search(
        db: Session,
        *,
        district_id: Optional[str] = None,
        search: Optional[str] = None,
        search_level: Optional[str] = None,
        level: Optional[str] = None,
        level_statuses: Optional[Sequence[str]] = None,
        offset: int = 0,
        limit: int = 10,
        newest_first: bool = False,
    ) -> Tuple[List[User], int]:
        """Filtered page of students plus the unpaged total.

        ``search`` matches name or school case-insensitively; ``search_level``
        additionally matches students holding progress at that level.
        """
        stmt = _students(district_id)
        if level:
            stmt = stmt.where(User.id.in_(_with_progress_at(level, level_statuses)))
        if search:
            pattern = f"%{search.strip()}%"
            clauses = [User.name.ilike(pattern), User.school.ilike(pattern)]
            if search_level:
                clauses.append(User.id.in_(_with_progress_at(search_level, level_statuses)))
            stmt = stmt.where(or_(*clauses))

        total = int(db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one())
        if newest_first:
            order = (desc(User.created_at), User.id)
        else:
            order = (User.last_active_at.is_(None), desc(User.last_active_at), User.id)
        rows = db.execute(
            stmt.options(selectinload(User.district)).order_by(*order).offset(offset).limit(limit)
        ).scalars().all()
        return list(rows), total

    @staticmethod
    def schools(db: Session, district_id: str) -> List[str]:
        stmt = (
            select(User.school)
            .where(User.role == STUDENT, User.district_id == district_id, User.school.is_not(None))
            .distinct()
            .order_by(User.school)
        )
        return [s for s in db.execute(stmt).scalars().all() if s]

