from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.common.deps import CurrentUser
from app.common.utils import total_pages
from app.features.levels.repository import CourseRepository
from app.features.notifications.repository import NotificationRepository
from app.features.notifications.targeting import (
    DISTRICT_TARGETS,
    GLOBAL_TARGETS,
    TargetStudent,
    resolve_targets,
)
from app.features.progress.aggregation import students_completed_all_courses
from app.features.progress.repository import ProgressRepository
from app.features.users.repository import StudentRepository

logger = logging.getLogger("notifications.service")


def _candidates(db: Session, district_id: Optional[str]) -> List[TargetStudent]:
    students = StudentRepository.all(db, district_id)
    progress = ProgressRepository.for_students(db, [s.id for s in students])
    return [
        TargetStudent(
            id=s.id,
            district_id=s.district_id,
            school=s.school,
            levels=frozenset(r.course.level for r in progress.get(s.id, []) if r.course is not None),
            last_active_at=s.last_active_at,
        )
        for s in students
    ]


class NotificationService:
    @staticmethod
    def send(
        db: Session,
        sender: CurrentUser,
        target_type: str,
        target_value: Optional[str],
        title: str,
        message: str,
        now: datetime,
        district_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Fan an announcement out to the targeted students.

        With ``district_id`` the audience is that district and the district
        target types apply; without it the platform-wide types apply.
        """
        completed_all = frozenset()
        if (target_type or "").strip().upper() == "COMPLETED_ALL_COURSES":
            completed_all = frozenset(
                students_completed_all_courses(ProgressRepository.completed_counts(db), CourseRepository.count(db))
            )
        recipients = resolve_targets(
            _candidates(db, district_id),
            target_type,
            target_value,
            now=now,
            completed_all_ids=completed_all,
            allowed=DISTRICT_TARGETS if district_id else GLOBAL_TARGETS,
        )
        notification = NotificationRepository.create(
            db,
            title=title,
            content=message,
            sender_id=sender.id,
            recipient_ids=recipients,
            now=now,
            district_id=district_id,
        )
        db.commit()
        logger.info(
            "notification_sent id=%s sender=%s target=%s recipients=%s",
            notification.id,
            sender.id,
            target_type,
            len(recipients),
        )
        return {
            "message": f"Notification sent to {len(recipients)} students successfully.",
            "notification_id": notification.id,
            "recipients": len(recipients),
        }

    @staticmethod
    def inbox(db: Session, user_id: str, page: int = 1, page_size: int = 20) -> Dict[str, Any]:
        rows = NotificationRepository.for_user(db, user_id, offset=(page - 1) * page_size, limit=page_size)
        total = NotificationRepository.count_for_user(db, user_id)
        return {
            "notifications": [
                {
                    "id": r.notification.id,
                    "title": r.notification.title,
                    "content": r.notification.content,
                    "type": r.notification.type,
                    "created_at": r.notification.created_at,
                    "read": r.read,
                }
                for r in rows
            ],
            "total": total,
            "total_pages": total_pages(total, page_size),
            "current_page": page,
        }

    @staticmethod
    def counts(db: Session, user_id: str) -> Dict[str, int]:
        return {
            "total": NotificationRepository.count_for_user(db, user_id),
            "unread": NotificationRepository.count_for_user(db, user_id, unread_only=True),
        }
