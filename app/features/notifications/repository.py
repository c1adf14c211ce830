from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.features.notifications.models import ADMIN_ANNOUNCEMENT, Notification, NotificationRecipient

logger = logging.getLogger("notifications.repo")


class NotificationRepository:
    @staticmethod
    def create(
        db: Session,
        *,
        title: str,
        content: str,
        sender_id: Optional[str],
        recipient_ids: Sequence[str],
        now: datetime,
        district_id: Optional[str] = None,
        type: str = ADMIN_ANNOUNCEMENT,
    ) -> Notification:
        """One notification row plus one recipient row per student. Caller commits."""
        notification = Notification(
            title=title,
            content=content,
            type=type,
            sender_id=sender_id,
            district_id=district_id,
            created_at=now,
        )
        db.add(notification)
        db.flush()
        db.add_all(
            NotificationRecipient(notification_id=notification.id, user_id=user_id)
            for user_id in dict.fromkeys(recipient_ids)
        )
        db.flush()
        return notification

    @staticmethod
    def for_user(db: Session, user_id: str, offset: int = 0, limit: int = 20) -> List[NotificationRecipient]:
        """Newest first, with the notification loaded."""
        stmt = (
            select(NotificationRecipient)
            .join(Notification, Notification.id == NotificationRecipient.notification_id)
            .where(NotificationRecipient.user_id == user_id)
            .options(selectinload(NotificationRecipient.notification))
            .order_by(Notification.created_at.desc(), Notification.id)
            .offset(offset)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars().all())

    @staticmethod
    def count_for_user(db: Session, user_id: str, unread_only: bool = False) -> int:
        stmt = select(func.count(NotificationRecipient.id)).where(NotificationRecipient.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationRecipient.read.is_(False))
        return int(db.execute(stmt).scalar_one())

    @staticmethod
    def get_for_user(db: Session, user_id: str, notification_id: str) -> Optional[NotificationRecipient]:
        stmt = select(NotificationRecipient).where(
            NotificationRecipient.user_id == user_id,
            NotificationRecipient.notification_id == notification_id,
        )
        return db.execute(stmt).scalars().first()

    @staticmethod
    def mark_as_read(db: Session, row: NotificationRecipient, now: datetime) -> NotificationRecipient:
        if not row.read:
            row.read = True
            row.read_at = now
            db.flush()
        return row
