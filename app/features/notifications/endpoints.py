from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.common.clock import get_now
from app.common.deps import CurrentUser, require_district_admin, require_master_admin, require_student
from app.common.schemas import MessageResponse
from app.DB.session import get_db

from .repository import NotificationRepository
from .schemas import NotificationCount, NotificationIn, NotificationPage, SendResultOut
from .service import NotificationService

router = APIRouter(prefix="/student/notifications", tags=["Student: Notifications"])
district_router = APIRouter(prefix="/district-admin", tags=["District Admin: Notifications"])
master_router = APIRouter(prefix="/master-admin", tags=["Master Admin: Notifications"])


@router.get("", response_model=NotificationPage)
def my_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return NotificationService.inbox(db, current_user.id, page, page_size)


@router.get("/count", response_model=NotificationCount)
def my_notification_count(
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return NotificationService.counts(db, current_user.id)


@router.post("/{notification_id}/read", response_model=MessageResponse)
def mark_notification_read(
    notification_id: str,
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    row = NotificationRepository.get_for_user(db, current_user.id, notification_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    NotificationRepository.mark_as_read(db, row, now)
    db.commit()
    return {"message": "ok"}


@district_router.post("/notifications", response_model=SendResultOut, status_code=status.HTTP_201_CREATED)
def send_district_notification(
    payload: NotificationIn,
    current_user: CurrentUser = Depends(require_district_admin()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    if not current_user.district_id:
        raise HTTPException(status_code=403, detail="Admin user is not associated with a district.")
    return NotificationService.send(
        db,
        current_user,
        payload.target_type,
        payload.target_value,
        payload.title,
        payload.message,
        now,
        district_id=current_user.district_id,
    )


@master_router.post("/notifications", response_model=SendResultOut, status_code=status.HTTP_201_CREATED)
def send_global_notification(
    payload: NotificationIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return NotificationService.send(
        db, current_user, payload.target_type, payload.target_value, payload.title, payload.message, now
    )
