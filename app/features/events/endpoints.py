"""District, global and student-facing events."""

from __future__ import annotations

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.common.clock import get_now
from app.common.deps import CurrentUser, require_district_admin, require_master_admin, require_student
from app.common.schemas import MessageResponse
from app.DB.session import get_db

from .schemas import AdminEventRow, DistrictEventRow, EventIn, EventOut, EventUpdate, StudentEventRow
from .service import EventService

district_router = APIRouter(prefix="/district-admin/events", tags=["District Admin: Events"])
master_router = APIRouter(prefix="/master-admin/events", tags=["Master Admin: Events"])
student_router = APIRouter(prefix="/student/events", tags=["Student: Events"])


def _district_of(user: CurrentUser) -> str:
    if not user.district_id:
        raise HTTPException(status_code=403, detail="Admin user is not associated with a district.")
    return user.district_id


def _student_district(user: CurrentUser) -> CurrentUser:
    if not user.district_id:
        raise HTTPException(status_code=403, detail="Only students with a district can view events.")
    return user


# ------------------------
# District admin
# ------------------------
@district_router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_district_event(
    payload: EventIn,
    current_user: CurrentUser = Depends(require_district_admin()),
    db: Session = Depends(get_db),
):
    return EventService.create(db, current_user, payload, district_id=_district_of(current_user))


@district_router.get("", response_model=List[DistrictEventRow])
@district_router.get("/upcoming", response_model=List[DistrictEventRow], include_in_schema=False)
def list_district_events(
    current_user: CurrentUser = Depends(require_district_admin()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return EventService.district_events(db, _district_of(current_user), now)


@district_router.put("/{event_id}", response_model=EventOut)
def update_district_event(
    event_id: int,
    payload: EventUpdate,
    current_user: CurrentUser = Depends(require_district_admin()),
    db: Session = Depends(get_db),
):
    return EventService.update(db, event_id, payload, district_id=_district_of(current_user))


# ------------------------
# Master admin
# ------------------------
@master_router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_global_event(
    payload: EventIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return EventService.create(db, current_user, payload)


@master_router.get("", response_model=List[AdminEventRow])
def list_all_events(
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return EventService.all_events(db)


@master_router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: int,
    payload: EventUpdate,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return EventService.update(db, event_id, payload)


# ------------------------
# Student
# ------------------------
@student_router.get("/upcoming", response_model=List[StudentEventRow])
def upcoming_events(
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return EventService.student_upcoming(db, _student_district(current_user), now)


@student_router.get("/all", response_model=List[StudentEventRow])
def all_events(
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return EventService.student_all(db, _student_district(current_user), now)


@student_router.post("/{event_id}/join", response_model=MessageResponse)
def join_event(
    event_id: int,
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return EventService.join(db, current_user, event_id)
