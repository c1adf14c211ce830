"""Student progress: dashboard, learning path, level content and content tracking."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.common.clock import get_now
from app.common.deps import CurrentUser, require_student
from app.DB.session import get_db

from .schemas import (
    DashboardOut,
    LearningPathOut,
    LevelContentOut,
    MarkReadIn,
    MarkReadOut,
    MarkWatchedIn,
    MarkWatchedOut,
    NotesOut,
    ProfileOut,
)
from .service import ProgressService


router = APIRouter(prefix="/student", tags=["Student: Progress"])


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return ProgressService.dashboard(db, current_user)


@router.get("/profile", response_model=ProfileOut)
def profile(
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return ProgressService.profile(db, current_user)


@router.get("/learning-path", response_model=LearningPathOut)
def learning_path(
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return {"learning_path": ProgressService.learning_path(db, current_user)}


@router.get("/level-content", response_model=LevelContentOut)
def level_content(
    level: Optional[str] = Query(None),
    class_level: Optional[str] = Query(None, alias="classLevel"),
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    class_level = class_level or current_user.class_level
    if not class_level or not level:
        raise HTTPException(status_code=400, detail="classLevel and level are required.")
    return ProgressService.level_content(db, current_user, class_level, level, now)


@router.post("/mark-watched", response_model=MarkWatchedOut)
def mark_watched(
    body: MarkWatchedIn,
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return ProgressService.mark_video_watched(db, current_user, body.video_id, now)


@router.post("/mark-pdf-read", response_model=MarkReadOut)
def mark_pdf_read(
    body: MarkReadIn,
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return ProgressService.mark_pdf_read(db, current_user, body.pdf_id, now)


@router.get("/notes", response_model=NotesOut)
def notes(
    level: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return ProgressService.notes(db, current_user, level)
