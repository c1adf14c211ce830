"""Quiz submission (both payload shapes), question sampling and quiz admin."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.common.clock import get_now
from app.common.deps import CurrentUser, get_current_user, require_master_admin, require_student
from app.common.schemas import MessageResponse
from app.DB.session import get_db
from app.features.levels.schemas import Envelope

from .repository import PassingMarkRepository
from .schemas import (
    QuizCreateIn,
    QuizOut,
    QuizUpdateIn,
    QuizView,
    RandomQuestionsOut,
    SubmissionOut,
    SubmitAnswersIn,
    SubmitLevelIn,
)
from .service import QuizService


router = APIRouter(prefix="/courses", tags=["Quizzes"])
student_router = APIRouter(prefix="/student", tags=["Student: Quizzes"])
admin_router = APIRouter(prefix="/master-admin/courses", tags=["Master Admin: Quizzes"])


@router.post("/quiz/{quiz_id}/submit", response_model=SubmissionOut)
def submit_quiz(
    quiz_id: str,
    body: SubmitAnswersIn,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return QuizService.submit(
        db,
        current_user.id,
        quiz_id,
        body.answers,
        now,
        started_at=body.started_at,
        time_spent_seconds=body.time_spent,
    )


@student_router.post("/submit-quiz", response_model=Envelope[SubmissionOut])
def submit_level_quiz(
    body: SubmitLevelIn,
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    if body.total_questions is not None and isinstance(body.answers, list) and len(body.answers) != body.total_questions:
        raise HTTPException(status_code=400, detail="Number of answers does not match total questions.")
    result = QuizService.submit_for_level(
        db,
        current_user.id,
        body.class_id,
        body.level_id,
        body.answers,
        now,
        time_spent_seconds=body.time_spent,
    )
    return {"data": result}


@student_router.get("/random-questions", response_model=Envelope[RandomQuestionsOut])
def random_questions(
    class_level: Optional[str] = Query(None, alias="classLevel"),
    level: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    class_level = class_level or current_user.class_level
    if not class_level or not level:
        raise HTTPException(status_code=400, detail="classLevel and level are required.")
    return {"data": QuizService.random_questions(db, class_level, level)}


@student_router.get("/quiz/{quiz_id}", response_model=Envelope[QuizView])
def quiz_view(
    quiz_id: str,
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return {"data": QuizService.quiz_view(db, quiz_id)}


# ------------------------
# Master admin
# ------------------------
@admin_router.post("/quiz", response_model=QuizOut, status_code=status.HTTP_201_CREATED)
def create_quiz(
    body: QuizCreateIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return QuizService.create_quiz(
        db,
        body.class_level,
        body.level,
        [q.model_dump() for q in body.questions],
        pass_percentage=body.pass_percentage,
    )


@admin_router.put("/quiz/{quiz_id}", response_model=QuizOut)
def update_quiz(
    quiz_id: str,
    body: QuizUpdateIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return QuizService.update_quiz(db, quiz_id, body.num_questions, body.passing_marks)


@admin_router.delete("/quiz/{quiz_id}", response_model=MessageResponse)
def delete_quiz(
    quiz_id: str,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    QuizService.delete_quiz(db, quiz_id)
    return {"message": "Quiz deleted"}


@admin_router.post("/passing-marks", response_model=MessageResponse)
def set_passing_marks(
    payload: Dict[str, Dict[str, int]] = Body(...),
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    saved = PassingMarkRepository.upsert_many(db, payload)
    return {"message": "Passing marks saved successfully.", "data": {"saved": saved}}


@admin_router.get("/passing-marks", response_model=Dict[str, Dict[str, int]])
def get_passing_marks(
    class_id: Optional[str] = Query(None, alias="classId"),
    level_id: Optional[str] = Query(None, alias="levelId"),
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return PassingMarkRepository.as_nested(db, class_id, level_id)
