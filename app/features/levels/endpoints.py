"""Level catalogue, schedules, quiz validity and completion messages."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.common.clock import get_now
from app.common.deps import CurrentUser, get_current_user, require_master_admin, require_student
from app.common.schemas import MessageResponse
from app.DB.session import get_db

from .repository import CompletionMessageRepository, CourseLevelRepository, CourseRepository, ScheduleRepository, ValidityRepository
from .schemas import (
    CompletionMessageIn,
    CompletionMessageOut,
    CourseLevelsIn,
    CourseLevelsOut,
    CourseOut,
    CourseStatusOut,
    CourseTitleIn,
    Envelope,
    NoteIn,
    NoteUpdate,
    PdfOut,
    ScheduleIn,
    ScheduleOut,
    ValidityIn,
    ValidityOut,
    VideoIn,
    VideoOut,
    VideoUpdate,
)
from .service import LevelService


router = APIRouter(prefix="/courses", tags=["Courses"])
admin_router = APIRouter(prefix="/master-admin", tags=["Master Admin: Levels"])
student_router = APIRouter(prefix="/student", tags=["Student: Levels"])


# ------------------------
# Student / shared
# ------------------------
@router.get("", response_model=List[CourseStatusOut])
def list_my_courses(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Every level of the caller's class with unlock / validity state."""
    return LevelService.course_statuses(db, current_user.id, current_user.class_level, now)


@router.get("/levels", response_model=List[str])
def list_levels(db: Session = Depends(get_db)):
    return CourseRepository.distinct_levels(db)


@student_router.get("/level-schedules", response_model=Envelope[List[ScheduleOut]])
def student_level_schedules(
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return {"data": ScheduleRepository.list(db, current_user.class_level)}


@student_router.get("/quiz-validity", response_model=Envelope[List[ValidityOut]])
def student_quiz_validity(
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return {"data": ValidityRepository.list(db, current_user.class_level)}


@student_router.get("/completion-message/{class_id}/{level_id}", response_model=Envelope[CompletionMessageOut])
def student_completion_message(
    class_id: str,
    level_id: str,
    current_user: CurrentUser = Depends(require_student()),
    db: Session = Depends(get_db),
):
    return {"data": LevelService.completion_message(db, class_id, level_id)}


# ------------------------
# Master admin: schedules
# ------------------------
@admin_router.get("/level-schedules", response_model=Envelope[List[ScheduleOut]])
def list_level_schedules(
    class_id: Optional[str] = Query(None, alias="classId"),
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return {"data": ScheduleRepository.list(db, class_id)}


@admin_router.post("/level-schedules", response_model=Envelope[ScheduleOut], status_code=status.HTTP_201_CREATED)
def create_level_schedule(
    body: ScheduleIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    row = LevelService.create_schedule(db, body.class_id, body.level, body.unlock_date, body.unlock_time)
    return {"data": row}


@admin_router.put("/level-schedules/{schedule_id}", response_model=Envelope[ScheduleOut])
def update_level_schedule(
    schedule_id: str,
    body: ScheduleIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    row = LevelService.update_schedule(db, schedule_id, body.class_id, body.level, body.unlock_date, body.unlock_time)
    return {"data": row}


@admin_router.delete("/level-schedules/{schedule_id}", response_model=MessageResponse)
def delete_level_schedule(
    schedule_id: str,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    LevelService.delete_schedule(db, schedule_id)
    return {"message": "Level schedule deleted"}


# ------------------------
# Master admin: quiz validity
# ------------------------
@admin_router.get("/quiz-validity", response_model=Envelope[List[ValidityOut]])
def list_quiz_validity(
    class_id: Optional[str] = Query(None, alias="classId"),
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return {"data": ValidityRepository.list(db, class_id)}


@admin_router.post("/quiz-validity", response_model=Envelope[ValidityOut], status_code=status.HTTP_201_CREATED)
def create_quiz_validity(
    body: ValidityIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    row = LevelService.create_validity(db, body.class_id, body.level, body.valid_until_date, body.valid_until_time)
    return {"data": row}


@admin_router.put("/quiz-validity/{validity_id}", response_model=Envelope[ValidityOut])
def update_quiz_validity(
    validity_id: str,
    body: ValidityIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    row = LevelService.update_validity(
        db, validity_id, body.class_id, body.level, body.valid_until_date, body.valid_until_time
    )
    return {"data": row}


@admin_router.delete("/quiz-validity/{validity_id}", response_model=MessageResponse)
def delete_quiz_validity(
    validity_id: str,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    LevelService.delete_validity(db, validity_id)
    return {"message": "Quiz validity deleted"}


# ------------------------
# Master admin: catalogue
# ------------------------
@admin_router.get("/courses/all")
def all_courses(
    class_level: Optional[str] = Query(None, alias="classLevel"),
    level: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return LevelService.all_courses_grouped(db, class_level, level)


@admin_router.post("/courses/videos", response_model=VideoOut, status_code=status.HTTP_201_CREATED)
def add_video(
    body: VideoIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return LevelService.add_video(
        db,
        body.class_level,
        body.level,
        body.title,
        iframe_snippet=body.iframe_snippet,
        url=body.url,
        youtube_id=body.youtube_id,
        thumbnail=body.thumbnail,
    )


@admin_router.put("/courses/videos/{video_id}", response_model=VideoOut)
def update_video(
    video_id: str,
    body: VideoUpdate,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return LevelService.update_video(db, video_id, body.model_dump())


@admin_router.delete("/courses/videos/{video_id}", response_model=MessageResponse)
def delete_video(
    video_id: str,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    LevelService.delete_video(db, video_id)
    return {"message": "Video deleted"}


@admin_router.post("/courses/notes", response_model=PdfOut, status_code=status.HTTP_201_CREATED)
def add_note(
    body: NoteIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return LevelService.add_note(db, body.class_level, body.level, body.title, body.url)


@admin_router.put("/courses/notes/{pdf_id}", response_model=PdfOut)
def update_note(
    pdf_id: str,
    body: NoteUpdate,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return LevelService.update_note(db, pdf_id, body.model_dump())


@admin_router.delete("/courses/notes/{pdf_id}", response_model=MessageResponse)
def delete_note(
    pdf_id: str,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    LevelService.delete_note(db, pdf_id)
    return {"message": "Note deleted"}


@admin_router.put("/courses/title", response_model=CourseOut)
def update_course_title(
    body: CourseTitleIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return LevelService.update_title(db, body.class_level, body.level, body.title)


@admin_router.get("/course-levels", response_model=CourseLevelsOut)
def get_course_levels(
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return LevelService.course_levels(db)


@admin_router.post("/course-levels", response_model=MessageResponse)
def set_course_levels(
    body: CourseLevelsIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    row = CourseLevelRepository.set_levels(db, body.class_id, body.levels)
    return {"message": "Levels set successfully.", "data": {"classId": row.class_id, "levels": row.levels}}


@admin_router.delete("/course-levels/{class_level}/{level}", response_model=MessageResponse)
def delete_course_level(
    class_level: str,
    level: str,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    result = LevelService.delete_course_level(db, class_level, level)
    return {
        "message": f"Deleted {result['deleted_courses']} courses for class {class_level}, level {level}",
        "data": {"deletedCourses": result["deleted_courses"], "configUpdated": result["config_updated"]},
    }


# ------------------------
# Master admin: completion messages
# ------------------------
@admin_router.get("/completion-messages", response_model=Envelope[List[CompletionMessageOut]])
def list_completion_messages(
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return {"data": CompletionMessageRepository.list(db)}


@admin_router.post("/completion-messages", response_model=Envelope[CompletionMessageOut])
def upsert_completion_message(
    body: CompletionMessageIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return {"data": CompletionMessageRepository.upsert(db, body.class_id, body.level_id, body.message)}


@admin_router.put("/completion-messages/{message_id}", response_model=Envelope[CompletionMessageOut])
def update_completion_message(
    message_id: str,
    body: CompletionMessageIn,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return {"data": LevelService.update_completion_message(db, message_id, body.message)}


@admin_router.delete("/completion-messages/{message_id}", response_model=MessageResponse)
def delete_completion_message(
    message_id: str,
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    LevelService.delete_completion_message(db, message_id)
    return {"message": "Completion message deleted"}
