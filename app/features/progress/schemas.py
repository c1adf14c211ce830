from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from app.common.schemas import ApiModel
from app.features.levels.schemas import CourseOut
from app.features.quizzes.schemas import PublicQuestion


class LearningPathEntryOut(ApiModel):
    course_id: str
    level: str
    title: str
    status: str
    enabled: bool
    videos_count: int = 0
    notes_count: int = 0
    questions_count: int = 0
    content_completed: Optional[bool] = None


class ProfileOut(ApiModel):
    name: Optional[str] = None
    district: Optional[str] = None
    class_level: Optional[str] = None
    role: str
    current_level: str
    levels_completed: int
    total_levels: int
    spiritual_progress: int
    knowledge_points: int


class MessageOut(ApiModel):
    title: str
    content: str
    type: Optional[str] = None
    created_at: Optional[datetime] = None


class DashboardOut(ApiModel):
    profile: ProfileOut
    learning_path: List[LearningPathEntryOut]
    messages: List[MessageOut]


class LearningPathOut(ApiModel):
    learning_path: List[LearningPathEntryOut]


class MarkWatchedIn(ApiModel):
    video_id: Optional[str] = None


class MarkReadIn(ApiModel):
    pdf_id: Optional[str] = None


class ProgressStateOut(ApiModel):
    status: str
    qualified: bool


class MarkWatchedOut(ApiModel):
    message: str
    video_id: str
    watched_at: Optional[datetime] = None
    progress: ProgressStateOut


class MarkReadOut(ApiModel):
    message: str
    pdf_id: str
    read_at: Optional[datetime] = None
    progress: ProgressStateOut


class UnlockOut(ApiModel):
    is_unlocked: bool
    is_expired: bool
    is_locked: bool
    unlock_message: Optional[str] = None
    validity_message: Optional[str] = None


class VideoStateOut(ApiModel):
    id: str
    title: str
    url: Optional[str] = None
    iframe_snippet: Optional[str] = None
    youtube_id: Optional[str] = None
    thumbnail: Optional[str] = None
    watched: bool
    watched_at: Optional[datetime] = None


class PdfStateOut(ApiModel):
    id: str
    title: str
    url: str
    read: bool
    read_at: Optional[datetime] = None


class QuizStateOut(ApiModel):
    id: str
    num_questions: int
    pass_percentage: Optional[int] = None
    attempted: bool
    score: Optional[int] = None
    passed: Optional[bool] = None
    time_spent: Optional[int] = None
    last_attempt_at: Optional[datetime] = None
    questions: List[PublicQuestion]


class LevelContentOut(ApiModel):
    course: CourseOut
    unlock: UnlockOut
    videos: List[VideoStateOut]
    pdfs: List[PdfStateOut]
    quizzes: List[QuizStateOut]
    section_status: Dict[str, str]


class NoteOut(ApiModel):
    id: str
    title: str
    url: str


class NotesOut(ApiModel):
    success: bool = True
    level: str
    course_title: str
    notes: List[NoteOut]
