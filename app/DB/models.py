# Import all models here so Alembic can discover them
from app.DB.base import Base

# Referenced tables first (districts -> users -> courses)
from app.features.districts.models import District
from app.features.users.models import User
from app.features.levels.models import (
    CompletionMessage,
    Course,
    CourseLevelConfig,
    CoursePdf,
    CourseVideo,
    LevelSchedule,
    QuizValidity,
)
from app.features.quizzes.models import ExamAttempt, PassingMark, Question, QuestionBank, Quiz
from app.features.progress.models import PdfProgress, StudentProgress, VideoProgress
from app.features.notifications.models import Notification, NotificationRecipient
from app.features.events.models import Event, EventParticipant

# This ensures all models are registered with SQLAlchemy
__all__ = [
    "Base",
    "District",
    "User",
    "Course",
    "CourseVideo",
    "CoursePdf",
    "LevelSchedule",
    "QuizValidity",
    "CourseLevelConfig",
    "CompletionMessage",
    "QuestionBank",
    "Question",
    "Quiz",
    "ExamAttempt",
    "PassingMark",
    "StudentProgress",
    "VideoProgress",
    "PdfProgress",
    "Notification",
    "NotificationRecipient",
    "Event",
    "EventParticipant",
]
