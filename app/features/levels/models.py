import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.DB.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Course(Base):
    """One teachable unit at a (class_level, level) pair."""

    __tablename__ = "courses"
    __table_args__ = (UniqueConstraint("class_level", "level", name="uq_courses_class_level"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    class_level = Column(String(32), nullable=False, index=True)
    level = Column(String(32), nullable=False, index=True)  # canonical, see normalization
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    videos = relationship("CourseVideo", back_populates="course", cascade="all, delete-orphan")
    pdfs = relationship("CoursePdf", back_populates="course", cascade="all, delete-orphan")
    quizzes = relationship("Quiz", back_populates="course", cascade="all, delete-orphan")


class CourseVideo(Base):
    __tablename__ = "course_videos"

    id = Column(String(36), primary_key=True, default=_uuid)
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    url = Column(String(1000), nullable=True)
    youtube_id = Column(String(64), nullable=True)
    thumbnail = Column(String(1000), nullable=True)
    iframe_snippet = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    course = relationship("Course", back_populates="videos")


class CoursePdf(Base):
    __tablename__ = "course_pdfs"

    id = Column(String(36), primary_key=True, default=_uuid)
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    url = Column(String(1000), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    course = relationship("Course", back_populates="pdfs")


class LevelSchedule(Base):
    """(class, level) -> unlock instant. No row means always unlocked."""

    __tablename__ = "level_schedules"
    __table_args__ = (UniqueConstraint("class_id", "level", name="uq_level_schedules_class_level"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    class_id = Column(String(32), nullable=False, index=True)
    level = Column(String(32), nullable=False)
    unlock_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class QuizValidity(Base):
    """(class, level) -> quiz valid-until instant. No row means never expires."""

    __tablename__ = "quiz_validity"
    __table_args__ = (UniqueConstraint("class_id", "level", name="uq_quiz_validity_class_level"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    class_id = Column(String(32), nullable=False, index=True)
    level = Column(String(32), nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class CourseLevelConfig(Base):
    """Admin-configured list of levels offered per class."""

    __tablename__ = "course_levels"

    class_id = Column(String(32), primary_key=True)
    levels = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class CompletionMessage(Base):
    __tablename__ = "completion_messages"
    __table_args__ = (UniqueConstraint("class_id", "level_id", name="uq_completion_messages_class_level"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    class_id = Column(String(32), nullable=False)
    level_id = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
