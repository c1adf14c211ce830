import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.DB.base import Base

LOCKED = "locked"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
STATUSES = (LOCKED, IN_PROGRESS, COMPLETED)


def _uuid() -> str:
    return str(uuid.uuid4())


class StudentProgress(Base):
    """Per student, per course status. qualified implies completed."""

    __tablename__ = "student_progress"
    __table_args__ = (UniqueConstraint("student_id", "course_id", name="uq_student_progress_student_course"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    student_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default=LOCKED)
    qualified = Column(Boolean, nullable=False, default=False)
    attempt_id = Column(String(36), ForeignKey("exam_attempts.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    course = relationship("Course")


class VideoProgress(Base):
    __tablename__ = "video_progress"
    __table_args__ = (UniqueConstraint("student_id", "video_id", name="uq_video_progress_student_video"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    student_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(String(36), ForeignKey("course_videos.id", ondelete="CASCADE"), nullable=False, index=True)
    watched = Column(Boolean, nullable=False, default=False)
    watched_at = Column(DateTime(timezone=True), nullable=True)


class PdfProgress(Base):
    __tablename__ = "pdf_progress"
    __table_args__ = (UniqueConstraint("student_id", "pdf_id", name="uq_pdf_progress_student_pdf"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    student_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    pdf_id = Column(String(36), ForeignKey("course_pdfs.id", ondelete="CASCADE"), nullable=False, index=True)
    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
