import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.DB.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class QuestionBank(Base):
    __tablename__ = "question_banks"

    id = Column(String(36), primary_key=True, default=_uuid)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    questions = relationship("Question", back_populates="bank", cascade="all, delete-orphan")


class Question(Base):
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=_uuid)
    question_bank_id = Column(String(36), ForeignKey("question_banks.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    option_a = Column(Text, nullable=False)
    option_b = Column(Text, nullable=False)
    option_c = Column(Text, nullable=False)
    option_d = Column(Text, nullable=False)
    correct_option = Column(String(16), nullable=False)  # letter A-D
    explanation = Column(Text, nullable=True)

    bank = relationship("QuestionBank", back_populates="questions")


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(String(36), primary_key=True, default=_uuid)
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    class_level = Column(String(32), nullable=True)
    num_questions = Column(Integer, nullable=False, default=0)
    pass_percentage = Column(Integer, nullable=True, default=70)
    question_bank_id = Column(String(36), ForeignKey("question_banks.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    course = relationship("Course", back_populates="quizzes")
    question_bank = relationship("QuestionBank")


class ExamAttempt(Base):
    """One graded submission. Created on every submission, never mutated."""

    __tablename__ = "exam_attempts"

    id = Column(String(36), primary_key=True, default=_uuid)
    student_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = Column(String(36), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    score = Column(Integer, nullable=True)  # percent 0-100
    correct_count = Column(Integer, nullable=True)
    total_questions = Column(Integer, nullable=True)
    passed = Column(Boolean, nullable=False, default=False)


class PassingMark(Base):
    """Per (class, level) required percentage; overrides Quiz.pass_percentage."""

    __tablename__ = "passing_marks"
    __table_args__ = (UniqueConstraint("class_id", "level_id", name="uq_passing_marks_class_level"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    class_id = Column(String(32), nullable=False)
    level_id = Column(String(32), nullable=False)
    passing_marks = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
