"""initial level progression schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(length=36), primary_key=True, nullable=False)


def _created() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _updated() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _has_table(name: str) -> bool:
    bind = op.get_bind()
    return name in sa.inspect(bind).get_table_names()


def upgrade() -> None:
    if _has_table("courses"):
        return

    op.create_table(
        "districts",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        _created(),
    )
    op.create_table(
        "users",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="student"),
        sa.Column("class_level", sa.String(length=32), nullable=True),
        sa.Column("school", sa.String(length=255), nullable=True),
        sa.Column("district_id", sa.String(length=36), sa.ForeignKey("districts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        _created(),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_class_level", "users", ["class_level"])
    op.create_index("ix_users_district_id", "users", ["district_id"])

    op.create_table(
        "courses",
        _id(),
        sa.Column("class_level", sa.String(length=32), nullable=False),
        sa.Column("level", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created(),
        sa.UniqueConstraint("class_level", "level", name="uq_courses_class_level"),
    )
    op.create_index("ix_courses_class_level", "courses", ["class_level"])
    op.create_index("ix_courses_level", "courses", ["level"])

    op.create_table(
        "course_videos",
        _id(),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=1000), nullable=True),
        sa.Column("youtube_id", sa.String(length=64), nullable=True),
        sa.Column("thumbnail", sa.String(length=1000), nullable=True),
        sa.Column("iframe_snippet", sa.Text(), nullable=True),
        _created(),
    )
    op.create_table(
        "course_pdfs",
        _id(),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=1000), nullable=False),
        _created(),
    )
    for table, column in (("level_schedules", "unlock_at"), ("quiz_validity", "valid_until")):
        op.create_table(
            table,
            _id(),
            sa.Column("class_id", sa.String(length=32), nullable=False, index=True),
            sa.Column("level", sa.String(length=32), nullable=False),
            sa.Column(column, sa.DateTime(timezone=True), nullable=False),
            _created(),
            _updated(),
            sa.UniqueConstraint("class_id", "level", name=f"uq_{table}_class_level"),
        )
    op.create_table(
        "course_levels",
        sa.Column("class_id", sa.String(length=32), primary_key=True),
        sa.Column("levels", sa.JSON(), nullable=False),
        _updated(),
    )
    op.create_table(
        "completion_messages",
        _id(),
        sa.Column("class_id", sa.String(length=32), nullable=False),
        sa.Column("level_id", sa.String(length=32), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        _created(),
        _updated(),
        sa.UniqueConstraint("class_id", "level_id", name="uq_completion_messages_class_level"),
    )

    op.create_table("question_banks", _id(), _created())
    op.create_table(
        "questions",
        _id(),
        sa.Column("question_bank_id", sa.String(length=36), sa.ForeignKey("question_banks.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("option_a", sa.Text(), nullable=False),
        sa.Column("option_b", sa.Text(), nullable=False),
        sa.Column("option_c", sa.Text(), nullable=False),
        sa.Column("option_d", sa.Text(), nullable=False),
        sa.Column("correct_option", sa.String(length=16), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
    )
    op.create_table(
        "quizzes",
        _id(),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("class_level", sa.String(length=32), nullable=True),
        sa.Column("num_questions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pass_percentage", sa.Integer(), nullable=True, server_default="70"),
        sa.Column("question_bank_id", sa.String(length=36), sa.ForeignKey("question_banks.id"), nullable=False),
        _created(),
    )
    op.create_table(
        "exam_attempts",
        _id(),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("quiz_id", sa.String(length=36), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("correct_count", sa.Integer(), nullable=True),
        sa.Column("total_questions", sa.Integer(), nullable=True),
        sa.Column("passed", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "passing_marks",
        _id(),
        sa.Column("class_id", sa.String(length=32), nullable=False),
        sa.Column("level_id", sa.String(length=32), nullable=False),
        sa.Column("passing_marks", sa.Integer(), nullable=False),
        _updated(),
        sa.UniqueConstraint("class_id", "level_id", name="uq_passing_marks_class_level"),
    )

    op.create_table(
        "student_progress",
        _id(),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="locked"),
        sa.Column("qualified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("attempt_id", sa.String(length=36), sa.ForeignKey("exam_attempts.id", ondelete="SET NULL"), nullable=True),
        _created(),
        _updated(),
        sa.UniqueConstraint("student_id", "course_id", name="uq_student_progress_student_course"),
    )
    op.create_table(
        "video_progress",
        _id(),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("video_id", sa.String(length=36), sa.ForeignKey("course_videos.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("watched", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("watched_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("student_id", "video_id", name="uq_video_progress_student_video"),
    )
    op.create_table(
        "pdf_progress",
        _id(),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("pdf_id", sa.String(length=36), sa.ForeignKey("course_pdfs.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("student_id", "pdf_id", name="uq_pdf_progress_student_pdf"),
    )

    op.create_table(
        "notifications",
        _id(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False, server_default="admin_announcement"),
        sa.Column("sender_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("district_id", sa.String(length=36), sa.ForeignKey("districts.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
    )
    op.create_table(
        "notification_recipients",
        _id(),
        sa.Column("notification_id", sa.String(length=36), sa.ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("notification_id", "user_id", name="uq_notification_recipient"),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("cta_name", sa.String(length=255), nullable=True),
        sa.Column("cta_link", sa.String(length=1024), nullable=True),
        sa.Column("creator_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("district_id", sa.String(length=36), sa.ForeignKey("districts.id", ondelete="CASCADE"), nullable=True, index=True),
        _created(),
    )
    op.create_table(
        "event_participants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_participant"),
    )


def downgrade() -> None:
    for table in (
        "event_participants",
        "events",
        "notification_recipients",
        "notifications",
        "pdf_progress",
        "video_progress",
        "student_progress",
        "passing_marks",
        "exam_attempts",
        "quizzes",
        "questions",
        "question_banks",
        "completion_messages",
        "course_levels",
        "quiz_validity",
        "level_schedules",
        "course_pdfs",
        "course_videos",
        "courses",
        "users",
        "districts",
    ):
        op.drop_table(table)
