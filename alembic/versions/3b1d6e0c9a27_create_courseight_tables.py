"""create courseight tables

Revision ID: 3b1d6e0c9a27
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1d6e0c9a27"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_UUID = postgresql.UUID(as_uuid=True)
_UUID_ARRAY = postgresql.ARRAY(postgresql.UUID(as_uuid=True))


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", _UUID, primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="student"),
        sa.Column("created_at", sa.Integer(), nullable=False),
    )

    op.create_table(
        "courses",
        sa.Column("id", _UUID, primary_key=True),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("instructor_id", _UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("student_ids", _UUID_ARRAY, nullable=False, server_default="{}"),
        sa.Column("assessment_ids", _UUID_ARRAY, nullable=False, server_default="{}"),
        sa.Column("discussion_ids", _UUID_ARRAY, nullable=False, server_default="{}"),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.Integer(), nullable=False),
    )
    op.create_index("ix_courses_title", "courses", ["title"])
    op.create_index("ix_courses_instructor_id", "courses", ["instructor_id"])
    op.create_index("ix_courses_created_at", "courses", ["created_at"])

    op.create_table(
        "enrollments",
        sa.Column("user_id", _UUID, sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("course_id", _UUID, sa.ForeignKey("courses.id"), primary_key=True),
        sa.Column("progress", sa.Float(), nullable=False, server_default="0"),
        sa.Column("enrolled_at", sa.Integer(), nullable=False),
    )

    op.create_table(
        "assessments",
        sa.Column("id", _UUID, primary_key=True),
        sa.Column("course_id", _UUID, sa.ForeignKey("courses.id"), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("passing_score", sa.Integer(), nullable=False, server_default="60"),
        sa.Column(
            "questions",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("created_by", _UUID, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.Integer(), nullable=False),
    )
    op.create_index("ix_assessments_course_id", "assessments", ["course_id"])

    op.create_table(
        "assessment_results",
        sa.Column(
            "assessment_id", _UUID, sa.ForeignKey("assessments.id"), primary_key=True
        ),
        sa.Column("user_id", _UUID, sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("max_score", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Integer(), nullable=False),
        sa.Column(
            "answers",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("submitted_at", sa.Integer(), nullable=False),
    )

    op.create_table(
        "progress_events",
        sa.Column("id", _UUID, primary_key=True),
        sa.Column("seq", sa.BigInteger(), sa.Identity(), nullable=False, unique=True),
        sa.Column("user_id", _UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("course_id", _UUID, sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("occurred_at", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=True),
        sa.Column("entity_id", _UUID, nullable=True),
        sa.Column("payload_json", sa.Text(), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        sa.UniqueConstraint(
            "user_id",
            "course_id",
            "idempotency_key",
            name="uq_progress_events_user_course_key",
        ),
    )
    op.create_index(
        "ix_progress_events_user_course", "progress_events", ["user_id", "course_id"]
    )

    op.create_table(
        "course_progress",
        sa.Column("user_id", _UUID, sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("course_id", _UUID, sa.ForeignKey("courses.id"), primary_key=True),
        sa.Column("progress_percentage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("last_updated", sa.Integer(), nullable=False),
    )

    op.create_table(
        "discussions",
        sa.Column("id", _UUID, primary_key=True),
        sa.Column("course_id", _UUID, sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("author_id", _UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "replies",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("liked_by", _UUID_ARRAY, nullable=False, server_default="{}"),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.Integer(), nullable=False),
    )
    op.create_index("ix_discussions_course_id", "discussions", ["course_id"])


def downgrade() -> None:
    op.drop_index("ix_discussions_course_id", table_name="discussions")
    op.drop_table("discussions")
    op.drop_table("course_progress")
    op.drop_index("ix_progress_events_user_course", table_name="progress_events")
    op.drop_table("progress_events")
    op.drop_table("assessment_results")
    op.drop_index("ix_assessments_course_id", table_name="assessments")
    op.drop_table("assessments")
    op.drop_table("enrollments")
    op.drop_index("ix_courses_created_at", table_name="courses")
    op.drop_index("ix_courses_instructor_id", table_name="courses")
    op.drop_index("ix_courses_title", table_name="courses")
    op.drop_table("courses")
    op.drop_table("users")
