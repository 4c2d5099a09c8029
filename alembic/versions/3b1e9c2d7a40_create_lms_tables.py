"""create lms tables

Revision ID: 3b1e9c2d7a40
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1e9c2d7a40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("instructor", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("duration", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("thumbnail", sa.Text(), nullable=True),
        sa.Column("total_modules", sa.Integer(), nullable=False),
        sa.CheckConstraint("total_modules > 0", name="ck_courses_total_modules_positive"),
    )
    op.create_table(
        "course_modules",
        sa.Column(
            "course_id", sa.Integer(), sa.ForeignKey("courses.id"), primary_key=True
        ),
        sa.Column("module_number", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("duration", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("media_reference", sa.Text(), nullable=True),
        sa.Column("resources", postgresql.JSONB(), nullable=True),
        sa.CheckConstraint("module_number > 0", name="ck_course_modules_number_positive"),
    )
    op.create_table(
        "user_course_progress",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column(
            "completed_modules",
            postgresql.ARRAY(sa.Integer()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("last_accessed_module", sa.Integer(), nullable=True),
        sa.Column(
            "progress_percentage", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("created_at", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.Integer(), nullable=True),
        sa.UniqueConstraint("user_id", "course_id"),
    )
    op.create_table(
        "activity_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(length=255), nullable=True),
        sa.Column("user_role", sa.String(length=32), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("details", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.Integer(), nullable=False),
    )
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_created_at", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_table("user_course_progress")
    op.drop_table("course_modules")
    op.drop_table("courses")
