"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in lms/models/.
Repos convert between rows and dataclasses; nothing outside lms/repos
sees a Row object.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from lms.db.engine import Base

# --- Catalog ---


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    instructor: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    duration: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    thumbnail: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_modules: Mapped[int] = mapped_column(Integer, nullable=False)


class CourseModuleRow(Base):
    __tablename__ = "course_modules"

    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id"), primary_key=True
    )
    module_number: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    duration: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    media_reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    resources: Mapped[list[dict] | None] = mapped_column(JSONB, nullable=True)


# --- Progress ---


class CourseProgressRow(Base):
    """One row per learner per course.  completed_modules is the truth;
    progress_percentage is a cache refreshed on read."""

    __tablename__ = "user_course_progress"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id"), nullable=False
    )
    completed_modules: Mapped[list[int]] = mapped_column(
        ARRAY(Integer), nullable=False, default=[]
    )
    last_accessed_module: Mapped[int | None] = mapped_column(Integer, nullable=True)
    progress_percentage: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    created_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (UniqueConstraint("user_id", "course_id"),)


# --- Audit trail ---


class ActivityLogRow(Base):
    __tablename__ = "activity_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_role: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # student|staff|admin
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    details: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
