"""PostgreSQL implementation of ProgressRepo.

fetch_progress(for_update=True) takes a row lock so that two API
processes toggling the same learner's course apply their changes one
after the other.  save_progress commits immediately, which releases that
lock.  Any database error, on a read or a write, is rolled back and
reported as ProgressPersistenceError so the caller can fall back to the
last value it read.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import CourseProgressRow
from lms.models.progress import CourseProgress
from lms.repos.progress_repo import ProgressPersistenceError

logger = logging.getLogger(__name__)


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def fetch_progress(
        self, learner_id: str, course_id: int, *, for_update: bool = False
    ) -> CourseProgress | None:
        stmt = select(CourseProgressRow).where(
            CourseProgressRow.user_id == learner_id,
            CourseProgressRow.course_id == course_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        try:
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise ProgressPersistenceError(str(e)) from e
        if row is None:
            return None
        return _row_to_progress(row)

    async def save_progress(self, progress: CourseProgress) -> None:
        values = {
            "user_id": progress.learner_id,
            "course_id": progress.course_id,
            "completed_modules": sorted(progress.completed_module_numbers),
            "last_accessed_module": progress.last_accessed_module_number,
            "progress_percentage": progress.progress_percentage,
            "created_at": progress.created_at,
            "updated_at": progress.updated_at,
        }
        stmt = insert(CourseProgressRow).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[CourseProgressRow.user_id, CourseProgressRow.course_id],
            set_={
                "completed_modules": stmt.excluded.completed_modules,
                "last_accessed_module": stmt.excluded.last_accessed_module,
                "progress_percentage": stmt.excluded.progress_percentage,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.warning(
                "Progress write failed user=%s course=%s: %s",
                progress.learner_id,
                progress.course_id,
                e,
            )
            raise ProgressPersistenceError(str(e)) from e

    async def list_for_course(self, course_id: int) -> list[CourseProgress]:
        stmt = (
            select(CourseProgressRow)
            .where(CourseProgressRow.course_id == course_id)
            .order_by(CourseProgressRow.user_id)
        )
        try:
            rows = (await self._session.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise ProgressPersistenceError(str(e)) from e
        return [_row_to_progress(r) for r in rows]


def _row_to_progress(row: CourseProgressRow) -> CourseProgress:
    return CourseProgress(
        learner_id=row.user_id,
        course_id=row.course_id,
        completed_module_numbers=frozenset(row.completed_modules or ()),
        last_accessed_module_number=row.last_accessed_module,
        progress_percentage=row.progress_percentage or 0,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
