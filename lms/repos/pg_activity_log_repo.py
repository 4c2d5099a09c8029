"""PostgreSQL implementation of ActivityLogRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import ActivityLogRow
from lms.models.activity import ActivityLogEntry
from lms.repos.activity_log_repo import ActivityLogWriteError


class PgActivityLogRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, entry: ActivityLogEntry) -> None:
        self._session.add(
            ActivityLogRow(
                id=entry.id,
                user_id=entry.user_id,
                user_role=entry.user_role,
                action=entry.action,
                details=entry.details,
                created_at=entry.created_at,
            )
        )
        try:
            await self._session.flush()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise ActivityLogWriteError(str(e)) from e

    async def list_recent(
        self, *, limit: int = 50, action: str | None = None
    ) -> list[ActivityLogEntry]:
        stmt = select(ActivityLogRow).order_by(ActivityLogRow.created_at.desc())
        if action is not None:
            stmt = stmt.where(ActivityLogRow.action == action)
        rows = (await self._session.execute(stmt.limit(limit))).scalars().all()
        return [
            ActivityLogEntry(
                id=r.id,
                user_id=r.user_id,
                user_role=r.user_role,
                action=r.action,
                details=r.details,
                created_at=r.created_at,
            )
            for r in rows
        ]
