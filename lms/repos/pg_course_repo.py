"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import CourseModuleRow, CourseRow
from lms.models.course import CourseDefinition, ModuleDefinition, ModuleResource


class PgCourseRepo:
    """Satisfies the CourseRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: int) -> CourseDefinition | None:
        stmt = select(CourseRow).where(CourseRow.id == course_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        modules_stmt = (
            select(CourseModuleRow)
            .where(CourseModuleRow.course_id == course_id)
            .order_by(CourseModuleRow.module_number)
        )
        modules = (await self._session.execute(modules_stmt)).scalars().all()
        return _row_to_course(row, modules)

    async def list(self) -> list[CourseDefinition]:
        rows = (
            (await self._session.execute(select(CourseRow).order_by(CourseRow.id)))
            .scalars()
            .all()
        )
        stmt = select(CourseModuleRow).order_by(
            CourseModuleRow.course_id, CourseModuleRow.module_number
        )
        by_course: dict[int, list[CourseModuleRow]] = defaultdict(list)
        for m in (await self._session.execute(stmt)).scalars().all():
            by_course[m.course_id].append(m)
        return [_row_to_course(r, by_course[r.id]) for r in rows]

    async def add(self, course: CourseDefinition) -> None:
        self._session.add(
            CourseRow(
                id=course.course_id,
                title=course.title,
                description=course.description,
                instructor=course.instructor,
                duration=course.duration,
                thumbnail=course.thumbnail,
                total_modules=course.total_module_count,
            )
        )
        # Parent row must exist before the module FKs are checked.
        await self._session.flush()
        for m in course.modules:
            self._session.add(
                CourseModuleRow(
                    course_id=course.course_id,
                    module_number=m.module_number,
                    title=m.title,
                    description=m.description,
                    duration=m.duration,
                    media_reference=m.media_reference,
                    resources=[
                        {"title": r.title, "type": r.type, "url": r.url}
                        for r in m.resources
                    ],
                )
            )
        await self._session.flush()


def _row_to_course(row: CourseRow, modules) -> CourseDefinition:
    return CourseDefinition(
        course_id=row.id,
        title=row.title,
        description=row.description,
        instructor=row.instructor,
        duration=row.duration,
        thumbnail=row.thumbnail,
        modules=tuple(
            ModuleDefinition(
                module_number=m.module_number,
                title=m.title,
                description=m.description,
                duration=m.duration,
                media_reference=m.media_reference,
                resources=tuple(
                    ModuleResource(
                        title=r["title"], type=r["type"], url=r.get("url", "#")
                    )
                    for r in m.resources or ()
                ),
            )
            for m in modules
        ),
    )
