from __future__ import annotations

from typing import Protocol

from lms.models.progress import CourseProgress


class ProgressPersistenceError(Exception):
    """The store could not record a progress change."""


class ProgressRepo(Protocol):
    async def fetch_progress(
        self, learner_id: str, course_id: int, *, for_update: bool = False
    ) -> CourseProgress | None: ...

    async def save_progress(self, progress: CourseProgress) -> None:
        """Insert or replace the record.  Raises ProgressPersistenceError."""
        ...

    async def list_for_course(self, course_id: int) -> list[CourseProgress]: ...


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, int], CourseProgress] = {}

    async def fetch_progress(
        self, learner_id: str, course_id: int, *, for_update: bool = False
    ) -> CourseProgress | None:
        return self._store.get((learner_id, course_id))

    async def save_progress(self, progress: CourseProgress) -> None:
        self._store[(progress.learner_id, progress.course_id)] = progress

    async def list_for_course(self, course_id: int) -> list[CourseProgress]:
        return sorted(
            (p for (_, cid), p in self._store.items() if cid == course_id),
            key=lambda p: p.learner_id,
        )
