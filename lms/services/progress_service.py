"""Progress use cases: the layer between the HTTP routers and the engine.

The progression engine is pure; everything with a side effect happens
here.  A completion toggle is a two-phase commit:

  1. compute   read the latest stored record, apply the engine
  2. persist   save it through the ProgressRepo
  3a. success  invalidate the cached read, count metrics, log activity,
               tell the learner (and which module unlocked)
  3b. failure  re-read the stored record (or keep the value read under
               the lock if the store is still down) and return THAT,
               flagged as not saved, with an error notification

Step 3b means a failed write can never leave the learner looking at an
optimistic state the store does not have.

Writes for one (learner, course) pair are serialised with an asyncio.Lock
per pair, and each write is applied to the value read inside the lock,
so rapid toggles cannot overwrite each other.  PgProgressRepo adds a row
lock for the multi-process case.
"""

from __future__ import annotations

import asyncio
import datetime
import json
import logging
import weakref
from collections.abc import Callable
from dataclasses import dataclass

from lms.core.config import SETTINGS
from lms.core.metrics import (
    CACHE_OPERATIONS,
    MODULE_COMPLETION_TOGGLES,
    MODULE_UNLOCKS,
    PROGRESS_SAVE_FAILURES,
)
from lms.models.activity import ActivityLogEntry
from lms.models.course import CourseDefinition
from lms.models.principal import Principal
from lms.models.progress import CourseProgress
from lms.repos.activity_log_repo import ActivityLogRepo, ActivityLogWriteError
from lms.repos.course_repo import CourseRepo, get_course_or_raise
from lms.repos.progress_repo import ProgressPersistenceError, ProgressRepo
from lms.services import notifications, progression
from lms.services.cache import CacheService, cache_service, progress_cache_key
from lms.services.notifications import Notification

logger = logging.getLogger(__name__)


class AlreadyEnrolledError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class ToggleOutcome:
    progress: CourseProgress
    saved: bool
    unlocked_module_number: int | None = None
    notifications: tuple[Notification, ...] = ()


class ProgressLocks:
    """One asyncio.Lock per (learner_id, course_id), created on demand.

    Entries are weak: a lock lives only while some task holds it or waits
    on it, so the map does not grow with every learner ever seen.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[tuple[str, int], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._locks)

    def for_key(self, learner_id: str, course_id: int) -> asyncio.Lock:
        key = (learner_id, course_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock


# Process-wide: request-scoped services must share the same locks.
progress_locks = ProgressLocks()


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def _dump(progress: CourseProgress) -> str:
    return json.dumps(
        {
            "learner_id": progress.learner_id,
            "course_id": progress.course_id,
            "completed_module_numbers": sorted(progress.completed_module_numbers),
            "last_accessed_module_number": progress.last_accessed_module_number,
            "progress_percentage": progress.progress_percentage,
            "created_at": progress.created_at,
            "updated_at": progress.updated_at,
        }
    )


def _load(raw: str) -> CourseProgress:
    data = json.loads(raw)
    data["completed_module_numbers"] = frozenset(data["completed_module_numbers"])
    return CourseProgress(**data)


class ProgressService:
    def __init__(
        self,
        *,
        courses: CourseRepo,
        progress: ProgressRepo,
        activity: ActivityLogRepo,
        cache: CacheService = cache_service,
        locks: ProgressLocks = progress_locks,
        cache_ttl: int = SETTINGS.progress_cache_ttl,
        clock: Callable[[], int] = _now,
    ) -> None:
        self._courses = courses
        self._progress = progress
        self._activity = activity
        self._cache = cache
        self._locks = locks
        self._cache_ttl = cache_ttl
        self._clock = clock

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_courses(self, search: str | None = None) -> list[CourseDefinition]:
        courses = await self._courses.list()
        if search:
            courses = [c for c in courses if c.matches(search)]
        return courses

    async def get_course(self, course_id: int) -> CourseDefinition:
        course = await get_course_or_raise(self._courses, course_id)
        if course.total_module_count == 0:
            raise progression.InvalidCourseConfigurationError(
                f"course {course_id} has no modules"
            )
        return course

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_progress(
        self, learner_id: str, course: CourseDefinition, *, create: bool = True
    ) -> CourseProgress:
        """Read-through cached progress, refreshed against the course.

        With create=True a missing record is created empty and stored
        (a learner's first visit).  With create=False an unsaved empty
        value is returned (staff looking at someone who never started).

        A miss is filled under the learner's write lock, so a read that
        overlaps a toggle cannot put the pre-toggle value back in the cache.
        """
        key = progress_cache_key(learner_id, course.course_id)
        cached = await self._cache.get(key)
        if cached is not None:
            CACHE_OPERATIONS.labels(operation="hit").inc()
            return progression.refresh_progress(_load(cached), course.total_module_count)
        CACHE_OPERATIONS.labels(operation="miss").inc()

        async with self._locks.for_key(learner_id, course.course_id):
            progress = await self._progress.fetch_progress(learner_id, course.course_id)
            if progress is None:
                if not create:
                    return CourseProgress.new(
                        learner_id=learner_id, course_id=course.course_id
                    )
                progress = await self._create_locked(learner_id, course.course_id)

            progress = progression.refresh_progress(progress, course.total_module_count)
            await self._cache.set(key, _dump(progress), self._cache_ttl)
        return progress

    async def list_course_progress(self, course: CourseDefinition) -> list[CourseProgress]:
        return [
            progression.refresh_progress(p, course.total_module_count)
            for p in await self._progress.list_for_course(course.course_id)
        ]

    async def _create_locked(self, learner_id: str, course_id: int) -> CourseProgress:
        # Caller holds the (learner, course) lock.
        existing = await self._progress.fetch_progress(
            learner_id, course_id, for_update=True
        )
        if existing is not None:
            return existing
        progress = CourseProgress.new(
            learner_id=learner_id, course_id=course_id, now=self._clock()
        )
        await self._progress.save_progress(progress)
        logger.info(
            "Created progress record user=%s course=%d",
            learner_id,
            course_id,
            extra={"user_id": learner_id, "course_id": course_id},
        )
        return progress

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def enroll(self, principal: Principal, course_id: int) -> CourseProgress:
        course = await self.get_course(course_id)
        learner_id = principal.user_id

        async with self._locks.for_key(learner_id, course_id):
            existing = await self._progress.fetch_progress(
                learner_id, course_id, for_update=True
            )
            if existing is not None:
                raise AlreadyEnrolledError(f"{learner_id}:{course_id}")
            progress = CourseProgress.new(
                learner_id=learner_id, course_id=course_id, now=self._clock()
            )
            await self._progress.save_progress(progress)

        await self._cache.delete(progress_cache_key(learner_id, course_id))
        await self._log(
            principal, "enrolled", {"course_id": course_id, "course": course.title}
        )
        logger.info(
            "Enrolled user=%s course=%d",
            learner_id,
            course_id,
            extra={"user_id": learner_id, "course_id": course_id},
        )
        return progress

    async def set_module_completion(
        self,
        principal: Principal,
        course_id: int,
        module_number: int,
        completed: bool,
    ) -> ToggleOutcome:
        """Mark one module (in)complete for the calling learner.

        Raises ModuleOutOfRangeError / ModuleLockedError before anything is
        written.  A failed save does not raise; see ToggleOutcome.saved.
        """
        course = await self.get_course(course_id)
        total = course.total_module_count
        learner_id = principal.user_id
        role = principal.actor_role
        log_extra = {
            "user_id": learner_id,
            "course_id": course_id,
            "module_number": module_number,
        }

        async with self._locks.for_key(learner_id, course_id):
            stored = await self._progress.fetch_progress(
                learner_id, course_id, for_update=True
            )
            before = progression.refresh_progress(
                stored
                or CourseProgress.new(
                    learner_id=learner_id, course_id=course_id, now=self._clock()
                ),
                total,
            )
            # Phase 1: compute.  Raises before any write on bad input.
            after = progression.toggle_module_completion(
                before, module_number, completed, total, now=self._clock()
            )
            # Re-completing a module already done is a no-op, even if an
            # earlier module was undone since and it is locked again.
            already_done = module_number in before.completed_module_numbers
            if (
                completed
                and not already_done
                and not progression.is_module_accessible(
                    before, module_number, role, total
                )
            ):
                raise progression.ModuleLockedError(module_number)

            # Phase 2: persist.
            try:
                await self._progress.save_progress(after)
            except ProgressPersistenceError:
                PROGRESS_SAVE_FAILURES.inc()
                logger.warning(
                    "Progress save failed, reverting to stored state "
                    "user=%s course=%d module=%d",
                    learner_id,
                    course_id,
                    module_number,
                    exc_info=True,
                    extra=log_extra,
                )
                try:
                    canonical = await self._progress.fetch_progress(
                        learner_id, course_id
                    )
                except ProgressPersistenceError:
                    # Store still down: fall back to the value read under the lock.
                    logger.warning(
                        "Re-read after failed save also failed user=%s course=%d",
                        learner_id,
                        course_id,
                        exc_info=True,
                        extra=log_extra,
                    )
                    canonical = None
                reverted = progression.refresh_progress(canonical or before, total)
                failed = True
            else:
                failed = False

        if failed:
            await self._log(
                principal,
                "progress_save_failed",
                {"course_id": course_id, "module_number": module_number},
            )
            return ToggleOutcome(
                progress=reverted,
                saved=False,
                notifications=(notifications.save_failed(),),
            )

        await self._cache.delete(progress_cache_key(learner_id, course_id))
        MODULE_COMPLETION_TOGGLES.labels(
            state="complete" if completed else "incomplete"
        ).inc()

        unlocked = progression.unlocked_by_completion(
            before, after, module_number, role, total
        )
        notes = [notifications.completion_changed(completed)]
        if unlocked is not None:
            MODULE_UNLOCKS.inc()
            unlocked_def = course.module(unlocked)
            notes.append(
                notifications.module_unlocked(
                    unlocked, unlocked_def.title if unlocked_def else None
                )
            )

        await self._log(
            principal,
            "module_completed" if completed else "module_uncompleted",
            {
                "course_id": course_id,
                "module_number": module_number,
                "progress_percentage": after.progress_percentage,
            },
        )
        logger.info(
            "Module %d marked %s user=%s course=%d progress=%d%%",
            module_number,
            "complete" if completed else "incomplete",
            learner_id,
            course_id,
            after.progress_percentage,
            extra=log_extra,
        )
        return ToggleOutcome(
            progress=after,
            saved=True,
            unlocked_module_number=unlocked,
            notifications=tuple(notes),
        )

    async def open_module(
        self, principal: Principal, course_id: int, module_number: int
    ) -> CourseProgress:
        """Record the last module the learner opened.

        Raises ModuleLockedError when the actor may not open it yet, and
        ProgressPersistenceError when the store rejects the write.
        """
        course = await self.get_course(course_id)
        total = course.total_module_count
        learner_id = principal.user_id

        async with self._locks.for_key(learner_id, course_id):
            stored = await self._progress.fetch_progress(
                learner_id, course_id, for_update=True
            )
            current = progression.refresh_progress(
                stored
                or CourseProgress.new(
                    learner_id=learner_id, course_id=course_id, now=self._clock()
                ),
                total,
            )
            updated = progression.mark_module_opened(
                current, module_number, principal.actor_role, total, now=self._clock()
            )
            await self._progress.save_progress(updated)

        await self._cache.delete(progress_cache_key(learner_id, course_id))
        logger.debug(
            "Module %d opened user=%s course=%d",
            module_number,
            learner_id,
            course_id,
        )
        return updated

    async def _log(self, principal: Principal, action: str, details: dict) -> None:
        """Append to the activity log.  A failed append is logged, not raised."""
        try:
            await self._activity.add(
                ActivityLogEntry.new(
                    user_id=principal.user_id,
                    user_role=principal.actor_role,
                    action=action,
                    created_at=self._clock(),
                    details=details,
                )
            )
        except ActivityLogWriteError:
            logger.warning(
                "Activity log append failed action=%s user=%s",
                action,
                principal.user_id,
                exc_info=True,
                extra={"user_id": principal.user_id, "action": action},
            )
