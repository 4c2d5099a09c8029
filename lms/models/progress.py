from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CourseProgress:
    """One learner's completion record for one course.

    The completion set is the source of truth.  progress_percentage is a
    cached projection of it; the progression engine recomputes it on every
    change and repos refresh it on read.
    """

    learner_id: str
    course_id: int
    completed_module_numbers: frozenset[int] = frozenset()
    last_accessed_module_number: int | None = None
    progress_percentage: int = 0
    created_at: int | None = None
    updated_at: int | None = None

    @property
    def completed_count(self) -> int:
        return len(self.completed_module_numbers)

    @staticmethod
    def new(*, learner_id: str, course_id: int, now: int | None = None) -> CourseProgress:
        return CourseProgress(
            learner_id=learner_id,
            course_id=course_id,
            created_at=now,
            updated_at=now,
        )
