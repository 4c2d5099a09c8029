"""Course progression engine: module unlock gating and progress aggregation.

Pure functions over immutable CourseProgress values.  Nothing here does
I/O; persisting the result and telling the learner about it is the job of
progress_service.py.

GATING RULE
-----------
Modules unlock strictly in order:

  module 1          always accessible
  module n (n > 1)  accessible to a student once module n-1 is completed
  staff / admin     every module accessible

Accessibility is never stored.  It is recomputed from the completion set
every time, so un-completing module 3 re-locks module 4 without any extra
bookkeeping.

PER-MODULE STATE MACHINE
------------------------
  LOCKED --(previous module completed)--> UNLOCKED
  UNLOCKED --(toggle True)--> COMPLETED
  COMPLETED --(toggle False)--> UNLOCKED   (may re-lock later modules)

There is no terminal state.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import replace

from lms.models.course import ActorRole
from lms.models.progress import CourseProgress


class ProgressionError(ValueError):
    """Base for local validation failures raised by the engine."""


class ModuleOutOfRangeError(ProgressionError):
    def __init__(self, module_number: int, total_module_count: int) -> None:
        super().__init__(
            f"module {module_number} is outside 1..{total_module_count}"
        )
        self.module_number = module_number
        self.total_module_count = total_module_count


class InvalidCourseConfigurationError(ProgressionError):
    pass


class ModuleLockedError(ProgressionError):
    def __init__(self, module_number: int) -> None:
        super().__init__(f"module {module_number} is locked")
        self.module_number = module_number


class ModuleState(str, enum.Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    COMPLETED = "completed"


def _check_course_size(total_module_count: int) -> None:
    if total_module_count <= 0:
        raise InvalidCourseConfigurationError(
            f"a course must declare at least one module (got {total_module_count})"
        )


def _check_module_number(module_number: int, total_module_count: int) -> None:
    if not 1 <= module_number <= total_module_count:
        raise ModuleOutOfRangeError(module_number, total_module_count)


def compute_progress_percentage(
    completed_module_numbers: Iterable[int],
    total_module_count: int,
) -> int:
    """Whole-number completion percentage, clamped to 0..100.

    Rounds half up (1 of 8 modules -> 13), which is what learners see on
    the progress bar.  Integer arithmetic keeps it exact.
    """
    _check_course_size(total_module_count)
    completed = len(set(completed_module_numbers))
    percentage = (200 * completed + total_module_count) // (2 * total_module_count)
    return max(0, min(100, percentage))


def is_module_accessible(
    progress: CourseProgress,
    module_number: int,
    actor_role: ActorRole,
    total_module_count: int | None = None,
) -> bool:
    """Can this actor open the module right now?

    Bad module numbers are a caller bug, so they answer False instead of
    raising.  Pass total_module_count to have the upper bound checked too.
    """
    if module_number < 1:
        return False
    if total_module_count is not None and module_number > total_module_count:
        return False
    if actor_role != "student":
        return True
    if module_number == 1:
        return True
    return (module_number - 1) in progress.completed_module_numbers


def module_state(
    progress: CourseProgress,
    module_number: int,
    actor_role: ActorRole,
    total_module_count: int,
) -> ModuleState:
    if module_number in progress.completed_module_numbers:
        return ModuleState.COMPLETED
    if is_module_accessible(progress, module_number, actor_role, total_module_count):
        return ModuleState.UNLOCKED
    return ModuleState.LOCKED


def module_states(
    progress: CourseProgress,
    actor_role: ActorRole,
    total_module_count: int,
) -> list[ModuleState]:
    """One state per module, index 0 is module 1."""
    _check_course_size(total_module_count)
    return [
        module_state(progress, n, actor_role, total_module_count)
        for n in range(1, total_module_count + 1)
    ]


def toggle_module_completion(
    progress: CourseProgress,
    module_number: int,
    new_state: bool,
    total_module_count: int,
    *,
    now: int | None = None,
) -> CourseProgress:
    """Return a copy of progress with one module marked (in)complete.

    Idempotent: applying the same (module_number, new_state) twice is the
    same as applying it once.  Raises ModuleOutOfRangeError without
    touching anything when module_number is outside the course.
    """
    _check_course_size(total_module_count)
    _check_module_number(module_number, total_module_count)

    if new_state:
        completed = progress.completed_module_numbers | {module_number}
    else:
        completed = progress.completed_module_numbers - {module_number}

    return replace(
        progress,
        completed_module_numbers=frozenset(completed),
        progress_percentage=compute_progress_percentage(completed, total_module_count),
        updated_at=now if now is not None else progress.updated_at,
    )


def mark_module_opened(
    progress: CourseProgress,
    module_number: int,
    actor_role: ActorRole,
    total_module_count: int,
    *,
    now: int | None = None,
) -> CourseProgress:
    """Record the module the learner last opened.

    Opening never completes a module; completion is always explicit.
    """
    _check_course_size(total_module_count)
    _check_module_number(module_number, total_module_count)
    if not is_module_accessible(progress, module_number, actor_role, total_module_count):
        raise ModuleLockedError(module_number)
    return replace(
        progress,
        last_accessed_module_number=module_number,
        updated_at=now if now is not None else progress.updated_at,
    )


def refresh_progress(
    progress: CourseProgress,
    total_module_count: int,
) -> CourseProgress:
    """Re-derive the cached percentage for a value read back from storage.

    Completion numbers outside the course (left behind if a course was
    shortened) are dropped so the subset invariant holds again.
    """
    _check_course_size(total_module_count)
    completed = frozenset(
        n for n in progress.completed_module_numbers if 1 <= n <= total_module_count
    )
    percentage = compute_progress_percentage(completed, total_module_count)
    if (
        completed == progress.completed_module_numbers
        and percentage == progress.progress_percentage
    ):
        return progress
    return replace(
        progress, completed_module_numbers=completed, progress_percentage=percentage
    )


def unlocked_by_completion(
    before: CourseProgress,
    after: CourseProgress,
    module_number: int,
    actor_role: ActorRole,
    total_module_count: int,
) -> int | None:
    """The module number that became accessible because of this change.

    Only completing a module can unlock the next one, and only for
    students (staff already see everything).  Returns None otherwise.
    """
    next_module = module_number + 1
    if next_module > total_module_count:
        return None
    was_open = is_module_accessible(before, next_module, actor_role, total_module_count)
    is_open = is_module_accessible(after, next_module, actor_role, total_module_count)
    if not was_open and is_open:
        return next_module
    return None
