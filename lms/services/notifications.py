from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

NotificationLevel = Literal["success", "info", "error"]


@dataclass(frozen=True, slots=True)
class Notification:
    """A message for the learner's toast area, returned with the response."""

    level: NotificationLevel
    message: str


def completion_changed(completed: bool) -> Notification:
    state = "complete" if completed else "incomplete"
    return Notification("success", f"Module marked as {state}")


def module_unlocked(module_number: int, title: str | None = None) -> Notification:
    if title:
        return Notification("info", f"Module {module_number} unlocked: {title}")
    return Notification("info", f"Module {module_number} unlocked")


def save_failed() -> Notification:
    return Notification(
        "error", "Could not save your progress. Your last saved progress is shown."
    )


def enrolled(course_title: str) -> Notification:
    return Notification("success", f"Enrolled in {course_title}")
