from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ActorRole = Literal["student", "staff", "admin"]


@dataclass(frozen=True, slots=True)
class ModuleResource:
    title: str
    type: str  # pdf|excel|zip|link
    url: str = "#"


@dataclass(frozen=True, slots=True)
class ModuleDefinition:
    module_number: int
    title: str
    media_reference: str | None = None
    description: str = ""
    duration: str = ""
    resources: tuple[ModuleResource, ...] = ()


@dataclass(frozen=True, slots=True)
class CourseDefinition:
    """A catalog course and its ordered modules.

    Modules are numbered 1..total_module_count with no gaps; the number
    is also the unlock order.
    """

    course_id: int
    title: str
    modules: tuple[ModuleDefinition, ...] = field(default_factory=tuple)
    description: str = ""
    instructor: str = ""
    duration: str = ""
    thumbnail: str | None = None

    @property
    def total_module_count(self) -> int:
        return len(self.modules)

    def module(self, module_number: int) -> ModuleDefinition | None:
        if 1 <= module_number <= len(self.modules):
            return self.modules[module_number - 1]
        return None

    def matches(self, term: str) -> bool:
        term = term.strip().lower()
        if not term:
            return True
        return any(
            term in text.lower()
            for text in (self.title, self.description, self.instructor)
        )

    @staticmethod
    def new(
        *,
        course_id: int,
        title: str,
        module_titles: list[str],
        description: str = "",
        instructor: str = "",
        duration: str = "",
        thumbnail: str | None = None,
    ) -> CourseDefinition:
        # Numbering comes from list position so callers can't leave gaps.
        modules = tuple(
            ModuleDefinition(module_number=i, title=t)
            for i, t in enumerate(module_titles, start=1)
        )
        return CourseDefinition(
            course_id=course_id,
            title=title,
            modules=modules,
            description=description,
            instructor=instructor,
            duration=duration,
            thumbnail=thumbnail,
        )
