from __future__ import annotations

from typing import Protocol

from lms.models.course import CourseDefinition, ModuleDefinition, ModuleResource


class CourseNotFoundError(LookupError):
    def __init__(self, course_id: int) -> None:
        super().__init__(f"course {course_id} not found")
        self.course_id = course_id


class CourseRepo(Protocol):
    async def get(self, course_id: int) -> CourseDefinition | None: ...
    async def list(self) -> list[CourseDefinition]: ...
    async def add(self, course: CourseDefinition) -> None: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[int, CourseDefinition] = {}

    async def get(self, course_id: int) -> CourseDefinition | None:
        return self._by_id.get(course_id)

    async def list(self) -> list[CourseDefinition]:
        return sorted(self._by_id.values(), key=lambda c: c.course_id)

    async def add(self, course: CourseDefinition) -> None:
        if course.course_id in self._by_id:
            raise ValueError("course id already exists")
        self._by_id[course.course_id] = course

    def seed(self) -> None:
        """Load the sample catalog.  Skips courses already present."""
        for course in sample_catalog():
            self._by_id.setdefault(course.course_id, course)


async def get_course_or_raise(repo: CourseRepo, course_id: int) -> CourseDefinition:
    course = await repo.get(course_id)
    if course is None:
        raise CourseNotFoundError(course_id)
    return course


# ---------------------------------------------------------------------------
# Sample catalog
# ---------------------------------------------------------------------------

_FINANCIAL_AUDITING_MODULES = (
    ModuleDefinition(
        module_number=1,
        title="Introduction to Financial Auditing",
        description="Overview of the course and introduction to basic concepts.",
        duration="45:20",
        resources=(
            ModuleResource(title="Course Syllabus", type="pdf"),
            ModuleResource(title="Introduction Slides", type="pdf"),
        ),
    ),
    ModuleDefinition(
        module_number=2,
        title="Auditing Standards and Frameworks",
        description="Learn about international and local auditing standards.",
        duration="53:15",
        resources=(
            ModuleResource(title="Auditing Standards PDF", type="pdf"),
            ModuleResource(title="Case Study: XYZ Corp", type="pdf"),
        ),
    ),
    ModuleDefinition(
        module_number=3,
        title="Risk Assessment in Auditing",
        description="Identifying and evaluating audit risks.",
        duration="48:30",
        resources=(ModuleResource(title="Risk Assessment Worksheet", type="excel"),),
    ),
    ModuleDefinition(
        module_number=4,
        title="Internal Controls Evaluation",
        description="Techniques for evaluating internal controls.",
        duration="51:45",
        resources=(
            ModuleResource(title="Internal Controls Checklist", type="pdf"),
            ModuleResource(title="Control Environment Analysis", type="pdf"),
        ),
    ),
    ModuleDefinition(
        module_number=5,
        title="Substantive Procedures",
        description="Designing and performing substantive audit procedures.",
        duration="59:10",
        resources=(ModuleResource(title="Audit Procedures Guide", type="pdf"),),
    ),
    ModuleDefinition(
        module_number=6,
        title="Audit Documentation",
        description="Best practices for preparing audit documentation.",
        duration="42:55",
        resources=(ModuleResource(title="Documentation Templates", type="zip"),),
    ),
    ModuleDefinition(
        module_number=7,
        title="Audit Opinions",
        description="Types of audit opinions and when to issue them.",
        duration="47:20",
        resources=(ModuleResource(title="Opinion Examples", type="pdf"),),
    ),
    ModuleDefinition(
        module_number=8,
        title="Specialized Audits",
        description="Introduction to specialized audit engagements.",
        duration="56:40",
        resources=(ModuleResource(title="Specialized Audit Guide", type="pdf"),),
    ),
)


def sample_catalog() -> list[CourseDefinition]:
    return [
        CourseDefinition(
            course_id=1,
            title="Financial Auditing 101",
            description="Introduction to financial auditing principles and practices.",
            instructor="Dr. Jane Smith",
            modules=_FINANCIAL_AUDITING_MODULES,
        ),
        CourseDefinition.new(
            course_id=2,
            title="Corporate Accounting",
            description="Advanced accounting principles for corporate environments.",
            instructor="Prof. Robert Johnson",
            module_titles=[f"Corporate Accounting Part {i}" for i in range(1, 13)],
        ),
        CourseDefinition.new(
            course_id=3,
            title="Tax Auditing Principles",
            description=(
                "Learn the fundamental principles of tax auditing and compliance."
            ),
            instructor="Prof. Michael Brown",
            module_titles=[f"Tax Auditing Part {i}" for i in range(1, 11)],
        ),
        CourseDefinition.new(
            course_id=4,
            title="Risk Assessment in Auditing",
            description=(
                "Strategic approaches to risk assessment in the auditing process."
            ),
            instructor="Dr. Sarah Williams",
            module_titles=[f"Risk Assessment Part {i}" for i in range(1, 7)],
        ),
    ]
