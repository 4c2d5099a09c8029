"""Course catalog and enrollment endpoints.

  GET  /v1/courses                     list (optional ?q= search)
  GET  /v1/courses/{course_id}         definition + per-module lock state
  POST /v1/courses/{course_id}/enroll  create the learner's progress record
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from lms.api.dependencies import get_progress_service, require_user
from lms.api.errors import DOMAIN_ERRORS, http_error
from lms.models.principal import Principal
from lms.services import notifications, progression
from lms.services.progress_service import ProgressService

router = APIRouter(prefix="/v1/courses", tags=["courses"])


class CourseOut(BaseModel):
    id: int
    title: str
    description: str
    instructor: str
    total_modules: int


class ResourceOut(BaseModel):
    title: str
    type: str
    url: str


class ModuleOut(BaseModel):
    module_number: int
    title: str
    description: str
    duration: str
    state: str  # locked|unlocked|completed
    resources: list[ResourceOut]


class CourseDetailOut(CourseOut):
    progress_percentage: int
    completed_modules: int
    modules: list[ModuleOut]


class NotificationOut(BaseModel):
    level: str
    message: str


class EnrollmentOut(BaseModel):
    learner_id: str
    course_id: int
    progress_percentage: int
    enrolled_at: int | None
    notifications: list[NotificationOut]


@router.get("", response_model=list[CourseOut])
async def list_courses(
    _principal: Annotated[Principal, Depends(require_user)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
    q: Annotated[str | None, Query(max_length=200)] = None,
) -> list[CourseOut]:
    return [
        CourseOut(
            id=c.course_id,
            title=c.title,
            description=c.description,
            instructor=c.instructor,
            total_modules=c.total_module_count,
        )
        for c in await service.list_courses(q)
    ]


@router.get("/{course_id}", response_model=CourseDetailOut)
async def get_course(
    course_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> CourseDetailOut:
    try:
        course = await service.get_course(course_id)
        # A learner's first visit creates their record; staff only browse.
        progress = await service.get_progress(
            principal.user_id, course, create=principal.actor_role == "student"
        )
    except DOMAIN_ERRORS as e:
        raise http_error(e) from None

    states = progression.module_states(
        progress, principal.actor_role, course.total_module_count
    )
    return CourseDetailOut(
        id=course.course_id,
        title=course.title,
        description=course.description,
        instructor=course.instructor,
        total_modules=course.total_module_count,
        progress_percentage=progress.progress_percentage,
        completed_modules=progress.completed_count,
        modules=[
            ModuleOut(
                module_number=m.module_number,
                title=m.title,
                description=m.description,
                duration=m.duration,
                state=state.value,
                resources=[
                    ResourceOut(title=r.title, type=r.type, url=r.url)
                    for r in m.resources
                ],
            )
            for m, state in zip(course.modules, states, strict=True)
        ],
    )


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    course_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> EnrollmentOut:
    try:
        course = await service.get_course(course_id)
        progress = await service.enroll(principal, course_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from None

    note = notifications.enrolled(course.title)
    return EnrollmentOut(
        learner_id=progress.learner_id,
        course_id=progress.course_id,
        progress_percentage=progress.progress_percentage,
        enrolled_at=progress.created_at,
        notifications=[NotificationOut(level=note.level, message=note.message)],
    )
