"""Learner progress endpoints.

  GET  /v1/progress/{course_id}                               own progress
  PUT  /v1/progress/{course_id}/modules/{module_number}       mark (in)complete
  POST /v1/progress/{course_id}/modules/{module_number}/open  last accessed
  GET  /v1/progress/{course_id}/learners                      roster (staff)
  GET  /v1/progress/{course_id}/learners/{learner_id}         one learner

The PUT answers 200 with the saved state, or 503 with the state that is
actually stored when the write failed, so the client can roll its view
back instead of guessing.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from lms.api.access import check_self_or_staff
from lms.api.courses import NotificationOut
from lms.api.dependencies import (
    get_progress_service,
    require_any_role,
    require_learner,
    require_user,
)
from lms.api.errors import DOMAIN_ERRORS, http_error
from lms.models.principal import Principal
from lms.models.progress import CourseProgress
from lms.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class ProgressOut(BaseModel):
    learner_id: str
    course_id: int
    completed_module_numbers: list[int]
    last_accessed_module_number: int | None
    progress_percentage: int
    updated_at: int | None


class CompletionIn(BaseModel):
    completed: bool


class ToggleOut(BaseModel):
    progress: ProgressOut
    saved: bool
    unlocked_module_number: int | None
    notifications: list[NotificationOut]


def _progress_out(p: CourseProgress) -> ProgressOut:
    return ProgressOut(
        learner_id=p.learner_id,
        course_id=p.course_id,
        completed_module_numbers=sorted(p.completed_module_numbers),
        last_accessed_module_number=p.last_accessed_module_number,
        progress_percentage=p.progress_percentage,
        updated_at=p.updated_at,
    )


@router.get("/{course_id}", response_model=ProgressOut)
async def get_my_progress(
    course_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> ProgressOut:
    try:
        course = await service.get_course(course_id)
        progress = await service.get_progress(principal.user_id, course)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from None
    return _progress_out(progress)


@router.put(
    "/{course_id}/modules/{module_number}",
    response_model=ToggleOut,
    responses={503: {"model": ToggleOut}},
)
async def set_module_completion(
    course_id: int,
    module_number: int,
    payload: CompletionIn,
    principal: Annotated[Principal, Depends(require_learner)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
):
    try:
        outcome = await service.set_module_completion(
            principal, course_id, module_number, payload.completed
        )
    except DOMAIN_ERRORS as e:
        raise http_error(e) from None

    body = ToggleOut(
        progress=_progress_out(outcome.progress),
        saved=outcome.saved,
        unlocked_module_number=outcome.unlocked_module_number,
        notifications=[
            NotificationOut(level=n.level, message=n.message)
            for n in outcome.notifications
        ],
    )
    if not outcome.saved:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(),
        )
    return body


@router.post("/{course_id}/modules/{module_number}/open", response_model=ProgressOut)
async def open_module(
    course_id: int,
    module_number: int,
    principal: Annotated[Principal, Depends(require_user)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> ProgressOut:
    try:
        progress = await service.open_module(principal, course_id, module_number)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from None
    return _progress_out(progress)


@router.get("/{course_id}/learners", response_model=list[ProgressOut])
async def list_learner_progress(
    course_id: int,
    principal: Annotated[Principal, Depends(require_any_role({"staff", "admin"}))],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> list[ProgressOut]:
    try:
        course = await service.get_course(course_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from None
    logger.info(
        "Course roster requested by user=%s course=%d", principal.user_id, course_id
    )
    return [_progress_out(p) for p in await service.list_course_progress(course)]


@router.get("/{course_id}/learners/{learner_id}", response_model=ProgressOut)
async def get_learner_progress(
    course_id: int,
    learner_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> ProgressOut:
    check_self_or_staff(principal, learner_id)
    try:
        course = await service.get_course(course_id)
        progress = await service.get_progress(learner_id, course, create=False)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from None
    return _progress_out(progress)
