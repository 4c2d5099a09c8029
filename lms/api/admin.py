from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from lms.api.dependencies import Repos, get_repos, require_role
from lms.models.principal import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class ActivityLogOut(BaseModel):
    id: str
    user_id: str | None
    user_role: str
    action: str
    details: dict | None
    created_at: int


@router.get("/activity-logs", response_model=list[ActivityLogOut])
async def list_activity_logs(
    principal: Annotated[Principal, Depends(require_role("admin"))],
    repos: Annotated[Repos, Depends(get_repos)],
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
    action: Annotated[str | None, Query(max_length=64)] = None,
) -> list[ActivityLogOut]:
    logger.info(
        "Activity logs requested by user=%s limit=%d action=%s",
        principal.user_id,
        limit,
        action,
    )
    entries = await repos.activity.list_recent(limit=limit, action=action)
    return [
        ActivityLogOut(
            id=str(e.id),
            user_id=e.user_id,
            user_role=e.user_role,
            action=e.action,
            details=e.details,
            created_at=e.created_at,
        )
        for e in entries
    ]
