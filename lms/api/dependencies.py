from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from lms.db.engine import async_session_factory
from lms.models.principal import Principal
from lms.repos.activity_log_repo import ActivityLogRepo, InMemoryActivityLogRepo
from lms.repos.course_repo import CourseRepo, InMemoryCourseRepo
from lms.repos.pg_activity_log_repo import PgActivityLogRepo
from lms.repos.pg_course_repo import PgCourseRepo
from lms.repos.pg_progress_repo import PgProgressRepo
from lms.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from lms.services import token_service
from lms.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

# The identity provider issues the tokens; tokenUrl only documents where.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")

# ---------------------------------------------------------------------------
# In-memory stores (used when DATABASE_URL is not configured)
# ---------------------------------------------------------------------------

course_repo = InMemoryCourseRepo()
course_repo.seed()
progress_repo = InMemoryProgressRepo()
activity_log_repo = InMemoryActivityLogRepo()


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal.

    Used as a FastAPI dependency on any protected endpoint.
    """
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    principal = Principal(
        user_id=claims["sub"],
        roles=frozenset(claims.get("roles", [])),
    )
    logger.debug(
        "Token validated for user=%s roles=%s",
        principal.user_id,
        principal.roles,
    )
    return principal


def require_any_role(roles: set[str]):
    """Dependency factory: 403 unless the token carries one of ``roles``.

    Usage: Depends(require_any_role({"staff", "admin"}))
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_any_role(roles):
            logger.warning(
                "Access denied: user=%s has none of roles=%s",
                principal.user_id,
                roles,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


def require_role(role: str):
    """Usage: Depends(require_role("admin"))"""
    return require_any_role({role})


def require_learner(
    principal: Annotated[Principal, Depends(require_user)],
) -> Principal:
    """Only learners record their own completion; staff and admins review."""
    if principal.actor_role != "student":
        logger.warning(
            "Access denied: user=%s role=%s cannot record completion",
            principal.user_id,
            principal.actor_role,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only students can change module completion",
        )
    return principal


# ---------------------------------------------------------------------------
# Repositories and services
# ---------------------------------------------------------------------------


class Repos:
    def __init__(
        self,
        courses: CourseRepo,
        progress: ProgressRepo,
        activity: ActivityLogRepo,
    ) -> None:
        self.courses = courses
        self.progress = progress
        self.activity = activity


async def get_repos() -> AsyncGenerator[Repos, None]:
    """Request-scoped repos: Postgres when configured, in-memory otherwise.

    Commits on success, rolls back on exception.  PgProgressRepo commits
    its own writes so the row lock is held no longer than the write.
    """
    if async_session_factory is None:
        yield Repos(course_repo, progress_repo, activity_log_repo)
        return

    async with async_session_factory() as session:
        try:
            yield Repos(
                PgCourseRepo(session),
                PgProgressRepo(session),
                PgActivityLogRepo(session),
            )
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_progress_service(
    repos: Annotated[Repos, Depends(get_repos)],
) -> ProgressService:
    return ProgressService(
        courses=repos.courses,
        progress=repos.progress,
        activity=repos.activity,
    )
