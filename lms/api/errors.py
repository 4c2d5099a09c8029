"""Translate domain exceptions into HTTP errors.

Routers catch the service's typed exceptions and re-raise the result of
http_error() ``from None``, so engine internals never leak as a 500.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from lms.repos.course_repo import CourseNotFoundError
from lms.repos.progress_repo import ProgressPersistenceError
from lms.services.progress_service import AlreadyEnrolledError
from lms.services.progression import (
    InvalidCourseConfigurationError,
    ModuleLockedError,
    ModuleOutOfRangeError,
)

logger = logging.getLogger(__name__)

DOMAIN_ERRORS = (
    CourseNotFoundError,
    ModuleOutOfRangeError,
    ModuleLockedError,
    InvalidCourseConfigurationError,
    AlreadyEnrolledError,
    ProgressPersistenceError,
)

_STATUS_BY_ERROR: tuple[tuple[type[Exception], int, str | None], ...] = (
    (CourseNotFoundError, status.HTTP_404_NOT_FOUND, "course not found"),
    (ModuleOutOfRangeError, status.HTTP_404_NOT_FOUND, None),
    (ModuleLockedError, status.HTTP_403_FORBIDDEN, None),
    (
        InvalidCourseConfigurationError,
        status.HTTP_422_UNPROCESSABLE_CONTENT,
        None,
    ),
    (AlreadyEnrolledError, status.HTTP_409_CONFLICT, "already enrolled"),
    (
        ProgressPersistenceError,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "progress could not be saved",
    ),
)


def http_error(exc: Exception) -> HTTPException:
    for error_type, status_code, detail in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            logger.warning("Request rejected: %s (%s)", exc, type(exc).__name__)
            return HTTPException(status_code=status_code, detail=detail or str(exc))
    raise TypeError(f"no HTTP mapping for {type(exc).__name__}") from exc
