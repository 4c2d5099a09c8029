"""Ownership and resource-level access checks.

Plain functions (not FastAPI dependencies) because they need both the
Principal and the id of the learner whose data is requested.  Call them
at the top of an endpoint body.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from lms.models.principal import Principal

logger = logging.getLogger(__name__)


def check_self_or_staff(principal: Principal, learner_id: str) -> None:
    """Raise 403 unless the principal is the learner, staff, or an admin."""
    if principal.user_id == learner_id:
        return
    if principal.is_staff_or_admin():
        return
    logger.warning(
        "Access denied: user=%s tried to read progress of learner=%s",
        principal.user_id,
        learner_id,
    )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only view your own progress",
    )
