from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class ActivityLogEntry:
    """Append-only audit trail entry shown on the admin activity page."""

    id: UUID
    user_id: str | None
    user_role: str
    action: str  # enrolled|module_completed|module_uncompleted|progress_save_failed
    created_at: int
    details: dict | None = None

    @staticmethod
    def new(
        *,
        user_id: str | None,
        user_role: str,
        action: str,
        created_at: int,
        details: dict | None = None,
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            id=uuid4(),
            user_id=user_id,
            user_role=user_role,
            action=action,
            created_at=created_at,
            details=details,
        )
