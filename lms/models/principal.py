from __future__ import annotations

from dataclasses import dataclass

from lms.models.course import ActorRole


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system and passed
    explicitly into services, so nothing reads a global "current user".

        user_id: subject from JWT
        roles:   token roles (student, staff, admin)
    """

    user_id: str
    roles: frozenset[str]

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    def is_staff_or_admin(self) -> bool:
        return self.has_any_role({"staff", "admin"})

    @property
    def actor_role(self) -> ActorRole:
        # Highest privilege wins; anything unrecognised is treated as a learner.
        if "admin" in self.roles:
            return "admin"
        if "staff" in self.roles:
            return "staff"
        return "student"
