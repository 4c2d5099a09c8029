from __future__ import annotations

from typing import Protocol

from lms.models.activity import ActivityLogEntry


class ActivityLogWriteError(Exception):
    """The store could not append an activity log entry."""


class ActivityLogRepo(Protocol):
    async def add(self, entry: ActivityLogEntry) -> None:
        """Append one entry.  Raises ActivityLogWriteError."""
        ...

    async def list_recent(
        self, *, limit: int = 50, action: str | None = None
    ) -> list[ActivityLogEntry]: ...


class InMemoryActivityLogRepo:
    def __init__(self) -> None:
        self._entries: list[ActivityLogEntry] = []

    async def add(self, entry: ActivityLogEntry) -> None:
        self._entries.append(entry)

    async def list_recent(
        self, *, limit: int = 50, action: str | None = None
    ) -> list[ActivityLogEntry]:
        # Newest first; insertion order breaks ties within the same second.
        matching = [
            e for e in reversed(self._entries) if action is None or e.action == action
        ]
        matching.sort(key=lambda e: e.created_at, reverse=True)
        return matching[:limit]
