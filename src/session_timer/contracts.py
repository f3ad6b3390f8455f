"""Protocols describing the session persistence collaborator."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import Label, NewActivity, ProgressUpdate, Session, SessionPage


class SessionStoreLike(Protocol):
    """Owner-scoped session persistence used by the engine and the read path."""
    async def fetch_session(self, session_id: str) -> Session:
        ...

    async def list_sessions(self, *, page: int = 1, limit: int = 20) -> SessionPage:
        ...

    async def create_session(self, activities: Sequence[NewActivity]) -> Session:
        ...

    async def persist_progress(self, session_id: str, update: ProgressUpdate) -> Session:
        ...

    async def append_activities(
        self,
        session_id: str,
        activities: Sequence[NewActivity],
    ) -> Session:
        ...

    async def delete_session(self, session_id: str) -> None:
        ...

    async def list_labels(self) -> list[Label]:
        ...
