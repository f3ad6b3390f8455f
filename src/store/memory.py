"""In-process session store with owner scoping and atomic progress updates."""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from session_timer.constants import (
    SESSION_STATUSES,
    STATUS_COMPLETED,
    STATUS_NOT_STARTED,
    STATUS_PAUSED,
)
from session_timer.errors import NotFoundError, ValidationError
from session_timer.models import (
    Activity,
    Label,
    NewActivity,
    ProgressUpdate,
    Session,
    SessionPage,
)
from session_timer.status import can_add_activities
from session_timer.validation import validate_new_activities

MAX_LABEL_NAME_LENGTH = 50


@dataclass
class _StoredLabel:
    owner_id: str
    label: Label


@dataclass
class InMemoryBackend:
    """Shared tables backing one or more owner-scoped stores."""
    sessions: dict[str, Session] = field(default_factory=dict)
    labels: list[_StoredLabel] = field(default_factory=list)


class InMemorySessionStore:
    """Session store kept in process memory.

    Each instance acts for one owner; sessions of other owners sharing the
    same backend are reported as missing.
    """

    def __init__(
        self,
        owner_id: str,
        *,
        backend: Optional[InMemoryBackend] = None,
        logger: Optional[logging.Logger] = None,
        now_fn: Optional[Callable[[], datetime]] = None,
        id_fn: Optional[Callable[[], str]] = None,
    ):
        if not owner_id.strip():
            raise ValueError("owner_id cannot be empty")
        self._owner_id = owner_id
        self._backend = backend or InMemoryBackend()
        self._logger = logger or logging.getLogger("session_store")
        self._now = now_fn or (lambda: datetime.now(timezone.utc))
        self._new_id = id_fn or (lambda: str(uuid.uuid4()))

    @property
    def owner_id(self) -> str:
        return self._owner_id

    async def fetch_session(self, session_id: str) -> Session:
        return self._owned(session_id)

    async def list_sessions(self, *, page: int = 1, limit: int = 20) -> SessionPage:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        owned = sorted(
            (s for s in self._backend.sessions.values() if s.owner_id == self._owner_id),
            key=lambda s: s.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        start = (page - 1) * limit
        return SessionPage(
            sessions=tuple(owned[start:start + limit]),
            page=page,
            limit=limit,
            total=len(owned),
            total_pages=math.ceil(len(owned) / limit),
        )

    async def create_session(self, activities: Sequence[NewActivity]) -> Session:
        validate_new_activities(activities)
        now = self._now()
        session_id = self._new_id()
        session = Session(
            id=session_id,
            owner_id=self._owner_id,
            status=STATUS_NOT_STARTED,
            created_at=now,
            updated_at=now,
            activities=self._build_activities(session_id, activities, start_index=0),
        )
        self._backend.sessions[session_id] = session
        self._logger.info(
            "Session created: id=%s activities=%d",
            session_id,
            len(session.activities),
        )
        return session

    async def persist_progress(self, session_id: str, update: ProgressUpdate) -> Session:
        """Apply ``update`` as one unit; nothing is written if any part is invalid."""
        session = self._owned(session_id)

        if update.status is not None and update.status not in SESSION_STATUSES:
            raise ValidationError(f"Unknown session status: {update.status}")
        if update.total_elapsed_seconds is not None and update.total_elapsed_seconds < 0:
            raise ValidationError("elapsed seconds cannot be negative")
        if update.current_activity_index is not None and update.current_activity_index < 0:
            raise ValidationError("current activity index cannot be negative")

        activities = session.activities
        if update.activity_progress is not None:
            progress_by_id = {progress.id: progress for progress in update.activity_progress}
            unknown = set(progress_by_id) - {activity.id for activity in activities}
            if unknown:
                raise NotFoundError(f"Activity not found: {sorted(unknown)[0]}")
            if any(progress.elapsed_seconds < 0 for progress in progress_by_id.values()):
                raise ValidationError("activity elapsed seconds cannot be negative")
            activities = tuple(
                replace(
                    activity,
                    elapsed_seconds=progress_by_id[activity.id].elapsed_seconds,
                    completed=progress_by_id[activity.id].completed,
                )
                if activity.id in progress_by_id
                else activity
                for activity in activities
            )

        status = update.status if update.status is not None else session.status
        completed_at = session.completed_at
        if status == STATUS_COMPLETED and completed_at is None:
            completed_at = self._now()

        updated = replace(
            session,
            status=status,
            total_elapsed_seconds=(
                update.total_elapsed_seconds
                if update.total_elapsed_seconds is not None
                else session.total_elapsed_seconds
            ),
            current_activity_index=(
                update.current_activity_index
                if update.current_activity_index is not None
                else session.current_activity_index
            ),
            completed_at=completed_at,
            updated_at=self._now(),
            activities=activities,
        )
        self._backend.sessions[session_id] = updated
        return updated

    async def append_activities(
        self,
        session_id: str,
        activities: Sequence[NewActivity],
    ) -> Session:
        session = self._owned(session_id)
        if not can_add_activities(session):
            raise ValidationError("Session is finished; no activities can be added")
        validate_new_activities(activities, existing=session.activities)

        start_index = max((a.order_index for a in session.activities), default=-1) + 1
        appended = self._build_activities(session_id, activities, start_index=start_index)
        reopened = session.status == STATUS_COMPLETED
        updated = replace(
            session,
            status=STATUS_PAUSED if reopened else session.status,
            completed_at=None if reopened else session.completed_at,
            updated_at=self._now(),
            activities=session.activities + appended,
        )
        self._backend.sessions[session_id] = updated
        if reopened:
            self._logger.info("Session reopened by new activities: id=%s", session_id)
        return updated

    async def delete_session(self, session_id: str) -> None:
        self._owned(session_id)
        del self._backend.sessions[session_id]

    async def list_labels(self) -> list[Label]:
        return [
            stored.label
            for stored in self._backend.labels
            if stored.owner_id == self._owner_id
        ]

    async def upsert_label(self, color_key: str, display_name: str) -> Label:
        name = display_name.strip()
        if not color_key.strip():
            raise ValidationError("Label color is required")
        if not name:
            raise ValidationError("Label name is required")
        if len(name) > MAX_LABEL_NAME_LENGTH:
            raise ValidationError(
                f"Label name must be at most {MAX_LABEL_NAME_LENGTH} characters"
            )

        for stored in self._backend.labels:
            if stored.owner_id == self._owner_id and stored.label.color_key == color_key:
                stored.label = replace(stored.label, display_name=name)
                return stored.label

        label = Label(id=self._new_id(), color_key=color_key, display_name=name)
        self._backend.labels.append(_StoredLabel(owner_id=self._owner_id, label=label))
        return label

    def _owned(self, session_id: str) -> Session:
        session = self._backend.sessions.get(session_id)
        if session is None or session.owner_id != self._owner_id:
            raise NotFoundError("Session not found")
        return session

    def _build_activities(
        self,
        session_id: str,
        activities: Sequence[NewActivity],
        *,
        start_index: int,
    ) -> tuple[Activity, ...]:
        return tuple(
            Activity(
                id=self._new_id(),
                session_id=session_id,
                name=activity.name.strip(),
                color_key=activity.color_key,
                planned_duration_seconds=activity.duration_minutes * 60,
                order_index=start_index + offset,
            )
            for offset, activity in enumerate(activities)
        )
