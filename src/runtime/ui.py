from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from contracts.ui_protocol import (
    EVENT_ERROR,
    EVENT_LABELS,
    EVENT_SESSION,
    EVENT_SESSION_LIST,
    EVENT_SESSION_VIEW,
    STATE_ERROR,
)
from session_timer import (
    Label,
    SessionPage,
    SessionTimerSnapshot,
    SessionView,
    display_status,
)
from session_timer.models import label_to_payload, session_to_payload

from .messages import session_status_message, session_view_message


class UIServerLike(Protocol):
    def publish(self, event_type: str, **payload: Any) -> None:
        ...

    def publish_state(
        self,
        state: str,
        *,
        message: Optional[str] = None,
        **payload: Any,
    ) -> None:
        ...

    def forget(self, event_type: str) -> None:
        ...


class RuntimeUIPublisher:
    def __init__(self, ui_server: Optional[UIServerLike]):
        self._ui_server = ui_server

    def publish(self, event_type: str, **payload: Any) -> None:
        if self._ui_server:
            self._ui_server.publish(event_type, **payload)

    def publish_state(
        self,
        state: str,
        *,
        message: Optional[str] = None,
        **payload: Any,
    ) -> None:
        if self._ui_server:
            self._ui_server.publish_state(state, message=message, **payload)

    def forget(self, event_type: str) -> None:
        if self._ui_server:
            self._ui_server.forget(event_type)

    def publish_session_update(
        self,
        snapshot: SessionTimerSnapshot,
        *,
        action: str,
        accepted: Optional[bool] = None,
        reason: str = "",
        message: Optional[str] = None,
    ) -> None:
        current = snapshot.current_activity
        payload: dict[str, Any] = {
            "action": action,
            "phase": snapshot.phase,
            "is_running": snapshot.is_running,
            "elapsed_seconds": snapshot.elapsed_seconds,
            "remaining_seconds": snapshot.remaining_seconds,
            "progress_percent": round(snapshot.progress_percent, 2),
            "current_index": snapshot.timeline.current_index if current else None,
            "current_activity_id": current.id if current else None,
            "is_complete": snapshot.is_complete,
            "can_add_activities": snapshot.can_add_activities,
            "activity_elapsed": dict(snapshot.activity_elapsed),
            "session": session_to_payload(snapshot.session) if snapshot.session else None,
            "message": message or session_status_message(snapshot),
        }
        if accepted is not None:
            payload["accepted"] = accepted
        if reason:
            payload["reason"] = reason
        self.publish(EVENT_SESSION, **payload)

    def publish_session_view(self, view: SessionView) -> None:
        self.publish(
            EVENT_SESSION_VIEW,
            session=session_to_payload(view.session),
            display_status=view.display_status,
            can_add_activities=view.can_add_activities,
            is_complete=view.is_complete,
            current_index=view.timeline.current_index,
            remaining_seconds=0 if view.is_complete else view.timeline.remaining_seconds,
            progress_percent=round(view.timeline.progress_percent, 2),
            completed=list(view.timeline.completed),
            message=session_view_message(view),
        )

    def publish_session_list(self, page: SessionPage) -> None:
        self.publish(
            EVENT_SESSION_LIST,
            sessions=[
                {**session_to_payload(session), "display_status": display_status(session)}
                for session in page.sessions
            ],
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
        )

    def publish_labels(self, labels: Sequence[Label]) -> None:
        self.publish(EVENT_LABELS, labels=[label_to_payload(label) for label in labels])

    def publish_error(self, message: str, *, command: Optional[str] = None, **payload: Any) -> None:
        if command:
            payload["command"] = command
        self.publish(EVENT_ERROR, state=STATE_ERROR, message=message, **payload)
