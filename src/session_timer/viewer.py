"""Read-only session viewing that never touches live engine state."""

from __future__ import annotations

from dataclasses import dataclass

from .constants import STATUS_COMPLETED
from .contracts import SessionStoreLike
from .models import DisplayStatus, Session
from .status import can_add_activities, display_status
from .timeline import TimelineView, calculate_for


@dataclass(frozen=True)
class SessionView:
    """Persisted session plus the view state derived from its saved progress."""
    session: Session
    display_status: DisplayStatus
    can_add_activities: bool
    timeline: TimelineView

    @property
    def is_complete(self) -> bool:
        return self.session.status == STATUS_COMPLETED or self.timeline.is_complete


def build_session_view(session: Session) -> SessionView:
    return SessionView(
        session=session,
        display_status=display_status(session),
        can_add_activities=can_add_activities(session),
        timeline=calculate_for(session.activities, session.total_elapsed_seconds),
    )


async def fetch_session_view(store: SessionStoreLike, session_id: str) -> SessionView:
    """Fetch ``session_id`` for display; raises ``NotFoundError``/``NetworkError``."""
    session = await store.fetch_session(session_id)
    return build_session_view(session)
