"""Status and rejection text builders for session timer flows."""

from __future__ import annotations

from session_timer import SessionTimerSnapshot, SessionView
from session_timer.constants import (
    DISPLAY_STATUS_INCOMPLETE,
    PHASE_COMPLETED,
    PHASE_PAUSED,
    PHASE_RUNNING,
    REASON_ACTIVE_SESSION_LOADED,
    REASON_ALREADY_COMPLETED,
    REASON_NO_SESSION,
    REASON_SESSION_CHANGED,
    REASON_SESSION_COMPLETED,
    REASON_SESSION_FINISHED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
    STATUS_PAUSED,
)

COMPLETION_NOT_SAVED_TEXT = "Completing the session failed; completion may not have been saved."


def format_duration(seconds: int) -> str:
    """Format a duration in seconds as `MM:SS`; hours roll into the minutes."""
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remainder:02d}"


def session_status_message(snapshot: SessionTimerSnapshot) -> str:
    """Build status text for the live session snapshot."""
    current = snapshot.current_activity
    label = f"'{current.name}'" if current is not None else "Session"
    remaining = format_duration(snapshot.remaining_seconds)
    if snapshot.phase == PHASE_RUNNING:
        if snapshot.is_complete:
            return "All activities done"
        return f"{label} running ({remaining} remaining)"
    if snapshot.phase == PHASE_PAUSED:
        return f"{label} paused ({remaining} remaining)"
    if snapshot.phase == PHASE_COMPLETED:
        return "Session completed"
    return "Ready"


def session_view_message(view: SessionView) -> str:
    if view.display_status == DISPLAY_STATUS_INCOMPLETE:
        return "Completed early; activities can still be added"
    status = view.session.status
    if status == STATUS_COMPLETED:
        return "Session completed"
    if status == STATUS_IN_PROGRESS:
        return "Session in progress"
    if status == STATUS_PAUSED:
        return f"Session paused ({format_duration(view.timeline.elapsed_seconds)} elapsed)"
    if status == STATUS_NOT_STARTED:
        return "Session not started"
    return "Session"


def rejection_text(reason: str) -> str:
    """Return user-facing text for a rejected engine action."""
    if reason == REASON_NO_SESSION:
        return "No session is loaded."
    if reason == REASON_ACTIVE_SESSION_LOADED:
        return "Another session is active. Complete or clear it first."
    if reason == REASON_SESSION_COMPLETED:
        return "This session is completed and can only be viewed."
    if reason == REASON_ALREADY_COMPLETED:
        return "The session is already completed."
    if reason == REASON_SESSION_FINISHED:
        return "Every activity is done; no more activities can be added."
    if reason == REASON_SESSION_CHANGED:
        return "The session changed while the request was in flight."
    return "That action is not possible right now."
