"""Status, phase, action, and reason constants used by the session timer."""

from __future__ import annotations

DEFAULT_TICK_INTERVAL_SECONDS = 1.0
DEFAULT_SAVE_INTERVAL_SECONDS = 10.0

STATUS_NOT_STARTED = "NOT_STARTED"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_PAUSED = "PAUSED"
STATUS_COMPLETED = "COMPLETED"

SESSION_STATUSES: frozenset[str] = frozenset(
    {STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_PAUSED, STATUS_COMPLETED}
)

# View-only overlay for sessions completed with outstanding activities.
DISPLAY_STATUS_INCOMPLETE = "INCOMPLETE"

PHASE_IDLE = "idle"
PHASE_PAUSED = "paused"
PHASE_RUNNING = "running"
PHASE_COMPLETED = "completed"

LIVE_PHASES: frozenset[str] = frozenset({PHASE_RUNNING, PHASE_PAUSED})

ACTION_LOAD = "load"
ACTION_TOGGLE = "toggle"
ACTION_COMPLETE = "complete"
ACTION_ADD_ACTIVITIES = "add_activities"
ACTION_CLEAR = "clear"

# Engine state pushed without a user action (ticks, saves, startup)
ACTION_SYNC = "sync"

REASON_LOADED = "loaded"
REASON_ALREADY_LOADED = "already_loaded"
REASON_ACTIVE_SESSION_LOADED = "active_session_loaded"
REASON_SESSION_COMPLETED = "session_completed"
REASON_NO_SESSION = "no_session"
REASON_PLAYING = "playing"
REASON_PAUSED = "paused"
REASON_COMPLETED = "completed"
REASON_ALREADY_COMPLETED = "already_completed"
REASON_ACTIVITIES_ADDED = "activities_added"
REASON_REOPENED = "reopened"
REASON_SESSION_FINISHED = "session_finished"
REASON_SESSION_CHANGED = "session_changed"
REASON_CLEARED = "cleared"
REASON_STARTUP = "startup"

MAX_ACTIVITY_NAME_LENGTH = 255
