"""Web UI websocket event, state, and command constants."""

from __future__ import annotations

# Websocket event types (server -> client)
EVENT_HELLO = "hello"
EVENT_STATE_UPDATE = "state_update"
EVENT_SESSION = "session"
EVENT_SESSION_VIEW = "session_view"
EVENT_SESSION_LIST = "session_list"
EVENT_LABELS = "labels"
EVENT_ERROR = "error"

# UI runtime states
STATE_IDLE = "idle"
STATE_LOADING = "loading"
STATE_READY = "ready"
STATE_ERROR = "error"

STICKY_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EVENT_STATE_UPDATE,
        EVENT_SESSION,
        EVENT_SESSION_VIEW,
        EVENT_SESSION_LIST,
        EVENT_LABELS,
        EVENT_ERROR,
    }
)

STICKY_EVENT_ORDER: tuple[str, ...] = (
    EVENT_LABELS,
    EVENT_SESSION_LIST,
    EVENT_SESSION,
    EVENT_SESSION_VIEW,
    EVENT_ERROR,
    EVENT_STATE_UPDATE,
)

# Inbound message envelope (client -> server)
MESSAGE_COMMAND = "command"

COMMAND_LOAD_SESSION = "load_session"
COMMAND_VIEW_SESSION = "view_session"
COMMAND_CREATE_SESSION = "create_session"
COMMAND_TOGGLE_TIMER = "toggle_timer"
COMMAND_COMPLETE_SESSION = "complete_session"
COMMAND_ADD_ACTIVITIES = "add_activities"
COMMAND_CLEAR_SESSION = "clear_session"
COMMAND_LIST_SESSIONS = "list_sessions"
COMMAND_DELETE_SESSION = "delete_session"
COMMAND_LIST_LABELS = "list_labels"

COMMAND_NAMES: frozenset[str] = frozenset(
    {
        COMMAND_LOAD_SESSION,
        COMMAND_VIEW_SESSION,
        COMMAND_CREATE_SESSION,
        COMMAND_TOGGLE_TIMER,
        COMMAND_COMPLETE_SESSION,
        COMMAND_ADD_ACTIVITIES,
        COMMAND_CLEAR_SESSION,
        COMMAND_LIST_SESSIONS,
        COMMAND_DELETE_SESSION,
        COMMAND_LIST_LABELS,
    }
)
