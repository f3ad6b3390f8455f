from .constants import (
    DEFAULT_SAVE_INTERVAL_SECONDS,
    DEFAULT_TICK_INTERVAL_SECONDS,
)
from .contracts import SessionStoreLike
from .engine import (
    EngineAction,
    EnginePhase,
    SessionActionResult,
    SessionTimerEngine,
    SessionTimerSnapshot,
)
from .errors import NetworkError, NotFoundError, SessionTimerError, ValidationError
from .models import (
    Activity,
    ActivityProgress,
    DisplayStatus,
    Label,
    NewActivity,
    ProgressUpdate,
    Session,
    SessionPage,
    SessionStatus,
)
from .status import can_add_activities, display_status, with_derived_completion
from .timeline import TimelineView, calculate, calculate_for
from .viewer import SessionView, build_session_view, fetch_session_view

__all__ = [
    "Activity",
    "ActivityProgress",
    "DEFAULT_SAVE_INTERVAL_SECONDS",
    "DEFAULT_TICK_INTERVAL_SECONDS",
    "DisplayStatus",
    "EngineAction",
    "EnginePhase",
    "Label",
    "NetworkError",
    "NewActivity",
    "NotFoundError",
    "ProgressUpdate",
    "Session",
    "SessionActionResult",
    "SessionPage",
    "SessionStatus",
    "SessionStoreLike",
    "SessionTimerEngine",
    "SessionTimerError",
    "SessionTimerSnapshot",
    "SessionView",
    "TimelineView",
    "ValidationError",
    "build_session_view",
    "calculate",
    "calculate_for",
    "can_add_activities",
    "display_status",
    "fetch_session_view",
    "with_derived_completion",
]
