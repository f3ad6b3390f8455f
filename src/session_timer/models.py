"""Session, activity, and label records plus their JSON wire converters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Mapping, Optional, Sequence

from .constants import SESSION_STATUSES

SessionStatus = Literal["NOT_STARTED", "IN_PROGRESS", "PAUSED", "COMPLETED"]
DisplayStatus = Literal["NOT_STARTED", "IN_PROGRESS", "PAUSED", "COMPLETED", "INCOMPLETE"]


@dataclass(frozen=True)
class Activity:
    """One named, colored, timed segment of a session."""
    id: str
    name: str
    color_key: str
    planned_duration_seconds: int
    elapsed_seconds: int = 0
    completed: bool = False
    order_index: int = 0
    session_id: Optional[str] = None

    @property
    def duration_minutes(self) -> int:
        return self.planned_duration_seconds // 60


@dataclass(frozen=True)
class Session:
    """Ordered activities run as one continuous countdown."""
    id: str
    owner_id: str
    status: SessionStatus
    total_elapsed_seconds: int = 0
    current_activity_index: int = 0
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    activities: tuple[Activity, ...] = ()

    @property
    def planned_durations(self) -> tuple[int, ...]:
        return tuple(activity.planned_duration_seconds for activity in self.activities)

    def activity(self, activity_id: str) -> Optional[Activity]:
        for activity in self.activities:
            if activity.id == activity_id:
                return activity
        return None


@dataclass(frozen=True)
class NewActivity:
    """Activity input for session creation and appends."""
    name: str
    duration_minutes: int
    color_key: str


@dataclass(frozen=True)
class ActivityProgress:
    id: str
    elapsed_seconds: int
    completed: bool


@dataclass(frozen=True)
class ProgressUpdate:
    """Partial session update; ``None`` fields are left untouched by the store."""
    status: Optional[SessionStatus] = None
    total_elapsed_seconds: Optional[int] = None
    current_activity_index: Optional[int] = None
    activity_progress: Optional[tuple[ActivityProgress, ...]] = None


@dataclass(frozen=True)
class Label:
    """Persistent display name for a color key."""
    color_key: str
    display_name: str
    id: Optional[str] = None


@dataclass(frozen=True)
class SessionPage:
    sessions: tuple[Session, ...]
    page: int
    limit: int
    total: int
    total_pages: int = field(default=0)


def activity_from_payload(raw: Mapping[str, Any]) -> Activity:
    duration_seconds = raw.get("durationSeconds")
    if duration_seconds is None:
        duration_seconds = _as_int(raw.get("durationMinutes"), "durationMinutes") * 60
    return Activity(
        id=_as_id(raw.get("id"), "id"),
        session_id=_as_optional_id(raw.get("sessionId")),
        name=_as_text(raw.get("name"), "name"),
        color_key=_as_text(raw.get("color"), "color"),
        planned_duration_seconds=_as_int(duration_seconds, "durationSeconds"),
        elapsed_seconds=_as_int(raw.get("elapsedSeconds", 0) or 0, "elapsedSeconds"),
        completed=bool(raw.get("completed", False)),
        order_index=_as_int(raw.get("orderIndex", 0) or 0, "orderIndex"),
    )


def session_from_payload(raw: Mapping[str, Any]) -> Session:
    """Build a session from the backend JSON shape, ordering activities."""
    status = raw.get("status")
    if status not in SESSION_STATUSES:
        raise ValueError(f"Unknown session status: {status!r}")

    raw_activities = raw.get("activities") or []
    if not isinstance(raw_activities, list):
        raise ValueError("activities must be a list")
    activities = sorted(
        (activity_from_payload(item) for item in raw_activities),
        key=lambda activity: activity.order_index,
    )
    return Session(
        id=_as_id(raw.get("id"), "id"),
        owner_id=_as_text(raw.get("userId", ""), "userId"),
        status=status,
        total_elapsed_seconds=_as_int(raw.get("elapsedSeconds", 0) or 0, "elapsedSeconds"),
        current_activity_index=_as_int(
            raw.get("currentActivityIndex", 0) or 0,
            "currentActivityIndex",
        ),
        completed_at=_as_datetime(raw.get("completedAt"), "completedAt"),
        created_at=_as_datetime(raw.get("createdAt"), "createdAt"),
        updated_at=_as_datetime(raw.get("updatedAt"), "updatedAt"),
        activities=tuple(activities),
    )


def label_from_payload(raw: Mapping[str, Any]) -> Label:
    return Label(
        id=_as_optional_id(raw.get("id")),
        color_key=_as_text(raw.get("color"), "color"),
        display_name=_as_text(raw.get("name"), "name"),
    )


def activity_to_payload(activity: Activity) -> dict[str, Any]:
    return {
        "id": activity.id,
        "sessionId": activity.session_id,
        "name": activity.name,
        "color": activity.color_key,
        "durationMinutes": activity.duration_minutes,
        "durationSeconds": activity.planned_duration_seconds,
        "elapsedSeconds": activity.elapsed_seconds,
        "completed": activity.completed,
        "orderIndex": activity.order_index,
    }


def session_to_payload(session: Session) -> dict[str, Any]:
    return {
        "id": session.id,
        "userId": session.owner_id,
        "status": session.status,
        "elapsedSeconds": session.total_elapsed_seconds,
        "currentActivityIndex": session.current_activity_index,
        "completedAt": _format_datetime(session.completed_at),
        "createdAt": _format_datetime(session.created_at),
        "updatedAt": _format_datetime(session.updated_at),
        "activities": [activity_to_payload(activity) for activity in session.activities],
    }


def label_to_payload(label: Label) -> dict[str, Any]:
    return {"id": label.id, "color": label.color_key, "name": label.display_name}


def new_activities_to_payload(activities: Sequence[NewActivity]) -> list[dict[str, Any]]:
    return [
        {
            "name": activity.name,
            "durationMinutes": activity.duration_minutes,
            "color": activity.color_key,
        }
        for activity in activities
    ]


def new_activity_from_payload(raw: Mapping[str, Any]) -> NewActivity:
    return NewActivity(
        name=_as_text(raw.get("name"), "name"),
        duration_minutes=_as_int(raw.get("durationMinutes"), "durationMinutes"),
        color_key=_as_text(raw.get("color"), "color"),
    )


def progress_update_to_payload(update: ProgressUpdate) -> dict[str, Any]:
    """Serialize only the fields that are set, matching PATCH semantics."""
    payload: dict[str, Any] = {}
    if update.status is not None:
        payload["status"] = update.status
    if update.total_elapsed_seconds is not None:
        payload["elapsedSeconds"] = update.total_elapsed_seconds
    if update.current_activity_index is not None:
        payload["currentActivityIndex"] = update.current_activity_index
    if update.activity_progress is not None:
        payload["activityProgress"] = [
            {
                "id": progress.id,
                "elapsedSeconds": progress.elapsed_seconds,
                "completed": progress.completed,
            }
            for progress in update.activity_progress
        ]
    return payload


def _as_id(value: Any, field_name: str) -> str:
    if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value):
        return str(value)
    raise ValueError(f"{field_name} must be a non-empty id")


def _as_optional_id(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _as_text(value: Any, field_name: str) -> str:
    if isinstance(value, str):
        return value
    raise ValueError(f"{field_name} must be a string")


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"{field_name} must be an integer")


def _as_datetime(value: Any, field_name: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError as error:
            raise ValueError(f"{field_name} must be an ISO timestamp") from error
    raise ValueError(f"{field_name} must be an ISO timestamp")


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
