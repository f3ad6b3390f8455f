"""Utilities for serializing UI events and preserving sticky state."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from contracts.ui_protocol import (
    COMMAND_NAMES,
    MESSAGE_COMMAND,
    STICKY_EVENT_ORDER,
    STICKY_EVENT_TYPES,
)


class InvalidCommandError(ValueError):
    """Raised when an inbound websocket message is not a usable command."""


def make_event(
    event_type: str,
    *,
    now_fn: Callable[[], datetime] | None = None,
    **payload: Any,
) -> str:
    """Serialize an event payload with type and timestamp for websocket delivery."""
    now = now_fn() if now_fn is not None else datetime.now(timezone.utc)
    return json.dumps(
        {
            "type": event_type,
            "timestamp": now.isoformat(),
            **payload,
        },
        default=_json_default,
    )


def parse_command(message: str | bytes) -> tuple[str, dict[str, Any]]:
    """Decode a ``{"type": "command", "command": ...}`` message into name and arguments."""
    try:
        data = json.loads(message)
    except (TypeError, ValueError) as error:
        raise InvalidCommandError("Message is not valid JSON") from error
    if not isinstance(data, dict):
        raise InvalidCommandError("Message must be a JSON object")
    if data.get("type") != MESSAGE_COMMAND:
        raise InvalidCommandError(f"Unsupported message type: {data.get('type')!r}")

    name = data.get("command")
    if name not in COMMAND_NAMES:
        raise InvalidCommandError(f"Unknown command: {name!r}")

    arguments = {
        key: value
        for key, value in data.items()
        if key not in ("type", "command")
    }
    return name, arguments


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class StickyEventStore:
    """Thread-safe cache of sticky events replayed to new websocket clients."""
    def __init__(self):
        self._events: dict[str, str] = {}
        self._lock = threading.Lock()

    def remember(self, event_type: str, message: str) -> None:
        if event_type not in STICKY_EVENT_TYPES:
            return
        with self._lock:
            self._events[event_type] = message

    def forget(self, event_type: str) -> Optional[str]:
        with self._lock:
            return self._events.pop(event_type, None)

    def snapshot(self) -> list[str]:
        with self._lock:
            return [self._events[key] for key in STICKY_EVENT_ORDER if key in self._events]
