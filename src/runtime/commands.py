"""Dispatcher that executes UI commands against the session engine and store."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from contracts.ui_protocol import (
    COMMAND_ADD_ACTIVITIES,
    COMMAND_CLEAR_SESSION,
    COMMAND_COMPLETE_SESSION,
    COMMAND_CREATE_SESSION,
    COMMAND_DELETE_SESSION,
    COMMAND_LIST_LABELS,
    COMMAND_LIST_SESSIONS,
    COMMAND_LOAD_SESSION,
    COMMAND_TOGGLE_TIMER,
    COMMAND_VIEW_SESSION,
    EVENT_SESSION_VIEW,
)
from session_timer import (
    NewActivity,
    SessionActionResult,
    SessionStoreLike,
    SessionTimerEngine,
    SessionTimerError,
    ValidationError,
    build_session_view,
    fetch_session_view,
)
from session_timer.constants import REASON_SESSION_COMPLETED
from session_timer.models import new_activity_from_payload

from .messages import COMPLETION_NOT_SAVED_TEXT, rejection_text
from .ui import RuntimeUIPublisher

DEFAULT_PAGE_LIMIT = 20


class RuntimeCommandDispatcher:
    """Routes UI commands to the live engine, the passive viewer, and the store.

    Store and validation failures are reported as ``error`` events; they never
    escape ``handle``. Anything else propagates to the caller.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        engine: SessionTimerEngine,
        store: SessionStoreLike,
        ui: RuntimeUIPublisher,
    ):
        self._logger = logger
        self._engine = engine
        self._store = store
        self._ui = ui
        self._handlers: dict[str, Callable[[Mapping[str, Any]], Awaitable[None]]] = {
            COMMAND_LOAD_SESSION: self._load_session,
            COMMAND_VIEW_SESSION: self._view_session,
            COMMAND_CREATE_SESSION: self._create_session,
            COMMAND_TOGGLE_TIMER: self._toggle_timer,
            COMMAND_COMPLETE_SESSION: self._complete_session,
            COMMAND_ADD_ACTIVITIES: self._add_activities,
            COMMAND_CLEAR_SESSION: self._clear_session,
            COMMAND_LIST_SESSIONS: self._list_sessions,
            COMMAND_DELETE_SESSION: self._delete_session,
            COMMAND_LIST_LABELS: self._list_labels,
        }

    async def handle(self, command: str, arguments: Mapping[str, Any]) -> None:
        handler = self._handlers.get(command)
        if handler is None:
            self._logger.warning("Ignoring unknown UI command: %s", command)
            self._ui.publish_error(f"Unknown command: {command}", command=command)
            return

        self._logger.debug("Handling UI command %s %s", command, dict(arguments))
        try:
            await handler(arguments)
        except SessionTimerError as error:
            self._logger.warning("UI command %s failed: %s", command, error)
            self._ui.publish_error(str(error), command=command)

    async def _load_session(self, arguments: Mapping[str, Any]) -> None:
        session_id = _require_session_id(arguments)
        result = await self._engine.load(session_id)
        if not result.accepted and result.reason == REASON_SESSION_COMPLETED:
            if result.session is not None:
                self._ui.publish_session_view(build_session_view(result.session))
        self._publish_result(result)

    async def _view_session(self, arguments: Mapping[str, Any]) -> None:
        session_id = _require_session_id(arguments)
        view = await fetch_session_view(self._store, session_id)
        self._ui.publish_session_view(view)

    async def _create_session(self, arguments: Mapping[str, Any]) -> None:
        activities = _parse_new_activities(arguments)
        session = await self._store.create_session(activities)
        self._logger.info("Created session %s from UI", session.id)
        self._ui.publish_session_view(build_session_view(session))
        await self._list_sessions({})

    async def _toggle_timer(self, arguments: Mapping[str, Any]) -> None:
        del arguments
        self._publish_result(await self._engine.toggle_play_pause())

    async def _complete_session(self, arguments: Mapping[str, Any]) -> None:
        del arguments
        try:
            result = await self._engine.complete_session()
        except SessionTimerError as error:
            self._ui.publish_error(
                COMPLETION_NOT_SAVED_TEXT,
                command=COMMAND_COMPLETE_SESSION,
                detail=str(error),
            )
            return
        self._publish_result(result)

    async def _add_activities(self, arguments: Mapping[str, Any]) -> None:
        activities = _parse_new_activities(arguments)
        session_id = arguments.get("session_id")
        if session_id is None or session_id == self._engine.session_id:
            self._publish_result(await self._engine.add_activities(activities))
            return

        # Passive sessions go straight to the store; the engine is not involved.
        session = await self._store.append_activities(str(session_id), activities)
        self._ui.publish_session_view(build_session_view(session))

    async def _clear_session(self, arguments: Mapping[str, Any]) -> None:
        del arguments
        self._publish_result(self._engine.clear())

    async def _list_sessions(self, arguments: Mapping[str, Any]) -> None:
        page = _as_positive_int(arguments.get("page", 1), "page")
        limit = _as_positive_int(arguments.get("limit", DEFAULT_PAGE_LIMIT), "limit")
        self._ui.publish_session_list(await self._store.list_sessions(page=page, limit=limit))

    async def _delete_session(self, arguments: Mapping[str, Any]) -> None:
        session_id = _require_session_id(arguments)
        await self._store.delete_session(session_id)
        if session_id == self._engine.session_id:
            self._publish_result(self._engine.clear())
        self._logger.info("Deleted session %s from UI", session_id)
        self._ui.forget(EVENT_SESSION_VIEW)
        await self._list_sessions({})

    async def _list_labels(self, arguments: Mapping[str, Any]) -> None:
        del arguments
        self._ui.publish_labels(await self._store.list_labels())

    def _publish_result(self, result: SessionActionResult) -> None:
        self._ui.publish_session_update(
            result.snapshot,
            action=result.action,
            accepted=result.accepted,
            reason=result.reason,
            message=None if result.accepted else rejection_text(result.reason),
        )


def _require_session_id(arguments: Mapping[str, Any]) -> str:
    session_id = arguments.get("session_id")
    if not isinstance(session_id, str) or not session_id.strip():
        raise ValidationError("session_id is required")
    return session_id.strip()


def _parse_new_activities(arguments: Mapping[str, Any]) -> list[NewActivity]:
    raw = arguments.get("activities")
    if not isinstance(raw, list) or not raw:
        raise ValidationError("At least one activity is required")
    try:
        return [new_activity_from_payload(item) for item in raw]
    except (AttributeError, TypeError, ValueError) as error:
        raise ValidationError(f"Invalid activity: {error}") from error


def _as_positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{field} must be a positive integer")
    return value
