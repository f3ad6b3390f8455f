"""Live session countdown engine with periodic persistence and load reconciliation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Literal, Mapping, Optional, Sequence

from .constants import (
    ACTION_ADD_ACTIVITIES,
    ACTION_CLEAR,
    ACTION_COMPLETE,
    ACTION_LOAD,
    ACTION_TOGGLE,
    DEFAULT_SAVE_INTERVAL_SECONDS,
    DEFAULT_TICK_INTERVAL_SECONDS,
    LIVE_PHASES,
    PHASE_COMPLETED,
    PHASE_IDLE,
    PHASE_PAUSED,
    PHASE_RUNNING,
    REASON_ACTIVE_SESSION_LOADED,
    REASON_ACTIVITIES_ADDED,
    REASON_ALREADY_COMPLETED,
    REASON_ALREADY_LOADED,
    REASON_CLEARED,
    REASON_COMPLETED,
    REASON_LOADED,
    REASON_NO_SESSION,
    REASON_PAUSED,
    REASON_PLAYING,
    REASON_REOPENED,
    REASON_SESSION_CHANGED,
    REASON_SESSION_COMPLETED,
    REASON_SESSION_FINISHED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_PAUSED,
)
from .contracts import SessionStoreLike
from .models import (
    Activity,
    ActivityProgress,
    NewActivity,
    ProgressUpdate,
    Session,
    SessionStatus,
)
from .status import can_add_activities, with_derived_completion
from .timeline import TimelineView, calculate
from .validation import validate_new_activities

EnginePhase = Literal["idle", "paused", "running", "completed"]
EngineAction = Literal["load", "toggle", "complete", "add_activities", "clear"]


@dataclass(frozen=True)
class SessionTimerSnapshot:
    """Immutable engine snapshot exposed to the runtime and UI publishers."""
    phase: EnginePhase
    session: Optional[Session]
    is_running: bool
    elapsed_seconds: int
    activity_elapsed: Mapping[str, int]
    timeline: TimelineView

    @property
    def session_id(self) -> Optional[str]:
        return self.session.id if self.session is not None else None

    @property
    def is_complete(self) -> bool:
        if self.session is not None and self.session.status == STATUS_COMPLETED:
            return True
        return self.timeline.is_complete

    @property
    def current_activity(self) -> Optional[Activity]:
        if self.session is None or not self.timeline.has_current:
            return None
        if self.session.status == STATUS_COMPLETED:
            return None
        return self.session.activities[self.timeline.current_index]

    @property
    def remaining_seconds(self) -> int:
        return 0 if self.is_complete else self.timeline.remaining_seconds

    @property
    def progress_percent(self) -> float:
        return self.timeline.progress_percent

    @property
    def can_add_activities(self) -> bool:
        return self.session is not None and can_add_activities(self.session)


@dataclass(frozen=True)
class SessionActionResult:
    """Result envelope returned after applying an engine action."""
    action: EngineAction
    accepted: bool
    reason: str
    snapshot: SessionTimerSnapshot
    session: Optional[Session] = None


@dataclass
class _LiveState:
    """Single mutable cell shared by the tick and save tasks."""
    session: Optional[Session] = None
    phase: EnginePhase = PHASE_IDLE
    running: bool = False
    elapsed_seconds: int = 0
    activity_elapsed: dict[str, int] = field(default_factory=dict)


class SessionTimerEngine:
    """Owns the live session, its countdown, and the persistence schedule.

    ``tick()`` only mutates local state. Persistence runs through the store
    on user actions and on a background interval; every reader goes through
    ``self._state`` so saves always carry the latest ticked values.
    """

    def __init__(
        self,
        store: SessionStoreLike,
        *,
        tick_interval_seconds: float = DEFAULT_TICK_INTERVAL_SECONDS,
        save_interval_seconds: float = DEFAULT_SAVE_INTERVAL_SECONDS,
        logger: Optional[logging.Logger] = None,
        on_update: Optional[Callable[[SessionTimerSnapshot], None]] = None,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        if tick_interval_seconds <= 0:
            raise ValueError("tick_interval_seconds must be greater than zero")
        if save_interval_seconds <= 0:
            raise ValueError("save_interval_seconds must be greater than zero")

        self._store = store
        self._tick_interval_seconds = float(tick_interval_seconds)
        self._save_interval_seconds = float(save_interval_seconds)
        self._logger = logger or logging.getLogger("session_timer")
        self._on_update = on_update
        self._now = now_fn or (lambda: datetime.now(timezone.utc))

        self._state = _LiveState()
        self._tick_task: Optional[asyncio.Task[None]] = None
        self._save_task: Optional[asyncio.Task[None]] = None
        self._persist_lock = asyncio.Lock()

    @property
    def session_id(self) -> Optional[str]:
        session = self._state.session
        return session.id if session is not None else None

    @property
    def phase(self) -> EnginePhase:
        return self._state.phase

    @property
    def is_running(self) -> bool:
        return self._state.running

    def snapshot(self) -> SessionTimerSnapshot:
        state = self._state
        durations = state.session.planned_durations if state.session else ()
        return SessionTimerSnapshot(
            phase=state.phase,
            session=state.session,
            is_running=state.running,
            elapsed_seconds=state.elapsed_seconds,
            activity_elapsed=MappingProxyType(dict(state.activity_elapsed)),
            timeline=calculate(durations, state.elapsed_seconds),
        )

    async def load(self, session_id: str) -> SessionActionResult:
        """Adopt ``session_id`` as the live session unless that would drop live state.

        Raises ``NotFoundError`` or ``NetworkError`` from the store.
        """
        held = self._state.session
        if held is not None and held.id == session_id:
            return self._result(ACTION_LOAD, True, REASON_ALREADY_LOADED)
        if held is not None and held.status != STATUS_COMPLETED:
            self._logger.info(
                "Refusing to load session %s while session %s is active",
                session_id,
                held.id,
            )
            return self._result(ACTION_LOAD, False, REASON_ACTIVE_SESSION_LOADED)

        session = await self._store.fetch_session(session_id)

        if session.status == STATUS_COMPLETED:
            return self._result(
                ACTION_LOAD,
                False,
                REASON_SESSION_COMPLETED,
                session=session,
            )

        # A concurrent load may have adopted another session while we awaited.
        held = self._state.session
        if held is not None and held.status != STATUS_COMPLETED:
            if held.id == session_id:
                return self._result(ACTION_LOAD, True, REASON_ALREADY_LOADED)
            return self._result(ACTION_LOAD, False, REASON_ACTIVE_SESSION_LOADED)

        self._cancel_schedulers()
        running = session.status == STATUS_IN_PROGRESS
        self._state = _LiveState(
            session=session,
            phase=PHASE_RUNNING if running else PHASE_PAUSED,
            running=running,
            elapsed_seconds=session.total_elapsed_seconds,
            activity_elapsed={
                activity.id: activity.elapsed_seconds for activity in session.activities
            },
        )
        self._start_schedulers()
        self._logger.info(
            "Session loaded: id=%s status=%s elapsed=%ss",
            session.id,
            session.status,
            session.total_elapsed_seconds,
        )
        self._notify()
        return self._result(ACTION_LOAD, True, REASON_LOADED)

    def tick(self) -> Optional[SessionTimerSnapshot]:
        """Advance the live countdown by one second.

        Returns ``None`` without changing state when not running or when the
        planned total has already been reached.
        """
        state = self._state
        if not state.running or state.session is None:
            return None

        durations = state.session.planned_durations
        view = calculate(durations, state.elapsed_seconds)
        if not view.has_current or view.is_complete:
            return None

        current = state.session.activities[view.current_index]
        state.elapsed_seconds += 1
        state.activity_elapsed[current.id] = state.activity_elapsed.get(current.id, 0) + 1

        snapshot = self.snapshot()
        self._notify(snapshot)
        return snapshot

    async def toggle_play_pause(self) -> SessionActionResult:
        state = self._state
        if state.session is None:
            return self._result(ACTION_TOGGLE, False, REASON_NO_SESSION)
        if state.phase not in LIVE_PHASES:
            return self._result(ACTION_TOGGLE, False, REASON_ALREADY_COMPLETED)

        running = not state.running
        status: SessionStatus = STATUS_IN_PROGRESS if running else STATUS_PAUSED
        state.running = running
        state.phase = PHASE_RUNNING if running else PHASE_PAUSED
        state.session = replace(state.session, status=status)
        if running:
            self._start_schedulers()
        self._logger.info(
            "Session %s: id=%s elapsed=%ss",
            "resumed" if running else "paused",
            state.session.id,
            state.elapsed_seconds,
        )
        self._notify()

        await self.save_progress()
        return self._result(ACTION_TOGGLE, True, REASON_PLAYING if running else REASON_PAUSED)

    async def complete_session(self) -> SessionActionResult:
        """Persist ``COMPLETED`` and stop the countdown.

        Persistence failures propagate and leave the engine untouched.
        """
        state = self._state
        if state.session is None:
            return self._result(ACTION_COMPLETE, False, REASON_NO_SESSION)
        if state.phase == PHASE_COMPLETED:
            return self._result(ACTION_COMPLETE, False, REASON_ALREADY_COMPLETED)

        session_id = state.session.id
        async with self._persist_lock:
            state = self._state
            if state.session is None or state.session.id != session_id:
                return self._result(ACTION_COMPLETE, False, REASON_SESSION_CHANGED)
            if state.phase == PHASE_COMPLETED:
                return self._result(ACTION_COMPLETE, False, REASON_ALREADY_COMPLETED)
            update = self._progress_update(STATUS_COMPLETED)
            try:
                saved = await self._store.persist_progress(session_id, update)
            except Exception as error:
                self._logger.error("Failed to complete session %s: %s", session_id, error)
                raise
            return self._apply_completion(session_id, saved)

    def _apply_completion(self, session_id: str, saved: Session) -> SessionActionResult:
        state = self._state
        if state.session is None or state.session.id != session_id:
            return self._result(ACTION_COMPLETE, False, REASON_SESSION_CHANGED)

        self._cancel_schedulers()
        completed = with_derived_completion(state.session, state.elapsed_seconds)
        state.session = replace(
            completed,
            status=STATUS_COMPLETED,
            total_elapsed_seconds=state.elapsed_seconds,
            completed_at=saved.completed_at or self._now(),
            updated_at=saved.updated_at,
        )
        state.running = False
        state.phase = PHASE_COMPLETED
        self._logger.info(
            "Session completed: id=%s elapsed=%ss",
            session_id,
            state.elapsed_seconds,
        )
        self._notify()
        return self._result(ACTION_COMPLETE, True, REASON_COMPLETED)

    async def add_activities(
        self,
        new_activities: Sequence[NewActivity],
    ) -> SessionActionResult:
        """Append activities to the held session, reopening an incomplete completion.

        Raises ``ValidationError`` before any I/O for empty, malformed, or
        duplicate names; store failures propagate.
        """
        state = self._state
        if state.session is None:
            return self._result(ACTION_ADD_ACTIVITIES, False, REASON_NO_SESSION)

        current = with_derived_completion(state.session, state.elapsed_seconds)
        if not can_add_activities(current):
            return self._result(ACTION_ADD_ACTIVITIES, False, REASON_SESSION_FINISHED)

        validate_new_activities(new_activities, existing=current.activities)

        session_id = current.id
        was_completed = current.status == STATUS_COMPLETED
        updated = await self._store.append_activities(session_id, new_activities)

        state = self._state
        if state.session is None or state.session.id != session_id:
            return self._result(ACTION_ADD_ACTIVITIES, False, REASON_SESSION_CHANGED)

        for activity in updated.activities:
            state.activity_elapsed.setdefault(activity.id, activity.elapsed_seconds)

        still_completed = updated.status == STATUS_COMPLETED
        running = state.running and updated.status == STATUS_IN_PROGRESS
        state.session = with_derived_completion(
            replace(
                updated,
                total_elapsed_seconds=state.elapsed_seconds,
                completed_at=updated.completed_at if still_completed else None,
            ),
            state.elapsed_seconds,
        )
        state.running = running
        if still_completed:
            state.phase = PHASE_COMPLETED
        else:
            state.phase = PHASE_RUNNING if running else PHASE_PAUSED
            self._start_schedulers()
        self._logger.info(
            "Activities added: id=%s count=%d reopened=%s",
            session_id,
            len(new_activities),
            was_completed,
        )
        self._notify()
        reason = REASON_REOPENED if was_completed else REASON_ACTIVITIES_ADDED
        return self._result(ACTION_ADD_ACTIVITIES, True, reason)

    def clear(self) -> SessionActionResult:
        """Drop the held session and its unsaved timer state."""
        self._cancel_schedulers()
        previous = self._state.session
        self._state = _LiveState()
        if previous is not None:
            self._logger.info("Session cleared: id=%s", previous.id)
        self._notify()
        return self._result(ACTION_CLEAR, True, REASON_CLEARED)

    async def save_progress(self, *, status: Optional[SessionStatus] = None) -> bool:
        """Persist the current snapshot; failures are logged and never raised.

        Saves are serialized, and the snapshot is taken once the previous
        save has finished, so a slow write never lands after a newer one.
        Without an explicit ``status`` the live running flag decides it, and a
        completed session is not written again.
        """
        async with self._persist_lock:
            state = self._state
            if state.session is None:
                return False
            if status is None:
                if state.phase not in LIVE_PHASES:
                    return False
                status = STATUS_IN_PROGRESS if state.running else STATUS_PAUSED

            session_id = state.session.id
            update = self._progress_update(status)
            try:
                await self._store.persist_progress(session_id, update)
            except Exception as error:
                self._logger.warning(
                    "Progress save failed for session %s: %s",
                    session_id,
                    error,
                )
                return False

        state = self._state
        if state.session is not None and state.session.id == session_id:
            state.session = replace(
                with_derived_completion(state.session, update.total_elapsed_seconds or 0),
                total_elapsed_seconds=update.total_elapsed_seconds or 0,
                current_activity_index=update.current_activity_index or 0,
            )
        return True

    async def aclose(self) -> None:
        tasks = [task for task in (self._tick_task, self._save_task) if task is not None]
        self._cancel_schedulers()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _progress_update(self, status: SessionStatus) -> ProgressUpdate:
        state = self._state
        if state.session is None:
            raise RuntimeError("No session loaded")
        view = calculate(state.session.planned_durations, state.elapsed_seconds)
        return ProgressUpdate(
            status=status,
            total_elapsed_seconds=state.elapsed_seconds,
            current_activity_index=view.current_index,
            activity_progress=tuple(
                ActivityProgress(
                    id=activity.id,
                    elapsed_seconds=state.activity_elapsed.get(activity.id, 0),
                    completed=done,
                )
                for activity, done in zip(state.session.activities, view.completed)
            ),
        )

    def _start_schedulers(self) -> None:
        if self._tick_task is None or self._tick_task.done():
            self._tick_task = asyncio.create_task(self._run_ticks(), name="session-tick")
        if self._save_task is None or self._save_task.done():
            self._save_task = asyncio.create_task(self._run_saves(), name="session-save")

    def _cancel_schedulers(self) -> None:
        for task in (self._tick_task, self._save_task):
            if task is not None and not task.done():
                task.cancel()
        self._tick_task = None
        self._save_task = None

    async def _run_ticks(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval_seconds)
            state = self._state
            if state.session is None or state.phase not in LIVE_PHASES:
                return
            if not state.running:
                continue
            view = calculate(state.session.planned_durations, state.elapsed_seconds)
            if view.is_complete:
                self._logger.info(
                    "Session finished counting: id=%s elapsed=%ss",
                    state.session.id,
                    state.elapsed_seconds,
                )
                return
            self.tick()

    async def _run_saves(self) -> None:
        while True:
            await asyncio.sleep(self._save_interval_seconds)
            state = self._state
            if state.session is None or state.phase not in LIVE_PHASES:
                return
            if state.running:
                await self.save_progress()

    def _notify(self, snapshot: Optional[SessionTimerSnapshot] = None) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(snapshot or self.snapshot())
        except Exception as error:
            self._logger.warning("Session update listener failed: %s", error)

    def _result(
        self,
        action: EngineAction,
        accepted: bool,
        reason: str,
        *,
        session: Optional[Session] = None,
    ) -> SessionActionResult:
        return SessionActionResult(
            action=action,
            accepted=accepted,
            reason=reason,
            snapshot=self.snapshot(),
            session=session,
        )
