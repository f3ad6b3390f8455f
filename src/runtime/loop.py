"""Runtime orchestration for the session engine, its store, and the UI server."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from app_config import AppConfig
from contracts.ui_protocol import STATE_IDLE, STATE_READY
from server import UIServer
from session_timer import (
    SessionStoreLike,
    SessionTimerEngine,
    SessionTimerError,
    SessionTimerSnapshot,
)
from session_timer.constants import ACTION_SYNC, REASON_STARTUP

from .commands import RuntimeCommandDispatcher
from .ui import RuntimeUIPublisher


@dataclass(frozen=True)
class RuntimeHooks:
    """Injectable lifecycle hooks used by runtime startup and shutdown flow."""
    install_signal_handlers: Callable[[asyncio.AbstractEventLoop, Callable[[], None]], None]


@dataclass(frozen=True)
class RuntimeBootstrap:
    """Dependency bundle required to construct the runtime."""
    logger: logging.Logger
    app_config: AppConfig
    store: SessionStoreLike
    ui_server: Optional[UIServer]
    hooks: RuntimeHooks


class RuntimeApp:
    """Runs the session engine on one asyncio loop until asked to stop.

    UI commands arrive on the server thread and are scheduled onto this loop;
    engine updates go back out through the thread-safe ``UIServer.publish``.
    """

    def __init__(self, bootstrap: RuntimeBootstrap):
        self._bootstrap = bootstrap
        self._logger = bootstrap.logger
        self._ui = RuntimeUIPublisher(bootstrap.ui_server)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_event: Optional[asyncio.Event] = None

        timer_settings = bootstrap.app_config.timer
        self._engine = SessionTimerEngine(
            bootstrap.store,
            tick_interval_seconds=timer_settings.tick_interval_seconds,
            save_interval_seconds=timer_settings.save_interval_seconds,
            logger=logging.getLogger("session_timer"),
            on_update=self._publish_engine_update,
        )
        self._dispatcher = RuntimeCommandDispatcher(
            logger=self._logger,
            engine=self._engine,
            store=bootstrap.store,
            ui=self._ui,
        )

    @property
    def engine(self) -> SessionTimerEngine:
        return self._engine

    def run(self) -> int:
        try:
            return asyncio.run(self.run_async())
        except KeyboardInterrupt:
            self._logger.info("Shutdown requested by keyboard interrupt.")
            return 0

    async def run_async(self) -> int:
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._bootstrap.hooks.install_signal_handlers(self._loop, self.request_stop)

        ui_server = self._bootstrap.ui_server
        try:
            if ui_server is not None:
                ui_server.set_command_handler(self.submit_command)
                self._start_ui_server(ui_server)

            self._publish_startup_sync()
            await self._refresh_labels()
            self._ui.publish_state(STATE_READY, message="Ready")
            self._logger.info("Session timer ready.")

            await self._stop_event.wait()
            return 0
        except Exception as error:
            self._logger.error("Unexpected error: %s", error, exc_info=True)
            return 1
        finally:
            await self._shutdown()

    def request_stop(self) -> None:
        """Ask the runtime to stop; safe to call from any thread."""
        loop = self._loop
        stop_event = self._stop_event
        if loop is None or stop_event is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(stop_event.set)

    def submit_command(self, command: str, arguments: Mapping[str, Any]) -> None:
        """Schedule a UI command onto the runtime loop; called from the server thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            self._logger.warning("Dropping UI command %s: runtime is not running", command)
            return
        future = asyncio.run_coroutine_threadsafe(
            self._dispatcher.handle(command, dict(arguments)),
            loop,
        )
        future.add_done_callback(self._log_command_failure)

    def _log_command_failure(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._logger.error("UI command failed: %s", error, exc_info=error)
            self._ui.publish_error(f"Command failed: {error}")

    def _start_ui_server(self, ui_server: UIServer) -> None:
        self._logger.info("Starting UI server...")
        try:
            ui_server.start(timeout_seconds=5.0)
        except RuntimeError as error:
            self._logger.error("UI server startup failed: %s", error)
            self._logger.warning("Continuing without UI server.")
            return
        self._logger.info(
            "UI server ready at http://%s:%d",
            ui_server.host,
            ui_server.port,
        )

    def _publish_engine_update(self, snapshot: SessionTimerSnapshot) -> None:
        self._ui.publish_session_update(snapshot, action=ACTION_SYNC)

    def _publish_startup_sync(self) -> None:
        self._ui.publish_session_update(
            self._engine.snapshot(),
            action=ACTION_SYNC,
            accepted=True,
            reason=REASON_STARTUP,
        )

    async def _refresh_labels(self) -> None:
        try:
            self._ui.publish_labels(await self._bootstrap.store.list_labels())
        except SessionTimerError as error:
            self._logger.warning("Failed to load labels: %s", error)

    async def _shutdown(self) -> None:
        if self._engine.is_running:
            self._logger.info("Saving progress before shutdown...")
            await self._engine.save_progress()
        await self._engine.aclose()

        ui_server = self._bootstrap.ui_server
        if ui_server is not None:
            self._ui.publish_state(STATE_IDLE, message="Stopped")
            self._logger.info("Stopping UI server...")
            ui_server.set_command_handler(None)
            try:
                ui_server.stop(timeout_seconds=5.0)
            except Exception as error:
                self._logger.error("Error stopping UI server: %s", error, exc_info=True)

        close = getattr(self._bootstrap.store, "aclose", None)
        if close is not None:
            self._logger.info("Closing session store...")
            await close()

        self._loop = None
        self._stop_event = None
