from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

import websockets
from websockets.asyncio.server import ServerConnection
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

from contracts.ui_protocol import (
    EVENT_ERROR,
    EVENT_HELLO,
    EVENT_STATE_UPDATE,
    STATE_ERROR,
    STATE_IDLE,
)

from .config import HEALTHZ_PATH, UIServerConfig
from .events import InvalidCommandError, StickyEventStore, make_event, parse_command
from .static_files import guess_content_type, resolve_static_file

CommandHandler = Callable[[str, dict[str, Any]], None]


class UIServer:
    """Threaded asyncio server for static UI + websocket events.

    Inbound command messages are handed to ``command_handler`` on the server
    thread; the handler must not block.
    """

    def __init__(
        self,
        config: UIServerConfig,
        logger: Optional[logging.Logger] = None,
        *,
        command_handler: Optional[CommandHandler] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("ui_server")
        self._command_handler = command_handler
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_async: Optional[asyncio.Event] = None
        self._started = threading.Event()
        self._startup_error: Optional[Exception] = None
        self._connected_clients: set[ServerConnection] = set()
        self._sticky_events = StickyEventStore()
        self._index_html = self._config.index_path.read_bytes()
        self._ui_root = self._config.ui_root

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def websocket_path(self) -> str:
        return self._config.websocket_path

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._startup_error is None
        )

    def set_command_handler(self, handler: Optional[CommandHandler]) -> None:
        self._command_handler = handler

    def start(self, timeout_seconds: float = 5.0) -> None:
        if self.is_running:
            self._logger.warning("UI server is already running")
            return

        self._startup_error = None
        self._started.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="ui-server",
        )
        self._thread.start()

        if not self._started.wait(timeout_seconds):
            raise RuntimeError(
                f"UI server did not start within {timeout_seconds:.1f}s"
            )

        if self._startup_error is not None:
            raise RuntimeError(f"UI server startup failed: {self._startup_error}")

    def stop(self, timeout_seconds: float = 5.0) -> None:
        if self._thread is None:
            return

        if self._loop and self._stop_async:
            self._loop.call_soon_threadsafe(self._stop_async.set)

        self._thread.join(timeout=timeout_seconds)
        if self._thread.is_alive():
            self._logger.error(
                "UI server thread did not stop within %.1fs",
                timeout_seconds,
            )

        self._thread = None
        self._loop = None
        self._stop_async = None

    def publish_state(self, state: str, *, message: Optional[str] = None, **payload) -> None:
        event_payload = {"state": state, **payload}
        if message:
            event_payload["message"] = message
        self.publish(EVENT_STATE_UPDATE, **event_payload)

    def publish(self, event_type: str, **payload) -> None:
        message = make_event(event_type, **payload)
        self._sticky_events.remember(event_type, message)

        if not self.is_running or self._loop is None:
            return

        try:
            future = asyncio.run_coroutine_threadsafe(
                self._broadcast(message),
                self._loop,
            )
            future.add_done_callback(self._consume_future_exception)
        except RuntimeError:
            # Loop may be shutting down.
            return

    def forget(self, event_type: str) -> None:
        """Stop replaying ``event_type`` to clients that connect later."""
        self._sticky_events.forget(event_type)

    def _consume_future_exception(self, future) -> None:
        try:
            future.result()
        except Exception as error:
            self._logger.debug("Broadcast failed: %s", error)

    def _run_loop(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._stop_async = asyncio.Event()

        try:
            self._loop.run_until_complete(self._serve())
        except Exception as error:  # pragma: no cover - exercised manually
            self._startup_error = error
            self._logger.error("UI server failed: %s", error, exc_info=True)
            self._started.set()
        finally:
            if self._loop is not None:
                pending = asyncio.all_tasks(self._loop)
                for task in pending:
                    task.cancel()
                with contextlib.suppress(Exception):
                    self._loop.run_until_complete(
                        asyncio.gather(*pending, return_exceptions=True)
                    )
                self._loop.close()

    async def _serve(self) -> None:
        async with websockets.serve(
            self._handler,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            logger=self._logger,
        ):
            self._logger.info(
                "UI server running at http://%s:%d (websocket: %s)",
                self._config.host,
                self._config.port,
                self._config.websocket_path,
            )
            self._started.set()
            await self._stop_async.wait()
            await self._close_clients()

    async def _handler(self, websocket: ServerConnection) -> None:
        request_path = (
            urlsplit(websocket.request.path).path
            if websocket.request is not None
            else ""
        )
        if request_path != self._config.websocket_path:
            await websocket.close(code=1008, reason="Invalid websocket path")
            return

        self._connected_clients.add(websocket)
        self._logger.info("Client connected: %s", websocket.remote_address)
        try:
            await websocket.send(
                make_event(
                    EVENT_HELLO,
                    state=STATE_IDLE,
                    message="UI websocket connected",
                )
            )
            for sticky in self._sticky_events.snapshot():
                await websocket.send(sticky)
            async for message in websocket:
                self._logger.debug("Received from UI: %s", message)
                await self._dispatch_command(websocket, message)
        except websockets.exceptions.ConnectionClosed:
            self._logger.info("Client disconnected: %s", websocket.remote_address)
        finally:
            self._connected_clients.discard(websocket)

    async def _dispatch_command(self, websocket: ServerConnection, message) -> None:
        try:
            name, arguments = parse_command(message)
        except InvalidCommandError as error:
            self._logger.warning("Rejected UI message: %s", error)
            await websocket.send(
                make_event(EVENT_ERROR, state=STATE_ERROR, message=str(error))
            )
            return

        handler = self._command_handler
        if handler is None:
            self._logger.warning("No command handler registered; dropping %s", name)
            return
        try:
            handler(name, arguments)
        except Exception as error:
            self._logger.error("Command handler failed for %s: %s", name, error, exc_info=True)
            await websocket.send(
                make_event(
                    EVENT_ERROR,
                    state=STATE_ERROR,
                    command=name,
                    message=f"Command failed: {error}",
                )
            )

    async def _process_request(
        self,
        connection: ServerConnection,
        request: Request,
    ) -> Response | None:
        del connection
        path = urlsplit(request.path).path
        if path == self._config.websocket_path:
            return None

        if self._config.is_index_route(path):
            return _ok(self._index_html, _HTML)
        if path == HEALTHZ_PATH:
            return _ok(b"ok\n", _PLAIN_TEXT)

        asset = resolve_static_file(self._ui_root, path)
        if asset is None:
            self._logger.debug("No UI asset for %s", path)
            return _build_response(404, "Not Found", b"not found\n", _PLAIN_TEXT)
        return _ok(asset.read_bytes(), guess_content_type(asset))

    async def _close_clients(self) -> None:
        clients = tuple(self._connected_clients)
        self._connected_clients.clear()
        await asyncio.gather(
            *(client.close(code=1001, reason="Server shutting down") for client in clients),
            return_exceptions=True,
        )

    async def _broadcast(self, message: str) -> None:
        clients = tuple(self._connected_clients)
        if not clients:
            return

        results = await asyncio.gather(
            *(client.send(message) for client in clients),
            return_exceptions=True,
        )
        for client, result in zip(clients, results):
            if isinstance(result, Exception):
                self._logger.warning("Dropping UI client %s: %s", client.remote_address, result)
                self._connected_clients.discard(client)


_HTML = "text/html; charset=utf-8"
_PLAIN_TEXT = "text/plain; charset=utf-8"


def _ok(body: bytes, content_type: str) -> Response:
    return _build_response(200, "OK", body, content_type)


def _build_response(
    status_code: int,
    reason_phrase: str,
    body: bytes,
    content_type: str,
) -> Response:
    headers = Headers()
    headers["Content-Type"] = content_type
    headers["Content-Length"] = str(len(body))
    headers["Cache-Control"] = "no-store"
    return Response(status_code, reason_phrase, headers, body)
