"""Settings for the bundled session UI: bind address, page location, and routes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path


class ServerConfigurationError(Exception):
    """Raised when UI server configuration is invalid."""


WEBSOCKET_PATH = "/ws"
ROOT_PATH = "/"
INDEX_PATH = "/index.html"
HEALTHZ_PATH = "/healthz"
INDEX_ROUTES = frozenset({ROOT_PATH, INDEX_PATH})

_BUNDLED_UI_DIR = "web_ui"
_INDEX_NAME = "index.html"
_MAX_PORT = 65535


def default_index_file() -> Path:
    """Location of the session UI page shipped with the project or the frozen build."""
    bundle_root = getattr(sys, "_MEIPASS", None)
    base_dir = Path(bundle_root) if bundle_root else Path(__file__).resolve().parents[2]
    return base_dir / _BUNDLED_UI_DIR / _INDEX_NAME


@dataclass(frozen=True)
class UIServerConfig:
    """Where the session UI is served from and which page it starts on.

    Everything next to ``index_file`` (scripts, styles) is served as a static
    asset, so ``ui_root`` is the page's directory.
    """
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    index_file: str = ""

    def __post_init__(self) -> None:
        _check_host(self.host)
        _check_port(self.port)
        if self.enabled:
            _check_index_file(self.index_file)

    @property
    def index_path(self) -> Path:
        return Path(self.index_file)

    @property
    def ui_root(self) -> Path:
        return self.index_path.resolve().parent

    @property
    def websocket_path(self) -> str:
        return WEBSOCKET_PATH

    def is_index_route(self, request_path: str) -> bool:
        return request_path in INDEX_ROUTES

    @classmethod
    def from_settings(cls, settings) -> "UIServerConfig":
        index_file = (settings.index_file or "").strip() or str(default_index_file())
        return cls(
            enabled=bool(settings.enabled),
            host=settings.host,
            port=settings.port,
            index_file=index_file,
        )


def _check_host(host: str) -> None:
    if not host.strip():
        raise ServerConfigurationError("ui_server.host cannot be empty")


def _check_port(port: int) -> None:
    if not 1 <= port <= _MAX_PORT:
        raise ServerConfigurationError(
            f"ui_server.port must be between 1 and {_MAX_PORT}, got: {port}"
        )


def _check_index_file(index_file: str) -> None:
    if not index_file:
        raise ServerConfigurationError("ui_server.index_file cannot be empty")

    index_path = Path(index_file)
    if not index_path.exists():
        raise ServerConfigurationError(f"Session UI page not found: {index_path}")
    if not index_path.is_file():
        raise ServerConfigurationError(f"Session UI page is not a file: {index_path}")
