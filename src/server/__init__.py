"""UI server module for static web UI and websocket streaming."""

from .config import ServerConfigurationError, UIServerConfig
from .events import InvalidCommandError, make_event, parse_command
from .service import CommandHandler, UIServer

__all__ = [
    "CommandHandler",
    "InvalidCommandError",
    "ServerConfigurationError",
    "UIServerConfig",
    "UIServer",
    "make_event",
    "parse_command",
]
