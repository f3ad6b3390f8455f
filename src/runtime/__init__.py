"""Runtime exports."""

from .commands import RuntimeCommandDispatcher
from .loop import RuntimeApp, RuntimeBootstrap, RuntimeHooks
from .ui import RuntimeUIPublisher

__all__ = [
    "RuntimeApp",
    "RuntimeBootstrap",
    "RuntimeCommandDispatcher",
    "RuntimeHooks",
    "RuntimeUIPublisher",
]
