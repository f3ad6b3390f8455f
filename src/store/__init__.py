"""Session store implementations for the REST backend and in-process use."""

from .config import ApiClientConfig, StoreConfigurationError
from .http import HttpSessionStore
from .memory import InMemoryBackend, InMemorySessionStore

__all__ = [
    "ApiClientConfig",
    "HttpSessionStore",
    "InMemoryBackend",
    "InMemorySessionStore",
    "StoreConfigurationError",
]
