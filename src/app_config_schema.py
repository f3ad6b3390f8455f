"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_CONFIG_FILE = "config.toml"
STORE_BACKEND_HTTP = "http"
STORE_BACKEND_MEMORY = "memory"
STORE_BACKENDS = (STORE_BACKEND_HTTP, STORE_BACKEND_MEMORY)


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class TimerSettings:
    """Countdown and persistence cadence from `[timer]`."""
    tick_interval_seconds: float = 1.0
    save_interval_seconds: float = 10.0


@dataclass(frozen=True)
class StoreSettings:
    """Session store selection from `[store]`."""
    backend: str = "http"
    owner_id: str = "local"


@dataclass(frozen=True)
class ApiSettings:
    """REST backend settings from `[api]`."""
    base_url: str = "http://127.0.0.1:3000/api/v1"
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class UIServerSettings:
    """Built-in UI server settings from `[ui_server]`."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    index_file: str = ""


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    timer: TimerSettings = field(default_factory=TimerSettings)
    store: StoreSettings = field(default_factory=StoreSettings)
    api: ApiSettings = field(default_factory=ApiSettings)
    ui_server: UIServerSettings = field(default_factory=UIServerSettings)
    source_file: str = ""


@dataclass(frozen=True)
class SecretConfig:
    """Environment-provided secrets kept out of `config.toml`."""
    api_token: Optional[str] = field(default=None, repr=False)
