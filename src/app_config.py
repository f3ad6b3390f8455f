from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for older runtimes
    import tomli as tomllib  # type: ignore

from app_config_parser import parse_app_config
from app_config_schema import (
    DEFAULT_CONFIG_FILE,
    ApiSettings,
    AppConfig,
    AppConfigurationError,
    STORE_BACKEND_HTTP,
    STORE_BACKEND_MEMORY,
    SecretConfig,
    StoreSettings,
    TimerSettings,
    UIServerSettings,
)

__all__ = [
    "ApiSettings",
    "AppConfig",
    "AppConfigurationError",
    "DEFAULT_CONFIG_FILE",
    "STORE_BACKEND_HTTP",
    "STORE_BACKEND_MEMORY",
    "SecretConfig",
    "StoreSettings",
    "TimerSettings",
    "UIServerSettings",
    "load_app_config",
    "load_secret_config",
    "resolve_config_path",
]


def resolve_config_path(config_path: str | None = None) -> Path:
    env_path = os.getenv("APP_CONFIG_FILE")
    raw = config_path or env_path or DEFAULT_CONFIG_FILE
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    if path.exists():
        return path

    # Packaged fallback: look beside the executable, then inside the bundle.
    if config_path is None and env_path is None and getattr(sys, "frozen", False):
        executable_path = Path(sys.executable).resolve().parent / DEFAULT_CONFIG_FILE
        if executable_path.exists():
            return executable_path
        bundle_root = getattr(sys, "_MEIPASS", "")
        if bundle_root:
            bundled_path = Path(bundle_root) / DEFAULT_CONFIG_FILE
            if bundled_path.exists():
                return bundled_path

    return path


def load_app_config(config_path: str | None = None) -> AppConfig:
    path = resolve_config_path(config_path)
    if not path.exists():
        raise AppConfigurationError(f"Config file not found: {path}")
    if not path.is_file():
        raise AppConfigurationError(f"Config path is not a file: {path}")

    try:
        with open(path, "rb") as fh:
            raw = tomllib.load(fh)
    except Exception as error:
        raise AppConfigurationError(f"Failed to parse config TOML: {error}") from error

    if not isinstance(raw, Mapping):
        raise AppConfigurationError("Root config TOML object must be a table.")

    return parse_app_config(raw, base_dir=path.parent, source_file=str(path))


def load_secret_config(
    *,
    environ: Mapping[str, str] | None = None,
    require_api_token: bool = False,
) -> SecretConfig:
    env = environ if environ is not None else os.environ
    api_token = env.get("FOCUS_API_TOKEN", "").strip() or None
    if require_api_token and api_token is None:
        raise AppConfigurationError(
            "FOCUS_API_TOKEN must be set as an environment secret."
        )
    return SecretConfig(api_token=api_token)
