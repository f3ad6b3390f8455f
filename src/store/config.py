"""Configuration model for the HTTP session store client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit


class StoreConfigurationError(Exception):
    """Raised when session store configuration is invalid."""


@dataclass(frozen=True)
class ApiClientConfig:
    """Validated REST backend settings derived from app settings and secrets."""
    base_url: str = "http://127.0.0.1:3000/api/v1"
    timeout_seconds: float = 10.0
    token: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        parts = urlsplit(self.base_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise StoreConfigurationError(
                f"API_BASE_URL must be an absolute http(s) URL, got: {self.base_url!r}"
            )
        if self.timeout_seconds <= 0:
            raise StoreConfigurationError(
                f"API_TIMEOUT_SECONDS must be greater than zero, got: {self.timeout_seconds}"
            )

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @classmethod
    def from_settings(cls, settings, *, token: Optional[str] = None) -> "ApiClientConfig":
        base_url = settings.base_url.strip().rstrip("/") if settings.base_url else ""
        return cls(
            base_url=base_url,
            timeout_seconds=float(settings.timeout_seconds),
            token=token,
        )
