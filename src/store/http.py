"""REST client implementing the session store contract over httpx."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar
from urllib.parse import quote

import httpx

from session_timer.errors import NetworkError, NotFoundError, ValidationError
from session_timer.models import (
    Label,
    NewActivity,
    ProgressUpdate,
    Session,
    SessionPage,
    label_from_payload,
    new_activities_to_payload,
    progress_update_to_payload,
    session_from_payload,
)

from .config import ApiClientConfig

T = TypeVar("T")

_VALIDATION_STATUS_CODES = frozenset({400, 409, 422})


class HttpSessionStore:
    """Session store backed by the focus tracker REST API."""

    def __init__(
        self,
        config: ApiClientConfig,
        *,
        logger: Optional[logging.Logger] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("session_store")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            headers=config.headers,
            timeout=config.timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_session(self, session_id: str) -> Session:
        data = await self._request("GET", _session_path(session_id))
        return self._parse(session_from_payload, data)

    async def list_sessions(self, *, page: int = 1, limit: int = 20) -> SessionPage:
        data = await self._request(
            "GET",
            "/sessions",
            params={"page": page, "limit": limit},
        )
        return self._parse(_session_page_from_payload, data)

    async def create_session(self, activities: Sequence[NewActivity]) -> Session:
        data = await self._request(
            "POST",
            "/sessions",
            json={"activities": new_activities_to_payload(activities)},
        )
        return self._parse(session_from_payload, data)

    async def persist_progress(self, session_id: str, update: ProgressUpdate) -> Session:
        data = await self._request(
            "PATCH",
            _session_path(session_id),
            json=progress_update_to_payload(update),
        )
        return self._parse(session_from_payload, data)

    async def append_activities(
        self,
        session_id: str,
        activities: Sequence[NewActivity],
    ) -> Session:
        data = await self._request(
            "POST",
            f"{_session_path(session_id)}/activities",
            json={"activities": new_activities_to_payload(activities)},
        )
        return self._parse(session_from_payload, data)

    async def delete_session(self, session_id: str) -> None:
        await self._request("DELETE", _session_path(session_id))

    async def list_labels(self) -> list[Label]:
        data = await self._request("GET", "/labels")
        return self._parse(_labels_from_payload, data)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as error:
            self._logger.warning("%s %s failed: %s", method, path, error)
            raise NetworkError(f"{method} {path} failed: {error}") from error

        if response.is_error:
            message = _error_message(response)
            if response.status_code == 404:
                raise NotFoundError(message or "Session not found")
            if response.status_code in _VALIDATION_STATUS_CODES:
                raise ValidationError(message or "Request rejected")
            raise NetworkError(
                f"{method} {path} returned {response.status_code}: {message or response.reason_phrase}"
            )

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as error:
            raise NetworkError(f"{method} {path} returned a malformed body") from error

    @staticmethod
    def _parse(parser: Callable[[Any], T], data: Any) -> T:
        try:
            return parser(data)
        except (AttributeError, KeyError, TypeError, ValueError) as error:
            raise NetworkError(f"Malformed response payload: {error}") from error


def _session_path(session_id: str) -> str:
    return f"/sessions/{quote(session_id, safe='')}"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, Mapping):
        error = body.get("error")
        if isinstance(error, str):
            return error
    return ""


def _session_page_from_payload(raw: Mapping[str, Any]) -> SessionPage:
    pagination = raw.get("pagination") or {}
    sessions = tuple(session_from_payload(item) for item in raw["sessions"])
    return SessionPage(
        sessions=sessions,
        page=int(pagination.get("page", 1)),
        limit=int(pagination.get("limit", len(sessions))),
        total=int(pagination.get("total", len(sessions))),
        total_pages=int(pagination.get("totalPages", 1)),
    )


def _labels_from_payload(raw: Mapping[str, Any]) -> list[Label]:
    return [label_from_payload(item) for item in raw["labels"]]
