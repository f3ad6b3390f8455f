import json
import unittest

import httpx

from session_timer import (
    ActivityProgress,
    NetworkError,
    NewActivity,
    NotFoundError,
    ProgressUpdate,
    ValidationError,
)
from store import ApiClientConfig, HttpSessionStore, StoreConfigurationError
from app_config_schema import ApiSettings

_BASE_URL = "http://backend.test/api/v1"


def _session_json(**overrides):
    payload = {
        "id": "s1",
        "userId": "u1",
        "status": "PAUSED",
        "elapsedSeconds": 30,
        "currentActivityIndex": 0,
        "completedAt": None,
        "createdAt": "2026-02-21T10:00:00.000Z",
        "updatedAt": "2026-02-21T10:05:00.000Z",
        "activities": [
            {
                "id": "a1",
                "sessionId": "s1",
                "name": "Deep Work",
                "color": "blue",
                "durationMinutes": 25,
                "elapsedSeconds": 30,
                "completed": False,
                "orderIndex": 0,
            }
        ],
    }
    payload.update(overrides)
    return payload


class HttpSessionStoreTests(unittest.IsolatedAsyncioTestCase):
    def _store(self, handler) -> HttpSessionStore:
        self.requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        config = ApiClientConfig(base_url=_BASE_URL, token="secret-token")
        client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=config.headers,
            transport=httpx.MockTransport(recording_handler),
        )
        self.addAsyncCleanup(client.aclose)
        return HttpSessionStore(config, client=client)

    async def test_fetch_session_parses_payload_and_sends_token(self) -> None:
        store = self._store(lambda request: httpx.Response(200, json=_session_json()))

        session = await store.fetch_session("s1")

        request = self.requests[0]
        self.assertEqual("GET", request.method)
        self.assertEqual("/api/v1/sessions/s1", request.url.path)
        self.assertEqual("Bearer secret-token", request.headers["Authorization"])
        self.assertEqual("s1", session.id)
        self.assertEqual(1500, session.activities[0].planned_duration_seconds)
        self.assertEqual(30, session.total_elapsed_seconds)

    async def test_fetch_session_maps_404_to_not_found(self) -> None:
        store = self._store(
            lambda request: httpx.Response(404, json={"error": "Session not found"})
        )

        with self.assertRaisesRegex(NotFoundError, "Session not found"):
            await store.fetch_session("missing")

    async def test_validation_statuses_keep_backend_message(self) -> None:
        for status_code in (400, 409, 422):
            with self.subTest(status_code=status_code):
                store = self._store(
                    lambda request, code=status_code: httpx.Response(
                        code,
                        json={"error": "Activity names must be unique"},
                    )
                )

                with self.assertRaisesRegex(ValidationError, "must be unique"):
                    await store.create_session([NewActivity("Focus", 5, "blue")])

    async def test_server_errors_map_to_network_error(self) -> None:
        store = self._store(lambda request: httpx.Response(500, json={"error": "Internal"}))

        with self.assertRaisesRegex(NetworkError, "500"):
            await store.fetch_session("s1")

    async def test_transport_failures_map_to_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = self._store(handler)

        with self.assertRaises(NetworkError):
            await store.list_labels()

    async def test_malformed_body_maps_to_network_error(self) -> None:
        store = self._store(lambda request: httpx.Response(200, content=b"<html>"))

        with self.assertRaisesRegex(NetworkError, "malformed"):
            await store.fetch_session("s1")

    async def test_unexpected_shape_maps_to_network_error(self) -> None:
        store = self._store(lambda request: httpx.Response(200, json={"status": "BOGUS"}))

        with self.assertRaisesRegex(NetworkError, "Malformed response"):
            await store.fetch_session("s1")

    async def test_persist_progress_sends_patch_with_only_set_fields(self) -> None:
        store = self._store(
            lambda request: httpx.Response(200, json=_session_json(status="IN_PROGRESS"))
        )

        session = await store.persist_progress(
            "s1",
            ProgressUpdate(
                status="IN_PROGRESS",
                total_elapsed_seconds=31,
                activity_progress=(ActivityProgress("a1", 31, False),),
            ),
        )

        request = self.requests[0]
        self.assertEqual("PATCH", request.method)
        self.assertEqual(
            {
                "status": "IN_PROGRESS",
                "elapsedSeconds": 31,
                "activityProgress": [{"id": "a1", "elapsedSeconds": 31, "completed": False}],
            },
            json.loads(request.content),
        )
        self.assertEqual("IN_PROGRESS", session.status)

    async def test_append_activities_posts_to_session_activities(self) -> None:
        store = self._store(lambda request: httpx.Response(201, json=_session_json()))

        await store.append_activities("s1", [NewActivity("Review", 10, "green")])

        request = self.requests[0]
        self.assertEqual("POST", request.method)
        self.assertEqual("/api/v1/sessions/s1/activities", request.url.path)
        self.assertEqual(
            {"activities": [{"name": "Review", "durationMinutes": 10, "color": "green"}]},
            json.loads(request.content),
        )

    async def test_list_sessions_sends_paging_and_reads_pagination(self) -> None:
        body = {
            "sessions": [_session_json()],
            "pagination": {"page": 2, "limit": 1, "total": 3, "totalPages": 3},
        }
        store = self._store(lambda request: httpx.Response(200, json=body))

        page = await store.list_sessions(page=2, limit=1)

        self.assertEqual("2", self.requests[0].url.params["page"])
        self.assertEqual("1", self.requests[0].url.params["limit"])
        self.assertEqual(["s1"], [s.id for s in page.sessions])
        self.assertEqual(3, page.total_pages)

    async def test_delete_session_accepts_empty_response(self) -> None:
        store = self._store(lambda request: httpx.Response(204))

        self.assertIsNone(await store.delete_session("s1"))
        self.assertEqual("DELETE", self.requests[0].method)

    async def test_list_labels(self) -> None:
        body = {"labels": [{"id": "l1", "color": "blue", "name": "Deep Work"}]}
        store = self._store(lambda request: httpx.Response(200, json=body))

        labels = await store.list_labels()

        self.assertEqual("blue", labels[0].color_key)
        self.assertEqual("Deep Work", labels[0].display_name)

    async def test_session_ids_are_path_escaped(self) -> None:
        store = self._store(lambda request: httpx.Response(200, json=_session_json()))

        await store.fetch_session("a/b")

        self.assertEqual("/api/v1/sessions/a%2Fb", self.requests[0].url.raw_path.decode())


class ApiClientConfigTests(unittest.TestCase):
    def test_from_settings_strips_trailing_slash(self) -> None:
        config = ApiClientConfig.from_settings(
            ApiSettings(base_url="https://focus.example/api/v1/", timeout_seconds=5),
            token="t",
        )

        self.assertEqual("https://focus.example/api/v1", config.base_url)
        self.assertEqual("Bearer t", config.headers["Authorization"])
        self.assertNotIn("'t'", repr(config))

    def test_headers_without_token(self) -> None:
        self.assertNotIn("Authorization", ApiClientConfig().headers)

    def test_rejects_relative_url(self) -> None:
        with self.assertRaises(StoreConfigurationError):
            ApiClientConfig(base_url="/api/v1")

    def test_rejects_non_positive_timeout(self) -> None:
        with self.assertRaises(StoreConfigurationError):
            ApiClientConfig(timeout_seconds=0)


if __name__ == "__main__":
    unittest.main()
