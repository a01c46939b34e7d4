"""Tests for the synchronous HTTP clients."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from cookctl.client import APIClient, SessionClient
from cookctl.exceptions import APIError, ConfigError, ConnectionError_
from cookctl.exit_codes import EXIT_AUTH_FAILURE, EXIT_CONFLICT, EXIT_GENERIC_FAILURE, EXIT_NOT_FOUND

BASE = "http://api.test"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client(handler, token: str = "pat_abc") -> APIClient:
    return APIClient(BASE, token=token, transport=httpx.MockTransport(handler))


def _json(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=data)


# ---------------------------------------------------------------------------
# Construction and context manager
# ---------------------------------------------------------------------------


class TestContextManager:
    def test_enter_creates_and_exit_closes(self) -> None:
        client = _client(lambda r: _json({}))
        assert client._client is None
        with client:
            assert client._client is not None
        assert client._client is None

    def test_request_outside_context(self) -> None:
        with pytest.raises(RuntimeError):
            _client(lambda r: _json({})).health()

    def test_trailing_slash_stripped(self) -> None:
        assert APIClient(BASE + "/").base_url == BASE

    @pytest.mark.parametrize("url", ["", "localhost:8080", "not a url"])
    def test_invalid_base_url(self, url: str) -> None:
        with pytest.raises(ConfigError, match="invalid api url"):
            APIClient(url)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestRequests:
    def test_bearer_header(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json([])

        with _client(handler) as api:
            api.tags()
        assert seen[0].headers["Authorization"] == "Bearer pat_abc"
        assert seen[0].headers["Accept"] == "application/json"

    def test_no_token_no_header(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json({"ok": True})

        with _client(handler, token="") as api:
            assert api.health() == {"ok": True}
        assert "Authorization" not in seen[0].headers

    def test_empty_params_dropped(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json({"items": []})

        with _client(handler) as api:
            api.recipes(query="soup", limit=10)
        params = dict(seen[0].url.params)
        assert params == {"q": "soup", "limit": "10"}

    def test_include_deleted_param(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json({"items": []})

        with _client(handler) as api:
            api.recipes(include_deleted=True, cursor="c2")
        assert seen[0].url.params["include_deleted"] == "true"
        assert seen[0].url.params["cursor"] == "c2"

    def test_path_segments_escaped(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        with _client(handler) as api:
            assert api.delete_tag("a/b") is None
        assert seen[0].url.raw_path == b"/api/v1/tags/a%2Fb"

    def test_json_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json({"id": "t1", "name": "Soup"}, 201)

        with _client(handler) as api:
            assert api.create_tag("Soup") == {"id": "t1", "name": "Soup"}
        assert seen[0].method == "POST"
        assert json.loads(seen[0].content) == {"name": "Soup"}

    def test_purchase_uses_patch(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json({"id": "i1", "is_purchased": True})

        with _client(handler) as api:
            api.update_shopping_list_item("l1", "i1", True)
        assert seen[0].method == "PATCH"
        assert seen[0].url.path == "/api/v1/shopping-lists/l1/items/i1"
        assert json.loads(seen[0].content) == {"is_purchased": True}

    def test_invalid_json_response(self) -> None:
        with _client(lambda r: httpx.Response(200, text="<html>")) as api:
            with pytest.raises(ConnectionError_, match="decode response"):
                api.me()


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrors:
    @pytest.mark.parametrize(
        ("status", "exit_code"),
        [(401, EXIT_AUTH_FAILURE), (404, EXIT_NOT_FOUND), (409, EXIT_CONFLICT), (500, EXIT_GENERIC_FAILURE)],
    )
    def test_status_exit_codes(self, status: int, exit_code: int) -> None:
        with _client(lambda r: _json({"code": "x", "message": "y"}, status)) as api:
            with pytest.raises(APIError) as excinfo:
                api.tags()
        assert excinfo.value.exit_code == exit_code
        assert excinfo.value.status_code == status

    def test_validation_details(self) -> None:
        body = {
            "code": "validation_error",
            "message": "invalid input",
            "details": [{"field": "name", "message": "is required"}],
        }
        with _client(lambda r: _json(body, 400)) as api:
            with pytest.raises(APIError) as excinfo:
                api.create_tag("")
        assert str(excinfo.value) == "validation_error: invalid input\nfield=name message=is required"
        assert excinfo.value.to_payload() == {
            "error": {
                "status": 400,
                "code": "validation_error",
                "message": "invalid input",
                "details": [{"field": "name", "message": "is required"}],
            }
        }

    def test_non_json_error_body(self) -> None:
        with _client(lambda r: httpx.Response(502, text="bad gateway")) as api:
            with pytest.raises(APIError, match="request failed with status 502"):
                api.tags()

    def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with _client(handler) as api:
            with pytest.raises(ConnectionError_, match="connection refused"):
                api.health()

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with _client(handler) as api:
            with pytest.raises(ConnectionError_, match="request timed out"):
                api.health()


# ---------------------------------------------------------------------------
# Session bootstrap
# ---------------------------------------------------------------------------


class TestSessionClient:
    def test_bootstrap_token_sends_csrf(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/api/v1/auth/login":
                return httpx.Response(
                    200,
                    json={"ok": True},
                    headers=[("set-cookie", "cook_session=s1; Path=/"), ("set-cookie", "cook_csrf=c1; Path=/")],
                )
            if request.url.path == "/api/v1/tokens":
                return _json({"id": "tok-1", "name": "cli", "token": "pat_new"}, 201)
            return httpx.Response(204)

        client = SessionClient(BASE, transport=httpx.MockTransport(handler))
        with client:
            created = client.bootstrap_token("alice", "pw", "cli", expires_at="2030-01-01T00:00:00Z")

        assert created["token"] == "pat_new"
        assert [r.url.path for r in seen] == ["/api/v1/auth/login", "/api/v1/tokens", "/api/v1/auth/logout"]
        assert json.loads(seen[0].content) == {"username": "alice", "password": "pw"}
        assert seen[1].headers["X-CSRF-Token"] == "c1"
        assert json.loads(seen[1].content) == {"name": "cli", "expires_at": "2030-01-01T00:00:00Z"}

    def test_logout_failure_is_ignored(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/v1/auth/login":
                return httpx.Response(200, json={}, headers={"set-cookie": "x_csrf=c1; Path=/"})
            if request.url.path == "/api/v1/tokens":
                return _json({"token": "pat_new"})
            return _json({"message": "boom"}, 500)

        with SessionClient(BASE, transport=httpx.MockTransport(handler)) as client:
            assert client.bootstrap_token("a", "b", "c") == {"token": "pat_new"}

    def test_missing_csrf_cookie(self) -> None:
        with SessionClient(BASE, transport=httpx.MockTransport(lambda r: _json({}))) as client:
            with pytest.raises(ConnectionError_, match="csrf token cookie not found"):
                client.bootstrap_token("a", "b", "c")
