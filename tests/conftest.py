"""Shared test fixtures for cookctl.

Provides an isolated config environment, output-state reset, and a small
in-memory fake of the cooking API served through :class:`httpx.MockTransport`
so commands can be run end to end through :func:`cookctl.app.run`.
"""

from __future__ import annotations

import io
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from cookctl.app import run
from cookctl.credential_store import CredentialStore, Credentials
from cookctl.output import reset_output

API_URL = "http://api.test"
TOKEN = "pat_test_token"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    :func:`cookctl.app.run` installs a manager bound to the test's streams;
    the module-level helpers must not keep writing to them afterwards.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and credentials to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    and clears every COOKING_* variable so the developer's environment
    never leaks into a test.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("cookctl.config._is_xdg_platform", lambda: True)
    for var in ("COOKING_API_URL", "COOKING_OUTPUT", "COOKING_TIMEOUT", "COOKING_PAT", "NO_COLOR"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NO_COLOR", "1")
    return tmp_path


@pytest.fixture
def logged_in(isolated_config: Path) -> CredentialStore:
    """Store a token for :data:`API_URL` in the isolated config directory."""
    store = CredentialStore()
    store.save(Credentials(token=TOKEN, token_id="tok-1", token_name="cookctl", api_url=API_URL))
    return store


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


Route = Callable[[httpx.Request], httpx.Response]


@dataclass
class FakeAPI:
    """Route table for :class:`httpx.MockTransport`.

    Routes are keyed by ``(METHOD, path)``; a value is either a JSON body
    (answered with 200) or a callable returning an :class:`httpx.Response`.
    ``/api/v1/healthz`` answers ``{"ok": true}`` unless overridden. Every
    request is recorded in :attr:`requests`.
    """

    routes: dict[tuple[str, str], Any] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def add(self, method: str, path: str, response: Any) -> None:
        self.routes[(method.upper(), path)] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes and key == ("GET", "/api/v1/healthz"):
            return httpx.Response(200, json={"ok": True})
        if key not in self.routes:
            return httpx.Response(404, json={"code": "not_found", "message": f"no route {key}"})
        response = self.routes[key]
        if callable(response):
            return response(request)
        if response is None:
            return httpx.Response(204)
        return httpx.Response(200, json=response)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def body(self, method: str, path: str, index: int = -1) -> Any:
        return json.loads(self.calls(method, path)[index].content)


@pytest.fixture
def api() -> FakeAPI:
    return FakeAPI()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@dataclass
class Result:
    exit_code: int
    stdout: str
    stderr: str

    def json(self) -> Any:
        return json.loads(self.stdout)


@pytest.fixture
def cli(isolated_config: Path, api: FakeAPI) -> Callable[..., Result]:
    """Run cookctl in-process against the fake API.

    Usage::

        result = cli("tag", "list", "--output", "json")
        assert result.exit_code == 0
    """

    def invoke(*argv: str, stdin: Optional[str] = None) -> Result:
        out, err = io.StringIO(), io.StringIO()
        code = run(
            list(argv),
            stdin=io.StringIO(stdin or ""),
            stdout=out,
            stderr=err,
            transport=api.transport,
        )
        return Result(code, out.getvalue(), err.getvalue())

    return invoke
