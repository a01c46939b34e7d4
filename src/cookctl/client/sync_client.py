"""Synchronous HTTP client for the cooking API.

This module provides :class:`APIClient`, the blocking client used by every
cookctl command that talks to the server, and :class:`SessionClient`, a
cookie-jar client used once by ``auth login`` to exchange a username and
password for a personal access token.

Both wrap :class:`httpx.Client` and layer on:

- **Bearer auth** -- the personal access token is sent as
  ``Authorization: Bearer <token>`` on every request.
- **Error mapping** -- non-2xx responses are decoded as a problem document
  and raised as :class:`~cookctl.exceptions.APIError`; network failures and
  timeouts become :class:`~cookctl.exceptions.ConnectionError_`.
- **Debug tracing** -- with ``--debug`` each request and response status is
  logged to stderr through :func:`cookctl.output.debug`.

Tests inject an :class:`httpx.MockTransport` through the ``transport``
argument.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote, urlparse

import httpx

from cookctl.exceptions import APIError, ConfigError, ConnectionError_
from cookctl.output import debug

CSRF_HEADER = "X-CSRF-Token"
CSRF_COOKIE_SUFFIX = "_csrf"


def _validate_base_url(base_url: str) -> str:
    parsed = urlparse(base_url)
    if not parsed.scheme or not parsed.netloc:
        raise ConfigError(f"invalid api url: {base_url}")
    return base_url.rstrip("/")


def _segment(value: str) -> str:
    """Escape a single path segment."""
    return quote(value, safe="")


def _read_api_error(response: httpx.Response) -> APIError:
    """Decode a problem document from an error response."""
    code = ""
    message = ""
    details: list[dict[str, Any]] = []
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = str(body.get("code") or "")
        message = str(body.get("message") or "")
        raw_details = body.get("details")
        if isinstance(raw_details, list):
            details = [d for d in raw_details if isinstance(d, dict)]
    return APIError(response.status_code, code=code, message=message, details=details)


class _BaseClient:
    """Shared request plumbing for :class:`APIClient` and :class:`SessionClient`."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = _validate_base_url(base_url)
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self):
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._default_headers(),
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: URL path, appended to the base URL.
            params: Query parameters; ``None`` and empty values are dropped.
            json_body: JSON-serialisable request body.
            headers: Extra request headers.

        Returns:
            The decoded JSON response, or ``None`` for empty / 204 responses.

        Raises:
            APIError: On a non-2xx response.
            ConnectionError_: On timeouts and transport failures.
        """
        if self._client is None:
            raise RuntimeError("client used outside of its context manager")

        query = {k: v for k, v in (params or {}).items() if v not in (None, "", False)}
        debug(f"{method.upper()} {self._base_url}{path}")
        try:
            response = self._client.request(
                method,
                path,
                params=query or None,
                json=json_body,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise ConnectionError_("request timed out") from exc
        except httpx.HTTPError as exc:
            raise ConnectionError_(str(exc) or exc.__class__.__name__) from exc
        debug(f"status {response.status_code}")

        if response.status_code < 200 or response.status_code >= 300:
            raise _read_api_error(response)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectionError_(f"decode response: {exc}") from exc

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Any:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)


class APIClient(_BaseClient):
    """Token-authenticated client for the cooking API.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        base_url: API base URL, e.g. ``http://localhost:8080``.
        token: Personal access token; omitted from requests when empty.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests use
            :class:`httpx.MockTransport`).

    Example::

        with APIClient("http://localhost:8080", token="pat_123") as api:
            tags = api.tags()
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)
        self._token = token

    def _default_headers(self) -> dict[str, str]:
        headers = super()._default_headers()
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    # --- health / identity ---

    def health(self) -> Any:
        return self.get("/api/v1/healthz")

    def me(self) -> Any:
        return self.get("/api/v1/auth/me")

    # --- tokens ---

    def tokens(self) -> Any:
        return self.get("/api/v1/tokens")

    def create_token(self, name: str, expires_at: Optional[str] = None) -> Any:
        body: dict[str, Any] = {"name": name}
        if expires_at:
            body["expires_at"] = expires_at
        return self.post("/api/v1/tokens", json_body=body)

    def revoke_token(self, token_id: str) -> None:
        self.delete(f"/api/v1/tokens/{_segment(token_id)}")

    # --- tags ---

    def tags(self) -> Any:
        return self.get("/api/v1/tags")

    def create_tag(self, name: str) -> Any:
        return self.post("/api/v1/tags", json_body={"name": name})

    def update_tag(self, tag_id: str, name: str) -> Any:
        return self.put(f"/api/v1/tags/{_segment(tag_id)}", json_body={"name": name})

    def delete_tag(self, tag_id: str) -> None:
        self.delete(f"/api/v1/tags/{_segment(tag_id)}")

    # --- recipe books ---

    def recipe_books(self) -> Any:
        return self.get("/api/v1/recipe-books")

    def create_recipe_book(self, name: str) -> Any:
        return self.post("/api/v1/recipe-books", json_body={"name": name})

    def update_recipe_book(self, book_id: str, name: str) -> Any:
        return self.put(f"/api/v1/recipe-books/{_segment(book_id)}", json_body={"name": name})

    def delete_recipe_book(self, book_id: str) -> None:
        self.delete(f"/api/v1/recipe-books/{_segment(book_id)}")

    # --- users ---

    def users(self) -> Any:
        return self.get("/api/v1/users")

    def create_user(self, username: str, password: str, display_name: Optional[str] = None) -> Any:
        body = {"username": username, "password": password, "display_name": display_name}
        return self.post("/api/v1/users", json_body=body)

    def deactivate_user(self, user_id: str) -> None:
        self.put(f"/api/v1/users/{_segment(user_id)}/deactivate")

    # --- items ---

    def items(self, query: str = "", limit: int = 0) -> Any:
        return self.get("/api/v1/items", params={"q": query, "limit": limit or None})

    def create_item(self, payload: dict[str, Any]) -> Any:
        return self.post("/api/v1/items", json_body=payload)

    def update_item(self, item_id: str, payload: dict[str, Any]) -> Any:
        return self.put(f"/api/v1/items/{_segment(item_id)}", json_body=payload)

    def delete_item(self, item_id: str) -> None:
        self.delete(f"/api/v1/items/{_segment(item_id)}")

    # --- recipes ---

    def recipes(
        self,
        query: str = "",
        book_id: str = "",
        tag_id: str = "",
        include_deleted: bool = False,
        limit: int = 0,
        cursor: str = "",
    ) -> Any:
        params = {
            "q": query,
            "book_id": book_id,
            "tag_id": tag_id,
            "include_deleted": "true" if include_deleted else None,
            "limit": limit or None,
            "cursor": cursor,
        }
        return self.get("/api/v1/recipes", params=params)

    def recipe(self, recipe_id: str) -> Any:
        return self.get(f"/api/v1/recipes/{_segment(recipe_id)}")

    def create_recipe(self, payload: Any) -> Any:
        return self.post("/api/v1/recipes", json_body=payload)

    def update_recipe(self, recipe_id: str, payload: Any) -> Any:
        return self.put(f"/api/v1/recipes/{_segment(recipe_id)}", json_body=payload)

    def delete_recipe(self, recipe_id: str) -> None:
        self.delete(f"/api/v1/recipes/{_segment(recipe_id)}")

    def restore_recipe(self, recipe_id: str) -> None:
        self.put(f"/api/v1/recipes/{_segment(recipe_id)}/restore")

    # --- meal plans ---

    def meal_plans(self, start: str, end: str) -> Any:
        return self.get("/api/v1/meal-plans", params={"start": start, "end": end})

    def create_meal_plan(self, date: str, recipe_id: str) -> Any:
        return self.post("/api/v1/meal-plans", json_body={"date": date, "recipe_id": recipe_id})

    def delete_meal_plan(self, date: str, recipe_id: str) -> None:
        self.delete(f"/api/v1/meal-plans/{_segment(date)}/{_segment(recipe_id)}")

    # --- shopping lists ---

    def shopping_lists(self, start: str = "", end: str = "") -> Any:
        return self.get("/api/v1/shopping-lists", params={"start": start, "end": end})

    def create_shopping_list(self, payload: dict[str, Any]) -> Any:
        return self.post("/api/v1/shopping-lists", json_body=payload)

    def shopping_list(self, list_id: str) -> Any:
        return self.get(f"/api/v1/shopping-lists/{_segment(list_id)}")

    def update_shopping_list(self, list_id: str, payload: dict[str, Any]) -> Any:
        return self.put(f"/api/v1/shopping-lists/{_segment(list_id)}", json_body=payload)

    def delete_shopping_list(self, list_id: str) -> None:
        self.delete(f"/api/v1/shopping-lists/{_segment(list_id)}")

    def shopping_list_items(self, list_id: str) -> Any:
        return self.get(f"/api/v1/shopping-lists/{_segment(list_id)}/items")

    def add_shopping_list_items(self, list_id: str, items: list[dict[str, Any]]) -> Any:
        path = f"/api/v1/shopping-lists/{_segment(list_id)}/items"
        return self.post(path, json_body={"items": items})

    def add_shopping_list_items_from_recipes(self, list_id: str, recipe_ids: list[str]) -> Any:
        path = f"/api/v1/shopping-lists/{_segment(list_id)}/items/from-recipes"
        return self.post(path, json_body={"recipe_ids": recipe_ids})

    def add_shopping_list_items_from_meal_plan(self, list_id: str, date: str) -> Any:
        path = f"/api/v1/shopping-lists/{_segment(list_id)}/items/from-meal-plan"
        return self.post(path, json_body={"date": date})

    def update_shopping_list_item(self, list_id: str, item_id: str, purchased: bool) -> Any:
        path = f"/api/v1/shopping-lists/{_segment(list_id)}/items/{_segment(item_id)}"
        return self.patch(path, json_body={"is_purchased": purchased})

    def delete_shopping_list_item(self, list_id: str, item_id: str) -> None:
        self.delete(f"/api/v1/shopping-lists/{_segment(list_id)}/items/{_segment(item_id)}")


class SessionClient(_BaseClient):
    """Cookie-session client used to bootstrap a personal access token.

    The server issues a session cookie and a CSRF cookie (name ending in
    ``_csrf``) on login. State-changing requests in the session must echo
    the CSRF cookie value in the ``X-CSRF-Token`` header.
    """

    def bootstrap_token(
        self,
        username: str,
        password: str,
        name: str,
        expires_at: Optional[str] = None,
    ) -> Any:
        """Log in, create a token, and log out again.

        Returns:
            The token creation response (``id``, ``name``, ``token``,
            ``created_at``, ``expires_at``).
        """
        self.post("/api/v1/auth/login", json_body={"username": username, "password": password})
        csrf = self._csrf_token()
        body: dict[str, Any] = {"name": name}
        if expires_at:
            body["expires_at"] = expires_at
        created = self.post("/api/v1/tokens", json_body=body, headers={CSRF_HEADER: csrf})
        try:
            self.post("/api/v1/auth/logout", headers={CSRF_HEADER: csrf})
        except (APIError, ConnectionError_) as exc:
            debug(f"logout failed: {exc}")
        return created

    def _csrf_token(self) -> str:
        assert self._client is not None
        for cookie in self._client.cookies.jar:
            if cookie.name.endswith(CSRF_COOKIE_SUFFIX) and cookie.value:
                return cookie.value
        raise ConnectionError_("csrf token cookie not found after login")
