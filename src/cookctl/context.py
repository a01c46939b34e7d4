"""Per-invocation state shared by every command handler."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional, Sequence, TextIO

import httpx

from cookctl.client import APIClient, SessionClient
from cookctl.config import Config
from cookctl.credential_store import CredentialStore, Credentials, TokenSource, resolve_token
from cookctl.exceptions import AuthError, CookctlError, ConnectionError_
from cookctl.output import OutputManager
from cookctl.routing.options import GLOBAL_OPTIONS, OptionDefinition
from cookctl.routing.tree import CommandNode


class AppContext:
    """Everything a handler needs: config, output, credentials and API access.

    Args:
        config: Effective configuration (file, environment, then global
            flags already applied).
        output: Output manager for this invocation.
        commands: The top-level command tree.
        options: The global option registry.
        store: Credential store; defaults to the standard location.
        api_url_override: ``--api-url`` when given on the command line.
        check_health: Run the health preflight before authenticated calls.
        config_path: ``config.json`` location; ``None`` for the default.
        stdin: Input stream for ``--stdin`` style flags.
        transport: httpx transport passed to every client (tests).
        global_flags: Global options given on the command line, keyed by
            name (``{"api-url": "http://x", "debug": True}``).
    """

    def __init__(
        self,
        config: Config,
        output: OutputManager,
        commands: Sequence[CommandNode],
        options: Sequence[OptionDefinition] = GLOBAL_OPTIONS,
        store: Optional[CredentialStore] = None,
        api_url_override: str = "",
        check_health: bool = True,
        config_path: Optional[Path] = None,
        stdin: Optional[TextIO] = None,
        transport: Optional[httpx.BaseTransport] = None,
        global_flags: Optional[dict[str, Any]] = None,
    ) -> None:
        self.config = config
        self.output = output
        self.commands = commands
        self.options = options
        self.store = store or CredentialStore()
        self.api_url_override = api_url_override
        self.check_health = check_health
        self.config_path = config_path
        self.stdin = stdin if stdin is not None else sys.stdin
        self.transport = transport
        self.global_flags = dict(global_flags or {})
        self._health: dict[str, Optional[CookctlError]] = {}

    @property
    def stdout(self) -> TextIO:
        return self.output.stdout

    @property
    def stderr(self) -> TextIO:
        return self.output.stderr

    def write(self, data: Any, kind: Optional[str] = None) -> None:
        """Render a command result in the active output format."""
        self.output.format_response(data, kind)

    # ------------------------------------------------------------------ #
    # Credentials
    # ------------------------------------------------------------------ #

    def require_token(self) -> tuple[str, TokenSource]:
        """Return the active token and its source.

        Raises:
            AuthError: When neither ``COOKING_PAT`` nor stored credentials
                provide a token.
        """
        token, source = resolve_token(self.store)
        if not token:
            raise AuthError("no token found; run `cookctl auth set --token <pat>`")
        return token, source

    def api_url_for(self, source: TokenSource, credentials: Optional[Credentials] = None) -> str:
        """API URL to use with a token from *source*.

        A stored token remembers the server it was issued by; that URL wins
        unless ``--api-url`` was given.
        """
        if self.api_url_override:
            return self.api_url_override
        if source == TokenSource.CREDENTIALS:
            credentials = credentials or self.store.load()
            if credentials is not None and credentials.api_url:
                return credentials.api_url
        return self.config.api_url

    # ------------------------------------------------------------------ #
    # Clients
    # ------------------------------------------------------------------ #

    def client(self, base_url: Optional[str] = None, token: str = "") -> APIClient:
        """An unopened :class:`APIClient`; use it as a context manager."""
        return APIClient(
            base_url or self.config.api_url,
            token=token,
            timeout=self.config.timeout,
            transport=self.transport,
        )

    def session_client(self, base_url: str) -> SessionClient:
        return SessionClient(base_url, timeout=self.config.timeout, transport=self.transport)

    def authed_client(self) -> APIClient:
        """A token-authenticated client for the effective API URL.

        Runs the health preflight first unless ``--skip-health-check``.

        Raises:
            AuthError: When no token is available.
            ConnectionError_: When the preflight fails.
        """
        token, source = self.require_token()
        base_url = self.api_url_for(source)
        self.ensure_healthy(base_url)
        return self.client(base_url, token=token)

    def ensure_healthy(self, base_url: str) -> None:
        """Probe ``/api/v1/healthz`` once per URL per invocation.

        The outcome, success or failure, is cached so that repeated calls
        within one invocation do not check again.
        """
        if not self.check_health:
            return
        if base_url not in self._health:
            try:
                with self.client(base_url) as api:
                    api.health()
            except CookctlError as exc:
                self._health[base_url] = ConnectionError_(f"unable to reach API at {base_url}: {exc}")
            else:
                self._health[base_url] = None
        failure = self._health[base_url]
        if failure is not None:
            raise failure
