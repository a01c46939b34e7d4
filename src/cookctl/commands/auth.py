"""Auth commands -- manage the stored personal access token.

Typical workflow::

    echo "$PASSWORD" | cookctl auth login --username alice --password-stdin
    cookctl auth status
    cookctl auth logout --revoke

``auth set`` stores an existing token instead of bootstrapping one.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Optional, TextIO

from cookctl.commands.common import parse_rfc3339, read_secret
from cookctl.config import ENV_TOKEN
from cookctl.credential_store import Credentials, TokenSource, mask_token, resolve_token
from cookctl.exceptions import AuthError, ConfigError, UsageError
from cookctl.routing.flagset import FlagSet, ParsedFlags
from cookctl.routing.tree import CommandNode

if TYPE_CHECKING:
    from cookctl.context import AppContext


def login_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("auth login", sink)
    flags.string("username", "Username for login")
    flags.boolean("password-stdin", "Read password from stdin")
    flags.string("token-name", "Name for the new PAT", default="cookctl")
    flags.string("expires-at", "Token expiration (RFC3339)")
    return flags


def set_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("auth set", sink)
    flags.string("token", "Personal access token")
    flags.boolean("token-stdin", "Read token from stdin")
    flags.string("api-url", "API base URL override")
    return flags


def logout_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("auth logout", sink)
    flags.boolean("revoke", "Revoke stored token before clearing credentials")
    return flags


def _message(ctx: "AppContext", text: str) -> None:
    ctx.write({"message": text})


def run_set(ctx: "AppContext", flags: ParsedFlags) -> None:
    token = flags.token.strip()
    if flags.token_stdin and token:
        raise UsageError("token and token-stdin cannot be combined")
    if flags.token_stdin:
        token = read_secret(ctx.stdin)
    if not token:
        raise UsageError("token is required (use --token or --token-stdin)")
    api_url = flags.api_url.strip() or ctx.config.api_url

    ctx.store.save(Credentials(token=token, api_url=api_url))
    _message(ctx, "token saved")


def run_login(ctx: "AppContext", flags: ParsedFlags) -> None:
    """Exchange a username and password for a new token and store it."""
    username = flags.username.strip()
    if not username:
        raise UsageError("username is required")
    if not flags.password_stdin:
        raise UsageError("password-stdin is required for auth login")
    token_name = flags.token_name.strip()
    if not token_name:
        raise UsageError("token-name is required")

    password = read_secret(ctx.stdin)
    if not password:
        raise UsageError("password is required")
    expires_at = parse_rfc3339("expires-at", flags.expires_at) if flags.expires_at.strip() else None

    api_url = ctx.config.api_url
    ctx.ensure_healthy(api_url)
    with ctx.session_client(api_url) as session:
        created = session.bootstrap_token(
            username,
            password,
            token_name,
            expires_at=expires_at.isoformat() if expires_at else None,
        )

    ctx.store.save(
        Credentials(
            token=created["token"],
            token_id=created.get("id", ""),
            token_name=created.get("name", ""),
            created_at=created.get("created_at"),
            expires_at=expires_at,
            api_url=api_url,
        )
    )
    ctx.write(
        {
            "id": created.get("id"),
            "name": created.get("name"),
            "token": created.get("token"),
            "created_at": created.get("created_at"),
            "expires_at": expires_at.isoformat() if expires_at else None,
        }
    )


def run_status(ctx: "AppContext", flags: ParsedFlags) -> None:
    token, source = resolve_token(ctx.store)
    credentials = ctx.store.load() if source == TokenSource.CREDENTIALS else None

    status = {
        "source": source.value,
        "token_present": bool(token),
        "masked_token": mask_token(token),
        "api_url": ctx.api_url_for(source, credentials),
    }
    if credentials is not None:
        stored = credentials.model_dump(mode="json")
        for key in ("token_id", "token_name", "created_at", "expires_at"):
            status[key] = stored[key]
    ctx.write(status)


def run_whoami(ctx: "AppContext", flags: ParsedFlags) -> None:
    with ctx.authed_client() as api:
        ctx.write(api.me())


def run_logout(ctx: "AppContext", flags: ParsedFlags) -> None:
    message = "credentials cleared"
    if flags.revoke:
        _revoke_stored_token(ctx)
        message = "token revoked and credentials cleared"
    ctx.store.clear()
    if os.environ.get(ENV_TOKEN):
        message += f"; {ENV_TOKEN} is still set"
    _message(ctx, message)


def _revoke_stored_token(ctx: "AppContext") -> None:
    credentials = ctx.store.load()
    if credentials is None or not credentials.token:
        raise AuthError("no stored token found to revoke")
    if not credentials.token_id:
        raise ConfigError("stored token id is missing; cannot revoke")

    api_url = ctx.api_url_for(TokenSource.CREDENTIALS, credentials)
    ctx.ensure_healthy(api_url)
    with ctx.client(api_url, token=credentials.token) as api:
        api.revoke_token(credentials.token_id)


auth_command = CommandNode(
    "auth",
    "Manage credentials",
    subcommands=(
        CommandNode(
            "login",
            "Create a token from a username and password",
            flags=login_flags,
            handler=run_login,
            usage="--username <user> --password-stdin [--token-name <name>] [--expires-at <rfc3339>]",
        ),
        CommandNode(
            "set",
            "Store an existing token",
            flags=set_flags,
            handler=run_set,
            usage="--token <pat> [--api-url <url>]",
        ),
        CommandNode("status", "Show the active token", handler=run_status),
        CommandNode("whoami", "Show the authenticated user", handler=run_whoami),
        CommandNode(
            "logout",
            "Clear stored credentials",
            flags=logout_flags,
            handler=run_logout,
            usage="[--revoke]",
        ),
    ),
)
