"""Personal access token commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, TextIO

from cookctl.commands.common import parse_rfc3339, require_id, require_text, require_yes
from cookctl.routing.flagset import FlagSet, ParsedFlags
from cookctl.routing.tree import CommandNode

if TYPE_CHECKING:
    from cookctl.context import AppContext


def create_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("token create", sink)
    flags.string("name", "Token name")
    flags.string("expires-at", "Token expiration (RFC3339)")
    return flags


def revoke_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("token revoke", sink)
    flags.boolean("yes", "Confirm token revocation")
    return flags


def run_list(ctx: "AppContext", flags: ParsedFlags) -> None:
    with ctx.authed_client() as api:
        ctx.write(api.tokens(), kind="token")


def run_create(ctx: "AppContext", flags: ParsedFlags) -> None:
    name = require_text(flags.name, "name")
    expires_at = None
    if flags.expires_at:
        expires_at = parse_rfc3339("expires-at", flags.expires_at).isoformat()
    else:
        ctx.output.warning("token will not expire unless revoked")

    with ctx.authed_client() as api:
        ctx.write(api.create_token(name, expires_at))


def run_revoke(ctx: "AppContext", flags: ParsedFlags) -> None:
    token_id = require_id(flags, "token")
    require_yes(flags)
    with ctx.authed_client() as api:
        api.revoke_token(token_id)
    ctx.write({"id": token_id, "revoked": True})


token_command = CommandNode(
    "token",
    "Manage personal access tokens",
    subcommands=(
        CommandNode("list", "List tokens", handler=run_list),
        CommandNode(
            "create",
            "Create a token",
            flags=create_flags,
            handler=run_create,
            usage="--name <name> [--expires-at <rfc3339>]",
        ),
        CommandNode("revoke", "Revoke a token", flags=revoke_flags, handler=run_revoke, usage="<id> --yes"),
    ),
)
