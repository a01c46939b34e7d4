"""User administration commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, TextIO

from cookctl.commands.common import optional_text, read_secret, require_id, require_text, require_yes
from cookctl.exceptions import UsageError
from cookctl.routing.flagset import FlagSet, ParsedFlags
from cookctl.routing.tree import CommandNode

if TYPE_CHECKING:
    from cookctl.context import AppContext


def create_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("user create", sink)
    flags.string("username", "Username")
    flags.boolean("password-stdin", "Read password from stdin")
    flags.string("display-name", "Display name")
    return flags


def deactivate_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("user deactivate", sink)
    flags.boolean("yes", "Confirm user deactivation")
    return flags


def run_list(ctx: "AppContext", flags: ParsedFlags) -> None:
    with ctx.authed_client() as api:
        ctx.write(api.users(), kind="user")


def run_create(ctx: "AppContext", flags: ParsedFlags) -> None:
    username = require_text(flags.username, "username")
    if not flags.password_stdin:
        raise UsageError("password-stdin is required for user create")
    password = read_secret(ctx.stdin)
    if not password:
        raise UsageError("password is required")

    with ctx.authed_client() as api:
        created = api.create_user(username, password, optional_text(flags.display_name))
    ctx.write(created, kind="user")


def run_deactivate(ctx: "AppContext", flags: ParsedFlags) -> None:
    user_id = require_id(flags, "user")
    require_yes(flags)
    with ctx.authed_client() as api:
        api.deactivate_user(user_id)
    ctx.write({"id": user_id, "deactivated": True})


user_command = CommandNode(
    "user",
    "Manage users",
    subcommands=(
        CommandNode("list", "List users", handler=run_list),
        CommandNode(
            "create",
            "Create a user",
            flags=create_flags,
            handler=run_create,
            usage="--username <user> --password-stdin [--display-name <name>]",
        ),
        CommandNode(
            "deactivate",
            "Deactivate a user",
            flags=deactivate_flags,
            handler=run_deactivate,
            usage="<id> --yes",
        ),
    ),
)
