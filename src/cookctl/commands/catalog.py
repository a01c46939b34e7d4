"""Tags, recipe books and items.

Tags and recipe books are both plain named resources with the same four
commands, so their command groups are built by :func:`named_resource`.
Items carry a store URL and an aisle and get their own handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional, TextIO

from cookctl.client import APIClient
from cookctl.commands.common import optional_text, require_id, require_text, require_yes
from cookctl.exceptions import UsageError
from cookctl.routing.flagset import FlagSet, FlagSetBuilder, ParsedFlags
from cookctl.routing.tree import CommandNode

if TYPE_CHECKING:
    from cookctl.context import AppContext


def _name_flags(command: str, description: str) -> FlagSetBuilder:
    def build(sink: Optional[TextIO] = None) -> FlagSet:
        flags = FlagSet(command, sink)
        flags.string("name", description)
        return flags

    return build


def _yes_flags(command: str, description: str) -> FlagSetBuilder:
    def build(sink: Optional[TextIO] = None) -> FlagSet:
        flags = FlagSet(command, sink)
        flags.boolean("yes", description)
        return flags

    return build


def named_resource(
    name: str,
    label: str,
    kind: str,
    list_call: Callable[[APIClient], Any],
    create_call: Callable[[APIClient, str], Any],
    update_call: Callable[[APIClient, str, str], Any],
    delete_call: Callable[[APIClient, str], None],
) -> CommandNode:
    """Build the ``list|create|update|delete`` group for a named resource.

    Args:
        name: Command name, e.g. ``"tag"``.
        label: Human label used in synopses and flag help, e.g.
            ``"recipe book"``.
        kind: Output kind for table columns.
        list_call: Fetches every record.
        create_call: Creates a record from a name.
        update_call: Renames a record by id.
        delete_call: Deletes a record by id.
    """

    def run_list(ctx: "AppContext", flags: ParsedFlags) -> None:
        with ctx.authed_client() as api:
            ctx.write(list_call(api), kind=kind)

    def run_create(ctx: "AppContext", flags: ParsedFlags) -> None:
        value = require_text(flags.name, "name")
        with ctx.authed_client() as api:
            ctx.write(create_call(api, value), kind=kind)

    def run_update(ctx: "AppContext", flags: ParsedFlags) -> None:
        record_id = require_id(flags, name)
        value = require_text(flags.name, "name")
        with ctx.authed_client() as api:
            ctx.write(update_call(api, record_id, value), kind=kind)

    def run_delete(ctx: "AppContext", flags: ParsedFlags) -> None:
        record_id = require_id(flags, name)
        require_yes(flags)
        with ctx.authed_client() as api:
            delete_call(api, record_id)
        ctx.write({"id": record_id, "deleted": True})

    title = label[:1].upper() + label[1:]
    return CommandNode(
        name,
        f"Manage {label}s",
        subcommands=(
            CommandNode("list", f"List {label}s", handler=run_list),
            CommandNode(
                "create",
                f"Create a {label}",
                flags=_name_flags(f"{name} create", f"{title} name"),
                handler=run_create,
                usage="--name <name>",
            ),
            CommandNode(
                "update",
                f"Rename a {label}",
                flags=_name_flags(f"{name} update", f"{title} name"),
                handler=run_update,
                usage="<id> --name <name>",
            ),
            CommandNode(
                "delete",
                f"Delete a {label}",
                flags=_yes_flags(f"{name} delete", f"Confirm {label} deletion"),
                handler=run_delete,
                usage="<id> --yes",
            ),
        ),
    )


tag_command = named_resource(
    "tag",
    "tag",
    "tag",
    APIClient.tags,
    APIClient.create_tag,
    APIClient.update_tag,
    APIClient.delete_tag,
)

book_command = named_resource(
    "book",
    "recipe book",
    "book",
    APIClient.recipe_books,
    APIClient.create_recipe_book,
    APIClient.update_recipe_book,
    APIClient.delete_recipe_book,
)


# --- items ---


def item_list_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("item list", sink)
    flags.string("q", "Search query")
    flags.integer("limit", "Max items per page")
    return flags


def _item_fields(command: str) -> FlagSetBuilder:
    def build(sink: Optional[TextIO] = None) -> FlagSet:
        flags = FlagSet(command, sink)
        flags.string("name", "Item name")
        flags.string("store-url", "Store URL")
        flags.string("aisle-id", "Aisle id")
        return flags

    return build


def _item_payload(flags: ParsedFlags) -> dict[str, Any]:
    return {
        "name": require_text(flags.name, "name"),
        "store_url": optional_text(flags.store_url),
        "aisle_id": optional_text(flags.aisle_id),
    }


def run_item_list(ctx: "AppContext", flags: ParsedFlags) -> None:
    if flags.limit < 0:
        raise UsageError("limit must be positive")
    with ctx.authed_client() as api:
        ctx.write(api.items(flags.q.strip(), flags.limit), kind="item")


def run_item_create(ctx: "AppContext", flags: ParsedFlags) -> None:
    payload = _item_payload(flags)
    with ctx.authed_client() as api:
        ctx.write(api.create_item(payload), kind="item")


def run_item_update(ctx: "AppContext", flags: ParsedFlags) -> None:
    item_id = require_id(flags, "item")
    payload = _item_payload(flags)
    with ctx.authed_client() as api:
        ctx.write(api.update_item(item_id, payload), kind="item")


def run_item_delete(ctx: "AppContext", flags: ParsedFlags) -> None:
    item_id = require_id(flags, "item")
    require_yes(flags)
    with ctx.authed_client() as api:
        api.delete_item(item_id)
    ctx.write({"id": item_id, "deleted": True})


item_command = CommandNode(
    "item",
    "Manage items",
    subcommands=(
        CommandNode("list", "List items", flags=item_list_flags, handler=run_item_list, usage="[-q <query>] [--limit <n>]"),
        CommandNode(
            "create",
            "Create an item",
            flags=_item_fields("item create"),
            handler=run_item_create,
            usage="--name <name> [--store-url <url>] [--aisle-id <id>]",
        ),
        CommandNode(
            "update",
            "Update an item",
            flags=_item_fields("item update"),
            handler=run_item_update,
            usage="<id> --name <name> [--store-url <url>] [--aisle-id <id>]",
        ),
        CommandNode(
            "delete",
            "Delete an item",
            flags=_yes_flags("item delete", "Confirm item deletion"),
            handler=run_item_delete,
            usage="<id> --yes",
        ),
    ),
)
