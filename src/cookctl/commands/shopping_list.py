"""Shopping list commands.

Lists are dated and named; their items live under the nested
``shopping-list items`` group, the only three-level path in the tree::

    cookctl shopping-list create --date 2026-03-01 --name Weekly
    cookctl shopping-list items from-recipes <list-id> --recipe-id <id>
    cookctl shopping-list items purchase --list-id <id> --item-id <id> --purchased
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, TextIO

from cookctl.commands.common import (
    ISO_DATE_FORMAT,
    no_args,
    optional_text,
    parse_iso_date,
    parse_optional_float,
    require_id,
    require_text,
    require_yes,
    split_comma_separated,
)
from cookctl.exceptions import UsageError
from cookctl.routing.flagset import FlagSet, FlagSetBuilder, ParsedFlags
from cookctl.routing.tree import CommandNode

if TYPE_CHECKING:
    from cookctl.context import AppContext

_LIST = "shopping list"


def list_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("shopping-list list", sink)
    flags.string("start", "Start date (YYYY-MM-DD)")
    flags.string("end", "End date (YYYY-MM-DD)")
    return flags


def _list_fields(command: str) -> FlagSetBuilder:
    def build(sink: Optional[TextIO] = None) -> FlagSet:
        flags = FlagSet(command, sink)
        flags.string("date", "Shopping list date (YYYY-MM-DD)")
        flags.string("name", "Shopping list name")
        flags.string("notes", "Shopping list notes")
        return flags

    return build


def delete_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("shopping-list delete", sink)
    flags.boolean("yes", "Confirm shopping list deletion")
    return flags


def item_create_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("shopping-list items create", sink)
    flags.string("item-id", "Item id")
    flags.string("quantity", "Item quantity")
    flags.string("quantity-text", "Item quantity text")
    flags.string("unit", "Item unit")
    return flags


def from_recipes_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("shopping-list items from-recipes", sink)
    flags.multiple("recipe-id", "Recipe id (repeatable)")
    return flags


def from_meal_plan_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("shopping-list items from-meal-plan", sink)
    flags.string("date", "Meal plan date (YYYY-MM-DD)")
    return flags


def purchase_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("shopping-list items purchase", sink)
    flags.string("list-id", "Shopping list id")
    flags.string("item-id", "Shopping list item id")
    flags.boolean("purchased", "Mark item as purchased")
    return flags


def item_delete_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("shopping-list items delete", sink)
    flags.string("list-id", "Shopping list id")
    flags.string("item-id", "Shopping list item id")
    flags.boolean("yes", "Confirm list item deletion")
    return flags


def _list_payload(flags: ParsedFlags) -> dict[str, Any]:
    list_date = parse_iso_date("date", flags.date)
    return {
        "list_date": list_date.strftime(ISO_DATE_FORMAT),
        "name": require_text(flags.name, "name"),
        "notes": optional_text(flags.notes),
    }


def _list_and_item(flags: ParsedFlags) -> tuple[str, str]:
    list_id = require_text(flags.list_id, "list-id")
    item_id = require_text(flags.item_id, "item-id")
    return list_id, item_id


# --- lists ---


def run_list(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "shopping-list list")
    start = parse_iso_date("start", flags.start)
    end = parse_iso_date("end", flags.end)
    if end < start:
        raise UsageError("end must be on or after start")
    with ctx.authed_client() as api:
        lists = api.shopping_lists(start.strftime(ISO_DATE_FORMAT), end.strftime(ISO_DATE_FORMAT))
    ctx.write(lists, kind="shopping_list")


def run_create(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "shopping-list create")
    payload = _list_payload(flags)
    with ctx.authed_client() as api:
        ctx.write(api.create_shopping_list(payload), kind="shopping_list")


def run_get(ctx: "AppContext", flags: ParsedFlags) -> None:
    list_id = require_id(flags, _LIST)
    with ctx.authed_client() as api:
        ctx.write(api.shopping_list(list_id))


def run_update(ctx: "AppContext", flags: ParsedFlags) -> None:
    list_id = require_id(flags, _LIST)
    payload = _list_payload(flags)
    with ctx.authed_client() as api:
        ctx.write(api.update_shopping_list(list_id, payload), kind="shopping_list")


def run_delete(ctx: "AppContext", flags: ParsedFlags) -> None:
    list_id = require_id(flags, _LIST)
    require_yes(flags)
    with ctx.authed_client() as api:
        api.delete_shopping_list(list_id)
    ctx.write({"id": list_id, "deleted": True})


# --- items ---


def run_items_list(ctx: "AppContext", flags: ParsedFlags) -> None:
    list_id = require_id(flags, _LIST)
    with ctx.authed_client() as api:
        ctx.write(api.shopping_list_items(list_id), kind="shopping_list_item")


def run_items_create(ctx: "AppContext", flags: ParsedFlags) -> None:
    list_id = require_id(flags, _LIST)
    entry: dict[str, Any] = {"item_id": require_text(flags.item_id, "item-id")}
    quantity = parse_optional_float("quantity", flags.quantity)
    if quantity is not None:
        entry["quantity"] = quantity
    quantity_text = optional_text(flags.quantity_text)
    if quantity_text:
        entry["quantity_text"] = quantity_text
    unit = optional_text(flags.unit)
    if unit:
        entry["unit"] = unit

    with ctx.authed_client() as api:
        ctx.write(api.add_shopping_list_items(list_id, [entry]), kind="shopping_list_item")


def run_items_from_recipes(ctx: "AppContext", flags: ParsedFlags) -> None:
    list_id = require_id(flags, _LIST)
    recipe_ids = split_comma_separated(flags.recipe_id)
    if not recipe_ids:
        raise UsageError("recipe-id is required")
    with ctx.authed_client() as api:
        added = api.add_shopping_list_items_from_recipes(list_id, recipe_ids)
    ctx.write(added, kind="shopping_list_item")


def run_items_from_meal_plan(ctx: "AppContext", flags: ParsedFlags) -> None:
    list_id = require_id(flags, _LIST)
    plan_date = parse_iso_date("date", flags.date).strftime(ISO_DATE_FORMAT)
    with ctx.authed_client() as api:
        added = api.add_shopping_list_items_from_meal_plan(list_id, plan_date)
    ctx.write(added, kind="shopping_list_item")


def run_items_purchase(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "shopping-list items purchase")
    list_id, item_id = _list_and_item(flags)
    with ctx.authed_client() as api:
        ctx.write(api.update_shopping_list_item(list_id, item_id, flags.purchased))


def run_items_delete(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "shopping-list items delete")
    list_id, item_id = _list_and_item(flags)
    require_yes(flags)
    with ctx.authed_client() as api:
        api.delete_shopping_list_item(list_id, item_id)
    ctx.write({"shopping_list_id": list_id, "item_id": item_id, "deleted": True})


items_command = CommandNode(
    "items",
    "Manage shopping list items",
    subcommands=(
        CommandNode(
            "list",
            "List items on a shopping list",
            handler=run_items_list,
            usage="<list-id>",
        ),
        CommandNode(
            "create",
            "Add an item to a shopping list",
            flags=item_create_flags,
            handler=run_items_create,
            usage="<list-id> --item-id <id> [--quantity <n>] [--quantity-text <text>] [--unit <text>]",
        ),
        CommandNode(
            "from-recipes",
            "Add the ingredients of recipes",
            flags=from_recipes_flags,
            handler=run_items_from_recipes,
            usage="<list-id> --recipe-id <id> [--recipe-id <id>...]",
        ),
        CommandNode(
            "from-meal-plan",
            "Add the ingredients of a meal plan date",
            flags=from_meal_plan_flags,
            handler=run_items_from_meal_plan,
            usage="<list-id> --date <YYYY-MM-DD>",
        ),
        CommandNode(
            "purchase",
            "Mark an item purchased or unpurchased",
            flags=purchase_flags,
            handler=run_items_purchase,
            usage="--list-id <id> --item-id <id> [--purchased]",
        ),
        CommandNode(
            "delete",
            "Remove an item from a shopping list",
            flags=item_delete_flags,
            handler=run_items_delete,
            usage="--list-id <id> --item-id <id> --yes",
        ),
    ),
)

shopping_list_command = CommandNode(
    "shopping-list",
    "Manage shopping lists",
    subcommands=(
        CommandNode(
            "list",
            "List shopping lists in a date range",
            flags=list_flags,
            handler=run_list,
            usage="--start <YYYY-MM-DD> --end <YYYY-MM-DD>",
        ),
        CommandNode(
            "create",
            "Create a shopping list",
            flags=_list_fields("shopping-list create"),
            handler=run_create,
            usage="--date <YYYY-MM-DD> --name <name> [--notes <text>]",
        ),
        CommandNode("get", "Show a shopping list", handler=run_get, usage="<id>"),
        CommandNode(
            "update",
            "Update a shopping list",
            flags=_list_fields("shopping-list update"),
            handler=run_update,
            usage="<id> --date <YYYY-MM-DD> --name <name> [--notes <text>]",
        ),
        CommandNode(
            "delete",
            "Delete a shopping list",
            flags=delete_flags,
            handler=run_delete,
            usage="<id> --yes",
        ),
        items_command,
    ),
)
