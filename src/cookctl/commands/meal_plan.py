"""Meal plan commands: recipes scheduled on calendar dates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, TextIO

from cookctl.commands.common import ISO_DATE_FORMAT, no_args, parse_iso_date, require_text, require_yes
from cookctl.exceptions import UsageError
from cookctl.routing.flagset import FlagSet, ParsedFlags
from cookctl.routing.tree import CommandNode

if TYPE_CHECKING:
    from cookctl.context import AppContext


def list_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("meal-plan list", sink)
    flags.string("start", "Start date (YYYY-MM-DD)")
    flags.string("end", "End date (YYYY-MM-DD)")
    return flags


def create_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("meal-plan create", sink)
    flags.string("date", "Meal plan date (YYYY-MM-DD)")
    flags.string("recipe-id", "Recipe id")
    return flags


def delete_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("meal-plan delete", sink)
    flags.string("date", "Meal plan date (YYYY-MM-DD)")
    flags.string("recipe-id", "Recipe id")
    flags.boolean("yes", "Confirm meal plan deletion")
    return flags


def run_list(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "meal-plan list")
    start = parse_iso_date("start", flags.start)
    end = parse_iso_date("end", flags.end)
    if end < start:
        raise UsageError("end must be on or after start")

    with ctx.authed_client() as api:
        entries = api.meal_plans(start.strftime(ISO_DATE_FORMAT), end.strftime(ISO_DATE_FORMAT))
    ctx.write(entries, kind="meal_plan")


def run_create(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "meal-plan create")
    day = parse_iso_date("date", flags.date).strftime(ISO_DATE_FORMAT)
    recipe_id = require_text(flags.recipe_id, "recipe-id")
    with ctx.authed_client() as api:
        ctx.write(api.create_meal_plan(day, recipe_id), kind="meal_plan")


def run_delete(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "meal-plan delete")
    day = parse_iso_date("date", flags.date).strftime(ISO_DATE_FORMAT)
    recipe_id = require_text(flags.recipe_id, "recipe-id")
    require_yes(flags)
    with ctx.authed_client() as api:
        api.delete_meal_plan(day, recipe_id)
    ctx.write({"date": day, "recipe_id": recipe_id, "deleted": True})


meal_plan_command = CommandNode(
    "meal-plan",
    "Manage meal plans",
    subcommands=(
        CommandNode(
            "list",
            "List meal plan entries in a date range",
            flags=list_flags,
            handler=run_list,
            usage="--start <YYYY-MM-DD> --end <YYYY-MM-DD>",
        ),
        CommandNode(
            "create",
            "Schedule a recipe on a date",
            flags=create_flags,
            handler=run_create,
            usage="--date <YYYY-MM-DD> --recipe-id <id>",
        ),
        CommandNode(
            "delete",
            "Remove a recipe from a date",
            flags=delete_flags,
            handler=run_delete,
            usage="--date <YYYY-MM-DD> --recipe-id <id> --yes",
        ),
    ),
)
