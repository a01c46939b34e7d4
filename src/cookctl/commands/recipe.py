"""Recipe commands.

Recipes are the one resource that can be addressed by title as well as by
id: every command that takes a recipe id passes it through
:func:`resolve_recipe_id` first. Create, update and import read recipe
JSON from ``--file`` or ``--stdin``; ``recipe template`` prints a starter
document in that format and ``recipe export`` converts an existing recipe
back into it.

Typical round trip::

    cookctl recipe export "Pancakes" > pancakes.json
    $EDITOR pancakes.json
    cookctl recipe update "Pancakes" --file pancakes.json
"""

from __future__ import annotations

import json
import os
import shlex
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Optional, TextIO

import click

from cookctl.client import APIClient
from cookctl.commands.common import (
    is_terminal,
    is_uuid,
    merge_ids,
    no_args,
    parse_json_object,
    read_input,
    require_id,
    require_yes,
    split_comma_separated,
    split_json_payloads,
)
from cookctl.exceptions import ConflictError, CookctlError, NotFoundError, UsageError
from cookctl.models import RecipeIngredientUpsert, RecipeStepUpsert, RecipeUpsert
from cookctl.output import debug
from cookctl.routing.flagset import FlagSet, FlagSetBuilder, ParsedFlags
from cookctl.routing.tree import CommandNode

if TYPE_CHECKING:
    from cookctl.context import AppContext

RESOLVE_LIMIT = 10
DUPLICATE_CHECK_LIMIT = 25
DEFAULT_EDITOR = "vi"


# ---------------------------------------------------------------------- #
# Name resolution
# ---------------------------------------------------------------------- #


def _candidates(items: Iterable[dict[str, Any]]) -> str:
    return "; ".join(sorted(f"{item.get('title', '')} ({item.get('id', '')})" for item in items))


def _title_matches(items: Iterable[dict[str, Any]], title: str) -> list[dict[str, Any]]:
    wanted = title.casefold()
    return [item for item in items if str(item.get("title", "")).casefold() == wanted]


def resolve_recipe_id(api: APIClient, value: str) -> str:
    """Resolve a recipe id or title to an id.

    A UUID is returned as-is. Anything else is searched for: a single
    case-insensitive exact title match wins, then a sole search result.

    Raises:
        NotFoundError: When the search finds nothing.
        UsageError: When the title is ambiguous; the message lists the
            candidates as ``Title (id)``.
    """
    text = value.strip()
    if not text:
        raise UsageError("recipe id is required")
    if is_uuid(text):
        return text

    items = (api.recipes(query=text, limit=RESOLVE_LIMIT) or {}).get("items") or []
    if not items:
        raise NotFoundError(f"no recipe found matching {text!r}")
    exact = _title_matches(items, text)
    if len(exact) == 1:
        return exact[0]["id"]
    if exact:
        raise UsageError(f"multiple recipes match {text!r}: {_candidates(exact)}")
    if len(items) == 1:
        return items[0]["id"]
    raise UsageError(f"multiple recipes match {text!r}: {_candidates(items)}")


def _resolve_by_name(records: Iterable[dict[str, Any]], name: str, label: str, plural: str) -> str:
    wanted = name.strip()
    if not wanted:
        raise UsageError(f"{label} name is required")
    matches = [r for r in records if str(r.get("name", "")).casefold() == wanted.casefold()]
    if not matches:
        raise NotFoundError(f"no {label} found matching {wanted!r}")
    if len(matches) > 1:
        raise UsageError(f"multiple {plural} match {wanted!r}")
    return matches[0]["id"]


def resolve_book_id(api: APIClient, name: str) -> str:
    return _resolve_by_name(api.recipe_books() or [], name, "recipe book", "recipe books")


def resolve_tag_id(api: APIClient, name: str) -> str:
    return _resolve_by_name(api.tags() or [], name, "tag", "tags")


def resolve_tag_ids(api: APIClient, names: Iterable[str], create_missing: bool) -> list[str]:
    """Map tag names (or ids) to ids, in order and without duplicates.

    Unknown names are created when *create_missing* is set.

    Raises:
        NotFoundError: For an unknown name when *create_missing* is off.
    """
    by_name = {str(tag.get("name", "")).casefold(): tag for tag in api.tags() or []}
    ids: list[str] = []
    for name in names:
        name = name.strip()
        if not name:
            continue
        if is_uuid(name):
            tag_id = name
        elif name.casefold() in by_name:
            tag_id = by_name[name.casefold()]["id"]
        elif create_missing:
            created = api.create_tag(name)
            by_name[str(created.get("name", name)).casefold()] = created
            tag_id = created["id"]
        else:
            raise NotFoundError(f"tag not found: {name}")
        if tag_id not in ids:
            ids.append(tag_id)
    return ids


def ensure_unique_title(api: APIClient, title: str, allow_duplicate: bool) -> None:
    """Refuse to create a second recipe with the same title.

    Raises:
        ConflictError: When a recipe with *title* (case-insensitive)
            already exists and *allow_duplicate* is off.
    """
    if allow_duplicate:
        return
    title = title.strip()
    if not title:
        raise UsageError("title is required")
    items = (api.recipes(query=title, limit=DUPLICATE_CHECK_LIMIT) or {}).get("items") or []
    matches = _title_matches(items, title)
    if matches:
        raise ConflictError(
            f"recipe title already exists: {title} (use --allow-duplicate to override). "
            f"matches: {_candidates(matches)}"
        )


def title_of(payload: dict[str, Any]) -> str:
    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        raise UsageError("title is required")
    return title.strip()


def _export(api: APIClient, recipe_id: str) -> RecipeUpsert:
    return RecipeUpsert.from_detail(api.recipe(recipe_id))


# ---------------------------------------------------------------------- #
# Flags
# ---------------------------------------------------------------------- #


def list_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("recipe list", sink)
    flags.string("q", "Search query")
    flags.string("book-id", "Filter by recipe book id")
    flags.string("book", "Filter by recipe book name")
    flags.string("tag-id", "Filter by tag id")
    flags.string("tag", "Filter by tag name")
    flags.boolean("include-deleted", "Include deleted recipes")
    flags.integer("limit", "Max items per page")
    flags.string("cursor", "Pagination cursor")
    flags.boolean("all", "Fetch all pages")
    flags.integer("servings", "Filter by servings count")
    flags.boolean("with-counts", "Include ingredient and step counts")
    return flags


def _input_flags(command: str, allow_duplicate: bool) -> FlagSetBuilder:
    def build(sink: Optional[TextIO] = None) -> FlagSet:
        flags = FlagSet(command, sink)
        flags.string("file", "Path to recipe JSON")
        flags.boolean("stdin", "Read recipe JSON from stdin")
        if allow_duplicate:
            flags.boolean("allow-duplicate", "Allow duplicate recipe titles")
        return flags

    return build


def create_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = _input_flags("recipe create", allow_duplicate=True)(sink)
    flags.boolean("interactive", "Prompt for recipe fields")
    return flags


def tag_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("recipe tag", sink)
    flags.boolean("replace", "Replace existing tags")
    flags.toggle("create-missing", "no-create-missing", "Create missing tags")
    return flags


def clone_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("recipe clone", sink)
    flags.string("title", "Title for the cloned recipe")
    flags.boolean("allow-duplicate", "Allow duplicate recipe titles")
    return flags


def edit_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("recipe edit", sink)
    flags.string("editor", "Editor command")
    return flags


def _confirm_flags(command: str, description: str) -> FlagSetBuilder:
    def build(sink: Optional[TextIO] = None) -> FlagSet:
        flags = FlagSet(command, sink)
        flags.boolean("yes", description)
        return flags

    return build


def _read_recipe_json(ctx: "AppContext", flags: ParsedFlags) -> dict[str, Any]:
    path = flags.file.strip()
    if bool(path) == bool(flags.stdin):
        raise UsageError("provide --file or --stdin")
    return parse_json_object(read_input(ctx.stdin, path, flags.stdin))


# ---------------------------------------------------------------------- #
# Interactive input
# ---------------------------------------------------------------------- #


def _ask_optional(label: str) -> Optional[str]:
    try:
        value = click.prompt(label, default="", show_default=False, err=True)
    except click.Abort:
        return None
    return value.strip() or None


def _ask_lines(label: str) -> list[str]:
    """Prompt for *label* until a blank line or end of input."""
    lines: list[str] = []
    while True:
        line = _ask_optional(label)
        if line is None:
            return lines
        lines.append(line)


def prompt_recipe(api: APIClient) -> RecipeUpsert:
    """Build a recipe by prompting for each field.

    Prompts go to stderr and answers are read from stdin with
    :func:`click.prompt`, so numbers are re-asked until valid. The book
    may be given by name or id; unknown tags are created. Ingredients and
    steps are read one per line until a blank line.

    Raises:
        UsageError: When input ends before the title and times are read,
            or no step is given.
    """
    try:
        title = ""
        while not title:
            title = click.prompt("Title", err=True).strip()
        servings = click.prompt("Servings", default=1, type=click.IntRange(min=1), err=True)
        prep = click.prompt("Prep time minutes", default=0, type=click.IntRange(min=0), err=True)
        total = click.prompt("Total time minutes", default=0, type=click.IntRange(min=0), err=True)
    except click.Abort as exc:
        raise UsageError("recipe input ended early") from exc

    source_url = _ask_optional("Source URL (optional)")
    notes = _ask_optional("Notes (optional)")
    book = _ask_optional("Recipe book (name or id, optional)")
    book_id = None
    if book:
        book_id = book if is_uuid(book) else resolve_book_id(api, book)
    tags = _ask_optional("Tags (comma-separated, optional)")
    tag_ids = resolve_tag_ids(api, split_comma_separated([tags]), create_missing=True) if tags else []

    click.echo("Enter ingredients (blank to finish):", err=True)
    ingredients = [
        RecipeIngredientUpsert(position=position, item_name=line, original_text=line)
        for position, line in enumerate(_ask_lines("Ingredient"), start=1)
    ]
    click.echo("Enter steps (blank to finish):", err=True)
    steps = [
        RecipeStepUpsert(step_number=number, instruction=line)
        for number, line in enumerate(_ask_lines("Step"), start=1)
    ]
    if not steps:
        raise UsageError("at least one step is required")

    return RecipeUpsert(
        title=title,
        servings=servings,
        prep_time_minutes=prep,
        total_time_minutes=total,
        source_url=source_url,
        notes=notes,
        recipe_book_id=book_id,
        tag_ids=tag_ids,
        ingredients=ingredients,
        steps=steps,
    )


# ---------------------------------------------------------------------- #
# Handlers
# ---------------------------------------------------------------------- #


def _with_counts(api: APIClient, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    counted = []
    for item in items:
        detail = api.recipe(item["id"])
        counted.append(
            {
                **item,
                "ingredient_count": len(detail.get("ingredients") or []),
                "step_count": len(detail.get("steps") or []),
            }
        )
    return counted


def run_list(ctx: "AppContext", flags: ParsedFlags) -> None:
    """List recipes, optionally walking every page.

    ``--servings`` filters client-side, so it forces ``--all``.
    """
    no_args(flags, "recipe list")
    if flags.limit < 0:
        raise UsageError("limit must be positive")
    if flags.servings < 0:
        raise UsageError("servings must be positive")
    if flags.book_id.strip() and flags.book.strip():
        raise UsageError("book and book-id cannot be combined")
    if flags.tag_id.strip() and flags.tag.strip():
        raise UsageError("tag and tag-id cannot be combined")

    fetch_all = flags.all or flags.servings > 0
    with ctx.authed_client() as api:
        book_id = resolve_book_id(api, flags.book) if flags.book.strip() else flags.book_id.strip()
        tag_id = resolve_tag_id(api, flags.tag) if flags.tag.strip() else flags.tag_id.strip()

        cursor = flags.cursor.strip()
        items: list[dict[str, Any]] = []
        while True:
            page = api.recipes(
                query=flags.q.strip(),
                book_id=book_id,
                tag_id=tag_id,
                include_deleted=flags.include_deleted,
                limit=flags.limit,
                cursor=cursor,
            ) or {}
            items.extend(page.get("items") or [])
            next_cursor = (page.get("next_cursor") or "").strip()
            if not fetch_all or not next_cursor:
                break
            debug(f"fetching next recipe page {next_cursor}")
            cursor = next_cursor

        if flags.servings > 0:
            items = [item for item in items if item.get("servings") == flags.servings]
        kind = "recipe"
        if flags.with_counts:
            items = _with_counts(api, items)
            kind = "recipe_counts"

    result: dict[str, Any] = {"items": items}
    if not fetch_all and next_cursor:
        result["next_cursor"] = next_cursor
    ctx.write(result, kind=kind)


def run_get(ctx: "AppContext", flags: ParsedFlags) -> None:
    value = require_id(flags, "recipe")
    with ctx.authed_client() as api:
        ctx.write(api.recipe(resolve_recipe_id(api, value)))


def run_create(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "recipe create")
    path = flags.file.strip()
    if flags.interactive:
        if path or flags.stdin:
            raise UsageError("interactive cannot be combined with --file or --stdin")
        with ctx.authed_client() as api:
            recipe = prompt_recipe(api)
            ensure_unique_title(api, recipe.title, flags.allow_duplicate)
            ctx.write(api.create_recipe(recipe.to_payload()))
        return
    if not path and not flags.stdin:
        raise UsageError("provide --file, --stdin, or --interactive")
    payload = _read_recipe_json(ctx, flags)
    title = title_of(payload)
    with ctx.authed_client() as api:
        ensure_unique_title(api, title, flags.allow_duplicate)
        ctx.write(api.create_recipe(payload))


def run_update(ctx: "AppContext", flags: ParsedFlags) -> None:
    value = require_id(flags, "recipe")
    payload = _read_recipe_json(ctx, flags)
    with ctx.authed_client() as api:
        recipe_id = resolve_recipe_id(api, value)
        ctx.write(api.update_recipe(recipe_id, payload))


def run_init(ctx: "AppContext", flags: ParsedFlags) -> None:
    """Print a starter document, or an existing recipe in upsert form."""
    if len(flags.args) > 1:
        raise UsageError("too many arguments")
    if not flags.args or not flags.args[0].strip():
        ctx.write(RecipeUpsert.template().to_payload())
        return
    with ctx.authed_client() as api:
        ctx.write(_export(api, resolve_recipe_id(api, flags.args[0])).to_payload())


def run_template(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "template")
    ctx.write(RecipeUpsert.template().to_payload())


def run_export(ctx: "AppContext", flags: ParsedFlags) -> None:
    value = require_id(flags, "recipe")
    with ctx.authed_client() as api:
        ctx.write(_export(api, resolve_recipe_id(api, value)).to_payload())


def run_import(ctx: "AppContext", flags: ParsedFlags) -> None:
    """Create recipes from a JSON object or an array of objects.

    Reads stdin when neither ``--file`` nor ``--stdin`` is given and stdin
    is not a terminal. Stops at the first failing payload; recipes created
    before it are kept.
    """
    no_args(flags, "recipe import")
    path = flags.file.strip()
    use_stdin = flags.stdin
    if not path and not use_stdin:
        if is_terminal(ctx.stdin):
            raise UsageError("provide --file or --stdin")
        use_stdin = True
    if path and use_stdin:
        raise UsageError("provide --file or --stdin")
    payloads = split_json_payloads(read_input(ctx.stdin, path, use_stdin))

    imported = []
    with ctx.authed_client() as api:
        for index, payload in enumerate(payloads, start=1):
            try:
                title = title_of(payload)
                ensure_unique_title(api, title, flags.allow_duplicate)
            except UsageError as exc:
                raise UsageError(f"payload {index}: {exc}") from exc
            except ConflictError as exc:
                raise ConflictError(f"payload {index}: {exc}") from exc
            created = api.create_recipe(payload) or {}
            imported.append({"id": created.get("id"), "title": created.get("title")})
    ctx.write({"items": imported}, kind="import")


def run_tag(ctx: "AppContext", flags: ParsedFlags) -> None:
    """Add tags to a recipe by name, creating unknown tags by default."""
    if not flags.args or not flags.args[0].strip():
        raise UsageError("recipe id is required")
    value = flags.args[0]
    names = [name.strip() for name in flags.args[1:] if name.strip()]
    if not names:
        raise UsageError("at least one tag is required")

    with ctx.authed_client() as api:
        recipe_id = resolve_recipe_id(api, value)
        tag_ids = resolve_tag_ids(api, names, flags.create_missing)
        payload = _export(api, recipe_id)
        payload.tag_ids = tag_ids if flags.replace else merge_ids(payload.tag_ids, tag_ids)
        ctx.write(api.update_recipe(recipe_id, payload.to_payload()))


def run_clone(ctx: "AppContext", flags: ParsedFlags) -> None:
    value = require_id(flags, "recipe")
    with ctx.authed_client() as api:
        payload = _export(api, resolve_recipe_id(api, value))
        payload.title = flags.title.strip() or f"{payload.title} (copy)"
        ensure_unique_title(api, payload.title, flags.allow_duplicate)
        ctx.write(api.create_recipe(payload.to_payload()))


def editor_command(override: str = "") -> list[str]:
    """The editor argv: ``--editor``, then ``$VISUAL``, ``$EDITOR``, ``vi``.

    Raises:
        CookctlError: When the editor executable is not on ``PATH``.
    """
    command = override.strip() or os.environ.get("VISUAL", "").strip() or os.environ.get("EDITOR", "").strip()
    argv = shlex.split(command or DEFAULT_EDITOR)
    if not argv:
        raise CookctlError("editor is empty")
    if shutil.which(argv[0]) is None:
        raise CookctlError(f"editor not found: {argv[0]}")
    return argv


def run_edit(ctx: "AppContext", flags: ParsedFlags) -> None:
    """Open a recipe in an editor and save the result."""
    value = require_id(flags, "recipe")
    with ctx.authed_client() as api:
        recipe_id = resolve_recipe_id(api, value)
        document = json.dumps(_export(api, recipe_id).to_payload(), indent=2)
        argv = editor_command(flags.editor)

        with tempfile.TemporaryDirectory(prefix="cookctl-recipe-") as tmp:
            path = Path(tmp) / "recipe.json"
            path.write_text(document + "\n", encoding="utf-8")
            path.chmod(0o600)
            debug(f"running editor: {' '.join(argv)}")
            result = subprocess.run([*argv, str(path)], check=False)
            if result.returncode != 0:
                raise CookctlError(f"editor exited with status {result.returncode}")
            payload = parse_json_object(read_input(ctx.stdin, str(path), False))

        ctx.write(api.update_recipe(recipe_id, payload))


def run_delete(ctx: "AppContext", flags: ParsedFlags) -> None:
    value = require_id(flags, "recipe")
    require_yes(flags)
    with ctx.authed_client() as api:
        recipe_id = resolve_recipe_id(api, value)
        api.delete_recipe(recipe_id)
    ctx.write({"id": recipe_id, "deleted": True})


def run_restore(ctx: "AppContext", flags: ParsedFlags) -> None:
    value = require_id(flags, "recipe")
    require_yes(flags)
    with ctx.authed_client() as api:
        recipe_id = resolve_recipe_id(api, value)
        api.restore_recipe(recipe_id)
    ctx.write({"id": recipe_id, "restored": True})


recipe_command = CommandNode(
    "recipe",
    "Manage recipes",
    subcommands=(
        CommandNode(
            "list",
            "List recipes",
            flags=list_flags,
            handler=run_list,
            usage="[-q <query>] [--book <name>|--book-id <id>] [--tag <name>|--tag-id <id>] "
            "[--limit <n>] [--cursor <c>] [--all] [--servings <n>] [--with-counts]",
        ),
        CommandNode("get", "Show a recipe", handler=run_get, usage="<id|title>"),
        CommandNode(
            "create",
            "Create a recipe from JSON or prompts",
            flags=create_flags,
            handler=run_create,
            usage="--file <path>|--stdin|--interactive [--allow-duplicate]",
        ),
        CommandNode(
            "update",
            "Replace a recipe from JSON",
            flags=_input_flags("recipe update", allow_duplicate=False),
            handler=run_update,
            usage="<id|title> --file <path>|--stdin",
        ),
        CommandNode("init", "Print a recipe document to start from", handler=run_init, usage="[<id|title>]"),
        CommandNode("template", "Print a blank recipe document", handler=run_template),
        CommandNode("export", "Print a recipe as JSON for editing", handler=run_export, usage="<id|title>"),
        CommandNode(
            "import",
            "Create recipes from a JSON object or array",
            flags=_input_flags("recipe import", allow_duplicate=True),
            handler=run_import,
            usage="[--file <path>|--stdin] [--allow-duplicate]",
        ),
        CommandNode(
            "tag",
            "Add tags to a recipe",
            flags=tag_flags,
            handler=run_tag,
            usage="<id|title> <tag>... [--replace] [--no-create-missing]",
        ),
        CommandNode(
            "clone",
            "Copy a recipe",
            flags=clone_flags,
            handler=run_clone,
            usage="<id|title> [--title <title>] [--allow-duplicate]",
        ),
        CommandNode("edit", "Edit a recipe in $EDITOR", flags=edit_flags, handler=run_edit, usage="<id|title> [--editor <cmd>]"),
        CommandNode(
            "delete",
            "Delete a recipe",
            flags=_confirm_flags("recipe delete", "Confirm recipe deletion"),
            handler=run_delete,
            usage="<id|title> --yes",
        ),
        CommandNode(
            "restore",
            "Restore a deleted recipe",
            flags=_confirm_flags("recipe restore", "Confirm recipe restore"),
            handler=run_restore,
            usage="<id|title> --yes",
        ),
    ),
)
