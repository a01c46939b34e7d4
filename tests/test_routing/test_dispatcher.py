"""Tests for cookctl.routing.dispatcher and cookctl.routing.tree."""

from __future__ import annotations

import io
from typing import Any

import pytest

from cookctl.config import Config
from cookctl.context import AppContext
from cookctl.exceptions import UsageError
from cookctl.output import OutputManager
from cookctl.routing.dispatcher import dispatch
from cookctl.routing.flagset import FlagSet
from cookctl.routing.tree import (
    CommandNode,
    command_names,
    command_path_prefix,
    descendant_flag_names,
    find_command_path,
    validate_tree,
    walk,
)

calls: list[tuple[str, Any]] = []


def _record(label: str):
    def handler(ctx: AppContext, flags) -> None:
        calls.append((label, flags))

    return handler


def _list_flags(sink):
    flags = FlagSet("widget list", sink)
    flags.integer("limit", "Max results")
    return flags


def _create_flags(sink):
    flags = FlagSet("widget create", sink)
    flags.string("name", "Widget name")
    return flags


def _shell_flags(sink):
    return FlagSet("complete", sink)


TREE = (
    CommandNode("ping", "Check", handler=_record("ping")),
    CommandNode(
        "widget",
        "Manage widgets",
        subcommands=(
            CommandNode("list", "List widgets", flags=_list_flags, handler=_record("widget list")),
            CommandNode("create", "Create a widget", flags=_create_flags, handler=_record("widget create")),
            CommandNode(
                "parts",
                "Widget parts",
                subcommands=(CommandNode("list", "List parts", handler=_record("widget parts list")),),
            ),
        ),
    ),
    CommandNode(
        "complete",
        "Print a script",
        flags=_shell_flags,
        handler=_record("complete"),
        subcommands=(CommandNode("bash", "Bash", handler=_record("complete bash")),),
    ),
)


@pytest.fixture(autouse=True)
def _clear_calls() -> None:
    calls.clear()


@pytest.fixture
def ctx() -> AppContext:
    output = OutputManager(stdout=io.StringIO(), stderr=io.StringIO())
    return AppContext(Config(), output, TREE)


def _stdout(ctx: AppContext) -> str:
    return ctx.stdout.getvalue()


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    def test_top_level_leaf(self, ctx: AppContext) -> None:
        assert dispatch(ctx, ["ping"]) == 0
        assert calls[0][0] == "ping"

    def test_nested_leaf_with_flags(self, ctx: AppContext) -> None:
        dispatch(ctx, ["widget", "list", "--limit", "3", "extra"])
        label, flags = calls[0]
        assert label == "widget list"
        assert flags.limit == 3
        assert flags.args == ["extra"]

    def test_two_levels_deep(self, ctx: AppContext) -> None:
        dispatch(ctx, ["widget", "parts", "list"])
        assert calls[0][0] == "widget parts list"

    def test_leaf_without_flags_collects_positionals(self, ctx: AppContext) -> None:
        dispatch(ctx, ["ping", "a", "b"])
        assert calls[0][1].args == ["a", "b"]

    def test_group_handler_runs_for_unknown_child(self, ctx: AppContext) -> None:
        dispatch(ctx, ["complete", "fish"])
        label, flags = calls[0]
        assert label == "complete"
        assert flags.args == ["fish"]

    def test_group_handler_runs_with_no_child(self, ctx: AppContext) -> None:
        dispatch(ctx, ["complete"])
        assert calls[0][0] == "complete"
        assert calls[0][1].args == []

    def test_group_with_handler_still_routes_known_child(self, ctx: AppContext) -> None:
        dispatch(ctx, ["complete", "bash"])
        assert calls[0][0] == "complete bash"


class TestDispatchErrors:
    def test_missing_command(self, ctx: AppContext) -> None:
        with pytest.raises(UsageError, match="missing command") as excinfo:
            dispatch(ctx, [])
        assert "usage: cookctl [global flags]" in excinfo.value.usage

    def test_unknown_top_level(self, ctx: AppContext) -> None:
        with pytest.raises(UsageError, match="unknown command: frobnicate"):
            dispatch(ctx, ["frobnicate"])

    def test_unknown_subcommand(self, ctx: AppContext) -> None:
        with pytest.raises(UsageError, match="unknown widget command: explode") as excinfo:
            dispatch(ctx, ["widget", "explode"])
        assert excinfo.value.usage.startswith("usage: cookctl widget <command> [flags]")

    def test_unknown_nested_subcommand(self, ctx: AppContext) -> None:
        with pytest.raises(UsageError, match="unknown widget parts command: x"):
            dispatch(ctx, ["widget", "parts", "x"])

    def test_group_requires_subcommand(self, ctx: AppContext) -> None:
        with pytest.raises(UsageError, match="widget requires a subcommand"):
            dispatch(ctx, ["widget"])

    def test_bad_flag_is_reported_once(self, ctx: AppContext) -> None:
        with pytest.raises(UsageError) as excinfo:
            dispatch(ctx, ["widget", "create", "--colour", "red"])
        assert excinfo.value.reported
        stderr = ctx.stderr.getvalue()
        assert stderr.startswith("Error: ")
        assert "--colour" in stderr.splitlines()[0]
        assert "usage: cookctl widget create [flags]" in stderr
        assert calls == []


class TestDispatchHelp:
    def test_help_after_group(self, ctx: AppContext) -> None:
        assert dispatch(ctx, ["widget", "--help"]) == 0
        out = _stdout(ctx)
        assert "usage: cookctl widget <command> [flags]" in out
        assert "create" in out and "parts" in out
        assert calls == []

    def test_help_anywhere_in_leaf_args(self, ctx: AppContext) -> None:
        dispatch(ctx, ["widget", "create", "--name", "x", "-h"])
        assert "--name: Widget name" in _stdout(ctx)
        assert calls == []

    def test_help_after_double_dash_is_an_argument(self, ctx: AppContext) -> None:
        dispatch(ctx, ["ping", "--", "--help"])
        assert calls[0][1].args == ["--help"]


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------


class TestTree:
    def test_find_command_path(self) -> None:
        node = find_command_path(TREE, ["widget", "parts", "list"])
        assert node is not None and node.synopsis == "List parts"
        assert find_command_path(TREE, ["widget", "nope"]) is None

    def test_command_path_prefix(self) -> None:
        assert command_path_prefix(TREE, ["widget", "list", "--limit", "2"]) == ["widget", "list"]
        assert command_path_prefix(TREE, ["nope"]) == []

    def test_command_names_sorted(self) -> None:
        assert command_names(TREE) == ["complete", "ping", "widget"]

    def test_descendant_flag_names(self) -> None:
        assert descendant_flag_names(TREE[1]) == ["--limit", "--name"]

    def test_walk_is_depth_first(self) -> None:
        paths = [" ".join(path) for path, _ in walk(TREE)]
        assert paths[:5] == ["ping", "widget", "widget list", "widget create", "widget parts"]

    def test_validate_rejects_duplicate_siblings(self) -> None:
        duplicated = (CommandNode("a", subcommands=(CommandNode("b"), CommandNode("b"))),)
        with pytest.raises(ValueError, match="duplicate command 'b' under a"):
            validate_tree(duplicated)

    def test_same_name_under_different_parents_is_fine(self) -> None:
        assert validate_tree(TREE) is TREE

    def test_validate_rejects_leaf_without_handler(self) -> None:
        tree = (CommandNode("a", subcommands=(CommandNode("b", handler=_record("a b")), CommandNode("c"))),)
        with pytest.raises(ValueError, match="command 'a c' has no handler"):
            validate_tree(tree)

    def test_group_handler_is_optional(self) -> None:
        tree = (CommandNode("a", subcommands=(CommandNode("b", handler=_record("a b")),)),)
        assert validate_tree(tree) is tree
