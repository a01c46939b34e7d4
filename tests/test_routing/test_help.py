"""Tests for cookctl.routing.help against the real command tree."""

from __future__ import annotations

import pytest

from cookctl.exceptions import UsageError
from cookctl.registry import COMMANDS
from cookctl.routing.help import render_flag_usage, render_help, render_usage
from cookctl.routing.options import OptionDefinition


class TestRenderUsage:
    def test_lists_every_command_in_order(self) -> None:
        text = render_usage(COMMANDS)
        assert text.startswith("usage: cookctl [global flags] <command> [args]\n")
        positions = [text.index(f"\n  {node.name} ") for node in COMMANDS]
        assert positions == sorted(positions)

    def test_lists_global_flags_with_placeholders(self) -> None:
        text = render_usage(COMMANDS)
        assert "--api-url <url>" in text
        assert "--output <table|json>" in text
        assert "--skip-health-check" in text
        assert "  -h " in text


class TestRenderHelp:
    def test_empty_path_is_top_level(self) -> None:
        assert render_help([], COMMANDS) == render_usage(COMMANDS)

    def test_group(self) -> None:
        text = render_help(["shopping-list"], COMMANDS)
        assert text.startswith("usage: cookctl shopping-list <command> [flags]")
        assert "items" in text

    def test_nested_leaf_lists_own_flags(self) -> None:
        text = render_help(["recipe", "list"], COMMANDS)
        assert text.startswith("usage: cookctl recipe list")
        assert "--limit:" in text
        assert "--with-counts:" in text

    def test_nested_group(self) -> None:
        text = render_help(["shopping-list", "items"], COMMANDS)
        assert "from-recipes" in text
        assert "purchase" in text

    def test_unknown_topic(self) -> None:
        with pytest.raises(UsageError, match="unknown help topic: nope") as excinfo:
            render_help(["nope"], COMMANDS)
        assert excinfo.value.usage == render_usage(COMMANDS)

    def test_unknown_subtopic(self) -> None:
        with pytest.raises(UsageError, match="unknown recipe command: bake") as excinfo:
            render_help(["recipe", "bake"], COMMANDS)
        assert excinfo.value.usage.startswith("usage: cookctl recipe <command> [flags]")

    def test_unknown_third_level_topic(self) -> None:
        with pytest.raises(UsageError, match="unknown shopping-list items command: clear") as excinfo:
            render_help(["shopping-list", "items", "clear"], COMMANDS)
        assert excinfo.value.usage.startswith("usage: cookctl shopping-list items <command> [flags]")

    def test_leaf_has_no_subcommands(self) -> None:
        with pytest.raises(UsageError, match="health has no subcommands"):
            render_help(["health", "extra"], COMMANDS)

    def test_defaults_to_registry(self) -> None:
        assert render_help(["tag"]) == render_help(["tag"], COMMANDS)


class TestRenderFlagUsage:
    def test_with_flags(self) -> None:
        text = render_flag_usage("x", [OptionDefinition("yes", False, "Confirm")])
        assert text == "usage: cookctl x [flags]\nflags:\n  --yes: Confirm\n"

    def test_without_flags(self) -> None:
        assert render_flag_usage("x", []) == "usage: cookctl x [flags]\n"
