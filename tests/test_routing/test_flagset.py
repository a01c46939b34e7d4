"""Tests for cookctl.routing.flagset."""

from __future__ import annotations

import io

import pytest

from cookctl.exceptions import UsageError
from cookctl.routing.flagset import DISCARD, FlagSet, flag_names, introspect


def _list_flags(sink):
    flags = FlagSet("recipe list", sink)
    flags.string("q", "Search query")
    flags.integer("limit", "Max results", default=50)
    flags.boolean("all", "Fetch all pages")
    flags.string("book-id", "Book id")
    return flags


def _tag_flags(sink):
    flags = FlagSet("recipe tag", sink)
    flags.boolean("replace", "Replace existing tags")
    flags.toggle("create-missing", "no-create-missing", "Create tags that do not exist")
    flags.multiple("recipe-id", "Recipe id (repeatable)")
    return flags


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    def test_defaults(self) -> None:
        parsed = _list_flags(DISCARD).parse([])
        assert parsed.q == ""
        assert parsed.limit == 50
        assert parsed.all is False
        assert parsed.book_id == ""
        assert parsed.args == []

    def test_values_and_positionals_interleaved(self) -> None:
        parsed = _list_flags(DISCARD).parse(["pasta", "--limit", "5", "-q", "soup", "extra"])
        assert parsed.limit == 5
        assert parsed.q == "soup"
        assert parsed.args == ["pasta", "extra"]

    def test_inline_value(self) -> None:
        parsed = _list_flags(DISCARD).parse(["--book-id=b-1"])
        assert parsed.get("book-id") == "b-1"

    def test_double_dash_ends_flags(self) -> None:
        parsed = _list_flags(DISCARD).parse(["--", "--limit"])
        assert parsed.limit == 50
        assert parsed.args == ["--limit"]

    def test_is_set_distinguishes_default(self) -> None:
        parsed = _list_flags(DISCARD).parse(["--limit", "50"])
        assert parsed.is_set("limit")
        assert not parsed.is_set("q")
        assert not parsed.is_set("unknown")

    def test_toggle(self) -> None:
        assert _tag_flags(DISCARD).parse([]).create_missing is True
        assert _tag_flags(DISCARD).parse(["--no-create-missing"]).create_missing is False

    def test_multiple(self) -> None:
        parsed = _tag_flags(DISCARD).parse(["--recipe-id", "a", "--recipe-id", "b,c"])
        assert parsed.recipe_id == ("a", "b,c")

    def test_unknown_attribute(self) -> None:
        parsed = _list_flags(DISCARD).parse([])
        with pytest.raises(AttributeError):
            parsed.nope

    def test_each_parse_is_independent(self) -> None:
        flags = _list_flags(DISCARD)
        first = flags.parse(["-q", "a"])
        second = flags.parse([])
        assert first.q == "a"
        assert second.q == ""


class TestParseErrors:
    def test_unknown_flag_is_reported_to_sink(self) -> None:
        sink = io.StringIO()
        with pytest.raises(UsageError) as excinfo:
            _list_flags(sink).parse(["--bogus"])
        assert excinfo.value.reported is True
        text = sink.getvalue()
        assert text.startswith("Error: ")
        assert "--bogus" in text.splitlines()[0]
        assert "usage: cookctl recipe list [flags]" in text
        assert "--limit: Max results" in text

    def test_invalid_integer(self) -> None:
        sink = io.StringIO()
        with pytest.raises(UsageError):
            _list_flags(sink).parse(["--limit", "many"])
        assert "--limit" in sink.getvalue()

    def test_missing_value(self) -> None:
        with pytest.raises(UsageError):
            _list_flags(io.StringIO()).parse(["--book-id"])

    def test_custom_usage_printer(self) -> None:
        sink = io.StringIO()
        flags = FlagSet("token revoke", sink, usage=lambda out: out.write("usage: custom\n"))
        flags.boolean("yes")
        with pytest.raises(UsageError):
            flags.parse(["--no"])
        assert sink.getvalue().endswith("usage: custom\n")


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------


class TestIntrospection:
    def test_names_sorted_with_short_dash(self) -> None:
        assert flag_names(_list_flags) == ["--all", "--book-id", "--limit", "-q"]

    def test_toggle_contributes_both_names(self) -> None:
        assert flag_names(_tag_flags) == ["--create-missing", "--no-create-missing", "--recipe-id", "--replace"]

    def test_none_builder(self) -> None:
        assert flag_names(None) == []
        assert introspect(None) == []

    def test_options_keep_declaration_order(self) -> None:
        options = introspect(_list_flags)
        assert [o.name for o in options] == ["q", "limit", "all", "book-id"]
        assert [o.takes_value for o in options] == [True, True, False, True]
        assert options[0].description == "Search query"

    def test_builder_writes_nothing(self) -> None:
        sink = io.StringIO()
        _list_flags(sink).names()
        assert sink.getvalue() == ""

    def test_has_flags(self) -> None:
        assert _list_flags(DISCARD).has_flags()
        assert not FlagSet("health").has_flags()
