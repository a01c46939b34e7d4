"""Command-scoped flag sets built on :mod:`click`.

Each leaf command declares its own flags with a *builder*: a plain function
that takes an output sink and returns a fresh :class:`FlagSet`::

    def list_flags(sink):
        flags = FlagSet("recipe list", sink)
        flags.string("q", "Search query")
        flags.integer("limit", "Max results")
        return flags

A builder is called for two unrelated purposes:

* **Parsing** -- against the real stderr, to bind the command's argv.
* **Introspection** -- against :data:`DISCARD`, to read back the declared
  flag names for help text and completion scripts (:func:`flag_names`).

Building a flag set never reads argv or writes anything, so calling a
builder any number of times is safe and every call returns an independent
instance.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence, TextIO

import click
from click.core import ParameterSource

from cookctl.exceptions import UsageError
from cookctl.routing.options import OptionDefinition, display_name

UsagePrinter = Callable[[TextIO], None]


class _DiscardSink:
    """Text sink that drops everything written to it."""

    def write(self, text: str) -> int:
        return len(text)

    def flush(self) -> None:
        pass


DISCARD: TextIO = _DiscardSink()  # type: ignore[assignment]
"""Sink used when a builder is invoked only for introspection."""

_POSITIONAL = "args"


def _dest(name: str) -> str:
    return name.replace("-", "_")


class ParsedFlags:
    """Values bound by :meth:`FlagSet.parse`.

    Flag values are exposed as attributes named after the flag with dashes
    replaced by underscores (``flags.book_id``); positional arguments are in
    :attr:`args`.
    """

    def __init__(
        self,
        values: dict[str, Any],
        sources: dict[str, Optional[ParameterSource]],
        args: Sequence[str],
    ) -> None:
        self._values = values
        self._sources = sources
        self.args: list[str] = list(args)

    def __getattr__(self, name: str) -> Any:
        try:
            return self.__dict__["_values"][name]
        except KeyError:
            raise AttributeError(name) from None

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(_dest(name), default)

    def is_set(self, name: str) -> bool:
        """Whether the flag was given on the command line (even with its default value)."""
        return self._sources.get(_dest(name)) == ParameterSource.COMMANDLINE

    def __repr__(self) -> str:
        return f"ParsedFlags({self._values!r}, args={self.args!r})"


class FlagSet:
    """A command's declared flags, bound to an output sink.

    Args:
        name: Full command path, e.g. ``"shopping-list items create"``.
        sink: Where parse errors and usage text are written.
        usage: Usage printer called after a parse error. Defaults to a
            usage line for *name* followed by the declared flags.
    """

    def __init__(
        self,
        name: str,
        sink: Optional[TextIO] = None,
        usage: Optional[UsagePrinter] = None,
    ) -> None:
        self.name = name
        self.sink = sink if sink is not None else DISCARD
        self.usage = usage
        self._params: list[click.Option] = []

    # ------------------------------------------------------------------ #
    # Declaration
    # ------------------------------------------------------------------ #

    def string(self, name: str, help: str = "", default: str = "") -> None:
        """Declare a value-taking string flag."""
        self._add(click.Option([display_name(name), _dest(name)], type=str, default=default, help=help))

    def integer(self, name: str, help: str = "", default: int = 0) -> None:
        """Declare a value-taking integer flag."""
        self._add(click.Option([display_name(name), _dest(name)], type=int, default=default, help=help))

    def boolean(self, name: str, help: str = "", default: bool = False) -> None:
        """Declare a boolean switch."""
        self._add(click.Option([display_name(name), _dest(name)], is_flag=True, default=default, help=help))

    def toggle(self, name: str, negative: str, help: str = "", default: bool = True) -> None:
        """Declare an on/off pair such as ``--create-missing/--no-create-missing``."""
        decl = f"{display_name(name)}/{display_name(negative)}"
        self._add(click.Option([decl, _dest(name)], default=default, help=help))

    def multiple(self, name: str, help: str = "") -> None:
        """Declare a repeatable value-taking flag; parsed as a tuple."""
        self._add(click.Option([display_name(name), _dest(name)], multiple=True, help=help))

    def _add(self, option: click.Option) -> None:
        self._params.append(option)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def options(self) -> list[OptionDefinition]:
        """Every declared flag name as an :class:`OptionDefinition`, in declaration order."""
        definitions = []
        for param in self._params:
            for flag in (*param.opts, *param.secondary_opts):
                definitions.append(
                    OptionDefinition(
                        name=flag.lstrip("-"),
                        takes_value=not param.is_flag,
                        description=param.help or "",
                    )
                )
        return definitions

    def names(self) -> list[str]:
        """Sorted display names (``-q``, ``--limit``) of every declared flag."""
        return sorted(option.display_name for option in self.options())

    def has_flags(self) -> bool:
        return bool(self._params)

    # ------------------------------------------------------------------ #
    # Parsing
    # ------------------------------------------------------------------ #

    def parse(self, args: Sequence[str]) -> ParsedFlags:
        """Bind *args* to the declared flags.

        Flags and positional arguments may be interleaved; ``--`` ends flag
        parsing.

        Raises:
            UsageError: With ``reported=True`` after writing the problem and
                the usage text to the sink.
        """
        command = click.Command(
            self.name,
            params=[*self._params, click.Argument([_POSITIONAL], nargs=-1)],
            add_help_option=False,
        )
        try:
            ctx = command.make_context(self.name, list(args))
        except click.UsageError as exc:
            message = exc.format_message()
            self.sink.write(f"Error: {message}\n")
            self.print_usage()
            raise UsageError(message, reported=True) from exc

        values = dict(ctx.params)
        positional = values.pop(_POSITIONAL, ())
        sources = {param.name: ctx.get_parameter_source(param.name) for param in self._params if param.name}
        return ParsedFlags(values, sources, positional)

    def print_usage(self) -> None:
        if self.usage is not None:
            self.usage(self.sink)
            return
        from cookctl.routing.help import render_flag_usage

        self.sink.write(render_flag_usage(self.name, self.options()))


FlagSetBuilder = Callable[[TextIO], FlagSet]


def introspect(builder: Optional[FlagSetBuilder]) -> list[OptionDefinition]:
    """Build *builder* against :data:`DISCARD` and return its declared options."""
    if builder is None:
        return []
    return builder(DISCARD).options()


def flag_names(builder: Optional[FlagSetBuilder]) -> list[str]:
    """Sorted display names declared by *builder*; empty for ``None``."""
    if builder is None:
        return []
    return builder(DISCARD).names()
