"""Output formatting with strict stdout/stderr discipline.

* **stdout** -- primary data only (API results, JSON, tables, help text,
  completion scripts). This is what downstream tools pipe and parse.
* **stderr** -- all diagnostics (errors, warnings, debug traces, usage
  text after a usage error). Never contaminates the data stream.
* **TTY detection** -- Rich tables and colour when the stream is an
  interactive terminal, tab-separated plain text when piped.
* **Colour control** -- respects ``NO_COLOR`` and ``TERM=dumb``.

The module exposes two layers:

1. :class:`OutputManager` -- holds the output format, the two streams and
   the debug flag. Created once per invocation by :func:`cookctl.app.run`
   and installed via :func:`set_output`.
2. Module-level convenience functions (:func:`error`, :func:`debug`, ...)
   that delegate to the global instance, so the HTTP client can log
   without having the manager passed around.

Table rendering dispatches on a *kind* string (``"recipe"``, ``"tag"``,
...) to pick the columns shown for a list of records; see
:data:`TABLE_COLUMNS`.
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any, Callable, Optional, TextIO

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cookctl.config import OutputFormat

TABLE_COLUMNS: dict[str, list[str]] = {
    "recipe": ["id", "title", "servings", "prep_time_minutes", "total_time_minutes"],
    "recipe_counts": ["id", "title", "servings", "ingredient_count", "step_count"],
    "tag": ["id", "name"],
    "book": ["id", "name"],
    "item": ["id", "name", "store_url", "aisle_id"],
    "user": ["id", "username", "display_name", "is_active"],
    "token": ["id", "name", "created_at", "expires_at", "last_used_at"],
    "meal_plan": ["date", "recipe_id", "title"],
    "shopping_list": ["id", "list_date", "name", "notes"],
    "shopping_list_item": ["id", "item_id", "name", "quantity", "unit", "is_purchased"],
    "import": ["id", "title"],
}
"""Column layout per record kind for table output of record lists."""


class OutputManager:
    """Central manager for all CLI output with stdout/stderr discipline.

    Args:
        format: Output format for command results.
        stdout: Data stream. Defaults to :data:`sys.stdout`.
        stderr: Diagnostics stream. Defaults to :data:`sys.stderr`.
        no_color: Disable colour and Rich markup on stderr.
        verbose: Emit ``[debug]`` messages (the ``--debug`` global option).
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.TABLE,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        no_color: bool = False,
        verbose: bool = False,
    ) -> None:
        self._format = format
        self._out = stdout if stdout is not None else sys.stdout
        self._err = stderr if stderr is not None else sys.stderr
        self._no_color = no_color or _should_disable_color() or not _is_tty(self._err)
        self._verbose = verbose

        self._stdout = Console(file=self._out, no_color=no_color or _should_disable_color(), soft_wrap=True)
        self._stderr = Console(file=self._err, no_color=self._no_color, stderr=True, soft_wrap=True)

        self._renderers: dict[type, Callable[[Any, Optional[str]], None]] = {
            dict: self._render_mapping,
            list: self._render_records,
            str: self._render_text,
        }

    @property
    def format(self) -> OutputFormat:
        """The active output format."""
        return self._format

    @property
    def is_verbose(self) -> bool:
        """Whether debug messages are shown."""
        return self._verbose

    @property
    def stdout(self) -> TextIO:
        return self._out

    @property
    def stderr(self) -> TextIO:
        return self._err

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any, kind: Optional[str] = None) -> None:
        """Render a command result to stdout in the active format.

        In JSON mode the payload is printed as indented JSON. In table mode
        a renderer is chosen by payload type: mappings print one
        ``key<TAB>value`` line per field (or, for ``{"items": [...]}``
        envelopes, the list), lists print as a table whose columns come
        from :data:`TABLE_COLUMNS` for *kind*, and strings print verbatim.

        Args:
            data: Result payload -- a dict, list, or string.
            kind: Record kind used to choose table columns.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
            return

        renderer = self._renderers.get(type(data))
        if renderer is None:
            self.print_data(_cell(data))
            return
        renderer(data, kind)

    def print_data(self, text: str) -> None:
        """Print raw text to stdout, appending a newline if missing."""
        self.print_text(text if text.endswith("\n") else text + "\n")

    def print_text(self, text: str) -> None:
        """Write *text* to stdout exactly as given."""
        self._out.write(text)
        self._out.flush()

    def print_usage(self, text: str, to_stderr: bool = False) -> None:
        """Write help or usage text to stdout, or to stderr after a usage error."""
        stream = self._err if to_stderr else self._out
        stream.write(text if text.endswith("\n") else text + "\n")
        stream.flush()

    def print_table(self, headers: list[str], rows: list[list[str]]) -> None:
        """Print tabular data to stdout.

        * **Terminal** -- styled :class:`~rich.table.Table`.
        * **Piped** -- tab-separated values with a header line.
        """
        if _is_tty(self._out):
            table = Table(show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*[escape(cell) for cell in row])
            self._stdout.print(table)
            return

        self.print_data("\t".join(headers))
        for row in rows:
            self.print_data("\t".join(row))

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message to stderr."""
        self._emit(message, None)

    def success(self, message: str) -> None:
        """Print a green success message to stderr."""
        self._emit(message, "green")

    def warning(self, message: str) -> None:
        """Print a yellow ``Warning:`` message to stderr."""
        if self._no_color:
            self._write_err(f"Warning: {message}")
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print a bold-red ``Error:`` message to stderr. Never suppressed."""
        if self._no_color:
            self._write_err(f"Error: {message}")
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        """Print a ``[debug]`` message to stderr when ``--debug`` is active."""
        if not self._verbose:
            return
        if self._no_color:
            self._write_err(f"[debug] {message}")
        else:
            self._stderr.print(f"[dim]{escape('[debug]')} {escape(message)}[/dim]")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _emit(self, message: str, style: Optional[str]) -> None:
        if self._no_color or style is None:
            self._write_err(message)
        else:
            self._stderr.print(f"[{style}]{escape(message)}[/{style}]")

    def _write_err(self, text: str) -> None:
        self._err.write(text + "\n")
        self._err.flush()

    def _render_text(self, data: str, kind: Optional[str]) -> None:
        self.print_data(data)

    def _render_mapping(self, data: dict[str, Any], kind: Optional[str]) -> None:
        items = data.get("items")
        if isinstance(items, list) and set(data) <= {"items", "next_cursor"}:
            self._render_records(items, kind)
            cursor = data.get("next_cursor")
            if cursor:
                self.info(f"next cursor: {cursor}")
            return
        if set(data) == {"message"}:
            self.print_data(str(data["message"]))
            return
        for key, value in data.items():
            self.print_data(f"{key}\t{_cell(value)}")

    def _render_records(self, data: list[Any], kind: Optional[str]) -> None:
        if not data:
            return
        if not all(isinstance(row, dict) for row in data):
            for row in data:
                self.print_data(_cell(row))
            return
        headers = TABLE_COLUMNS.get(kind or "") or _scalar_keys(data[0])
        rows = [[_cell(record.get(h)) for h in headers] for record in data]
        self.print_table(headers, rows)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _is_tty(stream: Optional[TextIO] = None) -> bool:
    """Check if *stream* (default stdout) is a TTY."""
    stream = stream if stream is not None else sys.stdout
    return hasattr(stream, "isatty") and stream.isatty()


def _should_disable_color() -> bool:
    """Check if colour should be disabled.

    Returns True when NO_COLOR env var is set (any value) or TERM=dumb.
    """
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


def _cell(value: Any) -> str:
    """Render one table cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ", ".join(_cell(v.get("name", v.get("id")) if isinstance(v, dict) else v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _scalar_keys(record: dict[str, Any]) -> list[str]:
    """Column names for records of an unregistered kind: the scalar fields."""
    return [k for k, v in record.items() if not isinstance(v, (dict, list))]


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def error(message: str) -> None:
    """Print error to stderr via the global OutputManager."""
    get_output().error(message)


def warning(message: str) -> None:
    """Print warning to stderr via the global OutputManager."""
    get_output().warning(message)


def info(message: str) -> None:
    """Print info message to stderr via the global OutputManager."""
    get_output().info(message)


def debug(message: str) -> None:
    """Print debug message to stderr via the global OutputManager (``--debug`` only)."""
    get_output().debug(message)
