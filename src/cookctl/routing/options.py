"""Option definitions and the global option registry.

An :class:`OptionDefinition` describes one flag: its canonical name (no
leading dashes), whether it consumes a value, and a one-line description.
The same definitions drive argv splitting, help text and every generated
completion script.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OptionDefinition:
    """A named flag.

    Attributes:
        name: Canonical name without dashes, e.g. ``api-url`` or ``h``.
        takes_value: ``True`` when the option consumes a value.
        description: One-line human description.
        placeholder: Value placeholder shown in usage text.
    """

    name: str
    takes_value: bool = False
    description: str = ""
    placeholder: str = "value"

    @property
    def display_name(self) -> str:
        """``-x`` for one-character names, ``--name`` otherwise."""
        return display_name(self.name)


def display_name(name: str) -> str:
    """Render a flag name the way users type it."""
    if len(name) == 1:
        return f"-{name}"
    return f"--{name}"


GLOBAL_OPTIONS: tuple[OptionDefinition, ...] = (
    OptionDefinition("api-url", True, "API base URL", "url"),
    OptionDefinition("output", True, "Output format (table|json)", "table|json"),
    OptionDefinition("timeout", True, "Request timeout", "duration"),
    OptionDefinition("debug", False, "Enable debug logging"),
    OptionDefinition("skip-health-check", False, "Skip API health preflight"),
    OptionDefinition("version", False, "Show version and exit"),
    OptionDefinition("help", False, "Show help and exit"),
    OptionDefinition("h", False, "Show help and exit"),
)
"""Program-wide options, recognised anywhere in argv before ``--``."""

HELP_MARKERS = frozenset({"--help", "-h"})


def is_help_marker(token: str) -> bool:
    return token in HELP_MARKERS


def is_option_token(token: str) -> bool:
    """Whether *token* looks like an option (``-`` alone is a value)."""
    return token.startswith("-") and token != "-"


def match_global_option(
    token: str,
    options: tuple[OptionDefinition, ...] = GLOBAL_OPTIONS,
) -> tuple[Optional[OptionDefinition], bool]:
    """Match *token* against the registry.

    A token matches as-is (``--debug``, ``-h``), or as ``--name=value`` when
    the named option takes a value. ``--debug=true`` does not match, so it
    is left for the command to reject.

    Returns:
        ``(definition, has_inline_value)``, or ``(None, False)`` when the
        token is not a global option.
    """
    for option in options:
        flag = option.display_name
        if token == flag:
            return option, False
        if option.takes_value and token.startswith(flag + "="):
            return option, True
    return None, False
