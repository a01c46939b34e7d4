"""Separate program-wide options from the command path and its arguments.

Global options may appear anywhere in argv, before or after the command
path, so ``cookctl --output json recipe list`` and
``cookctl recipe list --output json`` behave the same. Two exceptions keep
the scan predictable:

* ``--`` ends global-option scanning; everything after it belongs to the
  command verbatim.
* Once a command token has been seen, ``--help`` / ``-h`` belong to that
  command, so ``cookctl recipe list --help`` shows the help for
  ``recipe list`` rather than the top-level help.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

from cookctl.exceptions import UsageError
from cookctl.routing.options import (
    GLOBAL_OPTIONS,
    OptionDefinition,
    is_help_marker,
    is_option_token,
    match_global_option,
)


class SplitResult(NamedTuple):
    """Partition of argv; relative order is preserved within each half."""

    global_tokens: list[str]
    command_tokens: list[str]


def split_global_args(
    args: Sequence[str],
    options: tuple[OptionDefinition, ...] = GLOBAL_OPTIONS,
) -> SplitResult:
    """Split argv (without the program name) into global and command tokens.

    Args:
        args: Tokens following the program name.
        options: The global option registry.

    Returns:
        A :class:`SplitResult`.

    Raises:
        UsageError: If a value-taking global option is last, or is followed
            by another option-looking token, and has no inline ``=value``.

    Example::

        >>> split_global_args(["recipe", "list", "--help", "--output", "json"])
        SplitResult(global_tokens=['--output', 'json'], command_tokens=['recipe', 'list', '--help'])
    """
    global_tokens: list[str] = []
    command_tokens: list[str] = []
    seen_command = False

    i = 0
    while i < len(args):
        token = args[i]
        if token == "--":
            command_tokens.extend(args[i + 1:])
            break
        if seen_command and is_help_marker(token):
            command_tokens.append(token)
            i += 1
            continue

        option, inline = match_global_option(token, options)
        if option is None:
            command_tokens.append(token)
            seen_command = True
            i += 1
            continue

        if option.takes_value and not inline:
            if i + 1 >= len(args) or is_option_token(args[i + 1]):
                raise UsageError(f"flag {token} requires a value")
            global_tokens.extend((token, args[i + 1]))
            i += 2
            continue

        global_tokens.append(token)
        i += 1

    return SplitResult(global_tokens, command_tokens)
