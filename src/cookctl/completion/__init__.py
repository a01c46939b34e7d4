"""Shell completion scripts generated from the command tree.

Every command name and flag name in a generated script is read from the
command tree and the global option registry at generation time, so the
scripts cannot drift from what the dispatcher accepts.

Supported shells: bash, zsh, fish.
"""

from __future__ import annotations

from typing import Callable, Sequence

from cookctl.completion.bash import bash_script
from cookctl.completion.fish import fish_script
from cookctl.completion.zsh import zsh_script
from cookctl.exceptions import UsageError
from cookctl.routing.options import GLOBAL_OPTIONS, OptionDefinition
from cookctl.routing.tree import CommandNode

COMPLETION_USAGE = "usage: cookctl completion <bash|zsh|fish>\n"

_GENERATORS: dict[str, Callable[[Sequence[CommandNode], Sequence[OptionDefinition]], str]] = {
    "bash": bash_script,
    "zsh": zsh_script,
    "fish": fish_script,
}

SUPPORTED_SHELLS: tuple[str, ...] = tuple(_GENERATORS)


def completion_script(
    shell: str,
    commands: Sequence[CommandNode],
    options: Sequence[OptionDefinition] = GLOBAL_OPTIONS,
) -> str:
    """Generate the completion script for *shell* (case-insensitive).

    Raises:
        UsageError: For an unsupported shell.
    """
    generator = _GENERATORS.get(shell.lower())
    if generator is None:
        raise UsageError(f"unsupported shell: {shell}", usage=COMPLETION_USAGE)
    return generator(commands, options)


__all__ = ["COMPLETION_USAGE", "SUPPORTED_SHELLS", "completion_script"]
