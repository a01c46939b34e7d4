"""Fish completion backend."""

from __future__ import annotations

from typing import Sequence

from cookctl.completion.words import argument_words, completing_nodes
from cookctl.routing.options import OptionDefinition
from cookctl.routing.tree import CommandNode, command_names

PROGRAM = "cookctl"


def _quote(text: str) -> str:
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def fish_script(commands: Sequence[CommandNode], options: Sequence[OptionDefinition]) -> str:
    """Render ``complete -c`` directives for the global flags and command names."""
    lines = [f"# fish completion for {PROGRAM}"]
    for option in options:
        switch = "-s" if len(option.name) == 1 else "-l"
        lines.append(f"complete -c {PROGRAM} -f {switch} {option.name} -d {_quote(option.description)}")
    lines.append("")
    lines.append(
        f"complete -c {PROGRAM} -f -n '__fish_use_subcommand' -a {_quote(' '.join(command_names(commands)))}"
    )
    for node in completing_nodes(commands):
        words = " ".join(argument_words(node, commands))
        lines.append(
            f"complete -c {PROGRAM} -f -n '__fish_seen_subcommand_from {node.name}' -a {_quote(words)}"
        )
    return "\n".join(lines) + "\n"
