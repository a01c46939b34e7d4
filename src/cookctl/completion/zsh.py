"""Zsh completion backend."""

from __future__ import annotations

import re
from typing import Sequence

from cookctl.completion.words import argument_words, completing_nodes
from cookctl.routing.options import OptionDefinition
from cookctl.routing.tree import CommandNode

PROGRAM = "cookctl"


def array_name(command: str) -> str:
    """Shell-safe array name holding the arguments of *command*."""
    name = re.sub(r"[^A-Za-z0-9]", "_", command)
    if name[:1].isdigit():
        name = "_" + name
    return f"{name}_cmds"


def _quote(text: str) -> str:
    return "'" + text.replace("'", "'\\''") + "'"


def zsh_script(commands: Sequence[CommandNode], options: Sequence[OptionDefinition]) -> str:
    """Render a ``#compdef`` function driven by ``_arguments`` states."""
    groups = completing_nodes(commands)
    locals_ = " ".join(["commands", *(array_name(node.name) for node in groups)])
    lines = [
        f"#compdef {PROGRAM}",
        "",
        f"_{PROGRAM}() {{",
        "  local state",
        f"  local -a {locals_}",
        "",
        "  commands=(",
    ]
    for node in sorted(commands, key=lambda n: n.name):
        lines.append(f"    {_quote(f'{node.name}:{node.synopsis}')}")
    lines.append("  )")
    for node in groups:
        lines.append(f"  {array_name(node.name)}=({' '.join(argument_words(node, commands))})")
    lines.extend([
        "",
        "  _arguments -C \\",
        "    '1:command:->command' \\",
        "    '*::arg:->args'",
        "",
        "  case $state in",
        "    command)",
        "      _describe 'command' commands",
        "      ;;",
        "    args)",
        "      case $words[1] in",
    ])
    for node in groups:
        lines.extend([
            f"        {node.name})",
            f"          _values {_quote(node.name + ' command')} ${array_name(node.name)}",
            "          ;;",
        ])
    lines.extend([
        "      esac",
        "      ;;",
        "  esac",
        "}",
        "",
        f"compdef _{PROGRAM} {PROGRAM}",
    ])
    return "\n".join(lines) + "\n"
