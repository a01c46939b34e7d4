"""Bash completion backend."""

from __future__ import annotations

from typing import Sequence

from cookctl.completion.words import argument_words, completing_nodes, global_flag_names, second_level_flags
from cookctl.routing.flagset import flag_names
from cookctl.routing.options import OptionDefinition
from cookctl.routing.tree import CommandNode, command_names

PROGRAM = "cookctl"


def _flag_cases(commands: Sequence[CommandNode]) -> list[str]:
    lines: list[str] = []
    for node in sorted(commands, key=lambda n: n.name):
        if node.is_group:
            inner: list[str] = []
            for child in sorted(node.subcommands, key=lambda n: n.name):
                names = second_level_flags(child)
                if names:
                    inner.extend([
                        f"          {child.name})",
                        f'            flags="$flags {" ".join(names)}"',
                        "            ;;",
                    ])
            if not inner:
                continue
            lines.extend([f"      {node.name})", '        case "$second" in', *inner, "        esac", "        ;;"])
        else:
            names = flag_names(node.flags)
            if names:
                lines.extend([f"      {node.name})", f'        flags="$flags {" ".join(names)}"', "        ;;"])
    return lines


def bash_script(commands: Sequence[CommandNode], options: Sequence[OptionDefinition]) -> str:
    """Render a bash completion function registered with ``complete -F``."""
    top = " ".join(command_names(commands))
    lines = [
        f"# bash completion for {PROGRAM}",
        f"_{PROGRAM}() {{",
        "  local cur first second flags",
        "  COMPREPLY=()",
        '  cur="${COMP_WORDS[COMP_CWORD]}"',
        '  first="${COMP_WORDS[1]}"',
        '  second="${COMP_WORDS[2]}"',
        "",
        "  if [[ $COMP_CWORD -eq 1 ]]; then",
        f'    COMPREPLY=( $(compgen -W "{top}" -- "$cur") )',
        "    return 0",
        "  fi",
        "",
        '  if [[ "$cur" == -* ]]; then',
        f'    flags="{" ".join(global_flag_names(options))}"',
    ]
    cases = _flag_cases(commands)
    if cases:
        lines.extend(['    case "$first" in', *cases, "    esac"])
    lines.extend([
        '    COMPREPLY=( $(compgen -W "$flags" -- "$cur") )',
        "    return 0",
        "  fi",
        "",
        '  case "$first" in',
    ])
    for node in completing_nodes(commands):
        lines.extend([
            f"    {node.name})",
            f'      COMPREPLY=( $(compgen -W "{" ".join(argument_words(node, commands))}" -- "$cur") )',
            "      ;;",
        ])
    lines.extend([
        "  esac",
        "}",
        "",
        f"complete -F _{PROGRAM} {PROGRAM}",
    ])
    return "\n".join(lines) + "\n"
