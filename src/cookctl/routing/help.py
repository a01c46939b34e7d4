"""Help and usage text rendered from the command tree."""

from __future__ import annotations

from typing import Optional, Sequence

from cookctl.exceptions import UsageError
from cookctl.routing.flagset import introspect
from cookctl.routing.options import GLOBAL_OPTIONS, OptionDefinition
from cookctl.routing.tree import CommandNode, find_command

PROGRAM = "cookctl"


def _columns(rows: Sequence[tuple[str, str]], indent: str = "  ") -> list[str]:
    width = max((len(left) for left, _ in rows), default=0)
    return [f"{indent}{left.ljust(width)}  {right}".rstrip() for left, right in rows]


def format_flag_lines(options: Sequence[OptionDefinition]) -> list[str]:
    """``--name: description`` lines for a command's own flags."""
    return [f"  {option.display_name}: {option.description}".rstrip() for option in options]


def render_flag_usage(name: str, options: Sequence[OptionDefinition]) -> str:
    """Minimal usage for a flag set that is not looked up in the tree."""
    lines = [f"usage: {PROGRAM} {name} [flags]"]
    if options:
        lines.append("flags:")
        lines.extend(format_flag_lines(options))
    return "\n".join(lines) + "\n"


def render_usage(
    commands: Sequence[CommandNode],
    options: Sequence[OptionDefinition] = GLOBAL_OPTIONS,
) -> str:
    """Top-level usage: every command and every global flag."""
    lines = [f"usage: {PROGRAM} [global flags] <command> [args]", "", "commands:"]
    lines.extend(_columns([(node.name, node.synopsis) for node in commands]))
    lines.extend(["", "global flags:"])
    flag_rows = []
    for option in options:
        left = option.display_name
        if option.takes_value:
            left = f"{left} <{option.placeholder}>"
        flag_rows.append((left, option.description))
    lines.extend(_columns(flag_rows))
    return "\n".join(lines) + "\n"


def render_node_help(path: Sequence[str], node: CommandNode) -> str:
    """Help for one command or group, addressed by its full *path*."""
    label = " ".join(path)
    if node.usage:
        synopsis = node.usage
    elif node.is_group:
        synopsis = "<command> [flags]"
    elif node.flags is not None:
        synopsis = "[flags]"
    else:
        synopsis = ""
    lines = [f"usage: {PROGRAM} {label} {synopsis}".rstrip()]
    if node.synopsis:
        lines.extend(["", node.synopsis])
    if node.is_group:
        lines.extend(["", "commands:"])
        lines.extend(_columns([(child.name, child.synopsis) for child in node.subcommands]))
    own = introspect(node.flags)
    if own:
        lines.extend(["", "flags:"])
        lines.extend(format_flag_lines(own))
    return "\n".join(lines) + "\n"


def render_help(
    path: Sequence[str],
    commands: Optional[Sequence[CommandNode]] = None,
    options: Sequence[OptionDefinition] = GLOBAL_OPTIONS,
) -> str:
    """Render help for *path*; an empty path gives the top-level usage.

    Raises:
        UsageError: When a path segment is unknown or a leaf is followed by
            further tokens.
    """
    if commands is None:
        from cookctl.registry import COMMANDS

        commands = COMMANDS
    if not path:
        return render_usage(commands, options)

    node: Optional[CommandNode] = None
    siblings: Sequence[CommandNode] = commands
    walked: list[str] = []
    for name in path:
        if node is not None and not node.is_group:
            raise UsageError(
                f"{' '.join(walked)} has no subcommands",
                usage=render_node_help(walked, node),
            )
        parent = node
        node = find_command(siblings, name)
        if node is None:
            if parent is not None:
                raise UsageError(
                    f"unknown {' '.join(walked)} command: {name}",
                    usage=render_node_help(walked, parent),
                )
            raise UsageError(f"unknown help topic: {name}", usage=render_usage(commands, options))
        walked.append(name)
        siblings = node.subcommands

    assert node is not None
    return render_node_help(walked, node)
