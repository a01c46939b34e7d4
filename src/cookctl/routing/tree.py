"""The command tree: one node per command or command group.

The tree is the single source of truth for the CLI surface. The
dispatcher walks it to find a handler, the help renderer walks it to print
usage, and the completion synthesizer walks it to emit shell scripts.
Nodes are immutable and built once at import time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Sequence

from cookctl.routing.flagset import FlagSetBuilder, ParsedFlags, flag_names

if TYPE_CHECKING:
    from cookctl.context import AppContext

Handler = Callable[["AppContext", ParsedFlags], None]


@dataclass(frozen=True)
class CommandNode:
    """A command (leaf) or command group.

    Attributes:
        name: Name typed by the user, unique among its siblings.
        synopsis: One-line description.
        flags: Builder for the command's own flag set, if it has flags.
        handler: Called with the parsed flags. On a group it runs when the
            next token does not name a child (``completion <shell>``).
        subcommands: Children, in display order.
        usage: Argument synopsis shown after the command path in help,
            e.g. ``"<id> --name <name>"``.
        completes_commands: The command's arguments are themselves a
            command path (``help``), so completion offers command names.
    """

    name: str
    synopsis: str = ""
    flags: Optional[FlagSetBuilder] = None
    handler: Optional[Handler] = None
    subcommands: tuple["CommandNode", ...] = ()
    usage: str = ""
    completes_commands: bool = False

    @property
    def is_group(self) -> bool:
        return bool(self.subcommands)

    def child(self, name: str) -> Optional["CommandNode"]:
        return find_command(self.subcommands, name)


def find_command(commands: Sequence[CommandNode], name: str) -> Optional[CommandNode]:
    """Return the sibling named *name*, or ``None``."""
    for node in commands:
        if node.name == name:
            return node
    return None


def find_command_path(commands: Sequence[CommandNode], path: Sequence[str]) -> Optional[CommandNode]:
    """Follow *path* from the top level; ``None`` if any segment is unknown."""
    node: Optional[CommandNode] = None
    siblings: Sequence[CommandNode] = commands
    for name in path:
        node = find_command(siblings, name)
        if node is None:
            return None
        siblings = node.subcommands
    return node


def command_path_prefix(commands: Sequence[CommandNode], tokens: Sequence[str]) -> list[str]:
    """The longest leading run of *tokens* that names a path in the tree."""
    path: list[str] = []
    siblings: Sequence[CommandNode] = commands
    for token in tokens:
        node = find_command(siblings, token)
        if node is None:
            break
        path.append(token)
        siblings = node.subcommands
    return path


def command_names(commands: Sequence[CommandNode]) -> list[str]:
    """Sorted names of *commands*."""
    return sorted(node.name for node in commands)


def descendant_flag_names(node: CommandNode) -> list[str]:
    """Sorted, duplicate-free union of the flags of *node* and every descendant."""
    names: set[str] = set(flag_names(node.flags))
    for child in node.subcommands:
        names.update(descendant_flag_names(child))
    return sorted(names)


def walk(commands: Sequence[CommandNode], prefix: tuple[str, ...] = ()) -> Iterator[tuple[tuple[str, ...], CommandNode]]:
    """Yield ``(path, node)`` for every node, depth first."""
    for node in commands:
        path = (*prefix, node.name)
        yield path, node
        yield from walk(node.subcommands, path)


def validate_tree(commands: tuple[CommandNode, ...]) -> tuple[CommandNode, ...]:
    """Check the tree is dispatchable and return *commands*.

    Sibling names must be unique at every level and every leaf needs a
    handler.

    Raises:
        ValueError: On a duplicate sibling name or a leaf without a handler.
    """

    def check(siblings: Sequence[CommandNode], where: str) -> None:
        seen: set[str] = set()
        for node in siblings:
            if node.name in seen:
                raise ValueError(f"duplicate command {node.name!r} under {where}")
            seen.add(node.name)
        for node in siblings:
            path = f"{where} {node.name}".strip()
            if not node.is_group and node.handler is None:
                raise ValueError(f"command {path!r} has no handler")
            check(node.subcommands, path)

    check(commands, "")
    return commands
