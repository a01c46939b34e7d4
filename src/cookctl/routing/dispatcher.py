"""Route command tokens through the command tree to a handler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from cookctl.exceptions import UsageError
from cookctl.routing.flagset import FlagSet
from cookctl.routing.help import render_node_help, render_usage
from cookctl.routing.options import is_help_marker
from cookctl.routing.tree import CommandNode, find_command

if TYPE_CHECKING:
    from cookctl.context import AppContext


def _asks_for_help(args: Sequence[str]) -> bool:
    for arg in args:
        if arg == "--":
            return False
        if is_help_marker(arg):
            return True
    return False


def dispatch(ctx: "AppContext", tokens: Sequence[str]) -> int:
    """Run the command named by *tokens* against ``ctx.commands``.

    The walk descends one level per token while the current node has
    children. A group given no further token, or an unknown one, is a
    usage error unless the group has its own handler. ``--help`` right
    after a group, or anywhere in a leaf's arguments, prints that node's
    help instead of running it.

    Returns:
        The process exit code.

    Raises:
        UsageError: For unknown commands, missing subcommands and flag
            parse errors.
    """
    commands = ctx.commands
    if not tokens:
        raise UsageError("missing command", usage=render_usage(commands, ctx.options))

    path: list[str] = []
    siblings: Sequence[CommandNode] = commands
    rest = list(tokens)
    while True:
        name = rest[0]
        node = find_command(siblings, name)
        if node is None:
            if not path:
                raise UsageError(f"unknown command: {name}", usage=render_usage(commands, ctx.options))
            raise UsageError(f"unknown {' '.join(path)} command: {name}", usage=render_node_help(path, parent))
        path.append(name)
        rest = rest[1:]
        if not node.is_group:
            break
        if rest and is_help_marker(rest[0]):
            ctx.output.print_usage(render_node_help(path, node))
            return 0
        if rest and node.child(rest[0]) is not None:
            parent = node
            siblings = node.subcommands
            continue
        if node.handler is not None:
            break
        if not rest:
            raise UsageError(f"{' '.join(path)} requires a subcommand", usage=render_node_help(path, node))
        parent = node
        siblings = node.subcommands

    if _asks_for_help(rest):
        ctx.output.print_usage(render_node_help(path, node))
        return 0

    label = " ".join(path)
    flags = node.flags(ctx.stderr) if node.flags is not None else FlagSet(label, ctx.stderr)
    if flags.usage is None:
        flags.usage = lambda sink: sink.write(render_node_help(path, node))
    parsed = flags.parse(rest)
    assert node.handler is not None, f"command {label!r} has no handler"
    node.handler(ctx, parsed)
    return 0
