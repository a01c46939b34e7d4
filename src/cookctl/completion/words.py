"""Candidate words shared by every shell backend."""

from __future__ import annotations

from typing import Sequence

from cookctl.routing.options import OptionDefinition
from cookctl.routing.tree import CommandNode, command_names, descendant_flag_names


def global_flag_names(options: Sequence[OptionDefinition]) -> list[str]:
    """Display names of the global options, in registry order."""
    return [option.display_name for option in options]


def argument_words(node: CommandNode, commands: Sequence[CommandNode]) -> list[str]:
    """Names offered after *node*: its children, or every top-level name for ``help``."""
    if node.completes_commands:
        return command_names(commands)
    return command_names(node.subcommands)


def second_level_flags(node: CommandNode) -> list[str]:
    """Flags offered once ``<top> <node>`` is typed.

    A node with children also offers every flag declared beneath it.
    """
    return descendant_flag_names(node)


def completing_nodes(commands: Sequence[CommandNode]) -> list[CommandNode]:
    """Top-level nodes whose arguments complete to command names, sorted by name."""
    return sorted(
        (node for node in commands if node.is_group or node.completes_commands),
        key=lambda node: node.name,
    )
