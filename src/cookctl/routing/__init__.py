"""Command routing: argv splitting, flag sets, the command tree and dispatch."""

from cookctl.routing.dispatcher import dispatch
from cookctl.routing.flagset import DISCARD, FlagSet, FlagSetBuilder, ParsedFlags, flag_names, introspect
from cookctl.routing.help import render_help, render_usage
from cookctl.routing.options import GLOBAL_OPTIONS, OptionDefinition
from cookctl.routing.splitter import SplitResult, split_global_args
from cookctl.routing.tree import CommandNode, command_names, descendant_flag_names, find_command_path

__all__ = [
    "CommandNode",
    "DISCARD",
    "FlagSet",
    "FlagSetBuilder",
    "GLOBAL_OPTIONS",
    "OptionDefinition",
    "ParsedFlags",
    "SplitResult",
    "command_names",
    "descendant_flag_names",
    "dispatch",
    "find_command_path",
    "flag_names",
    "introspect",
    "render_help",
    "render_usage",
    "split_global_args",
]
