"""Commands that do not touch stored data: health, version, completion, help."""

from __future__ import annotations

from typing import TYPE_CHECKING

import cookctl
from cookctl.completion import COMPLETION_USAGE, SUPPORTED_SHELLS, completion_script
from cookctl.exceptions import UsageError
from cookctl.routing.flagset import ParsedFlags
from cookctl.routing.help import render_help
from cookctl.routing.tree import CommandNode

if TYPE_CHECKING:
    from cookctl.context import AppContext


def version_info() -> dict[str, str]:
    return {
        "version": cookctl.__version__,
        "commit": cookctl.__commit__,
        "built_at": cookctl.__built_at__,
    }


def run_health(ctx: "AppContext", flags: ParsedFlags) -> None:
    """Probe the API without a token and without the preflight."""
    with ctx.client() as api:
        ctx.write(api.health())


def run_version(ctx: "AppContext", flags: ParsedFlags) -> None:
    if flags.args:
        raise UsageError("version does not accept arguments")
    ctx.write(version_info())


def run_help(ctx: "AppContext", flags: ParsedFlags) -> None:
    ctx.output.print_usage(render_help(flags.args, ctx.commands, ctx.options))


def run_completion(ctx: "AppContext", flags: ParsedFlags) -> None:
    """Print the completion script for the shell named in the arguments.

    Reached directly for ``completion bash`` and friends, and as the group
    fallback for anything else (``completion BASH``, ``completion tcsh``).
    """
    if len(flags.args) != 1:
        raise UsageError("expected exactly one shell", usage=COMPLETION_USAGE)
    ctx.output.print_text(completion_script(flags.args[0].strip(), ctx.commands, ctx.options))


def _shell_handler(shell: str):
    def handler(ctx: "AppContext", flags: ParsedFlags) -> None:
        if flags.args:
            raise UsageError(f"completion {shell} does not accept arguments", usage=COMPLETION_USAGE)
        ctx.output.print_text(completion_script(shell, ctx.commands, ctx.options))

    return handler


health_command = CommandNode("health", "Check API health", handler=run_health)
version_command = CommandNode("version", "Show version info", handler=run_version)
completion_command = CommandNode(
    "completion",
    "Generate shell completions",
    handler=run_completion,
    usage="<bash|zsh|fish>",
    subcommands=tuple(
        CommandNode(shell, f"Print the {shell} completion script", handler=_shell_handler(shell))
        for shell in SUPPORTED_SHELLS
    ),
)
help_command = CommandNode(
    "help",
    "Show help",
    handler=run_help,
    usage="[command...]",
    completes_commands=True,
)
