"""Config commands: inspect and edit ``config.json``.

``config set`` shares its flag names with the global options, and global
options are recognised anywhere on the command line, so in
``cookctl config set --api-url http://x`` the value first lands in the
global layer. ``config set`` therefore also accepts the values of global
options given explicitly on the command line. ``config unset`` takes its
flags as switches, which the global ``--api-url``, ``--output`` and
``--timeout`` would swallow; pass them after ``--``::

    cookctl config unset -- --api-url --timeout
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, TextIO

from cookctl.config import (
    Config,
    default_config_path,
    format_duration,
    load_config_file,
    parse_duration,
    parse_output,
    save_config,
)
from cookctl.commands.common import no_args
from cookctl.exceptions import ConfigError, UsageError
from cookctl.routing.flagset import FlagSet, ParsedFlags
from cookctl.routing.tree import CommandNode

if TYPE_CHECKING:
    from cookctl.context import AppContext

_SETTINGS = ("api-url", "output", "timeout", "debug")


def view_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("config view", sink)
    flags.string("config", "Config file path")
    return flags


def set_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("config set", sink)
    flags.string("config", "Config file path")
    flags.string("api-url", "API base URL")
    flags.string("output", "Output format: table|json")
    flags.string("timeout", "Request timeout (e.g. 30s)")
    flags.boolean("debug", "Enable debug logging")
    return flags


def unset_flags(sink: Optional[TextIO] = None) -> FlagSet:
    flags = FlagSet("config unset", sink)
    flags.string("config", "Config file path")
    flags.boolean("api-url", "Clear api_url")
    flags.boolean("output", "Clear output")
    flags.boolean("timeout", "Clear timeout")
    flags.boolean("debug", "Clear debug")
    return flags


def config_view(path: Path, config: Config) -> dict[str, Any]:
    return {
        "config_path": str(path),
        "api_url": config.api_url,
        "output": config.output.value,
        "timeout": format_duration(config.timeout),
        "debug": config.debug,
    }


def _target_path(ctx: "AppContext", flags: ParsedFlags) -> Path:
    raw = flags.config.strip()
    if raw:
        return Path(raw).expanduser()
    return ctx.config_path or default_config_path()


def _load(path: Path) -> Config:
    try:
        return load_config_file(path)
    except ConfigError as exc:
        raise UsageError(str(exc)) from exc


def _requested(ctx: "AppContext", flags: ParsedFlags) -> dict[str, Any]:
    """Settings named on the command line, as command flags or global options."""
    values = {name: ctx.global_flags[name] for name in _SETTINGS if name in ctx.global_flags}
    for name in _SETTINGS:
        if flags.is_set(name):
            values[name] = flags.get(name)
    return values


def run_view(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "config view")
    path = _target_path(ctx, flags)
    ctx.write(config_view(path, _load(path)))


def run_set(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "config set")
    path = _target_path(ctx, flags)
    config = _load(path)

    values = _requested(ctx, flags)
    if "api-url" in values:
        config.api_url = str(values["api-url"]).strip()
    if "output" in values:
        try:
            config.output = parse_output(str(values["output"]))
        except ConfigError as exc:
            raise UsageError(str(exc)) from exc
    if "timeout" in values:
        try:
            timeout = parse_duration(str(values["timeout"]))
        except ConfigError:
            raise UsageError("timeout must be a duration (e.g. 30s)") from None
        config.timeout = timeout
    if "debug" in values:
        config.debug = bool(values["debug"])

    save_config(config, path)
    ctx.write(config_view(path, config))


def run_unset(ctx: "AppContext", flags: ParsedFlags) -> None:
    no_args(flags, "config unset")
    cleared = [name for name in _SETTINGS if flags.get(name)]
    if not cleared:
        raise UsageError("at least one flag is required")

    path = _target_path(ctx, flags)
    config = _load(path)
    defaults = Config()
    for name in cleared:
        field = name.replace("-", "_")
        setattr(config, field, getattr(defaults, field))

    save_config(config, path)
    ctx.write(config_view(path, config))


def run_path(ctx: "AppContext", flags: ParsedFlags) -> None:
    """Show where the config file lives, alongside the effective settings."""
    no_args(flags, "config path")
    ctx.write(config_view(ctx.config_path or default_config_path(), ctx.config))


config_command = CommandNode(
    "config",
    "Manage the config file",
    subcommands=(
        CommandNode("view", "Show the config file", flags=view_flags, handler=run_view, usage="[--config <path>]"),
        CommandNode(
            "set",
            "Update config values",
            flags=set_flags,
            handler=run_set,
            usage="[--config <path>] [--api-url <url>] [--output <table|json>] [--timeout <duration>] [--debug]",
        ),
        CommandNode(
            "unset",
            "Reset config values to defaults",
            flags=unset_flags,
            handler=run_unset,
            usage="[--config <path>] -- [--api-url] [--output] [--timeout] [--debug]",
        ),
        CommandNode("path", "Show the config file path", handler=run_path),
    ),
)
