"""Entry point for the ``cookctl`` console script.

:func:`run` is the whole program minus process concerns: it takes argv and
streams, returns an exit code, and never calls :func:`sys.exit`, which
makes it the seam the test suite drives. :func:`main` adds the Ctrl-C
handler and the crash log for unexpected exceptions.

Precedence for settings, lowest first: built-in defaults, ``config.json``,
``COOKING_*`` environment variables, global options on the command line.
"""

from __future__ import annotations

import json
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional, Sequence, TextIO

import httpx

from cookctl.commands.system import version_info
from cookctl.config import Config, OutputFormat, load_config, parse_duration, parse_output
from cookctl.context import AppContext
from cookctl.exceptions import APIError, ConfigError, CookctlError, UsageError
from cookctl.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED, EXIT_INVALID_USAGE, EXIT_SUCCESS
from cookctl.output import OutputManager, error, set_output
from cookctl.registry import COMMANDS
from cookctl.routing.dispatcher import dispatch
from cookctl.routing.flagset import FlagSet, ParsedFlags
from cookctl.routing.help import render_help
from cookctl.routing.options import GLOBAL_OPTIONS, OptionDefinition
from cookctl.routing.splitter import split_global_args
from cookctl.routing.tree import CommandNode, command_path_prefix

_CONFIGURABLE = ("api-url", "output", "timeout", "debug")


def global_flags(
    sink: Optional[TextIO] = None,
    options: Sequence[OptionDefinition] = GLOBAL_OPTIONS,
) -> FlagSet:
    """A flag set declaring every global option, for parsing the global half of argv."""
    flags = FlagSet("cookctl", sink)
    for option in options:
        if option.takes_value:
            flags.string(option.name, option.description)
        else:
            flags.boolean(option.name, option.description)
    return flags


def apply_global_flags(config: Config, parsed: ParsedFlags) -> dict[str, Any]:
    """Apply ``--api-url``, ``--output``, ``--timeout`` and ``--debug`` to *config*.

    Returns:
        The configurable options given on the command line, keyed by name.

    Raises:
        UsageError: On an invalid output format or duration.
    """
    given = {name: parsed.get(name) for name in _CONFIGURABLE if parsed.is_set(name)}
    if "api-url" in given:
        config.api_url = given["api-url"].strip()
    if "output" in given:
        try:
            config.output = parse_output(given["output"])
        except ConfigError as exc:
            raise UsageError(str(exc)) from exc
    if "timeout" in given:
        try:
            timeout = parse_duration(given["timeout"])
        except ConfigError as exc:
            raise UsageError(str(exc)) from exc
        if timeout <= 0:
            raise UsageError("timeout must be positive")
        config.timeout = timeout
    if given.get("debug"):
        config.debug = True
    return given


def report_error(output: OutputManager, exc: CookctlError) -> int:
    """Write *exc* the way the active output format expects and return its exit code.

    Usage errors are followed by the relevant usage text. In JSON mode API
    errors are written to stdout as an ``{"error": {...}}`` envelope so
    scripts can parse them.
    """
    if isinstance(exc, UsageError):
        if not exc.reported:
            output.error(str(exc))
            if exc.usage:
                output.print_usage(exc.usage, to_stderr=True)
        return exc.exit_code
    if isinstance(exc, APIError) and output.format == OutputFormat.JSON:
        output.print_data(json.dumps(exc.to_payload(), indent=2))
        return exc.exit_code
    output.error(str(exc))
    return exc.exit_code


def run(
    argv: Sequence[str],
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    transport: Optional[httpx.BaseTransport] = None,
    commands: Sequence[CommandNode] = COMMANDS,
) -> int:
    """Run cookctl with *argv* (without the program name).

    Args:
        argv: Command-line tokens.
        stdin: Input stream for ``--stdin`` flags. Defaults to
            :data:`sys.stdin`.
        stdout: Data stream.
        stderr: Diagnostics stream.
        transport: httpx transport for every API client (tests).
        commands: The command tree.

    Returns:
        The process exit code.
    """
    output = OutputManager(stdout=stdout, stderr=stderr)
    set_output(output)

    try:
        config = load_config()
    except ConfigError as exc:
        output.error(str(exc))
        return EXIT_INVALID_USAGE

    try:
        split = split_global_args(argv)
        parsed = global_flags(output.stderr).parse(split.global_tokens)
        given = apply_global_flags(config, parsed)
    except UsageError as exc:
        return report_error(output, exc)

    output = OutputManager(
        format=config.output,
        stdout=stdout,
        stderr=stderr,
        verbose=config.debug,
    )
    set_output(output)
    tokens = split.command_tokens

    try:
        if parsed.help or parsed.h:
            path = command_path_prefix(commands, tokens) or tokens[:1]
            output.print_usage(render_help(path, commands))
            return EXIT_SUCCESS
        if parsed.version:
            if tokens:
                raise UsageError("version flag does not accept arguments")
            output.format_response(version_info())
            return EXIT_SUCCESS

        ctx = AppContext(
            config,
            output,
            commands,
            api_url_override=config.api_url if "api-url" in given else "",
            check_health=not parsed.skip_health_check,
            stdin=stdin,
            transport=transport,
            global_flags=given,
        )
        return dispatch(ctx, tokens)
    except CookctlError as exc:
        return report_error(output, exc)


# ---------------------------------------------------------------------- #
# Process entry point
# ---------------------------------------------------------------------- #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to the data directory and return its path."""
    from cookctl.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """Console-script entry point.

    Raises:
        SystemExit: Always, with the exit code from :func:`run`, 130 on
            Ctrl-C, or 1 after writing a crash log.
    """
    _setup_signal_handlers()
    try:
        code = run(sys.argv[1:])
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
    sys.exit(code)


if __name__ == "__main__":
    main()
