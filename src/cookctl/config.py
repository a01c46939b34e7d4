"""Configuration management with XDG paths, atomic writes, and env overrides.

This module handles all persistent configuration for cookctl:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.cookctl/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Config file** -- a single :class:`Config` JSON document at
  ``<config_dir>/config.json`` storing the API URL, output format, request
  timeout and debug flag.
* **Precedence** -- :func:`load_config` layers built-in defaults, the
  config file, and ``COOKING_*`` environment variables. Global command-line
  options are applied on top by :mod:`cookctl.app`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crash never leaves a half-written file behind.
"""

from __future__ import annotations

import json
import os
import platform
import re
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from cookctl.exceptions import ConfigError

_APP_NAME = "cookctl"
_CONFIG_FILENAME = "config.json"

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 30.0

ENV_API_URL = "COOKING_API_URL"
ENV_OUTPUT = "COOKING_OUTPUT"
ENV_TIMEOUT = "COOKING_TIMEOUT"
ENV_TOKEN = "COOKING_PAT"


class OutputFormat(str, Enum):
    """Supported output formats for command results."""

    TABLE = "table"
    JSON = "json"


class Config(BaseModel):
    """Effective runtime configuration.

    ``timeout`` is held in seconds; on disk it is written as a duration
    string such as ``"30s"`` or ``"1m30s"``.
    """

    api_url: str = Field(default=DEFAULT_API_URL, description="API base URL")
    output: OutputFormat = Field(default=OutputFormat.TABLE, description="Output format")
    timeout: float = Field(default=DEFAULT_TIMEOUT, description="Request timeout in seconds")
    debug: bool = Field(default=False, description="Log HTTP traffic to stderr")

    @field_validator("output", mode="before")
    @classmethod
    def _normalise_output(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_output(value)
        return value

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value

    def to_file_dict(self) -> dict[str, object]:
        """Serialise for ``config.json`` (duration as a string)."""
        return {
            "api_url": self.api_url,
            "output": self.output.value,
            "timeout": format_duration(self.timeout),
            "debug": self.debug,
        }


# --- Value parsing ---


_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse a duration such as ``30s``, ``1m30s`` or ``500ms`` into seconds.

    A bare ``0`` is accepted. Any other unitless number is rejected.

    Raises:
        ConfigError: If *value* is not a valid duration.
    """
    text = value.strip()
    if text == "0":
        return 0.0
    sign = 1.0
    if text[:1] in ("+", "-"):
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if not text:
        raise ConfigError(f"invalid duration: {value!r}")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ConfigError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return sign * total


def format_duration(seconds: float) -> str:
    """Format seconds the way :func:`parse_duration` reads them back.

    Whole values render as ``1h2m3s``; sub-second values as ``500ms``.
    """
    if seconds == 0:
        return "0s"
    if seconds < 1:
        millis = seconds * 1000
        return f"{millis:g}ms"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{secs:g}s")
    return "".join(parts)


def parse_output(value: str) -> OutputFormat:
    """Validate an output format name (case-insensitive).

    Raises:
        ConfigError: If *value* is neither ``table`` nor ``json``.
    """
    try:
        return OutputFormat(value.strip().lower())
    except ValueError:
        raise ConfigError(f"invalid output format: {value!r}") from None


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/cookctl/`` (default ``~/.config/cookctl/``).
    On macOS/Windows: ``~/.cookctl/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/cookctl/`` (default ``~/.local/share/cookctl/``).
    On macOS/Windows: ``~/.cookctl/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_config_path() -> Path:
    """Path to ``config.json`` in the configuration directory."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given it is applied to the temp file before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Load / save ---


def load_config_file(path: Optional[Path] = None) -> Config:
    """Load ``config.json`` over the defaults, without environment overrides.

    Args:
        path: Config file location; defaults to :func:`default_config_path`.

    Returns:
        The merged :class:`Config`. A missing file yields the defaults.

    Raises:
        ConfigError: If the file exists but is not valid JSON or fails
            validation.
    """
    path = path or default_config_path()
    if not path.is_file():
        return Config()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")
    # Empty strings mean "not set" and fall back to the defaults.
    data = {key: value for key, value in data.items() if value not in ("", None)}
    try:
        return Config.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def load_config(path: Optional[Path] = None) -> Config:
    """Load the effective configuration: defaults, then file, then environment.

    Environment variables ``COOKING_API_URL``, ``COOKING_OUTPUT`` and
    ``COOKING_TIMEOUT`` override the file when set and non-empty.

    Raises:
        ConfigError: On an invalid file or an invalid environment value.
    """
    config = load_config_file(path)

    api_url = os.environ.get(ENV_API_URL, "")
    if api_url:
        config.api_url = api_url

    output = os.environ.get(ENV_OUTPUT, "")
    if output:
        config.output = parse_output(output)

    timeout = os.environ.get(ENV_TIMEOUT, "")
    if timeout:
        try:
            config.timeout = parse_duration(timeout)
        except ConfigError as exc:
            raise ConfigError(f"invalid {ENV_TIMEOUT}: {exc}") from exc

    return config


def save_config(config: Config, path: Optional[Path] = None) -> Path:
    """Persist *config* atomically and return the path written.

    Raises:
        ConfigError: If the API URL is empty or the timeout is not positive.
    """
    if not config.api_url.strip():
        raise ConfigError("api url is required")
    if config.timeout <= 0:
        raise ConfigError("timeout must be positive")
    path = path or default_config_path()
    atomic_write(path, json.dumps(config.to_file_dict(), indent=2) + "\n", mode=0o600)
    return path
