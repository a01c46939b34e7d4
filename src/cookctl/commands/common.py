"""Argument and input helpers shared by the command handlers."""

from __future__ import annotations

import json
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Optional, TextIO

from cookctl.exceptions import UsageError
from cookctl.routing.flagset import ParsedFlags

ISO_DATE_FORMAT = "%Y-%m-%d"
CONFIRMATION_REQUIRED = "confirmation required; re-run with --yes"


def single_arg(flags: ParsedFlags) -> str:
    """The sole positional argument, stripped; empty when none was given.

    Raises:
        UsageError: When more than one positional argument was given.
    """
    if len(flags.args) > 1:
        raise UsageError("too many arguments")
    return flags.args[0].strip() if flags.args else ""


def require_id(flags: ParsedFlags, what: str) -> str:
    """The positional id of a *what* (``"tag"``, ``"recipe"``...)."""
    value = single_arg(flags)
    if not value:
        raise UsageError(f"{what} id is required")
    return value


def no_args(flags: ParsedFlags, command: str) -> None:
    if flags.args:
        raise UsageError(f"{command} does not accept arguments")


def require_yes(flags: ParsedFlags) -> None:
    if not flags.yes:
        raise UsageError(CONFIRMATION_REQUIRED)


def require_text(value: Optional[str], field: str) -> str:
    """*value* stripped, or a usage error naming *field*."""
    text = (value or "").strip()
    if not text:
        raise UsageError(f"{field} is required")
    return text


def optional_text(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


def parse_iso_date(field: str, raw: Optional[str]) -> date:
    """Parse a ``YYYY-MM-DD`` flag value."""
    text = require_text(raw, field)
    try:
        return datetime.strptime(text, ISO_DATE_FORMAT).date()
    except ValueError:
        raise UsageError(f"{field} must be YYYY-MM-DD") from None


def parse_rfc3339(field: str, raw: str) -> datetime:
    """Parse an RFC 3339 timestamp such as ``2026-01-02T15:04:05Z``."""
    text = raw.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00").replace("z", "+00:00"))
    except ValueError:
        raise UsageError(f"{field} must be RFC3339") from None
    if "T" not in text.upper() or parsed.tzinfo is None:
        raise UsageError(f"{field} must be RFC3339")
    return parsed


def parse_optional_float(field: str, raw: Optional[str]) -> Optional[float]:
    text = (raw or "").strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        raise UsageError(f"{field} must be a number") from None


def split_comma_separated(values: Iterable[str]) -> list[str]:
    """Flatten repeated and comma-separated values, dropping blanks."""
    out: list[str] = []
    for value in values:
        out.extend(part.strip() for part in value.split(",") if part.strip())
    return out


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value.strip())
    except ValueError:
        return False
    return True


def merge_ids(existing: Iterable[str], additions: Iterable[str]) -> list[str]:
    """Ordered union of two id lists."""
    out: list[str] = []
    for value in (*existing, *additions):
        value = value.strip()
        if value and value not in out:
            out.append(value)
    return out


# --- stdin / file input ---


def read_secret(stream: TextIO) -> str:
    """Read a token or password piped on stdin."""
    return stream.read().strip()


def is_terminal(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def read_input(stream: TextIO, path: str, use_stdin: bool) -> str:
    """Read raw text from ``--file`` or ``--stdin``.

    Raises:
        UsageError: When the file cannot be read or the input is blank.
    """
    if use_stdin:
        text = stream.read()
        if not text.strip():
            raise UsageError("input is empty")
        return text
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise UsageError(f"read file: {exc}") from exc
    if not text.strip():
        raise UsageError("file is empty")
    return text


def parse_json_object(text: str) -> dict[str, Any]:
    """Decode *text* as a non-empty JSON object."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise UsageError(f"invalid json: {exc}") from exc
    if not isinstance(payload, dict):
        raise UsageError("invalid json: expected an object")
    if not payload:
        raise UsageError("json object is empty")
    return payload


def split_json_payloads(text: str) -> list[dict[str, Any]]:
    """Decode a single JSON object or a non-empty array of objects."""
    stripped = text.strip()
    if not stripped:
        raise UsageError("input is empty")
    if not stripped.startswith("["):
        return [parse_json_object(stripped)]
    try:
        items = json.loads(stripped)
    except json.JSONDecodeError as exc:
        raise UsageError(f"invalid json array: {exc}") from exc
    if not items:
        raise UsageError("json array is empty")
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise UsageError(f"payload {index}: invalid json object")
    return items
