"""Exception hierarchy for cookctl.

All exceptions inherit from :class:`CookctlError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`cookctl.exit_codes`.
The top-level handler in :func:`cookctl.app.run` catches ``CookctlError``
and returns the matching code, while unexpected exceptions produce a crash
log and exit with :data:`~cookctl.exit_codes.EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    CookctlError (exit 1)
    +-- UsageError          (exit 2)
    +-- AuthError           (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ConflictError       (exit 5)
    +-- ConnectionError_    (exit 1)
    +-- ConfigError         (exit 1)
    +-- APIError            (exit derived from the HTTP status)
"""

from __future__ import annotations

from typing import Any, Optional

from cookctl.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFLICT,
    EXIT_FORBIDDEN,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
    EXIT_TOO_LARGE,
)


class CookctlError(Exception):
    """Base exception for all cookctl errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`cookctl.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class UsageError(CookctlError):
    """Raised for malformed argv, unknown command paths, or bad flag values.

    Args:
        message: The problem, e.g. ``"unknown recipe command: frobnicate"``.
        usage: Optional usage text printed to stderr after the message.
        reported: ``True`` when the message and usage were already written
            (flag-set parse failures write their own diagnostics).
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(
        self,
        message: str,
        usage: Optional[str] = None,
        reported: bool = False,
    ):
        super().__init__(message)
        self.usage = usage
        self.reported = reported


class AuthError(CookctlError):
    """Raised when no token is available or a stored token cannot be used."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(CookctlError):
    """Raised when a name lookup (recipe title, tag, book) finds nothing."""

    exit_code = EXIT_NOT_FOUND


class ConflictError(CookctlError):
    """Raised when a create would duplicate an existing recipe title."""

    exit_code = EXIT_CONFLICT


class ConnectionError_(CookctlError):
    """Raised on network-level failures (timeout, DNS, refused, failed health preflight).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_GENERIC_FAILURE


class ConfigError(CookctlError):
    """Raised for configuration problems (invalid JSON, bad durations, corrupt credentials)."""

    exit_code = EXIT_GENERIC_FAILURE


_STATUS_EXIT_CODES = {
    401: EXIT_AUTH_FAILURE,
    403: EXIT_FORBIDDEN,
    404: EXIT_NOT_FOUND,
    409: EXIT_CONFLICT,
    413: EXIT_TOO_LARGE,
    429: EXIT_RATE_LIMITED,
}


class APIError(CookctlError):
    """Raised when the API answers with a non-2xx status.

    The server reports failures as a problem document::

        {"code": "validation_error", "message": "invalid input",
         "details": [{"field": "name", "message": "is required"}]}

    Args:
        status_code: HTTP status of the response.
        code: Machine-readable problem code, if any.
        message: Problem message, if any.
        details: Per-field problems for validation errors.
    """

    def __init__(
        self,
        status_code: int,
        code: str = "",
        message: str = "",
        details: Optional[list[dict[str, Any]]] = None,
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or []
        super().__init__(
            self.user_message(),
            exit_code=_STATUS_EXIT_CODES.get(status_code, EXIT_GENERIC_FAILURE),
        )

    def user_message(self) -> str:
        """Render the error for humans, one validation detail per line."""
        code = self.code.strip()
        message = self.message.strip()
        if code and message:
            text = f"{code}: {message}"
        elif message:
            text = message
        elif code:
            text = code
        else:
            text = f"request failed with status {self.status_code}"

        if code == "validation_error":
            for detail in self.details:
                field = str(detail.get("field", "")).strip()
                problem = str(detail.get("message", "")).strip()
                if field or problem:
                    text += f"\nfield={field} message={problem}"
        return text

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON error envelope written in ``--output json`` mode."""
        detail: dict[str, Any] = {"status": self.status_code}
        if self.code:
            detail["code"] = self.code
        detail["message"] = self.message.strip() or f"request failed with status {self.status_code}"
        if self.details:
            detail["details"] = self.details
        return {"error": detail}
