"""Numeric process exit codes.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~cookctl.exceptions.CookctlError` subclass. Shell
scripts can branch on the exit code without parsing stderr.

Example::

    $ cookctl recipe get 00000000-0000-0000-0000-000000000000
    $ echo $?
    4   # EXIT_NOT_FOUND -- the API answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unknown command path."""

EXIT_AUTH_FAILURE = 3
"""No token is available, or the API rejected it (HTTP 401)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_CONFLICT = 5
"""The request conflicts with existing state (HTTP 409, duplicate recipe title)."""

EXIT_RATE_LIMITED = 6
"""The API is throttling this client (HTTP 429)."""

EXIT_FORBIDDEN = 7
"""The token is valid but lacks permission (HTTP 403)."""

EXIT_TOO_LARGE = 8
"""The request payload exceeded the server limit (HTTP 413)."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C."""
