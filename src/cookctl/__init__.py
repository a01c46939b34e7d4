"""cookctl -- command-line client for the cooking app API.

Every leaf command maps to one or more HTTP calls against the recipe
service (recipes, tags, books, users, items, meal plans, shopping lists).
Credentials are stored locally; output is rendered as tables for humans
or JSON for scripts.

The interesting part of the package is the routing layer: a single
declarative command tree drives argument dispatch, per-command help, and
generated bash/zsh/fish completion scripts, so the three surfaces cannot
drift apart.

Typical workflow::

    cookctl auth login --username alice --password-stdin
    cookctl recipe list --output json
    cookctl completion zsh > ~/.zfunc/_cookctl

Modules:
    app: entry point and top-level ``run`` function.
    registry: the command tree.
    routing: argument splitting, flag sets, dispatch and help.
    completion: shell completion script synthesis.
    config: XDG-aware configuration loading and saving.
    credential_store: on-disk personal access token storage.
    client: HTTP client for the cooking API.
    exceptions: exception hierarchy with exit-code mapping.
    exit_codes: numeric process exit codes.
    output: stdout/stderr formatting.
"""

__version__ = "0.4.0"

__commit__ = "unknown"
"""Source revision stamped in at release time."""

__built_at__ = "unknown"
"""Build timestamp stamped in at release time."""
