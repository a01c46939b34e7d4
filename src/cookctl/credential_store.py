"""Persistent storage for the personal access token.

Stores a single :class:`Credentials` document at
``<config_dir>/credentials.json``. Files are written atomically via
:func:`~cookctl.config.atomic_write` with ``0o600`` permissions so the
token is never world-readable, even momentarily.

Token resolution order used by the commands:

1. ``COOKING_PAT`` environment variable.
2. The stored credentials file.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from cookctl.config import ENV_TOKEN, atomic_write, get_config_dir
from cookctl.exceptions import ConfigError

_CREDENTIALS_FILENAME = "credentials.json"


class Credentials(BaseModel):
    """A stored personal access token and where it is valid.

    Attributes:
        token: The bearer token value.
        token_id: Server-side id of the token, needed for ``--revoke``.
        token_name: Human label the token was created with.
        created_at: When the server minted the token.
        expires_at: Optional expiry; ``None`` means it never expires.
        api_url: API base URL the token was issued by.
    """

    token: str = Field(description="Personal access token")
    token_id: str = Field(default="", description="Server-side token id")
    token_name: str = Field(default="", description="Token label")
    created_at: Optional[datetime] = Field(default=None)
    expires_at: Optional[datetime] = Field(default=None)
    api_url: str = Field(default="", description="API URL the token belongs to")


class TokenSource(str, Enum):
    """Where the active token came from."""

    NONE = "none"
    ENV = "env"
    CREDENTIALS = "credentials"


def default_credentials_path() -> Path:
    """Path to ``credentials.json`` in the configuration directory."""
    return get_config_dir() / _CREDENTIALS_FILENAME


class CredentialStore:
    """Read/write the stored credentials file.

    Args:
        path: Location of the credentials file. Defaults to
            :func:`default_credentials_path`, resolved lazily so tests can
            redirect the XDG directories first.

    Example::

        store = CredentialStore(tmp_path / "credentials.json")
        store.save(Credentials(token="pat_123", api_url="http://localhost:8080"))
        assert store.load().token == "pat_123"
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """The filesystem path of the credentials file."""
        if self._path is None:
            self._path = default_credentials_path()
        return self._path

    def save(self, credentials: Credentials) -> None:
        """Persist credentials atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        data = credentials.model_dump(mode="json")
        atomic_write(self.path, json.dumps(data, indent=2) + "\n", mode=0o600)

    def load(self) -> Optional[Credentials]:
        """Load stored credentials.

        Returns:
            The stored :class:`Credentials`, or ``None`` if no file exists.

        Raises:
            ConfigError: If the file exists but cannot be parsed.
        """
        path = self.path
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return Credentials.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise ConfigError(f"Invalid credentials at {path}: {exc}") from exc

    def clear(self) -> None:
        """Delete the credentials file. No-op when it does not exist."""
        path = self.path
        if path.is_file():
            path.unlink()


def resolve_token(store: CredentialStore) -> tuple[str, TokenSource]:
    """Return the active token and its source.

    ``COOKING_PAT`` wins over the stored file. An empty string with
    :attr:`TokenSource.NONE` means no token is available.
    """
    env_token = os.environ.get(ENV_TOKEN, "").strip()
    if env_token:
        return env_token, TokenSource.ENV
    credentials = store.load()
    if credentials is None or not credentials.token:
        return "", TokenSource.NONE
    return credentials.token, TokenSource.CREDENTIALS


def mask_token(token: str) -> str:
    """Mask all but the last four characters of *token*."""
    if not token:
        return ""
    if len(token) <= 4:
        return "****"
    return "****" + token[-4:]
