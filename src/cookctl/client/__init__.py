"""HTTP clients for the cooking API."""

from cookctl.client.sync_client import APIClient, SessionClient

__all__ = ["APIClient", "SessionClient"]
