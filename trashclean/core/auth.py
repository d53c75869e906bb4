"""
Trash Clean - Authentication Collaborators
Bearer token providers injected into the API clients.
"""

from typing import Optional, Protocol

from trashclean.core.config import settings


class TokenSource(Protocol):
    """Supplies the current bearer token, or None when signed out."""

    def get_bearer_token(self) -> Optional[str]:
        ...


class StaticTokenSource:
    """Token source holding a fixed token."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def get_bearer_token(self) -> Optional[str]:
        return self._token or None


class EnvTokenSource:
    """Token source reading ``TRASHCLEAN_AUTH_TOKEN`` from settings."""

    def get_bearer_token(self) -> Optional[str]:
        return settings.auth_token or None
