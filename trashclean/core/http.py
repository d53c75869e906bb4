"""
Trash Clean - HTTP Client Base
Shared httpx plumbing for the backend API clients.
"""

import logging
from typing import Dict, Optional

import httpx

from trashclean.core.auth import TokenSource
from trashclean.core.config import settings

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Base class for clients of the Trash Clean backend.

    Owns an ``httpx.Client`` (created lazily unless one is injected) and
    builds bearer-token headers from the injected token source.
    """

    def __init__(
        self,
        token_source: TokenSource,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the API client.

        Args:
            token_source: Provider of the bearer token
            base_url: API root, defaults to ``settings.api_base_url``
            timeout: HTTP request timeout in seconds
            http_client: Pre-built client (tests inject a mock transport)
        """
        self.token_source = token_source
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._client: Optional[httpx.Client] = http_client
        self._owns_client = http_client is None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _auth_headers(self, token: Optional[str]) -> Dict[str, str]:
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}
