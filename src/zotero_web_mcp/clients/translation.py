"""
Zotero Translation Server client.

Resolves DOI / ISBN / PMID / arXiv identifiers into Zotero item data.
The server is optional: ``is_available()`` never raises, while
``search()`` turns an unreachable server into an actionable error.

Server: https://github.com/zotero/translation-server
"""

from functools import lru_cache
import logging
from typing import Any

import httpx

from zotero_web_mcp.settings import DEFAULT_TRANSLATION_SERVER_URL, get_settings
from zotero_web_mcp.utils.errors import (
    TranslationServerError,
    TranslationServerUnavailableError,
    TranslatorNotFoundError,
)

logger = logging.getLogger(__name__)

# Request timeout in seconds
REQUEST_TIMEOUT = 30.0

START_HINT = (
    "Please ensure it is running: "
    "docker run -d -p 1969:1969 zotero/translation-server"
)


class TranslationClient:
    """Client for a Zotero translation server."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the translation client.

        Args:
            base_url: Server URL (default: http://localhost:1969)
            timeout: Request timeout in seconds
            http_client: Pre-built HTTP client (mainly for tests)
        """
        self.base_url = (base_url or DEFAULT_TRANSLATION_SERVER_URL).rstrip("/")
        self.timeout = timeout
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search(self, identifier: str) -> list[dict[str, Any]]:
        """
        Look up metadata for an identifier.

        Args:
            identifier: DOI, ISBN, PMID or arXiv ID

        Returns:
            Candidate Zotero item data records, best match first

        Raises:
            TranslatorNotFoundError: No translator handles the identifier
            TranslationServerUnavailableError: Server could not be reached
            TranslationServerError: Any other server failure
        """
        client = await self._get_client()

        try:
            response = await client.post(
                f"{self.base_url}/search",
                content=identifier.encode("utf-8"),
                headers={"Content-Type": "text/plain"},
            )
        except httpx.TransportError as e:
            logger.error(f"Translation server unreachable at {self.base_url}: {e}")
            raise TranslationServerUnavailableError(
                f"Cannot connect to Translation Server at {self.base_url}",
                identifier=identifier,
                suggestion=START_HINT,
            ) from e

        if response.status_code == 501:
            raise TranslatorNotFoundError(
                f"No translator found for identifier: {identifier}",
                identifier=identifier,
                status_code=501,
            )

        if response.status_code == 500:
            raise TranslationServerError(
                f"Translation server error processing: {identifier}",
                identifier=identifier,
                status_code=500,
            )

        if not response.is_success:
            raise TranslationServerError(
                f"Translation server error ({response.status_code}): {response.text}",
                identifier=identifier,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TranslationServerError(
                f"Translation server returned an unreadable response for: {identifier}",
                identifier=identifier,
                status_code=response.status_code,
            ) from e
        if isinstance(data, dict):
            data = [data]
        logger.info(f"Translation lookup for '{identifier}' returned {len(data)} results")
        return data

    async def is_available(self) -> bool:
        """
        Probe the server.

        Any HTTP answer of 2xx or 404 counts as up; the root path need
        not exist for the server to be alive.
        """
        client = await self._get_client()
        try:
            response = await client.get(self.base_url)
        except httpx.HTTPError as e:
            logger.debug(f"Translation server probe failed: {e}")
            return False
        return response.is_success or response.status_code == 404


@lru_cache(maxsize=1)
def get_translation_client() -> TranslationClient:
    """Get a translation client for TRANSLATION_SERVER_URL."""
    return TranslationClient(get_settings().translation_server_url)
