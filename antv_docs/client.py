"""
Context7 API client with httpx.

Fetches plain-text documentation for AntV libraries. Every call is a
single GET under one deadline for the whole response; no retries.

All I/O is async via httpx.
"""

import asyncio
import logging
from typing import Optional

import httpx

from .models import (
    CONTEXT7_BASE_URL,
    CONTEXT7_ORG,
    CONTEXT7_SOURCE_HEADER,
    CONTEXT7_TIMEOUT,
    NO_CONTENT_SENTINELS,
    Context7APIError,
    DocumentationFound,
    FetchFailed,
    FetchOutcome,
    NoContent,
)

logger = logging.getLogger("antv-mcp")


def get_library_id(library: str) -> str:
    """Map a library slug to its Context7 library ID ("/antvis/g2")."""
    return f"/{CONTEXT7_ORG}/{library}"


class Context7Client:
    """
    Async client for the Context7 documentation API.

    Distinguishes "no documentation available" (NoContent) from "fetch
    failed" (FetchFailed) so callers can render them differently.
    """

    def __init__(
        self,
        base_url: str = CONTEXT7_BASE_URL,
        timeout: float = CONTEXT7_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Context7 client.

        Args:
            base_url: API root, e.g. "https://context7.com/api"
            timeout: Hard per-request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def build_url(self, library_id: str, topic: Optional[str] = None, tokens: Optional[int] = None) -> str:
        """
        Build the documentation URL for a library.

        Args:
            library_id: Library ID in format "/owner/repo"
            topic: Optional topic filter
            tokens: Optional token budget

        Returns:
            Fully encoded URL with tokens, topic and type=txt parameters
        """
        clean_id = library_id.lstrip("/")
        params = {}
        if tokens:
            params["tokens"] = str(tokens)
        if topic:
            params["topic"] = topic
        params["type"] = "txt"
        return str(httpx.URL(f"{self._base_url}/v1/{clean_id}", params=params))

    async def fetch_documentation(
        self,
        library_id: str,
        topic: str,
        tokens: Optional[int] = None
    ) -> FetchOutcome:
        """
        Fetch documentation for a library and topic.

        Args:
            library_id: Library ID in format "/antvis/<slug>"
            topic: Comma-separated topic phrases
            tokens: Maximum token count of returned content

        Returns:
            DocumentationFound, NoContent or FetchFailed. Never raises.
        """
        url = self.build_url(library_id, topic, tokens)
        try:
            text = await asyncio.wait_for(self._get_text(url), self._timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError):
            logger.error(f"Failed to fetch documentation for {library_id}: timed out after {self._timeout}s")
            return FetchFailed(error="Timeout error")
        except Exception as e:
            logger.error(f"Failed to fetch documentation for {library_id}: {e}")
            return FetchFailed(error=str(e) or type(e).__name__)

        if text is None:
            return NoContent()

        logger.info(f"Documentation fetched successfully, length: {len(text)} chars")
        return DocumentationFound(documentation=text)

    async def _get_text(self, url: str) -> Optional[str]:
        """
        GET the URL and normalize the body.

        Returns:
            The body text, or None for an empty body or a no-content sentinel

        Raises:
            Context7APIError: If the API answers with a non-2xx status
            httpx.HTTPError: On transport failures and timeouts
        """
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.get(url, headers=CONTEXT7_SOURCE_HEADER)

            if not response.is_success:
                raise Context7APIError(response.status_code, response.reason_phrase)

            text = response.text

        if not text or not text.strip() or text.strip() in NO_CONTENT_SENTINELS:
            return None
        return text
