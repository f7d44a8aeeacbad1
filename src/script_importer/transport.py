"""
HTTP transport for fetching bundles and source maps from the packager.

Thin wrapper over aiohttp: one GET per call, body returned as text, every
failure raised as FetchError. No retries at this layer.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from script_importer.errors import ErrorCategory, FetchError
from script_importer.logging.setup import get_logger
from script_importer.logging.utilities import log_with_context

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


class HttpTransport:
    """
    Fetches text over HTTP with an optional shared aiohttp session.

    Usage:
        async with HttpTransport(timeout_seconds=30) as transport:
            body = await transport.fetch_text(url)

    Session management:
        Pass a session to share a connection pool with the rest of the
        debugger. Otherwise one is created on first use and closed by
        close().
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_connections: int = 10,
    ):
        self._session = session
        self._owns_session = session is None
        self.timeout_seconds = timeout_seconds
        self.max_connections = max_connections

    async def __aenter__(self) -> "HttpTransport":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Create aiohttp session if not exists."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections,
            )
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    async def fetch_text(self, url: str) -> str:
        """
        GET url and return the decoded response body.

        Args:
            url: Absolute URL to fetch

        Returns:
            Response body as text

        Raises:
            FetchError: On non-2xx status, undecodable body, timeout or
                connection error
        """
        session = await self._ensure_session()

        try:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                if not 200 <= response.status < 300:
                    error = FetchError(
                        f"HTTP error: {response.status}",
                        url=url,
                        status_code=response.status,
                    )
                    log_with_context(
                        logger,
                        logging.WARNING,
                        "Fetch failed",
                        script_url=url,
                        http_status=response.status,
                        error_category=error.category.value,
                    )
                    raise error

                try:
                    body = await response.text()
                except UnicodeDecodeError as e:
                    raise FetchError(
                        f"Response body could not be decoded: {e.reason}",
                        url=url,
                        status_code=response.status,
                        category=ErrorCategory.PERMANENT,
                        cause=e,
                    ) from e

                log_with_context(
                    logger,
                    logging.DEBUG,
                    "Fetch complete",
                    script_url=url,
                    http_status=response.status,
                    content_length=len(body),
                )
                return body

        except asyncio.TimeoutError as e:
            raise FetchError(
                f"Timeout after {self.timeout_seconds}s",
                url=url,
                category=ErrorCategory.TRANSIENT,
                cause=e,
            ) from e
        except aiohttp.ClientError as e:
            raise FetchError(
                f"Connection error: {e}",
                url=url,
                category=ErrorCategory.TRANSIENT,
                cause=e,
            ) from e
