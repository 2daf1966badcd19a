"""HTTP store implementation for the historical radar image archive.

This module provides a RemoteStore implementation that requests one image
per hour from the archive using asynchronous HTTP requests, and rejects
responses that are not images before anything reaches the disk.
"""

import asyncio
from datetime import datetime

import aiohttp
from aiohttp.client_exceptions import ClientError

from radarfetch.archive import time_index
from radarfetch.archive.remote.base import (
    EmptyResponseError,
    InvalidContentError,
    NetworkError,
    RemoteStore,
    RemoteStoreError,
    ResourceNotFoundError,
    ServerError,
    TimeoutError,
)
from radarfetch.utils import config
from radarfetch.utils.log import get_logger

LOGGER = get_logger(__name__)

CHUNK_SIZE = 8192

IMAGE_SIGNATURES: dict[bytes, str] = {
    b"GIF87a": "gif",
    b"GIF89a": "gif",
    b"\x89PNG\r\n\x1a\n": "png",
    b"\xff\xd8\xff": "jpeg",
}


def detect_image_format(data: bytes) -> str | None:
    """Return the image format named by the leading bytes, or None."""
    for signature, fmt in IMAGE_SIGNATURES.items():
        if data.startswith(signature):
            return fmt
    return None


class HttpArchiveStore(RemoteStore):
    """Store implementation for the archive's ``image_e.html`` endpoint."""

    def __init__(
        self,
        url_template: str | None = None,
        timeout: int | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Initialize with optional template and timeout parameters.

        Args:
            url_template: Archive URL template (default: from config)
            timeout: HTTP timeout in seconds (default: from config)
            user_agent: User-Agent header value (default: from config)
        """
        self.url_template = url_template or config.get_url_template()
        self.timeout = timeout or config.get_timeout()
        self.user_agent = user_agent or config.get_user_agent()
        self._session: aiohttp.ClientSession | None = None

    @property
    async def session(self) -> aiohttp.ClientSession:
        """Get or create an aiohttp ClientSession."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpArchiveStore":
        await self.session
        return self

    def get_file_url(self, timestamp: datetime, site: str, image_type: str) -> str:
        return time_index.to_archive_url(self.url_template, timestamp, site, image_type)

    async def fetch(self, timestamp: datetime, site: str, image_type: str) -> bytes:
        """Download one image into memory.

        Args:
            timestamp: Hour to download
            site: Site code
            image_type: Image type code

        Returns:
            The raw image bytes, exactly as served

        Raises:
            ResourceNotFoundError: On HTTP 404
            ServerError: On HTTP 5xx
            RemoteStoreError: On any other non-200 status
            EmptyResponseError: If the body is empty
            InvalidContentError: If the body is not an image
            TimeoutError: If the request timed out
            NetworkError: On connection or protocol errors
        """
        url = self.get_file_url(timestamp, site, image_type)
        session = await self.session

        try:
            LOGGER.debug("Requesting %s", url)
            async with session.get(url, allow_redirects=True) as response:
                if response.status == 404:
                    raise ResourceNotFoundError(f"Image not found at {url}")
                if response.status >= 500:
                    raise ServerError(
                        f"Server error {response.status} for {url}",
                        technical_details=response.reason,
                    )
                if response.status != 200:
                    raise RemoteStoreError(
                        f"Unexpected status {response.status} for {url}",
                        technical_details=response.reason,
                        error_code=f"http_{response.status}",
                    )

                body = bytearray()
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    body.extend(chunk)
                content_type = response.headers.get("Content-Type", "")

        except asyncio.TimeoutError as e:
            raise TimeoutError(f"Timed out after {self.timeout}s fetching {url}", original_exception=e) from e
        except ClientError as e:
            raise NetworkError(f"Failed to fetch {url}: {e}", original_exception=e) from e

        data = bytes(body)
        if not data:
            raise EmptyResponseError(f"Empty response from {url}")

        fmt = detect_image_format(data)
        if fmt is None:
            raise InvalidContentError(
                f"Response from {url} is not an image",
                technical_details=f"Content-Type {content_type or 'missing'}, first bytes {data[:16]!r}",
            )

        LOGGER.debug("Fetched %d bytes of %s from %s", len(data), fmt, url)
        return data
