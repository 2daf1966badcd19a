"""Base classes for remote store implementations.

This module provides the abstract store interface and the per-image error
taxonomy. Every error here is non-fatal for a run: the fetch loop records it
against one timestamp and moves on to the next.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from radarfetch.utils import log

LOGGER = log.get_logger(__name__)


class RemoteStoreError(Exception):
    """Base exception for remote store errors."""

    error_code = "remote_error"

    def __init__(
        self,
        message: str,
        technical_details: str | None = None,
        original_exception: Exception | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize the error."""
        super().__init__(message)
        self.message = message
        self.technical_details = technical_details
        self.original_exception = original_exception
        if error_code is not None:
            self.error_code = error_code

    def get_user_message(self) -> str:
        """Get a user-friendly error message."""
        return self.message


class TemporaryError(RemoteStoreError):
    """Temporary error that may succeed on retry."""

    error_code = "temporary"


class NetworkError(TemporaryError):
    """Connection failure or other transport-level error."""

    error_code = "network"


class TimeoutError(TemporaryError):  # pylint: disable=redefined-builtin
    """Operation timed out."""

    error_code = "timeout"


class ServerError(TemporaryError):
    """Server-side (5xx) error."""

    error_code = "server"


class ResourceNotFoundError(RemoteStoreError):
    """Requested image not found."""

    error_code = "not_found"


class EmptyResponseError(RemoteStoreError):
    """The archive answered successfully but sent no body."""

    error_code = "empty"


class InvalidContentError(RemoteStoreError):
    """The archive answered with something that is not an image, such as an HTML error page."""

    error_code = "invalid_content"


class RemoteStore(ABC):
    """Abstract base class for image archives keyed by hour, site and image type."""

    @abstractmethod
    async def fetch(self, timestamp: datetime, site: str, image_type: str) -> bytes:
        """Return the image bytes for one hour.

        Raises:
            RemoteStoreError: If the image could not be retrieved
        """

    @abstractmethod
    def get_file_url(self, timestamp: datetime, site: str, image_type: str) -> str:
        """Get the URL for an image."""

    @abstractmethod
    async def close(self) -> None:
        """Close any resources used by the store."""

    async def __aenter__(self) -> "RemoteStore":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.close()
