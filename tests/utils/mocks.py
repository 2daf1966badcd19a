"""Test doubles for the archive stores."""

import asyncio
from datetime import datetime

from radarfetch.archive import time_index
from radarfetch.archive.remote.base import RemoteStore, RemoteStoreError

# Smallest valid GIF: 1x1 transparent pixel
GIF_BYTES = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04\x01\x00\x00\x00\x00"
    b",\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
)

TEST_TEMPLATE = "https://archive.test/radar?time={time:%Y%m%d%H%M}&site={site}&image_type={image_type}"


class FakeArchiveStore(RemoteStore):
    """In-memory store that records every request.

    ``errors`` maps a timestamp to an exception (or list of exceptions raised
    on successive calls) to simulate failing hours.
    """

    def __init__(
        self,
        payload: bytes = GIF_BYTES,
        errors: dict[datetime, RemoteStoreError | list[RemoteStoreError]] | None = None,
        delay: float = 0,
    ) -> None:
        self.payload = payload
        self.errors = errors if errors is not None else {}
        self.delay = delay
        self.calls: list[tuple[datetime, str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def fetch(self, timestamp: datetime, site: str, image_type: str) -> bytes:
        self.calls.append((timestamp, site, image_type))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            error = self.errors.get(timestamp)
            if isinstance(error, list):
                if error:
                    raise error.pop(0)
            elif error is not None:
                raise error
            return self.payload
        finally:
            self.in_flight -= 1

    def get_file_url(self, timestamp: datetime, site: str, image_type: str) -> str:
        return time_index.to_archive_url(TEST_TEMPLATE, timestamp, site, image_type)

    async def close(self) -> None:
        self.closed = True

    @property
    def requested_hours(self) -> list[datetime]:
        return [call[0] for call in self.calls]
