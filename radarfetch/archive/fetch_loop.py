"""Fetch loop: download one archived image per hour of a date-time range.

The loop walks the range in chronological order, skips hours whose file is
already on disk, and fetches the rest through a RemoteStore with at most
``concurrency`` requests in flight. A failed hour is recorded and never stops
the hours after it. Fatal problems (bad input, unusable output directory) are
raised before any network activity.
"""

from __future__ import annotations

import asyncio
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from radarfetch.archive import catalog, time_index
from radarfetch.archive.remote.base import RemoteStore, RemoteStoreError, TemporaryError
from radarfetch.archive.remote.download_statistics import DownloadStatistics
from radarfetch.archive.remote.http_store import HttpArchiveStore
from radarfetch.exceptions import ConfigurationError, OutputDirectoryError
from radarfetch.utils import config, log

LOGGER = log.get_logger(__name__)

DEFAULT_RETRY_BACKOFF = 2.0
PARTIAL_SUFFIX = ".part"


@dataclass(frozen=True)
class FetchConfig:
    """Immutable description of one run, built once and handed to FetchLoop."""

    start: datetime
    end: datetime
    site: str
    image_type: str
    output_dir: Path
    url_template: str = config.DEFAULT_URL_TEMPLATE
    concurrency: int = 4
    timeout: int = 60
    retries: int = 0
    retry_backoff: float = DEFAULT_RETRY_BACKOFF
    overwrite: bool = False
    extension: str = "gif"
    user_agent: str = "radarfetch/0.3"

    def __post_init__(self) -> None:
        for name in ("start", "end"):
            if not isinstance(getattr(self, name), datetime):
                raise ConfigurationError(f"{name} must be a datetime, got {getattr(self, name)!r}")
        site = (self.site or "").strip().upper()
        image_type = (self.image_type or "").strip().upper()
        if not site:
            raise ConfigurationError("A site code is required")
        if not image_type:
            raise ConfigurationError("An image type code is required")
        if self.concurrency < 1:
            raise ConfigurationError("concurrency must be at least 1")
        if self.retries < 0:
            raise ConfigurationError("retries must not be negative")
        if self.timeout < 1:
            raise ConfigurationError("timeout must be at least 1 second")
        if not self.url_template:
            raise ConfigurationError("An archive URL template is required")
        # Render once so a broken template fails here, not inside the fetch tasks
        time_index.to_archive_url(self.url_template, self.start, site, image_type)

        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "start", time_index.normalize(self.start))
        object.__setattr__(self, "end", time_index.normalize(self.end))
        object.__setattr__(self, "site", site)
        object.__setattr__(self, "image_type", image_type)
        object.__setattr__(self, "output_dir", Path(self.output_dir).expanduser())
        object.__setattr__(self, "extension", self.extension.lstrip(".") or "gif")

    @classmethod
    def from_settings(
        cls,
        start: datetime,
        end: datetime,
        site: str,
        image_type: str,
        output_dir: Path | str | None = None,
        **overrides: Any,
    ) -> FetchConfig:
        """Build a config from the TOML settings, with keyword overrides on top.

        Overrides whose value is None are ignored so CLI flags that were not
        given fall through to the configured value.
        """
        values: dict[str, Any] = {
            "url_template": config.get_url_template(),
            "concurrency": config.get_concurrency(),
            "timeout": config.get_timeout(),
            "retries": config.get_retries(),
            "extension": config.get_file_extension(),
            "user_agent": config.get_user_agent(),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(
            start=start,
            end=end,
            site=site,
            image_type=image_type,
            output_dir=Path(output_dir) if output_dir is not None else config.get_output_dir(),
            **values,
        )

    @property
    def hours(self) -> int:
        return time_index.count_hours(self.start, self.end)

    def filename_for(self, ts: datetime) -> str:
        return time_index.to_filename(ts, self.site, self.image_type, self.extension)


@dataclass(frozen=True)
class FailedHour:
    timestamp: datetime
    reason: str
    message: str


@dataclass
class FetchReport:
    """Outcome of a run: which hours were written, skipped, or failed."""

    expected: int = 0
    written: list[datetime] = field(default_factory=list)
    skipped: list[datetime] = field(default_factory=list)
    failed: list[FailedHour] = field(default_factory=list)
    statistics: DownloadStatistics | None = None

    @property
    def written_count(self) -> int:
        return len(self.written)

    @property
    def failed_timestamps(self) -> list[datetime]:
        return [f.timestamp for f in self.failed]

    @property
    def is_complete(self) -> bool:
        """True when every hour of the range is now on disk."""
        return len(self.written) + len(self.skipped) == self.expected

    def sort(self) -> None:
        self.written.sort()
        self.skipped.sort()
        self.failed.sort(key=lambda f: f.timestamp)


class FetchLoop:
    """Downloads every hour of ``fetch_config``'s range into its output directory."""

    def __init__(
        self,
        fetch_config: FetchConfig,
        store: RemoteStore | None = None,
        statistics: DownloadStatistics | None = None,
    ) -> None:
        """
        Args:
            fetch_config: What to download and where
            store: Archive to fetch from; an HttpArchiveStore is created and
                closed by the loop when omitted
            statistics: Tally to update; a fresh one is created when omitted
        """
        self.config = fetch_config
        self._store = store
        self.statistics = statistics or DownloadStatistics()

    def prepare_output_dir(self) -> set[datetime]:
        """Create the output directory and list the hours already present in it.

        Raises:
            OutputDirectoryError: If the directory cannot be created or written
        """
        directory = self.config.output_dir
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(str(directory), str(e), cause=e) from e

        if not directory.is_dir():
            raise OutputDirectoryError(str(directory), "not a directory")
        if not os.access(directory, os.W_OK | os.X_OK):
            raise OutputDirectoryError(str(directory), "permission denied")

        if self.config.overwrite:
            return set()
        return time_index.scan_directory(
            directory, self.config.site, self.config.image_type, self.config.extension
        )

    async def run_async(self) -> FetchReport:
        cfg = self.config
        existing = self.prepare_output_dir()
        catalog.warn_if_unknown(cfg.site, cfg.image_type)

        report = FetchReport(expected=cfg.hours, statistics=self.statistics)
        if report.expected == 0:
            LOGGER.info("Empty range (%s is after %s); nothing to fetch", cfg.start, cfg.end)
            return report

        pending: list[datetime] = []
        for ts in time_index.hour_range(cfg.start, cfg.end):
            if ts in existing:
                report.skipped.append(ts)
                self.statistics.add_skip()
            else:
                pending.append(ts)

        LOGGER.info(
            "Fetching %d of %d hours for %s / %s into %s (%d already present)",
            len(pending),
            report.expected,
            catalog.describe_site(cfg.site),
            cfg.image_type,
            cfg.output_dir,
            len(report.skipped),
        )

        if pending:
            store = self._store or HttpArchiveStore(
                url_template=cfg.url_template, timeout=cfg.timeout, user_agent=cfg.user_agent
            )
            semaphore = asyncio.Semaphore(cfg.concurrency)
            try:
                # Tasks are created in chronological order and the semaphore is FIFO,
                # so attempts start in chronological order.
                await asyncio.gather(
                    *(self._process_hour(store, semaphore, ts, report) for ts in pending)
                )
            finally:
                if self._store is None:
                    await store.close()

        report.sort()
        self.statistics.log_statistics()
        if report.failed:
            LOGGER.warning(
                "%d of %d hours could not be fetched: %s",
                len(report.failed),
                report.expected,
                ", ".join(f.timestamp.strftime("%Y-%m-%d %H:00") for f in report.failed[:10])
                + (" ..." if len(report.failed) > 10 else ""),
            )
        return report

    async def _process_hour(
        self,
        store: RemoteStore,
        semaphore: asyncio.Semaphore,
        ts: datetime,
        report: FetchReport,
    ) -> None:
        async with semaphore:
            started = time.monotonic()
            try:
                data = await self._fetch_with_retries(store, ts)
            except RemoteStoreError as e:
                LOGGER.warning("%s: %s", ts.strftime("%Y-%m-%d %H:00"), e.get_user_message())
                if e.technical_details:
                    LOGGER.debug("Details: %s", e.technical_details)
                report.failed.append(FailedHour(ts, e.error_code, e.message))
                self.statistics.add_attempt(False, error_type=e.error_code, error_message=e.message)
                return

            path = self.config.output_dir / self.config.filename_for(ts)
            try:
                await write_atomic(path, data)
            except OSError as e:
                LOGGER.error("Failed to write %s: %s", path, e)
                report.failed.append(FailedHour(ts, "write_error", str(e)))
                self.statistics.add_attempt(False, error_type="write_error", error_message=str(e))
                return

            LOGGER.debug("Saved %s (%d bytes)", path.name, len(data))
            report.written.append(ts)
            self.statistics.add_attempt(
                True, download_time=time.monotonic() - started, file_size=len(data)
            )

    async def _fetch_with_retries(self, store: RemoteStore, ts: datetime) -> bytes:
        attempt = 0
        while True:
            try:
                return await store.fetch(ts, self.config.site, self.config.image_type)
            except TemporaryError as e:
                if attempt >= self.config.retries:
                    raise
                delay = self.config.retry_backoff * (2**attempt)
                attempt += 1
                self.statistics.add_retry()
                LOGGER.info(
                    "%s: %s; retry %d/%d in %.1fs",
                    ts.strftime("%Y-%m-%d %H:00"),
                    e.message,
                    attempt,
                    self.config.retries,
                    delay,
                )
                await asyncio.sleep(delay)


async def write_atomic(path: Path, data: bytes) -> None:
    """Write data to path via a temporary sibling file and a rename.

    A crash or cancellation never leaves a truncated file under ``path``.
    """
    tmp_path = path.with_name(f".{path.name}{PARTIAL_SUFFIX}")
    try:
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(data)
        await aiofiles.os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def run(
    start: datetime,
    end: datetime,
    site: str,
    image_type: str,
    output_directory: Path | str,
    *,
    store: RemoteStore | None = None,
    **options: Any,
) -> FetchReport:
    """Download every hourly image from start to end inclusive.

    Args:
        start: First hour (UTC)
        end: Last hour (UTC); before ``start`` means nothing is fetched
        site: Site code, e.g. ``ATL``
        image_type: Image type code, e.g. ``PRECIPET_RAIN_WEATHEROFFICE``
        output_directory: Where images are written; created if missing
        store: Archive to fetch from (default: HttpArchiveStore)
        **options: Any other FetchConfig field, overriding the config file

    Returns:
        The run's FetchReport; ``written_count`` is the number of files written

    Raises:
        ConfigurationError: For missing codes or invalid options
        OutputDirectoryError: If the output directory is unusable
    """
    fetch_config = FetchConfig.from_settings(start, end, site, image_type, output_directory, **options)
    return asyncio.run(FetchLoop(fetch_config, store=store).run_async())
