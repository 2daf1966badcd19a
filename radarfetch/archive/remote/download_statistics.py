"""Download statistics tracking with bounded memory usage."""

import time
from collections import Counter, deque
from datetime import UTC, datetime
from typing import Any

from radarfetch.utils.log import get_logger

LOGGER = get_logger(__name__)


def _format_bytes(total: float) -> str:
    if total > 1024 * 1024 * 1024:
        return f"{total / 1024 / 1024 / 1024:.2f} GB"
    if total > 1024 * 1024:
        return f"{total / 1024 / 1024:.2f} MB"
    return f"{total / 1024:.2f} KB"


class DownloadStatistics:
    """Running tally of one fetch run, updated from the event loop thread."""

    def __init__(self, max_download_times: int = 100, max_errors: int = 20):
        """Initialize statistics with memory bounds.

        Args:
            max_download_times: Maximum download times to track
            max_errors: Maximum error messages to keep
        """
        self.total_attempts: int = 0
        self.successful: int = 0
        self.failed: int = 0
        self.skipped: int = 0
        self.retry_count: int = 0

        # Keyed by RemoteStoreError.error_code, plus "write_error"
        self.failures_by_type: Counter[str] = Counter()

        self.download_times: deque[float] = deque(maxlen=max_download_times)
        self.errors: deque[str] = deque(maxlen=max_errors)

        self.start_time: float = time.monotonic()
        self.total_bytes: int = 0
        self.largest_file_size: int = 0

    def add_skip(self) -> None:
        self.skipped += 1

    def add_retry(self) -> None:
        self.retry_count += 1

    def add_attempt(
        self,
        success: bool,
        download_time: float = 0,
        file_size: int = 0,
        error_type: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """Add a finished download attempt to statistics.

        Args:
            success: Whether the image was fetched and written
            download_time: Time taken for the download in seconds
            file_size: Size of the written file in bytes
            error_type: Error code if the attempt failed
            error_message: Error message if the attempt failed
        """
        self.total_attempts += 1

        if success:
            self.successful += 1
            self.download_times.append(download_time)
            self.total_bytes += file_size
            self.largest_file_size = max(self.largest_file_size, file_size)
            return

        self.failed += 1
        error_type = error_type or "unknown"
        self.failures_by_type[error_type] += 1
        if error_message:
            stamp = datetime.now(UTC).isoformat(timespec="seconds")
            self.errors.append(f"[{stamp}] {error_type}: {error_message}")

    @property
    def success_rate(self) -> float:
        return (self.successful / self.total_attempts * 100) if self.total_attempts else 0.0

    def get_statistics_dict(self) -> dict[str, Any]:
        return {
            "total_attempts": self.total_attempts,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "retry_count": self.retry_count,
            "failures_by_type": dict(self.failures_by_type),
            "total_bytes": self.total_bytes,
            "largest_file_size": self.largest_file_size,
            "errors": list(self.errors),
        }

    def log_statistics(self) -> None:
        """Log a summary of the run."""
        avg_download_time = (
            sum(self.download_times) / len(self.download_times) if self.download_times else 0
        )
        duration = time.monotonic() - self.start_time
        duration_str = f"{duration / 60:.1f} minutes" if duration > 60 else f"{duration:.1f} seconds"
        breakdown = ", ".join(f"{k}: {v}" for k, v in sorted(self.failures_by_type.items())) or "none"

        log_lines = [
            f"Download Statistics Summary ({duration_str}):",
            f"  Attempted: {self.total_attempts}, skipped (already present): {self.skipped}",
            f"  Success rate: {self.success_rate:.1f}% ({self.successful}/{self.total_attempts})",
            f"  Failed: {self.failed} ({breakdown})",
            f"  Retries: {self.retry_count}",
            f"  Average download time: {avg_download_time:.2f}s",
            f"  Total bytes written: {_format_bytes(self.total_bytes)}",
        ]
        if self.errors:
            log_lines.append(f"  Last error: {self.errors[-1]}")

        LOGGER.info("\n".join(log_lines))
