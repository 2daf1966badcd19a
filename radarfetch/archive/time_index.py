"""Hourly timestamp utilities for the radar image archive.

This module enumerates the hours of a requested range, builds the archive URL
for each hour, and maps timestamps to and from the local filenames that
downloaded images are stored under.

All timestamps are UTC and truncated to the hour.
"""

import re
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

from radarfetch.exceptions import ConfigurationError, DateRangeError
from radarfetch.utils import log

LOGGER = log.get_logger(__name__)

ONE_HOUR = timedelta(hours=1)

# SITE_IMAGETYPE_YYYY-MM-DDTHH-00.ext
FILENAME_TIME_FORMAT = "%Y-%m-%dT%H-00"
STAMP_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}-00")


def normalize(ts: datetime) -> datetime:
    """Return ts as an aware UTC datetime truncated to the hour.

    Naive datetimes are taken to already be in UTC.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    else:
        ts = ts.astimezone(UTC)
    return ts.replace(minute=0, second=0, microsecond=0)


def build_timestamp(year: int, month: int, day: int, hour: int = 0) -> datetime:
    """
    Build a validated UTC timestamp from calendar fields.

    Raises:
        DateRangeError: If the fields do not form a real date-time
    """
    try:
        return datetime(year, month, day, hour, tzinfo=UTC)
    except (TypeError, ValueError) as e:
        raise DateRangeError(
            f"Invalid date-time {year:04d}-{month:02d}-{day:02d} {hour:02d}:00: {e}"
        ) from e


def hour_range(start: datetime, end: datetime) -> Iterator[datetime]:
    """
    Yield every hour from start to end inclusive, in chronological order.

    An end before the start yields nothing.
    """
    current = normalize(start)
    last = normalize(end)
    while current <= last:
        yield current
        current += ONE_HOUR


def count_hours(start: datetime, end: datetime) -> int:
    """Number of hours hour_range(start, end) will produce."""
    first = normalize(start)
    last = normalize(end)
    if last < first:
        return 0
    return int((last - first) / ONE_HOUR) + 1


def to_archive_url(template: str, ts: datetime, site: str, image_type: str) -> str:
    """
    Substitute a timestamp, site and image type into an archive URL template.

    Args:
        template: ``str.format`` template using ``{time}``, ``{site}`` and
            ``{image_type}``; ``{time}`` accepts strftime format specs
        ts: Timestamp of the image
        site: Site code
        image_type: Image type code

    Returns:
        The request URL

    Raises:
        ConfigurationError: If the template references unknown fields or attributes
    """
    try:
        return template.format(time=normalize(ts), site=site, image_type=image_type)
    except (AttributeError, KeyError, IndexError, ValueError) as e:
        raise ConfigurationError(f"Invalid archive URL template {template!r}: {e}") from e


def to_filename(ts: datetime, site: str, image_type: str, extension: str = "gif") -> str:
    """Local filename for one downloaded image."""
    stamp = normalize(ts).strftime(FILENAME_TIME_FORMAT)
    return f"{site}_{image_type}_{stamp}.{extension.lstrip('.')}"


def parse_filename(name: str, site: str, image_type: str, extension: str = "gif") -> datetime | None:
    """
    Inverse of to_filename for one site, image type and extension.

    Codes are matched literally, so they may themselves contain ``_`` or ``-``.

    Returns:
        The image's timestamp, or None if name is not such a file
    """
    prefix = f"{site}_{image_type}_"
    suffix = f".{extension.lstrip('.')}"
    if not (name.startswith(prefix) and name.endswith(suffix)):
        return None
    stamp = name[len(prefix) : len(name) - len(suffix)]
    if not STAMP_PATTERN.fullmatch(stamp):
        return None
    try:
        return datetime.strptime(stamp, FILENAME_TIME_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        LOGGER.debug("Ignoring file with impossible timestamp: %s", name)
        return None


def scan_directory(directory: Path, site: str, image_type: str, extension: str = "gif") -> set[datetime]:
    """
    Find the hours already downloaded for a site, image type and extension.

    Args:
        directory: Output directory to inspect
        site: Site code to match
        image_type: Image type code to match
        extension: File extension to match; files saved under another one do not count

    Returns:
        Timestamps of matching files; empty if the directory does not exist
    """
    if not directory.is_dir():
        return set()

    found: set[datetime] = set()
    for entry in directory.iterdir():
        if not entry.is_file():
            continue
        ts = parse_filename(entry.name, site, image_type, extension)
        if ts is not None:
            found.add(ts)

    LOGGER.debug("Found %d existing %s/%s images in %s", len(found), site, image_type, directory)
    return found
