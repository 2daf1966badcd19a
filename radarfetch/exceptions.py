"""exceptions.py

Defines custom exception classes for radarfetch, covering the fatal
conditions that stop a run before any network activity: bad configuration,
impossible date ranges, and unusable output directories.

All exceptions inherit from RadarFetchError, allowing for unified error handling.
Per-image network failures live in radarfetch.archive.remote.base.
"""

from typing import Optional


class RadarFetchError(Exception):  # pylint: disable=too-few-public-methods
    """Base class for all radarfetch application-specific errors.

    All custom exceptions in radarfetch should inherit from this class.
    """


class ConfigurationError(RadarFetchError):  # pylint: disable=too-few-public-methods
    """Exception raised for errors related to run configuration.

    Used when required values (site, image type, URL template) are missing
    or invalid.
    """


class DateRangeError(ConfigurationError):  # pylint: disable=too-few-public-methods
    """Exception raised when a start or end timestamp is not a valid calendar date-time."""


class OutputDirectoryError(RadarFetchError):  # pylint: disable=too-few-public-methods
    """Exception raised when the output directory cannot be created or written to."""

    def __init__(self, directory: str, message: str, cause: Optional[BaseException] = None):
        """Initialize an OutputDirectoryError.

        Args:
            directory (str): The directory that could not be used.
            message (str): A description of the problem.
            cause (Optional[BaseException]): The underlying OS error, if any.
        """
        self.directory = directory
        self.cause = cause
        super().__init__(f"Output directory {directory!r} is unusable: {message}")
