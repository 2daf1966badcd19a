"""Archive package for radarfetch.

This package contains the hourly time index, the site and image type
catalog, the remote store implementations, and the fetch loop that ties
them together.
"""

from .fetch_loop import FetchConfig, FetchLoop, FetchReport, run

__all__ = ["FetchConfig", "FetchLoop", "FetchReport", "run"]
