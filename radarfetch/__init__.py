"""radarfetch – bulk downloader for hourly historical radar imagery."""

__version__ = "0.3.0"
