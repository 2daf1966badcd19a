"""Remote fetching module for retrieving archived radar imagery.

This package provides the store interface, its HTTP implementation, and the
per-image error types the fetch loop records.
"""

from .base import RemoteStore, RemoteStoreError
from .http_store import HttpArchiveStore

__all__ = ["HttpArchiveStore", "RemoteStore", "RemoteStoreError"]
