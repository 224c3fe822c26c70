"""
Abstract Blob Storage Interface

DESIGN DECISION: The document is persisted as one text blob under a
well-known key. We define an abstract interface for that so we can:
1. Keep the blob in a local JSON file for normal use
2. Use in-memory storage for testing
3. Swap the backend without touching the ledger code

The interface is intentionally tiny: read a key, write a key.
"""

from abc import ABC, abstractmethod
from typing import Optional


class BlobStorageInterface(ABC):
    """
    Abstract key-value store holding whole text blobs.

    Writes replace the previous blob entirely; there are no partial
    updates.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Returns:
            The blob text, or None if nothing is stored

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, blob: str) -> None:
        """
        Replace the blob stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if something was removed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """The backend could not be read."""
    pass


class StorageWriteError(StorageError):
    """The backend rejected a write."""
    pass
