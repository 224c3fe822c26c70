"""
Storage Services Package

Provides the abstract blob interface and its local implementations.
The JSON file backend is the default, but the store accepts any
BlobStorageInterface.
"""

from ortak_kasa.services.storage.interface import (
    BlobStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from ortak_kasa.services.storage.local_json import (
    InMemoryBlobStorage,
    JsonFileBlobStorage,
)

__all__ = [
    # Interfaces
    "BlobStorageInterface",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryBlobStorage",
    "JsonFileBlobStorage",
]
