"""Services package."""

from ortak_kasa.services.storage import (
    BlobStorageInterface,
    InMemoryBlobStorage,
    JsonFileBlobStorage,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "BlobStorageInterface",
    "InMemoryBlobStorage",
    "JsonFileBlobStorage",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
