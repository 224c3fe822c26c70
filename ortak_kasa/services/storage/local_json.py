"""
Local Blob Storage Implementations

DESIGN DECISION: A plain JSON file per key is the storage backend because:
1. The whole state is a single small document
2. There is a single writer, so no locking is needed
3. Users can open, copy and back up the file themselves

Writes go to a temporary file in the same directory and are then renamed
over the target, so a crash mid-write leaves the previous blob intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from ortak_kasa.services.storage.interface import (
    BlobStorageInterface,
    StorageReadError,
    StorageWriteError,
)


class JsonFileBlobStorage(BlobStorageInterface):
    """Stores each key as `<directory>/<key>.json`."""

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Could not read {path}: {e}") from e

    def write(self, key: str, blob: str) -> None:
        path = self.path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key}.", suffix=".tmp", dir=self._directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(blob)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageWriteError(f"Could not write {path}: {e}") from e

    def delete(self, key: str) -> bool:
        try:
            self.path_for(key).unlink()
            return True
        except FileNotFoundError:
            return False


class InMemoryBlobStorage(BlobStorageInterface):
    """Dictionary-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._blobs: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def write(self, key: str, blob: str) -> None:
        self._blobs[key] = blob

    def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None
