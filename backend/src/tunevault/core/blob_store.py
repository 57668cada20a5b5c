"""Key/value stores for large per-user payloads.

A blob store holds values too large for the database-backed cache, e.g. the
serialized music collection which may be tens of megabytes. Every store
instance is scoped to one user, so keys need not carry the user ID.

FileBlobStore keeps one directory per user on disk, shared by all workers.
Its methods do blocking file I/O; async callers run them in an executor.
"""

import hashlib
import os
import tempfile
import time
from pathlib import Path
from typing import Optional, Protocol

from loguru import logger

from tunevault.core.config import settings


class BlobStore(Protocol):
    """Interface of a per-user blob store."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None: ...

    def remove(self, key: str) -> None: ...

    def clear(self) -> None: ...


class FileBlobStore:
    """Blob store keeping each entry in its own file.

    The first line of an entry file holds the expiry as a unix timestamp and
    the rest is the value. Writes go through a temporary file and
    ``os.replace`` so readers never see a half-written entry.
    """

    def __init__(self, directory: Path, default_ttl: int = 24 * 60 * 60):
        self._directory = directory
        self._default_ttl = default_ttl

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self._directory / f"{digest}.blob"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                expiry = float(f.readline())
                if time.time() >= expiry:
                    logger.debug(f"Blob EXPIRED: {key}")
                    expired = True
                else:
                    return f.read()
        except FileNotFoundError:
            logger.debug(f"Blob MISS: {key}")
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable blob entry {path}: {e}")
            expired = True

        if expired:
            self.remove(key)
        return None

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        if ttl is None:
            ttl = self._default_ttl
        expiry = time.time() + ttl
        fd, tmp_path = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(f"{expiry}\n")
                f.write(value)
            os.replace(tmp_path, self._path_for(key))
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.debug(f"Blob SET: {key} ({len(value)} chars)")

    def remove(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def clear(self) -> None:
        if not self._directory.exists():
            return
        for entry in self._directory.glob("*.blob"):
            entry.unlink(missing_ok=True)


def get_blob_store(user_id: str) -> FileBlobStore:
    """Return the on-disk blob store of the given user."""
    digest = hashlib.md5(user_id.encode("utf-8")).hexdigest()
    return FileBlobStore(settings.BLOB_CACHE_DIR / digest)
