"""On-disk response cache keyed by request URL.

Each entry is one file, ``<directory>/<sha256(url)>.cache``, holding a JSON
record ``{"data": <base64 body>, "expires_at": <unix time or null>}``.
Distinct keys never share a file, so concurrent writers only race on the
same key, where the last write wins.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Protocol, runtime_checkable

from datareader.core.exceptions import CacheError, CacheUnavailableError

logger = logging.getLogger(__name__)

_SUFFIX = ".cache"


def cache_key(url: str) -> str:
    """SHA-256 hex digest of the full request URL."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


@runtime_checkable
class ResponseCache(Protocol):
    """Storage contract used by RetryableClient.

    ``get`` never raises; anything unreadable is a miss. ``set`` and
    ``delete`` raise ``CacheError`` subclasses on failure.
    """

    enabled: bool

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, data: bytes, ttl: float = 0) -> None: ...

    def delete(self, key: str) -> None: ...


class FileCache:
    """Filesystem-backed ResponseCache.

    Parameters
    ----------
    directory : str | Path
        Where entry files live. Created on first ``set``.
    """

    enabled = True

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{cache_key(key)}{_SUFFIX}"

    def get(self, key: str) -> bytes | None:
        """Return cached bytes, or None when absent, corrupt, or expired.

        Corrupt and expired entries are removed on the way out.
        """
        path = self._path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug("Cache read failed for %s: %s", path.name, e)
            return None

        try:
            record = json.loads(raw)
            data = base64.b64decode(record["data"], validate=True)
            expires_at = record["expires_at"]
            expired = expires_at is not None and time.time() > float(expires_at)
        except (ValueError, KeyError, TypeError, binascii.Error) as e:
            logger.debug("Discarding corrupt cache entry %s: %s", path.name, e)
            self._discard(path)
            return None

        if expired:
            logger.debug("Cache entry %s expired", path.name)
            self._discard(path)
            return None

        return data

    def set(self, key: str, data: bytes, ttl: float = 0) -> None:
        """Store bytes under key. ``ttl <= 0`` means the entry never expires.

        Raises:
            CacheError: The directory or entry file could not be written.
        """
        path = self._path(key)
        record = {
            "data": base64.b64encode(data).decode("ascii"),
            "expires_at": time.time() + ttl if ttl > 0 else None,
        }
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(record, f)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheError(
                f"Failed to write cache entry: {e}",
                context={"key": key, "path": str(path)},
            ) from e

    def delete(self, key: str) -> None:
        """Remove an entry. Removing a missing entry is not an error.

        Raises:
            CacheError: The entry exists but could not be removed.
        """
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheError(
                f"Failed to delete cache entry: {e}",
                context={"key": key, "path": str(path)},
            ) from e

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("Could not remove cache entry %s: %s", path.name, e)


class DisabledCache:
    """Stand-in used when no cache directory is configured.

    Reads always miss. Writes and deletes raise ``CacheUnavailableError`` so
    callers that care can tell caching was asked for but is off.
    """

    enabled = False

    def get(self, key: str) -> bytes | None:
        return None

    def set(self, key: str, data: bytes, ttl: float = 0) -> None:
        raise CacheUnavailableError("cache is disabled", context={"key": key})

    def delete(self, key: str) -> None:
        raise CacheUnavailableError("cache is disabled", context={"key": key})
