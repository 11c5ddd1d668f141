"""File-backed key-value store for cached lookups and quota state.

Wraps a :class:`diskcache.Cache` directory and exposes a narrow
bytes-in/bytes-out interface keyed by strings. Each call is atomic with
respect to other callers of the same store (diskcache is thread- and
process-safe); :meth:`PersistentStore.transaction` groups several calls
into one engine transaction. No atomicity is offered across an entire
read-decide-fetch-write lookup.

Opening is the only unconditionally fatal failure in the package:
:meth:`PersistentStore.open` raises :class:`~postcodeapi.exceptions.StoreError`
and the caller decides whether to abort.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import diskcache

from postcodeapi.exceptions import StoreError

DEFAULT_STORE_PATH = Path("data") / "pcapi_cache"
"""Store location used when no path is configured, relative to the working directory."""

_ENGINE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


class PersistentStore:
    """Transactional string-keyed store of byte blobs.

    Use :meth:`open` rather than the constructor so that open failures
    surface as :class:`~postcodeapi.exceptions.StoreError`.

    Args:
        cache: An already opened :class:`diskcache.Cache`.
        path: The directory backing *cache*.

    Example::

        store = PersistentStore.open("/tmp/pcapi")
        store.set("6931XE130", b"...")
        assert store.get("6931XE130") == b"..."
        store.close()
    """

    def __init__(self, cache: diskcache.Cache, path: Path) -> None:
        self._cache = cache
        self._path = path

    @classmethod
    def open(cls, path: str | Path | None = None) -> PersistentStore:
        """Open (creating if necessary) the store at *path*.

        Args:
            path: Store directory. Defaults to :data:`DEFAULT_STORE_PATH`.

        Raises:
            StoreError: If the directory or its database cannot be opened.
        """
        resolved = Path(path) if path else DEFAULT_STORE_PATH
        try:
            cache = diskcache.Cache(str(resolved))
        except _ENGINE_ERRORS as exc:
            raise StoreError(f"Cannot open cache store at {resolved}: {exc}") from exc
        return cls(cache, resolved)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[bytes]:
        """Return the blob stored under *key*, or ``None`` if absent.

        Raises:
            StoreError: If the engine fails to read.
        """
        try:
            value = self._cache.get(key)
        except _ENGINE_ERRORS as exc:
            raise StoreError(f"Cannot read '{key}' from cache store: {exc}") from exc
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    def set(self, key: str, value: bytes) -> None:
        """Store *value* under *key*, replacing any previous blob.

        Raises:
            StoreError: If the engine fails to write.
        """
        try:
            self._cache.set(key, bytes(value))
        except _ENGINE_ERRORS as exc:
            raise StoreError(f"Cannot write '{key}' to cache store: {exc}") from exc

    def delete(self, key: str) -> bool:
        """Remove *key*. Returns ``True`` if it was present."""
        try:
            return bool(self._cache.delete(key))
        except _ENGINE_ERRORS as exc:
            raise StoreError(f"Cannot delete '{key}' from cache store: {exc}") from exc

    def keys(self) -> list[str]:
        """Return every key currently in the store."""
        return [str(k) for k in self._cache]

    def clear(self) -> int:
        """Remove every key. Returns the number of removed entries."""
        try:
            return self._cache.clear()
        except _ENGINE_ERRORS as exc:
            raise StoreError(f"Cannot clear cache store: {exc}") from exc

    def __len__(self) -> int:
        return len(self._cache)

    @contextmanager
    def transaction(self) -> Iterator[PersistentStore]:
        """Group the enclosed get/set calls into one engine transaction.

        Raises:
            StoreError: If the transaction cannot be started or committed.
        """
        try:
            with self._cache.transact():
                yield self
        except _ENGINE_ERRORS as exc:
            raise StoreError(f"Cache store transaction failed: {exc}") from exc

    def stats(self) -> dict[str, object]:
        """Return the entry count, on-disk size, and directory of the store."""
        return {
            "size": len(self._cache),
            "volume_bytes": self._cache.volume(),
            "directory": str(self._path),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    def __enter__(self) -> PersistentStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
