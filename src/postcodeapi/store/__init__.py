"""Persistent storage for postcodeapi.

Provides :class:`PersistentStore`, a thin transactional key-value layer
over :mod:`diskcache`, and the :mod:`~postcodeapi.store.codec` module that
turns :class:`~postcodeapi.models.CacheEntry` values into bytes and back.
"""

from postcodeapi.store.codec import decode, encode
from postcodeapi.store.store import DEFAULT_STORE_PATH, PersistentStore

__all__ = ["DEFAULT_STORE_PATH", "PersistentStore", "decode", "encode"]
