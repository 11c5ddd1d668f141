"""Byte encoding of :class:`~postcodeapi.models.CacheEntry` values.

Entries are stored as field-tagged JSON. The lookup result carries its
``kind`` discriminator, so negative results decode back to the same
variant they were written as::

    {"result": {"kind": "address", "postcode": "6931XE", ...},
     "captured_at": "2026-10-18T09:30:00.123456Z"}
"""

from __future__ import annotations

from pydantic import ValidationError

from postcodeapi.exceptions import DecodeError
from postcodeapi.models import CacheEntry


def encode(entry: CacheEntry) -> bytes:
    """Serialise *entry* to UTF-8 JSON bytes."""
    return entry.model_dump_json().encode("utf-8")


def decode(data: bytes) -> CacheEntry:
    """Deserialise bytes produced by :func:`encode`.

    Raises:
        DecodeError: If *data* is not valid JSON or does not describe a
            cache entry.
    """
    try:
        return CacheEntry.model_validate_json(data)
    except (ValidationError, ValueError) as exc:
        raise DecodeError(f"Corrupt cache entry: {exc}") from exc
