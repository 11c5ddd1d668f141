"""Cache-augmented postcode lookups.

:class:`PostcodeClient` decides, for every postcode/number pair, whether
the answer can be served from the persistent store or has to be fetched
again. Entries are evaluated in this order:

1. **Absent** -- nothing stored (or unreadable): fetch.
2. **Fresh positive** -- an address younger than the TTL: serve it.
3. **Fresh negative** -- an error result younger than
   ``TTL / NEGATIVE_TTL_DIVISOR``: serve it.
4. **Stale** -- anything else, including negatives older than the short
   window but younger than the TTL: fetch.

After a fetch, addresses and "unknown combination" results are written
back; "too many requests" is returned but never stored, and failed fetches
return ``None``. Every fetch that received a response refreshes the
rate-limit bookkeeping.

Lookups for the same key are not deduplicated. Two concurrent calls may
both miss, both fetch and both write; the later write wins.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime
from typing import Optional, Union

from postcodeapi.client import Fetcher, HttpFetcher
from postcodeapi.exceptions import DecodeError, StoreError
from postcodeapi.models import (
    AddressRecord,
    CacheEntry,
    ClientConfig,
    FetchOutcome,
    LookupResult,
    NotFoundResult,
    QuotaSnapshot,
    RateLimitedResult,
    RateLimitState,
    ShortAddress,
    cache_key,
)
from postcodeapi.ratelimit import RateLimitTracker, utcnow
from postcodeapi.store import PersistentStore, decode, encode

logger = logging.getLogger(__name__)

NEGATIVE_TTL_DIVISOR = 6
"""Negative results stay fresh for ``cache_ttl / NEGATIVE_TTL_DIVISOR``."""

QUOTA_UNAVAILABLE = "n/a"
"""Returned by :meth:`PostcodeClient.quota_snapshot` when no quota was ever captured."""

COMBINED_PATTERN = re.compile(r"([0-9]{4}[A-Z]{2})\s*([0-9]+)")
"""Four digits, two uppercase letters, optional whitespace, one or more digits."""


def parse_combined(text: str) -> Optional[tuple[str, str]]:
    """Split ``"6931XE130"`` or ``"6931XE 130"`` into ``("6931XE", "130")``.

    Returns ``None`` when *text* contains no postcode/number pair.
    """
    match = COMBINED_PATTERN.search(text)
    if match is None:
        return None
    return match.group(1), match.group(2)


class PostcodeClient:
    """Resolves postcodes through a persistent cache and a remote fetcher.

    The in-memory quota state is owned by the instance: it is loaded from
    the store on construction and replaced after every fetch.

    Args:
        config: Client settings; only ``cache_ttl`` is used directly.
        store: An open :class:`~postcodeapi.store.PersistentStore`.
        fetcher: The remote collaborator.
        clock: Returns the current UTC time; injectable for tests.

    Example::

        with PostcodeClient.open(config) as client:
            result = client.resolve("6931XE", "130")
            if result is None:
                ...  # no information available
            elif result.is_error:
                print(result.error)
            else:
                print(result.street, result.city)
    """

    def __init__(
        self,
        config: ClientConfig,
        store: PersistentStore,
        fetcher: Fetcher,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._store = store
        self._fetcher = fetcher
        self._clock = clock
        self._tracker = RateLimitTracker(store, clock)
        self._limits = self._tracker.load()

    @classmethod
    def open(
        cls,
        config: ClientConfig,
        fetcher: Optional[Fetcher] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> PostcodeClient:
        """Open the store at ``config.cache_path`` and build a client.

        Args:
            config: Client settings.
            fetcher: Remote collaborator; defaults to an
                :class:`~postcodeapi.client.HttpFetcher` for *config*.
            clock: Time source.

        Raises:
            StoreError: If the store cannot be opened. The client cannot
                operate without it; the caller decides whether to abort.
        """
        store = PersistentStore.open(config.cache_path)
        if fetcher is None:
            fetcher = HttpFetcher(config)
        return cls(config, store, fetcher, clock=clock)

    @property
    def store(self) -> PersistentStore:
        return self._store

    @property
    def limits(self) -> RateLimitState:
        """The most recently captured quota state held in memory."""
        return self._limits

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def resolve(self, postcode: str, number: str | int) -> Optional[LookupResult]:
        """Return the address for *postcode* / *number*.

        Returns:
            An :class:`~postcodeapi.models.AddressRecord`, a
            :class:`~postcodeapi.models.NotFoundResult`, a
            :class:`~postcodeapi.models.RateLimitedResult`, or ``None`` when
            the lookup failed and nothing is known.
        """
        number = str(number)
        key = cache_key(postcode, number)
        now = self._clock()

        entry = self._read_entry(key, now)
        if entry is not None:
            cached = self._fresh_result(entry, now)
            if cached is not None:
                return cached
            logger.debug("Cache stale: %s", key)
        else:
            logger.debug("Cache miss: %s", key)

        return self._fetch(key, postcode, number)

    def resolve_short(self, postcode: str, number: str | int) -> Optional[ShortAddress]:
        """Like :meth:`resolve`, projected onto street and city.

        Returns ``None`` for failed lookups and for negative results alike.
        """
        result = self.resolve(postcode, number)
        if isinstance(result, AddressRecord):
            return ShortAddress(street=result.street, city=result.city)
        return None

    def resolve_from_combined(self, text: str) -> Optional[LookupResult]:
        """Resolve a combined string such as ``"6931XE130"``.

        Returns ``None`` without any lookup when *text* does not match
        :data:`COMBINED_PATTERN`.
        """
        parsed = parse_combined(text)
        if parsed is None:
            return None
        return self.resolve(*parsed)

    def forget(self, postcode: str, number: str | int) -> bool:
        """Drop the cached entry for a pair. Returns ``True`` if one existed."""
        return self._store.delete(cache_key(postcode, str(number)))

    # ------------------------------------------------------------------ #
    # Quota
    # ------------------------------------------------------------------ #

    def quota_snapshot(self) -> Union[QuotaSnapshot, str]:
        """Report the provider's quota as of the latest response.

        Falls back to the persisted state when nothing was captured in this
        process.

        Returns:
            A :class:`~postcodeapi.models.QuotaSnapshot`, or
            :data:`QUOTA_UNAVAILABLE` when no quota was ever captured.
        """
        if self._limits.is_empty:
            self._limits = self._tracker.load()
            if self._limits.is_empty:
                logger.info("API limit info not available")
                return QUOTA_UNAVAILABLE
            logger.debug("API limit info loaded from cache")

        return self._limits.snapshot(self._clock())

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Close the fetcher and the store."""
        self._fetcher.close()
        self._store.close()

    def __enter__(self) -> PostcodeClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _read_entry(self, key: str, now: datetime) -> Optional[CacheEntry]:
        """Load and decode the entry for *key*; any failure reads as absent."""
        try:
            raw = self._store.get(key)
        except StoreError as exc:
            logger.warning("Treating %s as a cache miss: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            entry = decode(raw)
        except DecodeError as exc:
            logger.warning("Treating %s as a cache miss: %s", key, exc)
            return None
        if entry.captured_at > now:
            logger.warning(
                "Treating %s as a cache miss: captured in the future (%s)",
                key,
                entry.captured_at.isoformat(),
            )
            return None
        return entry

    def _fresh_result(self, entry: CacheEntry, now: datetime) -> Optional[LookupResult]:
        age = entry.age(now)
        ttl = self._config.cache_ttl
        if not entry.result.is_error:
            if age < ttl:
                logger.debug("Cache hit: %s%s", entry.result.postcode, entry.result.number)
                return entry.result
            return None
        if age < ttl / NEGATIVE_TTL_DIVISOR:
            logger.debug("Cache hit (%s)", entry.result.error)
            return entry.result
        return None

    def _fetch(self, key: str, postcode: str, number: str) -> Optional[LookupResult]:
        fetched = self._fetcher.fetch(postcode, number)
        if fetched.limits is not None:
            self._limits = self._tracker.save(fetched.limits)

        if fetched.outcome is FetchOutcome.SUCCESS and fetched.record is not None:
            self._write_entry(key, fetched.record)
            return fetched.record
        if fetched.outcome is FetchOutcome.NOT_FOUND:
            negative = NotFoundResult()
            self._write_entry(key, negative)
            return negative
        if fetched.outcome is FetchOutcome.RATE_LIMITED:
            logger.info("Rate limited while resolving %s", key)
            return RateLimitedResult()

        logger.info("Lookup for %s failed: %s", key, fetched.detail or "unknown error")
        return None

    def _write_entry(self, key: str, result: LookupResult) -> None:
        entry = CacheEntry(result=result, captured_at=self._clock())
        try:
            self._store.set(key, encode(entry))
        except StoreError as exc:
            logger.warning("Could not cache %s: %s", key, exc)
