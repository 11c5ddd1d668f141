"""Persistent bookkeeping of the provider's rate-limit quotas.

Every API response carries four quota headers. :class:`RateLimitTracker`
persists the latest values so that a fresh process can report remaining
quota without making a request. Two fixed keys are used:

* ``api_info`` -- the four counters as JSON.
* ``api_info_cached_at`` -- the capture instant as an ISO-8601 string.

Only the most recent snapshot survives; older values are overwritten, never
merged.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from postcodeapi.exceptions import StoreError
from postcodeapi.models import EPOCH, RateLimitState
from postcodeapi.store import PersistentStore

logger = logging.getLogger(__name__)

API_INFO_KEY = "api_info"
API_INFO_CACHED_AT_KEY = "api_info_cached_at"

_COUNTER_FIELDS = {
    "max_requests_per_minute",
    "remaining_requests",
    "max_requests_per_day",
    "remaining_requests_today",
}


def utcnow() -> datetime:
    """Current wall-clock time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class RateLimitTracker:
    """Reads and writes :class:`~postcodeapi.models.RateLimitState` in a store.

    Args:
        store: The store shared with the lookup cache.
        clock: Returns "now"; injectable for tests.
    """

    def __init__(
        self,
        store: PersistentStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._clock = clock

    def save(self, state: RateLimitState) -> RateLimitState:
        """Persist *state*'s counters and stamp them with the current time.

        Both keys are written in one transaction. A store failure is
        logged and otherwise ignored.

        Returns:
            The state as persisted, with ``captured_at`` set to now.
        """
        stamped = state.model_copy(update={"captured_at": self._clock()})
        counters = stamped.model_dump_json(include=_COUNTER_FIELDS).encode("utf-8")
        timestamp = stamped.captured_at.isoformat().encode("utf-8")
        try:
            with self._store.transaction() as tx:
                tx.set(API_INFO_KEY, counters)
                tx.set(API_INFO_CACHED_AT_KEY, timestamp)
        except StoreError as exc:
            logger.warning("Could not persist rate-limit info: %s", exc)
        return stamped

    def load(self) -> RateLimitState:
        """Read the last persisted state.

        Returns a zero-valued state captured at :data:`~postcodeapi.models.EPOCH`
        when either key is missing or unreadable. Never raises.
        """
        try:
            raw_counters = self._store.get(API_INFO_KEY)
            raw_time = self._store.get(API_INFO_CACHED_AT_KEY)
        except StoreError as exc:
            logger.warning("Could not read rate-limit info: %s", exc)
            return RateLimitState()
        if raw_counters is None or raw_time is None:
            return RateLimitState()
        try:
            counters = json.loads(raw_counters)
            captured_at = datetime.fromisoformat(raw_time.decode("utf-8"))
            return RateLimitState.model_validate({**counters, "captured_at": captured_at})
        except (ValueError, TypeError, ValidationError) as exc:
            logger.warning("Ignoring corrupt rate-limit info: %s", exc)
            return RateLimitState()

    def caching_time(self) -> datetime:
        """Return when quota info was last captured (:data:`EPOCH` if never)."""
        try:
            raw = self._store.get(API_INFO_CACHED_AT_KEY)
        except StoreError as exc:
            logger.warning("Could not read rate-limit timestamp: %s", exc)
            return EPOCH
        if raw is None:
            return EPOCH
        try:
            parsed = datetime.fromisoformat(raw.decode("utf-8"))
        except ValueError:
            logger.warning("Ignoring corrupt rate-limit timestamp %r", raw)
            return EPOCH
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def caching_age(self) -> timedelta:
        """Time elapsed since the last capture.

        When nothing was ever captured this is the time since the Unix
        epoch: well defined, though not meaningful.
        """
        return self._clock() - self.caching_time()
