"""Canonical Pydantic models shared across all postcodeapi modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Lookup results** -- what :meth:`~postcodeapi.lookup.PostcodeClient.resolve`
hands back: :class:`AddressRecord` for a real address, and the two negative
variants :class:`NotFoundResult` and :class:`RateLimitedResult`. The three
form the tagged union :data:`LookupResult`, discriminated on ``kind``.

**Persisted state** -- :class:`CacheEntry` (a lookup result plus the
instant it was captured) and :class:`RateLimitState` (the provider's quota
counters from the most recent response).

**Configuration and reporting** -- :class:`ClientConfig`, :class:`Settings`,
:class:`QuotaSnapshot`, :class:`ShortAddress`, and the fetch collaborator's
:class:`FetchResult`.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from postcodeapi import __version__

DEFAULT_ENDPOINT = "https://postcode.tech/api/v1/"
"""Base URL of the postcode.tech v1 API."""

DEFAULT_USER_AGENT = f"postcodeapi-python/{__version__}"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
"""The zero timestamp used when no capture instant has been recorded."""

UNKNOWN_COMBINATION = "unknown combination"
TOO_MANY_REQUESTS = "too many requests"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def cache_key(postcode: str, number: str | int) -> str:
    """Return the store key for a postcode/number pair.

    The key is the plain concatenation of both inputs (``"6931XE" + "130"``),
    case sensitive and without a separator.
    """
    return f"{postcode}{number}"


# --- Lookup results ---


class AddressRecord(BaseModel):
    """A successfully resolved address.

    Every field has a neutral default so that a sparse provider response
    still yields a record rather than a validation failure.
    Non-finite coordinates are rejected; they cannot be stored as JSON.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    kind: Literal["address"] = "address"
    postcode: str = ""
    number: int = 0
    street: str = ""
    city: str = ""
    municipality: str = ""
    province: str = ""
    latitude: float = 0.0
    longitude: float = 0.0

    @property
    def error(self) -> Optional[str]:
        return None

    @property
    def is_error(self) -> bool:
        return False

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> AddressRecord:
        """Build a record from the provider's ``postcode/full`` JSON body.

        The provider nests coordinates under ``geo`` as ``lat`` / ``lon``;
        they are flattened into :attr:`latitude` / :attr:`longitude`.

        Raises:
            pydantic.ValidationError: If a field has the wrong type.
            ValueError: If ``geo`` is present but not an object.
        """
        geo = payload.get("geo") or {}
        if not isinstance(geo, dict):
            raise ValueError(f"geo must be an object, got {type(geo).__name__}")
        return cls.model_validate(
            {
                "postcode": payload.get("postcode", ""),
                "number": payload.get("number", 0),
                "street": payload.get("street", ""),
                "city": payload.get("city", ""),
                "municipality": payload.get("municipality", ""),
                "province": payload.get("province", ""),
                "latitude": geo.get("lat", 0.0),
                "longitude": geo.get("lon", 0.0),
            }
        )


class NotFoundResult(BaseModel):
    """The provider does not know this postcode/number combination.

    This is a stable fact about the input and is cached.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["not_found"] = "not_found"
    error: str = UNKNOWN_COMBINATION

    @property
    def is_error(self) -> bool:
        return True


class RateLimitedResult(BaseModel):
    """The provider refused the request because a quota was exhausted.

    This is transient and never cached.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["rate_limited"] = "rate_limited"
    error: str = TOO_MANY_REQUESTS

    @property
    def is_error(self) -> bool:
        return True


LookupResult = Annotated[
    Union[AddressRecord, NotFoundResult, RateLimitedResult],
    Field(discriminator="kind"),
]
"""Tagged union of every value a lookup can produce."""


class ShortAddress(BaseModel):
    """Street and city projection of an :class:`AddressRecord`."""

    model_config = ConfigDict(frozen=True)

    street: str
    city: str


# --- Persisted state ---


class CacheEntry(BaseModel):
    """A lookup result together with the instant it was written to the store."""

    model_config = ConfigDict(frozen=True)

    result: LookupResult
    captured_at: datetime

    @field_validator("captured_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def age(self, now: datetime) -> timedelta:
        """Return how long ago this entry was captured, relative to *now*."""
        return now - self.captured_at


class RateLimitState(BaseModel):
    """The provider's quota counters as reported by the latest response.

    Counters come from the ``X-RateLimit-Limit``, ``X-RateLimit-Remaining``,
    ``X-API-Limit`` and ``X-API-Remaining`` headers. ``captured_at`` is
    :data:`EPOCH` when no response has ever been recorded.
    """

    max_requests_per_minute: int = 0
    remaining_requests: int = 0
    max_requests_per_day: int = 0
    remaining_requests_today: int = 0
    captured_at: datetime = EPOCH

    @field_validator("captured_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def is_empty(self) -> bool:
        """True when this state was never captured from a response."""
        return self.captured_at == EPOCH

    def snapshot(self, now: datetime) -> QuotaSnapshot:
        """Report this state as seen at *now*, with its age in whole seconds."""
        return QuotaSnapshot(
            max_requests_per_minute=self.max_requests_per_minute,
            remaining_requests=self.remaining_requests,
            max_requests_per_day=self.max_requests_per_day,
            remaining_requests_today=self.remaining_requests_today,
            caching_time=self.captured_at,
            time_since_last_cache=int((now - self.captured_at).total_seconds()),
        )


class QuotaSnapshot(BaseModel):
    """Quota report returned by :meth:`PostcodeClient.quota_snapshot`.

    Serialised with camelCase field names (``maxRequestsPerMinute``,
    ``timeSinceLastCache``, ...) via ``model_dump(by_alias=True)``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    max_requests_per_minute: int
    remaining_requests: int
    max_requests_per_day: int
    remaining_requests_today: int
    caching_time: datetime
    time_since_last_cache: int = Field(description="Seconds since caching_time")


# --- Fetch collaborator ---


class FetchOutcome(str, enum.Enum):
    """Classification of a single remote fetch."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


class FetchResult(BaseModel):
    """What a :class:`~postcodeapi.client.base.Fetcher` reports for one request.

    ``record`` is set only for :attr:`FetchOutcome.SUCCESS`. ``limits`` is set
    whenever an HTTP response was received, including error statuses, and is
    ``None`` when the request could not be sent at all.
    """

    outcome: FetchOutcome
    record: Optional[AddressRecord] = None
    limits: Optional[RateLimitState] = None
    detail: Optional[str] = None


# --- Configuration ---


class ClientConfig(BaseModel):
    """Settings for one :class:`~postcodeapi.lookup.PostcodeClient` instance.

    Constant for the lifetime of the client and never persisted.
    ``cache_path`` falls back to :data:`~postcodeapi.store.DEFAULT_STORE_PATH`
    when unset.
    """

    model_config = ConfigDict(frozen=True)

    token: str = Field(min_length=1, description="Bearer token for the API")
    cache_ttl: timedelta = Field(description="How long a positive result stays fresh")
    endpoint: str = DEFAULT_ENDPOINT
    cache_path: Optional[Path] = None
    timeout: float = Field(default=10.0, description="HTTP timeout in seconds")
    user_agent: str = DEFAULT_USER_AGENT

    @field_validator("cache_ttl")
    @classmethod
    def _positive_ttl(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("cache_ttl must be positive")
        return value

    @field_validator("endpoint")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else value + "/"


class Settings(BaseModel):
    """User-wide settings persisted at ``~/.config/postcodeapi/config.json``.

    Loaded and saved by :func:`~postcodeapi.config.load_settings` and
    :func:`~postcodeapi.config.save_settings`. Environment variables and
    CLI flags override these values; see
    :func:`~postcodeapi.config.resolve_client_config`.
    """

    endpoint: str = DEFAULT_ENDPOINT
    token_source: str = Field(
        default="env:POSTCODEAPI_TOKEN",
        description="Credential source: env:VAR, file:/path, prompt",
    )
    cache_path: Optional[str] = None
    cache_ttl_seconds: int = Field(default=30 * 24 * 60 * 60, gt=0)
    timeout: float = Field(default=10.0, gt=0)
