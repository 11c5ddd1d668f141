"""postcodeapi -- Caching client for the postcode.tech address lookup API.

This package resolves a Dutch postcode + house-number pair to a full
address. Lookups are served from a local persistent cache where possible
and fall back to the remote API on a miss or expiry. The provider's
rate-limit quotas are tracked across process restarts.

Typical usage::

    from datetime import timedelta
    from postcodeapi import ClientConfig, PostcodeClient

    config = ClientConfig(token="...", cache_ttl=timedelta(days=30))
    with PostcodeClient.open(config) as client:
        record = client.resolve("6931XE", "130")

Modules:
    app: Typer application and CLI entry point.
    lookup: The cache-augmented lookup path (:class:`PostcodeClient`).
    models: Pydantic models shared across the package.
    ratelimit: Persistent rate-limit bookkeeping.
    store: Persistent key-value store and cache-entry codec.
    client: HTTP fetch collaborator.
    config: XDG-aware settings and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
"""

__version__ = "0.3.0"

from postcodeapi.lookup import PostcodeClient  # noqa: E402
from postcodeapi.models import (  # noqa: E402
    AddressRecord,
    ClientConfig,
    NotFoundResult,
    QuotaSnapshot,
    RateLimitedResult,
    ShortAddress,
)

__all__ = [
    "AddressRecord",
    "ClientConfig",
    "NotFoundResult",
    "PostcodeClient",
    "QuotaSnapshot",
    "RateLimitedResult",
    "ShortAddress",
]
