"""HTTP fetch collaborator backed by :mod:`httpx`.

Issues ``GET {endpoint}postcode/full?postcode=...&number=...`` with a
bearer token and classifies the response:

===========  ==========================================
Status       Outcome
===========  ==========================================
200          ``SUCCESS`` (``FAILED`` if the body is malformed)
404          ``NOT_FOUND``
429          ``RATE_LIMITED``
other        ``FAILED``
no response  ``FAILED`` without rate-limit metadata
===========  ==========================================

Rate-limit headers are read from every response, including error
statuses. There is no retry: a failed request is reported once.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from postcodeapi.client.base import Fetcher
from postcodeapi.models import (
    AddressRecord,
    ClientConfig,
    FetchOutcome,
    FetchResult,
    RateLimitState,
)

logger = logging.getLogger(__name__)

FULL_LOOKUP_PATH = "postcode/full"

RATE_LIMIT_HEADERS = {
    "max_requests_per_minute": "X-RateLimit-Limit",
    "remaining_requests": "X-RateLimit-Remaining",
    "max_requests_per_day": "X-API-Limit",
    "remaining_requests_today": "X-API-Remaining",
}


def parse_rate_limit_headers(headers: httpx.Headers) -> RateLimitState:
    """Read the four quota headers; missing or non-numeric values become ``0``."""
    values: dict[str, int] = {}
    for field, header in RATE_LIMIT_HEADERS.items():
        try:
            values[field] = int(headers.get(header, "0").strip())
        except ValueError:
            values[field] = 0
    return RateLimitState(**values)


class HttpFetcher(Fetcher):
    """Fetches full address records from the postcode.tech API.

    Args:
        config: Client settings (endpoint, token, timeout, user agent).
        transport: Optional :mod:`httpx` transport, e.g. an
            :class:`httpx.MockTransport` in tests.

    Example::

        fetcher = HttpFetcher(config)
        result = fetcher.fetch("6931XE", "130")
        fetcher.close()
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=config.endpoint,
            timeout=config.timeout,
            transport=transport,
            follow_redirects=True,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
            },
        )

    def fetch(self, postcode: str, number: str) -> FetchResult:
        try:
            response = self._client.get(
                FULL_LOOKUP_PATH,
                params={"postcode": postcode, "number": number},
            )
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            logger.warning("Request for %s %s could not be completed: %s", postcode, number, exc)
            return FetchResult(outcome=FetchOutcome.FAILED, detail=str(exc))

        limits = parse_rate_limit_headers(response.headers)
        status = response.status_code

        if status == 404:
            return FetchResult(outcome=FetchOutcome.NOT_FOUND, limits=limits)
        if status == 429:
            return FetchResult(outcome=FetchOutcome.RATE_LIMITED, limits=limits)
        if status != 200:
            logger.warning("Unexpected HTTP %d for %s %s", status, postcode, number)
            return FetchResult(
                outcome=FetchOutcome.FAILED,
                limits=limits,
                detail=f"HTTP {status}",
            )

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Malformed response body for %s %s: %s", postcode, number, exc)
            return FetchResult(outcome=FetchOutcome.FAILED, limits=limits, detail=str(exc))
        if not isinstance(payload, dict):
            logger.warning("Unexpected response shape for %s %s", postcode, number)
            return FetchResult(
                outcome=FetchOutcome.FAILED,
                limits=limits,
                detail="response is not a JSON object",
            )
        try:
            record = AddressRecord.from_api(payload)
        except ValueError as exc:
            logger.warning("Invalid address data for %s %s: %s", postcode, number, exc)
            return FetchResult(outcome=FetchOutcome.FAILED, limits=limits, detail=str(exc))

        return FetchResult(outcome=FetchOutcome.SUCCESS, record=record, limits=limits)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
