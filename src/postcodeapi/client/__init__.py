"""Fetch collaborators for postcodeapi.

Classes:
    :class:`Fetcher` -- abstract interface consumed by
    :class:`~postcodeapi.lookup.PostcodeClient`.
    :class:`HttpFetcher` -- :mod:`httpx` implementation talking to the
    postcode.tech API.
"""

from postcodeapi.client.base import Fetcher
from postcodeapi.client.http_fetcher import HttpFetcher, parse_rate_limit_headers

__all__ = ["Fetcher", "HttpFetcher", "parse_rate_limit_headers"]
