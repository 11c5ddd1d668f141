"""Shared test fixtures for postcodeapi.

Provides a controllable clock, a scriptable fetch collaborator, an
isolated persistent store, and config isolation. These fixtures are
discovered by pytest and available to all test modules.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest

from postcodeapi.client import Fetcher
from postcodeapi.lookup import PostcodeClient
from postcodeapi.models import (
    AddressRecord,
    ClientConfig,
    FetchOutcome,
    FetchResult,
    RateLimitState,
)
from postcodeapi.output import reset_output
from postcodeapi.store import PersistentStore


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Drop the global OutputManager and any CLI log handlers after each test.

    Both hold references to the streams that were current when the CLI
    callback ran. CliRunner closes those streams when the invocation ends.
    """
    yield
    reset_output()
    logger = logging.getLogger("postcodeapi")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc))


# ---------------------------------------------------------------------------
# Fetch collaborator
# ---------------------------------------------------------------------------


class FakeFetcher(Fetcher):
    """Returns scripted results in order; the last one repeats."""

    def __init__(self, *results: FetchResult) -> None:
        self.results = list(results)
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def fetch(self, postcode: str, number: str) -> FetchResult:
        self.calls.append((postcode, number))
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def sample_record() -> AddressRecord:
    return AddressRecord(
        postcode="6931XE",
        number=130,
        street="Steenstraat",
        city="Westervoort",
        municipality="Westervoort",
        province="Gelderland",
        latitude=51.9584,
        longitude=5.9769,
    )


@pytest.fixture
def sample_limits() -> RateLimitState:
    return RateLimitState(
        max_requests_per_minute=60,
        remaining_requests=59,
        max_requests_per_day=10000,
        remaining_requests_today=9876,
    )


@pytest.fixture
def success(sample_record: AddressRecord, sample_limits: RateLimitState) -> FetchResult:
    return FetchResult(outcome=FetchOutcome.SUCCESS, record=sample_record, limits=sample_limits)


@pytest.fixture
def not_found(sample_limits: RateLimitState) -> FetchResult:
    return FetchResult(outcome=FetchOutcome.NOT_FOUND, limits=sample_limits)


@pytest.fixture
def rate_limited(sample_limits: RateLimitState) -> FetchResult:
    limits = sample_limits.model_copy(update={"remaining_requests": 0})
    return FetchResult(outcome=FetchOutcome.RATE_LIMITED, limits=limits)


@pytest.fixture
def transport_failure() -> FetchResult:
    return FetchResult(outcome=FetchOutcome.FAILED, detail="connection refused")


# ---------------------------------------------------------------------------
# Store and client
# ---------------------------------------------------------------------------


@pytest.fixture
def store(tmp_path: Path) -> PersistentStore:
    s = PersistentStore.open(tmp_path / "store")
    yield s
    s.close()


@pytest.fixture
def client_config(tmp_path: Path) -> ClientConfig:
    return ClientConfig(
        token="test-token",
        endpoint="https://api.example.com/api/v1/",
        cache_ttl=timedelta(days=30),
        cache_path=tmp_path / "store",
    )


@pytest.fixture
def make_client(
    client_config: ClientConfig,
    store: PersistentStore,
    clock: FakeClock,
) -> Callable[..., tuple[PostcodeClient, FakeFetcher]]:
    """Factory building a client over the shared store with scripted fetch results."""

    def _make(*results: FetchResult) -> tuple[PostcodeClient, FakeFetcher]:
        fetcher = FakeFetcher(*results)
        return PostcodeClient(client_config, store, fetcher, clock=clock), fetcher

    return _make


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME at tmp_path and clear POSTCODEAPI_* variables.

    Also changes the working directory to tmp_path so the default store
    location lands there.
    """
    monkeypatch.setattr("postcodeapi.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in [
        "POSTCODEAPI_TOKEN",
        "POSTCODEAPI_ENDPOINT",
        "POSTCODEAPI_CACHE_PATH",
        "POSTCODEAPI_CACHE_TTL",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
