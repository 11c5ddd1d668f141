"""Lookup commands -- ``lookup``, ``find`` and ``quota``.

``lookup`` and ``find`` go through :class:`~postcodeapi.lookup.PostcodeClient`,
so repeated invocations are served from the persistent cache until the TTL
runs out. ``quota`` reads the stored rate-limit info directly.
"""

from __future__ import annotations

from typing import Optional

import typer

from postcodeapi.commands import handle_errors, open_client, open_store
from postcodeapi.exceptions import InvalidUsageError
from postcodeapi.exit_codes import (
    EXIT_LOOKUP_FAILED,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
)
from postcodeapi.lookup import QUOTA_UNAVAILABLE, parse_combined
from postcodeapi.models import AddressRecord, LookupResult, NotFoundResult, RateLimitedResult
from postcodeapi.output import error, get_output, print_record
from postcodeapi.ratelimit import RateLimitTracker, utcnow


def _render(result: Optional[LookupResult]) -> None:
    """Print *result* or exit with the code matching its outcome."""
    if isinstance(result, AddressRecord):
        print_record(result.model_dump(exclude={"kind"}), title="Address")
        return
    if isinstance(result, NotFoundResult):
        error(result.error)
        raise typer.Exit(code=EXIT_NOT_FOUND)
    if isinstance(result, RateLimitedResult):
        error(result.error)
        raise typer.Exit(code=EXIT_RATE_LIMITED)
    error("Lookup failed, no information available.")
    raise typer.Exit(code=EXIT_LOOKUP_FAILED)


def lookup_command(
    ctx: typer.Context,
    postcode: str = typer.Argument(help="Postcode, e.g. 6931XE."),
    number: str = typer.Argument(help="House number, e.g. 130."),
    short: bool = typer.Option(False, "--short", "-s", help="Only street and city."),
) -> None:
    """Resolve a postcode and house number to an address.

    Example::

        postcodeapi lookup 6931XE 130
        postcodeapi --json lookup 6931XE 130 --short
    """
    with handle_errors(), open_client(ctx) as client:
        if short:
            address = client.resolve_short(postcode, number)
        else:
            result = client.resolve(postcode, number)

    if not short:
        _render(result)
        return
    if address is None:
        error("No street and city available for this combination.")
        raise typer.Exit(code=EXIT_LOOKUP_FAILED)
    print_record(address.model_dump(), title="Address")


def find_command(
    ctx: typer.Context,
    text: str = typer.Argument(help="Postcode and number in one string, e.g. '6931XE130'."),
) -> None:
    """Resolve a combined postcode/number string such as ``6931XE130``."""
    with handle_errors():
        if parse_combined(text) is None:
            raise InvalidUsageError(f"No postcode and house number found in {text!r}.")
        with open_client(ctx) as client:
            result = client.resolve_from_combined(text)
    _render(result)


def quota_command(ctx: typer.Context) -> None:
    """Show the API quota reported by the most recent response.

    Reads the cache store only, so no API token is needed. Prints ``n/a``
    when no response was ever recorded.
    """
    with handle_errors(), open_store(ctx) as store:
        limits = RateLimitTracker(store).load()
    if limits.is_empty:
        get_output().print_data(QUOTA_UNAVAILABLE)
        return
    snapshot = limits.snapshot(utcnow())
    print_record(snapshot.model_dump(mode="json", by_alias=True), title="API quota")
