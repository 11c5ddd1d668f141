"""Cache commands -- inspect and prune the persistent lookup store.

These commands open the store directly and do not need an API token.
"""

from __future__ import annotations

import typer

from postcodeapi.commands import handle_errors, open_store
from postcodeapi.models import cache_key
from postcodeapi.output import info, print_record, success

cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show the number of entries, on-disk size and location of the store."""
    with handle_errors(), open_store(ctx) as store:
        stats = store.stats()
    print_record(stats, title="Cache")


@cache_app.command("forget")
def cache_forget(
    ctx: typer.Context,
    postcode: str = typer.Argument(help="Postcode, e.g. 6931XE."),
    number: str = typer.Argument(help="House number, e.g. 130."),
) -> None:
    """Drop the cached result for one postcode and house number."""
    key = cache_key(postcode, number)
    with handle_errors(), open_store(ctx) as store:
        removed = store.delete(key)
    if removed:
        success(f"Removed {key} from the cache.")
    else:
        info(f"{key} was not cached.")


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Remove every cached lookup and the stored quota information."""
    if not force and not typer.confirm("Remove all cached lookups?"):
        info("Cancelled.")
        raise typer.Exit()
    with handle_errors(), open_store(ctx) as store:
        removed = store.clear()
    success(f"Removed {removed} entries.")
