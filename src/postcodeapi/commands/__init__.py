"""Built-in CLI commands for postcodeapi.

Each sub-module defines Typer commands or sub-apps registered on the
root application in :mod:`postcodeapi.app`. Shared helpers here turn the
root callback's options (kept in ``ctx.obj``) into a configured client and
map :class:`~postcodeapi.exceptions.PostcodeApiError` to exit codes.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer

from postcodeapi.exceptions import PostcodeApiError
from postcodeapi.lookup import PostcodeClient
from postcodeapi.output import error
from postcodeapi.store import PersistentStore


def cli_options(ctx: typer.Context) -> dict[str, Any]:
    """Return the root callback's options stored on the context."""
    return ctx.obj if isinstance(ctx.obj, dict) else {}


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print a :class:`PostcodeApiError` and exit with its ``exit_code``."""
    try:
        yield
    except PostcodeApiError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def open_store(ctx: typer.Context) -> PersistentStore:
    """Open the cache store named by ``--cache-file``, the environment or settings.

    Needs no API token.
    """
    from postcodeapi.config import resolve_cache_path

    return PersistentStore.open(resolve_cache_path(cli_options(ctx).get("cache_file")))


def open_client(ctx: typer.Context) -> PostcodeClient:
    """Resolve configuration from ``ctx.obj`` and open a :class:`PostcodeClient`.

    Raises:
        ConfigError: If no token is available.
        StoreError: If the cache store cannot be opened.
    """
    from postcodeapi.config import resolve_client_config

    opts = cli_options(ctx)
    config = resolve_client_config(
        cli_token=opts.get("token"),
        cli_endpoint=opts.get("endpoint"),
        cli_cache_path=opts.get("cache_file"),
        cli_ttl_seconds=opts.get("ttl"),
    )
    return PostcodeClient.open(config)
