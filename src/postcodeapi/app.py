"""Typer application and CLI entry point for postcodeapi.

Registers the lookup commands (``lookup``, ``find``, ``quota``) and the
``cache`` and ``config`` sub-command groups on the root application. The
root callback configures output and logging from global flags and keeps
the connection overrides in ``ctx.obj`` for the commands to use.

:func:`main` is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import signal
import sys
from typing import Any, Optional

import typer

from postcodeapi import __version__
from postcodeapi.commands.cache import cache_app
from postcodeapi.commands.config import config_app
from postcodeapi.commands.lookup import find_command, lookup_command, quota_command
from postcodeapi.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="postcodeapi",
    help="Look up Dutch addresses by postcode and house number, with a local cache.",
    no_args_is_help=True,
    add_completion=False,
)

app.command("lookup")(lookup_command)
app.command("find")(find_command)
app.command("quota")(quota_command)
app.add_typer(cache_app, name="cache", help="Inspect and prune the lookup cache.")
app.add_typer(config_app, name="config", help="Settings management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"postcodeapi {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="API bearer token (overrides POSTCODEAPI_TOKEN)."
    ),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", help="API base URL."
    ),
    cache_file: Optional[str] = typer.Option(
        None, "--cache-file", help="Cache store directory."
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", min=1, help="Cache time-to-live in seconds."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~postcodeapi.output.OutputManager`, routes
    ``postcodeapi`` log records to stderr, and stores the connection
    overrides in ``ctx.obj``.
    """
    from postcodeapi.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["token"] = token
    ctx.obj["endpoint"] = endpoint
    ctx.obj["cache_file"] = cache_file
    ctx.obj["ttl"] = ttl


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``postcodeapi`` console script.

    :class:`~postcodeapi.exceptions.PostcodeApiError` instances that escape
    a command exit with the error's ``exit_code``.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except Exception as exc:
        from postcodeapi.exceptions import PostcodeApiError
        from postcodeapi.output import error

        if isinstance(exc, PostcodeApiError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)


if __name__ == "__main__":
    main()
