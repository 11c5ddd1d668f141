"""Config commands -- view and modify the persisted settings.

Provides the ``postcodeapi config`` sub-command group for reading,
updating and resetting :class:`~postcodeapi.models.Settings`. Settings are
stored in the postcodeapi config directory and supply defaults for the
token source, endpoint, cache location and TTL.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from postcodeapi.commands import handle_errors
from postcodeapi.exit_codes import EXIT_INVALID_USAGE
from postcodeapi.output import error, info, print_record, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the current settings and where they are stored."""
    from postcodeapi.config import load_settings, settings_path

    with handle_errors():
        settings = load_settings()
    info(f"Settings file: {settings_path()}")
    print_record(settings.model_dump(mode="json"), title="Settings")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Setting name, e.g. 'cache_ttl_seconds'."),
    value: str = typer.Argument(help="New value."),
) -> None:
    """Set one setting.

    The value is validated against :class:`~postcodeapi.models.Settings`
    before saving, so numbers are coerced and out-of-range values are
    rejected.

    Example::

        postcodeapi config set token_source file:~/.postcode-token
        postcodeapi config set cache_ttl_seconds 604800
    """
    from postcodeapi.config import load_settings, save_settings
    from postcodeapi.models import Settings

    with handle_errors():
        settings = load_settings()
    data = settings.model_dump(mode="json")
    if key not in data:
        error(f"Unknown setting: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    data[key] = value
    try:
        updated = Settings.model_validate(data)
    except ValidationError as exc:
        error(f"Invalid value for {key}: {exc.errors()[0]['msg']}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_settings(updated)
    success(f"Set {key} = {getattr(updated, key)}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset all settings to their defaults."""
    from postcodeapi.config import save_settings
    from postcodeapi.models import Settings

    if not force and not typer.confirm("Reset all settings to defaults?"):
        info("Cancelled.")
        raise typer.Exit()
    save_settings(Settings())
    success("Settings reset to defaults.")
