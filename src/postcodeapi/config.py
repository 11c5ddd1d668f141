"""Settings management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.postcodeapi/`` elsewhere. See :func:`get_config_dir`.
* **Settings file** -- a single :class:`~postcodeapi.models.Settings` JSON
  file (``config.json``) holding the endpoint, token source, cache location,
  TTL and timeout.
* **Precedence resolution** -- :func:`resolve_client_config` merges CLI
  flags, environment variables and the settings file into a
  :class:`~postcodeapi.models.ClientConfig`.
* **Credential resolution** -- :func:`resolve_credential` reads the bearer
  token from an env var, a file, or an interactive prompt.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from postcodeapi.exceptions import ConfigError
from postcodeapi.models import ClientConfig, Settings

_APP_NAME = "postcodeapi"
_CONFIG_FILENAME = "config.json"

ENV_TOKEN = "POSTCODEAPI_TOKEN"
ENV_ENDPOINT = "POSTCODEAPI_ENDPOINT"
ENV_CACHE_PATH = "POSTCODEAPI_CACHE_PATH"
ENV_CACHE_TTL = "POSTCODEAPI_CACHE_TTL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True on platforms that follow the XDG Base Directory spec."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/postcodeapi/`` (default
    ``~/.config/postcodeapi/``). Elsewhere: ``~/.postcodeapi/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* through a temp file in the same directory and a rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


# --- Settings file ---


def load_settings() -> Settings:
    """Load settings from the config directory.

    Returns:
        The deserialised :class:`~postcodeapi.models.Settings`, or defaults
        when the file does not exist.

    Raises:
        ConfigError: If the file exists but is not valid settings JSON.
    """
    path = settings_path()
    if not path.is_file():
        return Settings()
    try:
        return Settings.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist *settings* atomically."""
    data = settings.model_dump(mode="json")
    _atomic_write(settings_path(), json.dumps(data, indent=2) + "\n")


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a secret from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads the file, stripped of whitespace
        - ``"prompt"`` -- asks interactively (requires a TTY)

    Raises:
        ConfigError: If the source cannot be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if not value:
            raise ConfigError(f"Environment variable '{var_name}' is not set (source: {source})")
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Token file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read token file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for the API token: stdin is not a TTY")
        return getpass.getpass("postcode.tech API token: ")

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Precedence resolution ---


def resolve_client_config(
    cli_token: Optional[str] = None,
    cli_endpoint: Optional[str] = None,
    cli_cache_path: Optional[str] = None,
    cli_ttl_seconds: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> ClientConfig:
    """Build the effective :class:`~postcodeapi.models.ClientConfig`.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``POSTCODEAPI_TOKEN``,
           ``POSTCODEAPI_ENDPOINT``, ``POSTCODEAPI_CACHE_PATH``,
           ``POSTCODEAPI_CACHE_TTL``)
        3. Settings file (the token through ``token_source``)
        4. Defaults

    Raises:
        ConfigError: If no token can be found or a value is invalid.
    """
    if settings is None:
        settings = load_settings()

    token = cli_token or os.environ.get(ENV_TOKEN) or resolve_credential(settings.token_source)
    endpoint = cli_endpoint or os.environ.get(ENV_ENDPOINT) or settings.endpoint
    cache_path = cli_cache_path or os.environ.get(ENV_CACHE_PATH) or settings.cache_path

    ttl_seconds: int = settings.cache_ttl_seconds
    env_ttl = os.environ.get(ENV_CACHE_TTL)
    if cli_ttl_seconds is not None:
        ttl_seconds = cli_ttl_seconds
    elif env_ttl:
        try:
            ttl_seconds = int(env_ttl)
        except ValueError as exc:
            raise ConfigError(f"{ENV_CACHE_TTL} must be a number of seconds, got {env_ttl!r}") from exc

    try:
        return ClientConfig(
            token=token,
            endpoint=endpoint,
            cache_path=Path(cache_path) if cache_path else None,
            cache_ttl=timedelta(seconds=ttl_seconds),
            timeout=settings.timeout,
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc


def resolve_cache_path(
    cli_cache_path: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Optional[Path]:
    """Return the store location from CLI flag, environment, or settings.

    ``None`` means the store's built-in default location.
    """
    if settings is None:
        settings = load_settings()
    value = cli_cache_path or os.environ.get(ENV_CACHE_PATH) or settings.cache_path
    return Path(value) if value else None
