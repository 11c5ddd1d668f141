"""Exception hierarchy for postcodeapi.

All exceptions inherit from :class:`PostcodeApiError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`postcodeapi.exit_codes`. The CLI entry point catches
``PostcodeApiError`` and exits with the appropriate code.

Lookup outcomes such as "unknown combination" or "too many requests" are
*not* exceptions; they are returned as result models (see
:mod:`postcodeapi.models`). Only configuration and store-opening problems
reach the caller as exceptions.

Subclass hierarchy::

    PostcodeApiError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- StoreError          (exit 9)
    +-- DecodeError         (exit 1)
"""

from postcodeapi.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_STORE_ERROR,
)


class PostcodeApiError(Exception):
    """Base exception for all postcodeapi errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(PostcodeApiError):
    """Raised for invalid CLI arguments (e.g. an unparsable combined postcode)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(PostcodeApiError):
    """Raised for configuration problems (missing token, invalid settings file)."""

    exit_code = EXIT_GENERIC_FAILURE


class StoreError(PostcodeApiError):
    """Raised when the persistent store cannot be opened, read, or written.

    Only an open failure reaches library callers; read and write failures
    are absorbed by :class:`~postcodeapi.lookup.PostcodeClient`.
    """

    exit_code = EXIT_STORE_ERROR


class DecodeError(PostcodeApiError):
    """Raised when a stored cache entry cannot be decoded."""

    exit_code = EXIT_GENERIC_FAILURE
