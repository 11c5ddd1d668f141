"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a lookup outcome or error category and is referenced
by the CLI commands and the :class:`~postcodeapi.exceptions.PostcodeApiError`
subclasses. Shell scripts can branch on the exit code without parsing the
output.

Example::

    $ postcodeapi lookup 9999ZZ 1
    $ echo $?
    4   # EXIT_NOT_FOUND -- unknown postcode/number combination
"""

EXIT_SUCCESS = 0
"""The lookup completed and an address was returned."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (also used for configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_NOT_FOUND = 4
"""The provider does not know the postcode/number combination."""

EXIT_LOOKUP_FAILED = 6
"""The lookup failed and no information is available (network or parse error)."""

EXIT_RATE_LIMITED = 8
"""The provider rejected the request because a quota was exhausted."""

EXIT_STORE_ERROR = 9
"""The persistent cache could not be opened."""
