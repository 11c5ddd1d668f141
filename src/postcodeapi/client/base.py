"""Abstract fetch collaborator used by the lookup path.

:class:`~postcodeapi.lookup.PostcodeClient` never talks HTTP itself; it
asks a :class:`Fetcher` for one postcode/number pair and receives a
:class:`~postcodeapi.models.FetchResult`. The production implementation is
:class:`~postcodeapi.client.http_fetcher.HttpFetcher`; tests substitute
their own subclasses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from postcodeapi.models import FetchResult


class Fetcher(ABC):
    """Resolves a postcode/number pair against the remote provider.

    Implementations must not raise for network or protocol failures;
    those are reported as :attr:`~postcodeapi.models.FetchOutcome.FAILED`.
    """

    @abstractmethod
    def fetch(self, postcode: str, number: str) -> FetchResult:
        """Perform one remote lookup.

        Args:
            postcode: Normalised postcode, e.g. ``"6931XE"``.
            number: House number as a string, e.g. ``"130"``.

        Returns:
            The classified outcome, with rate-limit metadata attached
            whenever a response was received.
        """

    def close(self) -> None:
        """Release any transport resources. The default does nothing."""
