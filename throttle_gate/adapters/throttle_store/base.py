"""Throttle store interfaces.

Callers depend on this abstraction, never on a concrete store, and only ever
receive ``ThrottleEntry`` snapshots. Holding on to an entry past the request
that read it means acting on stale state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ThrottleEntry:
    """Counting window for a single client identifier.

    Attributes:
        period_start: UNIX epoch seconds when the current window began.
        requests: Requests counted in the current window (never negative).
    """

    period_start: float
    requests: int

    def is_expired(self, period_seconds: float, now: float) -> bool:
        """Return True once ``period_start + period_seconds`` lies in the past."""
        return self.period_start + period_seconds < now


class AbstractThrottleStore(ABC):
    """Interface for per-identifier request counters."""

    @abstractmethod
    def try_get(self, identifier: str) -> ThrottleEntry | None:
        """Look up the current entry for an identifier.

        Args:
            identifier: Client identifier (e.g., IP address).

        Returns:
            The entry snapshot, or None when the identifier was never seen.
        """
        raise NotImplementedError

    @abstractmethod
    def increment_requests(self, identifier: str) -> ThrottleEntry:
        """Atomically count one request for an identifier.

        Creates the entry (``period_start=now``, ``requests=1``) when absent.

        Args:
            identifier: Client identifier.

        Returns:
            The entry snapshot right after the increment.
        """
        raise NotImplementedError

    @abstractmethod
    def rollover(
        self,
        identifier: str,
        *,
        expected_period_start: float | None = None,
    ) -> ThrottleEntry:
        """Atomically start a fresh window (``period_start=now``, ``requests=0``).

        Args:
            identifier: Client identifier.
            expected_period_start: When given, only reset if the stored window
                still starts at this timestamp. Concurrent callers that saw the
                same expired window then produce a single fresh window.

        Returns:
            The entry snapshot after the call, whether or not it reset.
        """
        raise NotImplementedError
