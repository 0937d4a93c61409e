"""In-memory throttle store.

Notes:
- Per-process only: running multiple workers multiplies the effective quota.
- Thread-safe: writes for an identifier are serialized by one of a fixed set
  of striped locks, so unrelated identifiers rarely contend.
- Entries are immutable snapshots swapped into the dict; reads take no lock.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from throttle_gate.adapters.throttle_store.base import AbstractThrottleStore, ThrottleEntry

logger = logging.getLogger(__name__)


class InMemoryThrottleStore(AbstractThrottleStore):
    """Throttle store keeping one ``ThrottleEntry`` per identifier in a dict.

    Entries are never evicted proactively. An expired window stays in place
    until the next request for that identifier rolls it over.
    """

    def __init__(
        self,
        *,
        shards: int = 64,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            shards: Number of striped locks guarding writes.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If shards is invalid.
        """
        if shards < 1:
            raise ValueError("shards must be >= 1")

        self._clock = clock
        self._locks = tuple(threading.Lock() for _ in range(shards))
        self._entries: dict[str, ThrottleEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _lock_for(self, identifier: str) -> threading.Lock:
        return self._locks[hash(identifier) % len(self._locks)]

    def try_get(self, identifier: str) -> ThrottleEntry | None:
        return self._entries.get(identifier)

    def increment_requests(self, identifier: str) -> ThrottleEntry:
        with self._lock_for(identifier):
            current = self._entries.get(identifier)
            if current is None:
                entry = ThrottleEntry(period_start=self._clock(), requests=1)
            else:
                entry = ThrottleEntry(
                    period_start=current.period_start,
                    requests=current.requests + 1,
                )
            self._entries[identifier] = entry
            return entry

    def rollover(
        self,
        identifier: str,
        *,
        expected_period_start: float | None = None,
    ) -> ThrottleEntry:
        with self._lock_for(identifier):
            current = self._entries.get(identifier)
            if (
                current is not None
                and expected_period_start is not None
                and current.period_start != expected_period_start
            ):
                # Someone else already started a new window.
                return current

            entry = ThrottleEntry(period_start=self._clock(), requests=0)
            self._entries[identifier] = entry

        logger.debug(
            "throttle_store.rollover",
            extra={"previous_requests": current.requests if current else 0},
        )
        return entry

    def clear(self) -> None:
        """Remove all entries."""
        for lock in self._locks:
            lock.acquire()
        try:
            self._entries.clear()
        finally:
            for lock in self._locks:
                lock.release()
