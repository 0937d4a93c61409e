"""Throttle store adapters.

The throttling middleware only talks to ``AbstractThrottleStore`` so the
in-memory store can be replaced by another backend without touching the
HTTP layer.
"""

from throttle_gate.adapters.throttle_store.base import AbstractThrottleStore, ThrottleEntry
from throttle_gate.adapters.throttle_store.in_memory import InMemoryThrottleStore

__all__ = [
    "AbstractThrottleStore",
    "InMemoryThrottleStore",
    "ThrottleEntry",
]
