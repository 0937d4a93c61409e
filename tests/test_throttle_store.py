"""Unit tests for the in-memory throttle store adapter."""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from throttle_gate.adapters.throttle_store.base import ThrottleEntry
from throttle_gate.adapters.throttle_store.in_memory import InMemoryThrottleStore


def test_try_get_unknown_identifier_returns_none() -> None:
    store = InMemoryThrottleStore()

    assert store.try_get("10.0.0.1") is None
    assert len(store) == 0


def test_first_increment_creates_entry() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryThrottleStore(clock=clock)

    entry = store.increment_requests("k")

    assert entry == ThrottleEntry(period_start=1000.0, requests=1)
    assert store.try_get("k") == entry


def test_increment_keeps_period_start() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryThrottleStore(clock=clock)
    store.increment_requests("k")

    clock.return_value = 1030.0
    entry = store.increment_requests("k")

    assert entry.period_start == 1000.0
    assert entry.requests == 2


def test_entries_isolated_by_identifier() -> None:
    store = InMemoryThrottleStore()

    store.increment_requests("k1")
    store.increment_requests("k1")
    store.increment_requests("k2")

    assert store.try_get("k1").requests == 2
    assert store.try_get("k2").requests == 1
    assert len(store) == 2


def test_snapshots_do_not_change_after_later_updates() -> None:
    store = InMemoryThrottleStore()
    first = store.increment_requests("k")

    store.increment_requests("k")

    assert first.requests == 1
    assert store.try_get("k").requests == 2


def test_rollover_starts_fresh_window() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryThrottleStore(clock=clock)
    for _ in range(5):
        store.increment_requests("k")

    clock.return_value = 1100.0
    entry = store.rollover("k")

    assert entry == ThrottleEntry(period_start=1100.0, requests=0)
    assert store.increment_requests("k").requests == 1


def test_rollover_unknown_identifier_creates_empty_window() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryThrottleStore(clock=clock)

    entry = store.rollover("k", expected_period_start=500.0)

    assert entry == ThrottleEntry(period_start=1000.0, requests=0)


def test_rollover_with_stale_expectation_is_noop() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryThrottleStore(clock=clock)
    store.increment_requests("k")

    clock.return_value = 1100.0
    store.rollover("k", expected_period_start=1000.0)
    store.increment_requests("k")

    # A second caller that also saw the old window must not erase the new count.
    clock.return_value = 1101.0
    entry = store.rollover("k", expected_period_start=1000.0)

    assert entry == ThrottleEntry(period_start=1100.0, requests=1)
    assert store.try_get("k") == entry


def test_clear_removes_everything() -> None:
    store = InMemoryThrottleStore()
    store.increment_requests("a")
    store.increment_requests("b")

    store.clear()

    assert len(store) == 0
    assert store.try_get("a") is None


def test_invalid_constructor_args() -> None:
    with pytest.raises(ValueError):
        InMemoryThrottleStore(shards=0)


@pytest.mark.parametrize("shards", [1, 64])
def test_concurrent_increments_are_not_lost(shards: int) -> None:
    store = InMemoryThrottleStore(shards=shards)
    workers = 32
    per_worker = 250
    barrier = threading.Barrier(workers)

    def _hammer() -> None:
        barrier.wait()
        for _ in range(per_worker):
            store.increment_requests("hot")

    threads = [threading.Thread(target=_hammer) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.try_get("hot").requests == workers * per_worker


def test_concurrent_increments_across_identifiers() -> None:
    store = InMemoryThrottleStore(shards=4)
    identifiers = [f"client-{i}" for i in range(20)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(store.increment_requests, identifiers * 50))

    for identifier in identifiers:
        assert store.try_get(identifier).requests == 50


def test_concurrent_rollovers_yield_single_fresh_window() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryThrottleStore(clock=clock)
    for _ in range(7):
        store.increment_requests("k")

    clock.return_value = 2000.0
    workers = 24
    barrier = threading.Barrier(workers)

    def _roll() -> None:
        barrier.wait()
        store.rollover("k", expected_period_start=1000.0)
        store.increment_requests("k")

    threads = [threading.Thread(target=_roll) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    entry = store.try_get("k")
    assert entry.period_start == 2000.0
    assert entry.requests == workers


def test_concurrent_unconditional_rollovers_never_go_negative() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryThrottleStore(clock=clock)
    store.increment_requests("k")

    clock.return_value = 1500.0
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(store.rollover, ["k"] * 100))

    assert store.try_get("k") == ThrottleEntry(period_start=1500.0, requests=0)
