"""Tests for the presence registry."""

import threading

from photoshare.services.presence import InMemoryPresenceStore


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


def test_register_counts_distinct_clients():
    store = InMemoryPresenceStore(ttl_seconds=45)
    assert store.register(1, "a") == 1
    assert store.register(1, "b") == 2
    assert store.register(1, "a") == 2
    assert store.count(2) == 0


def test_entries_expire_after_ttl():
    clock = FakeClock()
    store = InMemoryPresenceStore(ttl_seconds=45, clock=clock)
    store.register(1, "a")
    clock.now += 30
    store.register(1, "b")

    clock.now += 20
    assert store.count(1) == 1

    clock.now += 30
    assert store.count(1) == 0
    assert store.snapshot() == {}


def test_heartbeat_refreshes_ttl():
    clock = FakeClock()
    store = InMemoryPresenceStore(ttl_seconds=45, clock=clock)
    store.register(1, "a")
    clock.now += 40
    store.register(1, "a")
    clock.now += 40
    assert store.count(1) == 1


def test_unregister_and_clear():
    store = InMemoryPresenceStore()
    store.register(1, "a")
    store.register(1, "b")
    assert store.unregister(1, "a") == 1
    assert store.unregister(1, "missing") == 1
    assert store.unregister(99, "a") == 0

    store.clear(1)
    assert store.count(1) == 0


def test_snapshot_omits_empty_events():
    clock = FakeClock()
    store = InMemoryPresenceStore(ttl_seconds=10, clock=clock)
    store.register(1, "a")
    clock.now += 20
    store.register(2, "b")
    store.register(2, "c")

    assert store.snapshot() == {2: 2}


def test_concurrent_registration():
    store = InMemoryPresenceStore()

    def worker(prefix: str) -> None:
        for i in range(200):
            store.register(7, f"{prefix}-{i}")

    threads = [threading.Thread(target=worker, args=(str(n),)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.count(7) == 800
