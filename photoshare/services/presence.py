"""Active viewer presence tracking.

Best-effort, process-local count of clients currently looking at an event
gallery. It is advisory display data only: nothing is persisted and a restart
clears it. Deployments running more than one instance should provide a shared
TTL-capable implementation of :class:`PresenceStore`.
"""

import threading
import time
from collections.abc import Callable
from functools import lru_cache
from typing import Protocol

from photoshare.core.config import get_settings

DEFAULT_TTL_SECONDS = 45.0


class PresenceStore(Protocol):
    """Interface for presence registries."""

    def register(self, event_id: int, client_id: str) -> int: ...

    def unregister(self, event_id: int, client_id: str) -> int: ...

    def count(self, event_id: int) -> int: ...

    def clear(self, event_id: int) -> None: ...

    def snapshot(self) -> dict[int, int]: ...


class InMemoryPresenceStore:
    """Presence registry kept in a dict guarded by a lock.

    Layout: ``event_id -> {client_id -> last heartbeat}``. Entries silent for
    longer than ``ttl_seconds`` are pruned whenever the event is read or
    written, and an event whose registry empties is dropped entirely.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._registry: dict[int, dict[str, float]] = {}

    def register(self, event_id: int, client_id: str) -> int:
        """Record a heartbeat and return the live count for the event."""
        if not client_id:
            return self.count(event_id)
        now = self._clock()
        with self._lock:
            self._registry.setdefault(event_id, {})[client_id] = now
            return self._prune(event_id, now)

    def unregister(self, event_id: int, client_id: str) -> int:
        """Drop a client immediately and return the remaining count."""
        with self._lock:
            clients = self._registry.get(event_id)
            if clients is None:
                return 0
            clients.pop(client_id, None)
            return self._prune(event_id, self._clock())

    def count(self, event_id: int) -> int:
        with self._lock:
            return self._prune(event_id, self._clock())

    def clear(self, event_id: int) -> None:
        with self._lock:
            self._registry.pop(event_id, None)

    def snapshot(self) -> dict[int, int]:
        """Live counts per event, pruning every registry as a side effect."""
        now = self._clock()
        with self._lock:
            counts = {
                event_id: self._prune(event_id, now)
                for event_id in list(self._registry)
            }
        return {event_id: n for event_id, n in counts.items() if n > 0}

    def _prune(self, event_id: int, now: float) -> int:
        # Caller holds the lock
        clients = self._registry.get(event_id)
        if not clients:
            self._registry.pop(event_id, None)
            return 0

        expired = [cid for cid, seen in clients.items() if now - seen > self.ttl_seconds]
        for cid in expired:
            del clients[cid]

        if not clients:
            del self._registry[event_id]
            return 0
        return len(clients)


@lru_cache
def get_presence_store() -> PresenceStore:
    """Get the process-wide presence registry."""
    return InMemoryPresenceStore(ttl_seconds=get_settings().presence_ttl_seconds)
