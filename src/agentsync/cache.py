"""Read-through cache of system-owned action records."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from agentsync.agents.types import ActionRecord
from agentsync.store.interfaces import ActionStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class SystemRecordCache:
    """Caches the system-owned action list for ``ttl_seconds``.

    The process-wide instance comes from ``agentsync.main.get_record_cache``;
    the orchestrator calls ``invalidate()`` after every pass so readers never
    see stale records for longer than one TTL.
    """

    def __init__(self, ttl_seconds: float = 600.0, clock: Clock = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[list[ActionRecord], float]] = {}

    def get_actions(self, store: ActionStore, owner: str) -> list[ActionRecord]:
        now = self._clock()
        with self._lock:
            cached = self._entries.get(owner)
            if cached is not None and now - cached[1] < self.ttl_seconds:
                return list(cached[0])
        logger.debug("Loading system actions for owner %s from store", owner)
        actions = store.list_actions_by_owner(owner)
        with self._lock:
            self._entries[owner] = (actions, now)
        return list(actions)

    def invalidate(self, owner: str | None = None) -> None:
        with self._lock:
            if owner is None:
                self._entries.clear()
            else:
                self._entries.pop(owner, None)
