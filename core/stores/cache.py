"""
TTL root cache.

Read-through accelerator for ledger lookups. Roots never change after
commit, so entries are only ever expired, never invalidated.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from core.schemas.records import LedgerEntry


class TTLRootCache:
    """
    Bounded in-memory cache with per-entry TTL.

    When full, the entry inserted earliest is evicted first.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[int, tuple[LedgerEntry, float]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, record_id: int) -> Optional[LedgerEntry]:
        with self._lock:
            item = self._entries.get(record_id)
            if item is None:
                return None
            entry, expires_at = item
            if self._clock() >= expires_at:
                del self._entries[record_id]
                return None
            return entry

    def put(self, record_id: int, entry: LedgerEntry, ttl_s: float) -> None:
        if ttl_s <= 0:
            return
        with self._lock:
            self._entries.pop(record_id, None)
            self._entries[record_id] = (entry, self._clock() + ttl_s)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
