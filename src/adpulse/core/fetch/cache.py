"""
In-memory TTL cache for fetched row sets.

Entries expire lazily: an expired entry is treated as absent on lookup and
overwritten by the next successful fetch. There is no background sweep and
no explicit deletion, so the map grows with the number of distinct keys
seen during the process lifetime.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

Row = dict[str, Any]


@dataclass(frozen=True)
class CacheEntry:
    """Cached rows and the wall-clock second they stop being valid."""

    rows: tuple[Row, ...]
    expires_at: float

    def is_live(self, now: float) -> bool:
        return now < self.expires_at


class TTLCache:
    """Row-set cache keyed by serialized request descriptors."""

    def __init__(self, ttl_seconds: float = 180.0, clock: Callable[[], float] = time.time):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> list[Row] | None:
        """Return a copy of the live rows for ``key``, or None."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_live(self._clock()):
            self.misses += 1
            return None
        self.hits += 1
        return list(entry.rows)

    def set(self, key: str, rows: list[Row]) -> CacheEntry:
        entry = CacheEntry(rows=tuple(rows), expires_at=self._clock() + self.ttl_seconds)
        self._entries[key] = entry
        return entry

    def peek(self, key: str) -> CacheEntry | None:
        """Raw entry access, live or not. Does not touch hit counters."""
        return self._entries.get(key)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.is_live(self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
