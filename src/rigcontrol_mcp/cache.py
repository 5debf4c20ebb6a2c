"""Short-lived cache of radio state.

Entries are keyed by ``(operation, target)`` and expire after a TTL of
half a second by default, which is enough to absorb bursts of polling
from a UI without serving values the operator has since changed by hand.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable

DEFAULT_TTL = 0.5

CacheKey = tuple[Hashable, Any]


@dataclass
class CacheStatistics:
    hits: int = 0
    misses: int = 0
    invalidations: int = 0
    entries: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "invalidations": self.invalidations,
            "entries": self.entries,
            "hit_rate": round(self.hit_rate, 3),
        }


@dataclass
class _Entry:
    value: Any
    captured: float


class StateCache:
    """TTL cache for radio reads. ``None`` is never stored."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[CacheKey, _Entry] = {}
        self._stats = CacheStatistics()
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Any | None:
        """Return the cached value, or ``None`` if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() - entry.captured < self.ttl:
                self._stats.hits += 1
                return entry.value
            if entry is not None:
                del self._entries[key]
            self._stats.misses += 1
            return None

    def put(self, key: CacheKey, value: Any) -> None:
        if value is None:
            return
        with self._lock:
            self._entries[key] = _Entry(value=value, captured=self._clock())

    def invalidate(self, operation: Hashable, target: Any = None) -> None:
        """Drop entries a write to ``(operation, target)`` may have changed.

        A write to the current slot (``target=None``) can change any slot of
        that operation; a write to a named slot can change the current one.
        """
        with self._lock:
            if target is None:
                doomed = [key for key in self._entries if key[0] == operation]
            else:
                doomed = [(operation, target), (operation, None)]
            for key in doomed:
                if self._entries.pop(key, None) is not None:
                    self._stats.invalidations += 1

    def discard(self, key: CacheKey) -> None:
        """Drop exactly one entry."""
        with self._lock:
            if self._entries.pop(key, None) is not None:
                self._stats.invalidations += 1

    def invalidate_operations(self, *operations: Hashable) -> None:
        for operation in operations:
            self.invalidate(operation)

    def clear(self) -> None:
        with self._lock:
            self._stats.invalidations += len(self._entries)
            self._entries.clear()

    def statistics(self) -> CacheStatistics:
        with self._lock:
            return CacheStatistics(
                hits=self._stats.hits,
                misses=self._stats.misses,
                invalidations=self._stats.invalidations,
                entries=len(self._entries),
            )
