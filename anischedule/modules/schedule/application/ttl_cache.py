"""Process-local TTL cache keyed by string."""

import time
from collections.abc import Callable
from typing import Generic, TypeVar

from anischedule.modules.schedule.domain.entities import CacheEntry

V = TypeVar("V")


class TTLCache(Generic[V]):
    """In-memory cache where every key expires independently.

    Entries are kept after they expire (lazy staleness); ``get`` simply stops
    returning them.
    """

    def __init__(
        self,
        ttl_sec: float,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self.ttl_sec, self._clock()):
            return None
        return entry.value

    def set(self, key: str, value: V) -> None:
        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())

    def __len__(self) -> int:
        return len(self._entries)
