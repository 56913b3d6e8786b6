import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: float


class QuoteCache:
    """TTL cache for provider responses.

    One instance per process, handed to the provider that uses it. The
    clock is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at >= self.ttl_seconds

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.is_expired(entry, self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
