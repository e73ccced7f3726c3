"""In-process TTL cache for slow-changing reference data (regions)."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class _Entry:
    value: Any
    expires_at: float

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class TTLCache:
    """Values expire ``ttl`` seconds after they are loaded."""

    def __init__(self, ttl: float) -> None:
        self._ttl = ttl
        self._entries: dict[Hashable, _Entry] = {}
        self._lock = threading.Lock()

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value for key, calling loader on a miss.

        The loader runs outside the lock; two concurrent misses may both
        load, and the later write wins.
        """
        with self._lock:
            entry = self._entries.get(key)
        if entry is not None and not entry.expired:
            return entry.value

        value = loader()
        with self._lock:
            self._entries[key] = _Entry(value, time.monotonic() + self._ttl)
        return value

    def invalidate(self) -> None:
        with self._lock:
            self._entries.clear()


# Read by every vendor listing; invalidated when a region is created
region_cache = TTLCache(ttl=300)
