from __future__ import annotations

import threading
import time
from typing import Callable, Generic, Hashable, Optional, Protocol, TypeVar

T = TypeVar("T")


class TrendCache(Protocol[T]):
    """Port for the trend cache so a shared cache can replace the local one."""

    def get(self, key: Hashable) -> Optional[T]:
        raise NotImplementedError

    def set(self, key: Hashable, value: T) -> None:
        raise NotImplementedError

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        raise NotImplementedError


class InMemoryTTLCache(Generic[T]):
    """Process-local cache; entries expire ``ttl_seconds`` after being set.

    No cross-instance invalidation: each process may serve values up to one
    TTL old.
    """

    def __init__(self, ttl_seconds: float, *, monotonic: Callable[[], float] = time.monotonic):
        self._ttl = float(ttl_seconds)
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._entries: dict[Hashable, tuple[float, T]] = {}

    def get(self, key: Hashable) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._monotonic() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: T) -> None:
        with self._lock:
            self._entries[key] = (self._monotonic() + self._ttl, value)

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
