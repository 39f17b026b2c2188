"""Keyed TTL cache for aggregate catalog results."""

import asyncio
import time
from collections.abc import Hashable
from typing import Generic, TypeVar

T = TypeVar("T")


class ResultCache(Generic[T]):
    """TTL cache holding one value per key.

    Entries expire independently. The async lock lets callers coordinate
    so that only one coroutine recomputes a missing entry.
    """

    def __init__(self, ttl: float = 3600.0):
        """Initialize the cache.

        Args:
            ttl: Time-to-live in seconds for cached values.
        """
        self._ttl = ttl
        self._entries: dict[Hashable, tuple[T, float]] = {}
        self._lock = asyncio.Lock()

    def get(self, key: Hashable) -> T | None:
        """Get the cached value for a key if it hasn't expired.

        Returns:
            The cached value if valid, None if expired or not set.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: T) -> None:
        """Store a value under a key with TTL."""
        self._entries[key] = (value, time.monotonic() + self._ttl)

    def clear(self) -> None:
        """Drop every cached entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def lock(self) -> asyncio.Lock:
        """Get the async lock for coordinating recomputation."""
        return self._lock
