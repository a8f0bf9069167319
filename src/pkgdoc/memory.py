"""In-process ephemeral store with memcache semantics.

Every operation runs without awaiting anything in between, so on a single
event loop each call is atomic with respect to the others. Expired entries
are dropped lazily when touched.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from pkgdoc.models.cache import CasResult

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence


class MemoryStore:
    """EphemeralStoreProtocol implementation backed by a dict."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._items: dict[str, tuple[bytes, float | None]] = {}

    def _expiry(self, ttl_seconds: float) -> float | None:
        return self._clock() + ttl_seconds if ttl_seconds > 0 else None

    def _live(self, key: str) -> bytes | None:
        entry = self._items.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._items[key]
            return None
        return value

    async def get(self, key: str) -> bytes | None:
        return self._live(key)

    async def set(self, key: str, value: bytes, ttl_seconds: float) -> None:
        self._items[key] = (value, self._expiry(ttl_seconds))

    async def set_multi(self, items: Mapping[str, bytes], ttl_seconds: float) -> None:
        expires_at = self._expiry(ttl_seconds)
        for key, value in items.items():
            self._items[key] = (value, expires_at)

    async def add(self, key: str, value: bytes, ttl_seconds: float) -> bool:
        """Store only if ``key`` is absent. Returns False if it was present."""
        if self._live(key) is not None:
            return False
        self._items[key] = (value, self._expiry(ttl_seconds))
        return True

    async def compare_and_swap(
        self, key: str, expected: bytes, value: bytes, ttl_seconds: float
    ) -> CasResult:
        current = self._live(key)
        if current is None:
            return CasResult.NOT_STORED
        if current != expected:
            return CasResult.CONFLICT
        self._items[key] = (value, self._expiry(ttl_seconds))
        return CasResult.STORED

    async def delete_multi(self, keys: Sequence[str]) -> None:
        for key in keys:
            self._items.pop(key, None)
