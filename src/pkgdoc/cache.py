"""Ephemeral cache discipline on top of an EphemeralStoreProtocol.

Invalidation never deletes: it overwrites keys with a short-lived tombstone.
A reader that observed the tombstone can later compare-and-swap against it,
while a reader that observed a real value loses the swap if an invalidation
landed in between. That way a stale listing read before a durable update can
never be written back over the invalidation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pkgdoc.models.cache import TOMBSTONE, CacheItem, CasResult

if TYPE_CHECKING:
    from pkgdoc.config import CacheSettings
    from pkgdoc.protocols import EphemeralStoreProtocol

log = structlog.get_logger()


class EphemeralCache:
    def __init__(self, store: EphemeralStoreProtocol, settings: CacheSettings) -> None:
        self._store = store
        self._tombstone_ttl = settings.tombstone_ttl_seconds

    async def get(self, key: str) -> tuple[CacheItem, bytes | None]:
        """Read ``key``. The payload is None on a miss, and a tombstone is a miss.

        The returned item records the raw value that was observed, for a
        later ``safe_set``.
        """
        value = await self._store.get(key)
        item = CacheItem(key=key, value=value)
        if value is None or value == TOMBSTONE:
            log.debug("cache_miss", key=key, tombstone=value is not None)
            return item, None
        return item, value

    async def set(self, item: CacheItem, payload: bytes) -> None:
        await self._store.set(item.key, payload, item.ttl_seconds)
        item.value = payload

    async def safe_set(self, item: CacheItem, payload: bytes) -> None:
        """Write ``payload`` unless another writer got there first.

        Losing to a concurrent writer is success: the key then holds a value
        at least as fresh as ours.
        """
        observed = item.value
        item.value = payload

        if observed is not None:
            result = await self._store.compare_and_swap(
                item.key, observed, payload, item.ttl_seconds
            )
            if result == CasResult.STORED:
                return
            if result == CasResult.CONFLICT:
                log.debug("cache_cas_conflict", key=item.key)
                return
            # Expired since it was read; fall through to add.

        if not await self._store.add(item.key, payload, item.ttl_seconds):
            log.debug("cache_add_lost", key=item.key)

    async def clear(self, *keys: str) -> None:
        """Tombstone ``keys`` for ``tombstone_ttl_seconds``."""
        if not keys:
            return
        await self._store.set_multi(dict.fromkeys(keys, TOMBSTONE), self._tombstone_ttl)
        log.debug("cache_cleared", keys=list(keys))

    async def delete(self, key: str) -> None:
        await self._store.delete_multi([key])
