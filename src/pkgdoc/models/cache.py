from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

# Value written by invalidation. Readers treat it as a miss; writers that
# observed it compare-and-swap against it.
TOMBSTONE = b"\x00"


class CasResult(StrEnum):
    STORED = "stored"
    CONFLICT = "conflict"  # Value changed since it was read
    NOT_STORED = "not_stored"  # Key absent or expired


@dataclass
class CacheItem:
    """Ephemeral cache item as observed by one reader.

    ``value`` holds the raw bytes seen at read time (tombstone included) or
    ``None`` when the key was absent. ``EphemeralCache.safe_set`` uses it to
    choose between add and compare-and-swap.
    """

    key: str
    value: bytes | None = None
    ttl_seconds: float = 0
