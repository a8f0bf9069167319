"""SQLite durable store.

One table holds every entity, keyed by ``(kind, key)``. Values are opaque
blobs produced by ``pkgdoc.codec``.

Unlike a best-effort cache, the durable tier is the source of truth for
stored documentation: ``aiosqlite.Error`` is logged and re-raised as
``StoreError`` so callers never mistake a failed write for a successful one.
"""

from __future__ import annotations

from datetime import UTC, datetime

import aiosqlite
import structlog

from pkgdoc.errors import StoreError

log = structlog.get_logger()

_CREATE_ENTITY_TABLE = """
CREATE TABLE IF NOT EXISTS entities (
    kind       TEXT NOT NULL,
    key        TEXT NOT NULL,
    value      BLOB NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (kind, key)
)
"""


class SQLiteStore:
    """SQLite-backed entity store implementing DurableStoreProtocol."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create the table and set WAL mode. Called once at startup."""
        try:
            await self._db.execute("PRAGMA journal_mode = WAL")
            await self._db.execute(_CREATE_ENTITY_TABLE)
            await self._db.commit()
        except aiosqlite.Error as exc:
            log.error("store_init_error", exc_info=True)
            raise StoreError(f"Could not initialise the store: {exc}") from exc

    async def get(self, kind: str, key: str) -> bytes | None:
        try:
            cursor = await self._db.execute(
                "SELECT value FROM entities WHERE kind = ? AND key = ?", (kind, key)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            log.warning("store_read_error", kind=kind, key=key, exc_info=True)
            raise StoreError(f"Get({kind}, {key}) failed: {exc}") from exc
        return None if row is None else bytes(row[0])

    async def put(self, kind: str, key: str, value: bytes) -> None:
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO entities (kind, key, value, updated_at) "
                "VALUES (?, ?, ?, ?)",
                (kind, key, value, datetime.now(UTC).isoformat()),
            )
            await self._db.commit()
        except aiosqlite.Error as exc:
            log.warning("store_write_error", kind=kind, key=key, exc_info=True)
            raise StoreError(f"Put({kind}, {key}) failed: {exc}") from exc

    async def delete(self, kind: str, key: str) -> None:
        """Delete an entity. Deleting a missing entity is not an error."""
        try:
            await self._db.execute("DELETE FROM entities WHERE kind = ? AND key = ?", (kind, key))
            await self._db.commit()
        except aiosqlite.Error as exc:
            log.warning("store_delete_error", kind=kind, key=key, exc_info=True)
            raise StoreError(f"Delete({kind}, {key}) failed: {exc}") from exc

    async def query(
        self, kind: str, *, start: str | None = None, end: str | None = None
    ) -> list[tuple[str, bytes]]:
        """Return ``(key, value)`` pairs of ``kind`` with ``start < key < end``, key order."""
        sql = "SELECT key, value FROM entities WHERE kind = ?"
        params: list[str] = [kind]
        if start is not None:
            sql += " AND key > ?"
            params.append(start)
        if end is not None:
            sql += " AND key < ?"
            params.append(end)
        sql += " ORDER BY key"
        try:
            cursor = await self._db.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            log.warning("store_query_error", kind=kind, start=start, end=end, exc_info=True)
            raise StoreError(f"Query({kind}) failed: {exc}") from exc
        return [(row[0], bytes(row[1])) for row in rows]
