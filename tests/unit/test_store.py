"""Unit tests for pkgdoc.store.SQLiteStore."""

from __future__ import annotations

import aiosqlite
import pytest

from pkgdoc.errors import StoreError
from pkgdoc.store import SQLiteStore


class TestSQLiteStore:
    async def test_put_and_get(self, durable: SQLiteStore) -> None:
        await durable.put("Doc", "github.com/user/repo", b"blob")
        assert await durable.get("Doc", "github.com/user/repo") == b"blob"

    async def test_get_missing(self, durable: SQLiteStore) -> None:
        assert await durable.get("Doc", "nope") is None

    async def test_kinds_are_separate(self, durable: SQLiteStore) -> None:
        await durable.put("Doc", "k", b"doc")
        await durable.put("Package", "k", b"pkg")
        assert await durable.get("Doc", "k") == b"doc"
        assert await durable.get("Package", "k") == b"pkg"

    async def test_put_replaces(self, durable: SQLiteStore) -> None:
        await durable.put("Doc", "k", b"v1")
        await durable.put("Doc", "k", b"v2")
        assert await durable.get("Doc", "k") == b"v2"

    async def test_delete_is_idempotent(self, durable: SQLiteStore) -> None:
        await durable.put("Doc", "k", b"v")
        await durable.delete("Doc", "k")
        await durable.delete("Doc", "k")
        assert await durable.get("Doc", "k") is None

    async def test_query_range_is_exclusive_and_ordered(self, durable: SQLiteStore) -> None:
        for key in ("a.org/x", "a.org/x/b", "a.org/x/a", "a.org/x0", "a.org/y"):
            await durable.put("Package", key, key.encode())
        await durable.put("Doc", "a.org/x/c", b"other kind")

        rows = await durable.query("Package", start="a.org/x/", end="a.org/x0")
        assert [key for key, _ in rows] == ["a.org/x/a", "a.org/x/b"]
        assert rows[0][1] == b"a.org/x/a"

    async def test_query_unbounded(self, durable: SQLiteStore) -> None:
        await durable.put("Package", "b", b"2")
        await durable.put("Package", "/fmt", b"1")
        assert [key for key, _ in await durable.query("Package")] == ["/fmt", "b"]


class TestSQLiteStoreFailures:
    async def test_missing_table_raises_store_error(self) -> None:
        async with aiosqlite.connect(":memory:") as db:
            store = SQLiteStore(db)
            with pytest.raises(StoreError):
                await store.put("Doc", "k", b"v")
