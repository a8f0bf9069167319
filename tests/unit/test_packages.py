"""Unit tests for pkgdoc.packages.PackageStore."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pkgdoc.codec import MAX_DOC_SIZE, TRUNCATED_MESSAGE
from pkgdoc.config import CacheSettings
from pkgdoc.models.cache import TOMBSTONE, CacheItem
from pkgdoc.models.doc import FuncDoc
from pkgdoc.models.index import IndexRecord
from pkgdoc.packages import PackageStore, filter_cmds, package_key
from tests.helpers import make_doc

if TYPE_CHECKING:
    from pkgdoc.cache import EphemeralCache
    from pkgdoc.store import SQLiteStore

ROOT = "github.com/user/repo"


class _CountingStore:
    """Durable store wrapper that records writes and queries."""

    def __init__(self, inner: SQLiteStore) -> None:
        self._inner = inner
        self.puts: list[tuple[str, str]] = []
        self.queries = 0

    async def get(self, kind, key):
        return await self._inner.get(kind, key)

    async def put(self, kind, key, value):
        self.puts.append((kind, key))
        await self._inner.put(kind, key, value)

    async def delete(self, kind, key):
        await self._inner.delete(kind, key)

    async def query(self, kind, *, start=None, end=None):
        self.queries += 1
        return await self._inner.query(kind, start=start, end=end)


@pytest.fixture()
def counting(durable: SQLiteStore) -> _CountingStore:
    return _CountingStore(durable)


@pytest.fixture()
def store(counting: _CountingStore, ephemeral: EphemeralCache) -> PackageStore:
    return PackageStore(counting, ephemeral, CacheSettings())


def _package_puts(counting: _CountingStore) -> list[str]:
    return [key for kind, key in counting.puts if kind == "Package"]


async def _seed_listing(ephemeral: EphemeralCache, *keys: str) -> None:
    for key in keys:
        await ephemeral.set(CacheItem(key=key), b"cached listing")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_package_key(self) -> None:
        assert package_key("fmt", make_doc(import_path="fmt", project_root="")) == "/fmt"
        assert package_key(ROOT, make_doc()) == ROOT
        assert package_key(ROOT, None) == ROOT

    def test_filter_cmds(self) -> None:
        lib = IndexRecord(import_path="a")
        cmd = IndexRecord(import_path="b", is_cmd=True)
        assert filter_cmds([cmd, lib]) == ([lib], [cmd])


# ---------------------------------------------------------------------------
# load_doc / update_package
# ---------------------------------------------------------------------------


class TestUpdatePackage:
    async def test_new_package_stored_and_listings_invalidated(
        self, store: PackageStore, counting: _CountingStore, ephemeral: EphemeralCache
    ) -> None:
        await _seed_listing(ephemeral, "pkglist", f"proj:{ROOT}")

        await store.update_package(ROOT, make_doc())

        doc, etag = await store.load_doc(ROOT)
        assert doc == make_doc().model_copy(update={"updated": doc.updated})
        assert etag == "1-abc"
        assert _package_puts(counting) == [ROOT]
        for key in ("pkglist", f"proj:{ROOT}"):
            item, payload = await ephemeral.get(key)
            assert payload is None
            assert item.value == TOMBSTONE

    async def test_unchanged_index_fields_suppress_write(
        self, store: PackageStore, counting: _CountingStore, ephemeral: EphemeralCache
    ) -> None:
        await store.update_package(ROOT, make_doc())
        await _seed_listing(ephemeral, "pkglist", f"proj:{ROOT}")

        await store.update_package(
            ROOT, make_doc(doc="Package repo does things. With a longer description.")
        )

        assert _package_puts(counting) == [ROOT]
        assert [key for kind, key in counting.puts if kind == "Doc"] == [ROOT, ROOT]
        assert (await ephemeral.get("pkglist"))[1] == b"cached listing"
        assert (await ephemeral.get(f"proj:{ROOT}"))[1] == b"cached listing"

    async def test_changed_synopsis_rewrites_index(
        self, store: PackageStore, counting: _CountingStore, ephemeral: EphemeralCache
    ) -> None:
        await store.update_package(ROOT, make_doc())
        await _seed_listing(ephemeral, "pkglist")

        await store.update_package(ROOT, make_doc(synopsis="Package repo does more."))

        assert _package_puts(counting) == [ROOT, ROOT]
        assert (await ephemeral.get("pkglist"))[1] is None

    async def test_none_removes_doc_and_index(
        self, store: PackageStore, durable: SQLiteStore, ephemeral: EphemeralCache
    ) -> None:
        await store.update_package(ROOT, make_doc())
        await _seed_listing(ephemeral, "pkglist")

        assert await store.update_package(ROOT, None) is None

        assert await store.load_doc(ROOT) == (None, "")
        assert await durable.get("Package", ROOT) is None
        assert (await ephemeral.get("pkglist"))[1] is None

    async def test_none_for_unknown_package_writes_nothing(
        self, store: PackageStore, counting: _CountingStore, ephemeral: EphemeralCache
    ) -> None:
        await _seed_listing(ephemeral, "pkglist")
        await store.update_package("github.com/user/missing", None)
        assert counting.puts == []
        assert (await ephemeral.get("pkglist"))[1] == b"cached listing"

    async def test_nameless_doc_is_removed(
        self, store: PackageStore, durable: SQLiteStore
    ) -> None:
        await store.update_package(ROOT, make_doc())
        await store.update_package(ROOT, make_doc(name=""))
        assert await durable.get("Doc", ROOT) is None
        assert await durable.get("Package", ROOT) is None

    async def test_standard_package_keyed_with_slash(
        self, store: PackageStore, durable: SQLiteStore
    ) -> None:
        await store.update_package(
            "fmt", make_doc(import_path="fmt", project_root="", name="fmt")
        )
        assert await durable.get("Package", "/fmt") is not None
        assert await durable.get("Package", "fmt") is None
        assert await durable.get("Doc", "fmt") is not None

    async def test_oversized_doc_returned_truncated(self, store: PackageStore) -> None:
        funcs = [FuncDoc(name=f"F{i}", decl=f"func F{i}()", doc="x" * 1000) for i in range(1000)]
        stored = await store.update_package(ROOT, make_doc(funcs=funcs))

        assert stored.funcs == []
        assert stored.errors[-1] == TRUNCATED_MESSAGE
        doc, _ = await store.load_doc(ROOT)
        assert doc == stored
        assert len(doc.model_dump_json()) < MAX_DOC_SIZE

    async def test_undecodable_doc_loads_as_missing(
        self, store: PackageStore, durable: SQLiteStore
    ) -> None:
        await durable.put("Doc", ROOT, b"0\n{}")
        assert await store.load_doc(ROOT) == (None, "")

    async def test_remove_doc_keeps_index(
        self, store: PackageStore, durable: SQLiteStore
    ) -> None:
        await store.update_package(ROOT, make_doc())
        await store.remove_doc(ROOT)
        assert await store.load_doc(ROOT) == (None, "")
        assert await durable.get("Package", ROOT) is not None


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class TestListings:
    async def test_list_packages_only_visible(self, store: PackageStore) -> None:
        await store.update_package(ROOT, make_doc())
        await store.update_package(f"{ROOT}/empty", make_doc(import_path=f"{ROOT}/empty", funcs=[]))
        await store.update_package(
            "fmt", make_doc(import_path="fmt", project_root="", name="fmt")
        )

        records = await store.list_packages()
        assert [r.import_path for r in records] == [ROOT]

    async def test_listing_served_from_cache_until_invalidated(
        self, store: PackageStore, counting: _CountingStore
    ) -> None:
        await store.update_package(ROOT, make_doc())
        assert len(await store.list_packages()) == 1
        assert len(await store.list_packages()) == 1
        assert counting.queries == 1

        other = "github.com/user/other"
        await store.update_package(
            other, make_doc(import_path=other, project_root=other, name="other")
        )
        records = await store.list_packages()
        assert [r.import_path for r in records] == [other, ROOT]
        assert counting.queries == 2

    async def test_standard_import_path_restored(self, store: PackageStore) -> None:
        await store.update_package(
            "fmt", make_doc(import_path="fmt", project_root="", name="fmt")
        )
        records = await store.query_packages("all")
        assert [r.import_path for r in records] == ["fmt"]

    async def test_child_packages(self, store: PackageStore) -> None:
        paths = [ROOT, f"{ROOT}/sub", f"{ROOT}/sub/deep", f"{ROOT}/tools"]
        for path in paths:
            await store.update_package(path, make_doc(import_path=path))
        await store.update_package(
            f"{ROOT}2", make_doc(import_path=f"{ROOT}2", project_root=f"{ROOT}2")
        )

        children = await store.child_packages(ROOT, ROOT)
        assert [c.import_path for c in children] == paths[1:]

        children = await store.child_packages(ROOT, f"{ROOT}/sub")
        assert [c.import_path for c in children] == [f"{ROOT}/sub/deep"]
