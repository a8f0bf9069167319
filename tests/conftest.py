"""Shared test fixtures for the pkgdoc test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import pytest

from pkgdoc.cache import EphemeralCache
from pkgdoc.config import CacheSettings, Settings
from pkgdoc.memory import MemoryStore
from pkgdoc.packages import PackageStore
from pkgdoc.store import SQLiteStore
from tests.helpers import FakeClock

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@pytest.fixture()
def settings() -> Settings:
    return Settings(store={"db_path": ":memory:"})


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def memory_store(clock: FakeClock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture()
def ephemeral(memory_store: MemoryStore) -> EphemeralCache:
    return EphemeralCache(memory_store, CacheSettings())


@pytest.fixture()
async def durable() -> AsyncGenerator[SQLiteStore, None]:
    async with aiosqlite.connect(":memory:") as db:
        store = SQLiteStore(db)
        await store.init_db()
        yield store


@pytest.fixture()
def package_store(durable: SQLiteStore, ephemeral: EphemeralCache) -> PackageStore:
    return PackageStore(durable, ephemeral, CacheSettings())
