"""Application state container.

AppState is created once per process by ``open_app_state`` and handed to
whatever drives the pipeline (the CLI, tests). The context manager owns the
lifetimes of the HTTP client and the database connection.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from pkgdoc.builder import SourceBuilder
from pkgdoc.cache import EphemeralCache
from pkgdoc.fetcher import Fetcher, build_http_client
from pkgdoc.memory import MemoryStore
from pkgdoc.packages import PackageStore
from pkgdoc.pipeline import DocPipeline
from pkgdoc.resolver import Resolver
from pkgdoc.store import SQLiteStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    import httpx

    from pkgdoc.config import Settings

log = structlog.get_logger()


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    http_client: httpx.AsyncClient
    fetcher: Fetcher
    resolver: Resolver
    ephemeral: EphemeralCache
    durable: SQLiteStore
    packages: PackageStore
    pipeline: DocPipeline


@asynccontextmanager
async def open_app_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources."""
    http_client = build_http_client(settings.fetcher)

    db_path = settings.store.db_path
    if db_path != ":memory:":
        path = Path(db_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        db_path = str(path)

    try:
        db = await aiosqlite.connect(db_path)
    except BaseException:
        await http_client.aclose()
        raise

    try:
        durable = SQLiteStore(db)
        await durable.init_db()

        fetcher = Fetcher(http_client)
        resolver = Resolver(fetcher, SourceBuilder(), settings)
        ephemeral = EphemeralCache(MemoryStore(), settings.cache)
        packages = PackageStore(durable, ephemeral, settings.cache)
        pipeline = DocPipeline(resolver, ephemeral, packages, settings.cache)

        log.debug("app_state_ready", db_path=db_path)
        yield AppState(
            settings=settings,
            http_client=http_client,
            fetcher=fetcher,
            resolver=resolver,
            ephemeral=ephemeral,
            durable=durable,
            packages=packages,
            pipeline=pipeline,
        )
    finally:
        await http_client.aclose()
        await db.close()
