"""Request flow for one package: cache, durable store, resolution.

Receives its collaborators through the constructor and owns no resources.
Hosting-service failures fall back to the stored record when there is one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pkgdoc.codec import decode_doc, encode_doc
from pkgdoc.errors import PackageNotFoundError, PackageNotModifiedError, TransportError
from pkgdoc.models.doc import PACKAGE_VERSION

if TYPE_CHECKING:
    from pkgdoc.cache import EphemeralCache
    from pkgdoc.config import CacheSettings
    from pkgdoc.models.cache import CacheItem
    from pkgdoc.models.doc import DocumentationRecord
    from pkgdoc.models.index import IndexRecord
    from pkgdoc.packages import PackageStore
    from pkgdoc.resolver import Resolver


def doc_cache_key(import_path: str) -> str:
    return f"doc-{PACKAGE_VERSION}:{import_path}"


class DocPipeline:
    def __init__(
        self,
        resolver: Resolver,
        ephemeral: EphemeralCache,
        packages: PackageStore,
        settings: CacheSettings,
    ) -> None:
        self._resolver = resolver
        self._ephemeral = ephemeral
        self._packages = packages
        self._doc_ttl = settings.doc_ttl_seconds

    async def get_doc(self, import_path: str) -> tuple[DocumentationRecord, list[IndexRecord]]:
        """Return documentation for ``import_path`` and its child packages.

        Raises PackageNotFoundError when the package does not exist or is
        empty, and propagates InvalidImportPathError, BuildError and
        StoreError unchanged.
        """
        log = structlog.get_logger().bind(import_path=import_path)

        item, payload = await self._ephemeral.get(doc_cache_key(import_path))
        doc = decode_doc(payload) if payload is not None else None
        if doc is not None:
            log.info("cache_hit")
        else:
            doc = await self._fetch(import_path, item, log)

        children = await self._packages.child_packages(doc.project_root, import_path)
        if not children and not doc.name and not doc.errors:
            raise PackageNotFoundError(f"{import_path} contains no Go package")
        return doc, children

    async def _fetch(
        self, import_path: str, item: CacheItem, log: structlog.typing.FilteringBoundLogger
    ) -> DocumentationRecord:
        saved, etag = await self._packages.load_doc(import_path)

        try:
            doc = await self._resolver.resolve(import_path, etag)
        except PackageNotModifiedError:
            log.info("package_not_modified", etag=etag)
            if saved is None:
                raise
            doc = saved
        except PackageNotFoundError:
            log.info("package_not_found")
            await self._packages.update_package(import_path, None)
            raise
        except TransportError as exc:
            if saved is None:
                raise
            log.warning("serving_stored_doc", host=exc.host, error=exc.message)
            return saved
        else:
            stored = await self._packages.update_package(import_path, doc)
            if stored is not None:
                doc = stored

        await self._cache_doc(item, doc)
        return doc

    async def _cache_doc(self, item: CacheItem, doc: DocumentationRecord) -> None:
        item.ttl_seconds = self._doc_ttl
        await self._ephemeral.set(item, encode_doc(doc))

    async def reload(self, import_path: str) -> None:
        """Drop every stored copy so the next request refetches from scratch."""
        await self._ephemeral.delete(doc_cache_key(import_path))
        await self._packages.remove_doc(import_path)
        structlog.get_logger().info("doc_reloaded", import_path=import_path)

    async def list_packages(self) -> list[IndexRecord]:
        return await self._packages.list_packages()
