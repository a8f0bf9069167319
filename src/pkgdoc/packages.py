"""Two-tier persistence of documentation and package index entries.

Durable kinds:
  Doc      key = import path, value = encoded DocumentationRecord
  Package  key = import path ("/" + path for standard packages),
           value = encoded IndexRecord

Listings derived from the Package kind are cached in the ephemeral tier
under ``pkglist`` and ``proj:{project_root}``. Writers invalidate those keys
only after the durable write has succeeded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pkgdoc.codec import (
    decode_doc,
    decode_index,
    decode_package_list,
    encode_bounded,
    encode_index,
    encode_package_list,
)
from pkgdoc.projection import project

if TYPE_CHECKING:
    from collections.abc import Callable

    from pkgdoc.cache import EphemeralCache
    from pkgdoc.config import CacheSettings
    from pkgdoc.models.doc import DocumentationRecord
    from pkgdoc.models.index import IndexRecord
    from pkgdoc.protocols import DurableStoreProtocol

log = structlog.get_logger()

DOC_KIND = "Doc"
PACKAGE_KIND = "Package"
PACKAGE_LIST_KEY = "pkglist"
PROJECT_LIST_PREFIX = "proj:"


def package_key(import_path: str, doc: DocumentationRecord | None) -> str:
    """Durable Package key. Standard packages (no project root) sort first under "/"."""
    if doc is not None and doc.project_root == "":
        return "/" + import_path
    return import_path


def filter_cmds(records: list[IndexRecord]) -> tuple[list[IndexRecord], list[IndexRecord]]:
    """Split ``records`` into ``(libraries, commands)``, preserving order."""
    return [r for r in records if not r.is_cmd], [r for r in records if r.is_cmd]


class PackageStore:
    def __init__(
        self,
        durable: DurableStoreProtocol,
        ephemeral: EphemeralCache,
        settings: CacheSettings,
    ) -> None:
        self._durable = durable
        self._ephemeral = ephemeral
        self._query_ttl = settings.query_ttl_seconds

    async def load_doc(self, import_path: str) -> tuple[DocumentationRecord | None, str]:
        """Return the stored record and its ETag, or ``(None, "")``."""
        blob = await self._durable.get(DOC_KIND, import_path)
        if blob is None:
            return None, ""
        doc = decode_doc(blob)
        if doc is None:
            return None, ""
        return doc, doc.etag

    async def remove_doc(self, import_path: str) -> None:
        await self._durable.delete(DOC_KIND, import_path)

    async def update_package(
        self, import_path: str, doc: DocumentationRecord | None
    ) -> DocumentationRecord | None:
        """Persist ``doc`` (or its absence) and keep the package index in step.

        The Package entity is rewritten only when its listing-relevant fields
        changed, and listings are invalidated only in that case. Returns the
        record as stored, which may have been truncated.
        """
        record = project(doc)

        if doc is None or record is None:
            await self._durable.delete(DOC_KIND, import_path)
        else:
            blob, doc = encode_bounded(doc)
            await self._durable.put(DOC_KIND, import_path, blob)

        key = package_key(import_path, doc)
        stored_blob = await self._durable.get(PACKAGE_KIND, key)

        changed = False
        if stored_blob is None:
            if record is not None:
                log.info("package_added", import_path=import_path)
                await self._durable.put(PACKAGE_KIND, key, encode_index(record))
                changed = True
        elif record is None:
            log.info("package_deleted", import_path=import_path)
            await self._durable.delete(PACKAGE_KIND, key)
            changed = True
        else:
            stored = decode_index(stored_blob)
            if stored is None or not record.equal(stored):
                log.info("package_updated", import_path=import_path)
                await self._durable.put(PACKAGE_KIND, key, encode_index(record))
                changed = True

        if changed:
            keys = [PACKAGE_LIST_KEY]
            if doc is not None:
                keys.append(PROJECT_LIST_PREFIX + doc.project_root)
            await self._ephemeral.clear(*keys)

        return doc

    async def query_packages(
        self,
        cache_key: str,
        *,
        start: str | None = None,
        end: str | None = None,
        predicate: Callable[[IndexRecord], bool] | None = None,
    ) -> list[IndexRecord]:
        """Return a listing of Package entities, cached under ``cache_key``."""
        item, payload = await self._ephemeral.get(cache_key)
        if payload is not None:
            records = decode_package_list(payload)
            if records is not None:
                return records

        records = []
        for key, blob in await self._durable.query(PACKAGE_KIND, start=start, end=end):
            record = decode_index(blob)
            if record is None:
                continue
            # Standard packages are keyed with a leading "/".
            record = record.model_copy(update={"import_path": key.removeprefix("/")})
            if predicate is None or predicate(record):
                records.append(record)

        item.ttl_seconds = self._query_ttl
        await self._ephemeral.safe_set(item, encode_package_list(records))
        log.debug("package_query", cache_key=cache_key, count=len(records))
        return records

    async def list_packages(self) -> list[IndexRecord]:
        """All visible packages."""
        return await self.query_packages(PACKAGE_LIST_KEY, predicate=lambda r: not r.hide)

    async def child_packages(self, project_root: str, import_path: str) -> list[IndexRecord]:
        """Packages of ``project_root`` below ``import_path``."""
        project_pkgs = await self.query_packages(
            PROJECT_LIST_PREFIX + project_root,
            start=project_root + "/",
            end=project_root + "0",
        )
        prefix = import_path + "/"
        return [pkg for pkg in project_pkgs if pkg.import_path.startswith(prefix)]
