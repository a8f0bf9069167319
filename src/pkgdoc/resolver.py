"""Import path resolution.

Dispatches an import path to the hosting service that serves it, falling
back to go-import discovery for custom domains. Resolution is stateless: the
only input from storage is the saved ETag, and the only output is a freshly
built DocumentationRecord (or an exception).
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING

import structlog

from pkgdoc.discovery import get_meta
from pkgdoc.errors import InvalidImportPathError, PackageNotFoundError, TransportError
from pkgdoc.models.doc import PACKAGE_VERSION
from pkgdoc.paths import is_standard_package, valid_remote_path
from pkgdoc.services import ProxyService, StandardService, build_services

if TYPE_CHECKING:
    from pkgdoc.config import Settings
    from pkgdoc.models.doc import DocumentationRecord
    from pkgdoc.protocols import DocumentationBuilder, FetcherProtocol

log = structlog.get_logger()

_VERSION_PREFIX = PACKAGE_VERSION + "-"


def strip_version(etag: str) -> str:
    """Remove the format-version prefix from a stored ETag.

    An ETag written by another format version is useless for a conditional
    fetch and is discarded.
    """
    if etag.startswith(_VERSION_PREFIX):
        return etag[len(_VERSION_PREFIX) :]
    return ""


class Resolver:
    def __init__(
        self,
        fetcher: FetcherProtocol,
        builder: DocumentationBuilder,
        settings: Settings,
    ) -> None:
        self._fetcher = fetcher
        self._deadline = settings.fetcher.deadline_seconds
        self._services = build_services(fetcher, builder, settings.services)
        self._standard = StandardService(fetcher, builder, settings.services)
        self._proxy = ProxyService(fetcher, builder, settings.services)

    async def resolve(
        self, import_path: str, etag: str = "", *, timeout: float | None = None
    ) -> DocumentationRecord:
        """Resolve ``import_path`` to a freshly built record.

        ``etag`` is the version-prefixed ETag of the stored record, if any.
        Raises PackageNotModifiedError when the source is unchanged, and
        InvalidImportPathError, without any network access, when the path
        is malformed.
        """
        standard = is_standard_package(import_path)
        if not standard and not valid_remote_path(import_path):
            raise InvalidImportPathError(import_path)

        saved_etag = strip_version(etag)
        deadline = self._deadline if timeout is None else timeout
        try:
            async with asyncio.timeout(deadline):
                if standard:
                    doc = await self._get_standard(import_path, saved_etag)
                else:
                    doc = await self.get_static(import_path, saved_etag)
                    if doc is None:
                        doc = await self.get_dynamic(import_path, saved_etag)
        except TimeoutError as exc:
            host = import_path.split("/", 1)[0]
            raise TransportError(host, f"Resolution of {import_path} exceeded {deadline}s") from exc

        log.info("resolve_complete", import_path=import_path, etag=doc.etag)
        return doc.model_copy(update={"etag": _VERSION_PREFIX + doc.etag})

    async def _get_standard(self, import_path: str, etag: str) -> DocumentationRecord:
        match = self._standard.match(import_path)
        if match is None:
            raise PackageNotFoundError(f"{import_path} is not a standard package path")
        return await self._standard.get_doc(match, etag)

    async def get_static(self, import_path: str, etag: str) -> DocumentationRecord | None:
        """Resolve through the first service whose prefix matches.

        Returns None when no service claims the path. A path under a known
        prefix that does not fit the service's pattern does not exist.
        """
        for service in self._services:
            if not import_path.startswith(service.prefix):
                continue
            match = service.match(import_path)
            if match is None:
                raise PackageNotFoundError(f"{import_path} is not a valid {service.name} path")
            log.debug("service_selected", import_path=import_path, service=service.name)
            return await service.get_doc(match, etag)
        return None

    async def get_dynamic(self, import_path: str, etag: str) -> DocumentationRecord:
        """Resolve a custom-domain path through its go-import declaration."""
        meta = await get_meta(self._fetcher, import_path)

        if meta.project_root != import_path:
            # The root page must declare the same root.
            root_meta = await get_meta(self._fetcher, meta.project_root)
            if root_meta.project_root != meta.project_root:
                raise PackageNotFoundError(
                    f"{meta.project_root} does not declare itself as a project root"
                )
            meta = replace(root_meta, repo_root=meta.repo_root)

        scheme_end = meta.repo_root.find("://")
        if scheme_end < 0:
            raise PackageNotFoundError(f"Unsupported repository root {meta.repo_root!r}")
        rewritten = meta.repo_root[scheme_end + 3 :] + import_path[len(meta.project_root) :]
        log.debug("dynamic_rewrite", import_path=import_path, rewritten=rewritten)

        doc = await self.get_static(rewritten, etag)
        if doc is None:
            match = self._proxy.match(import_path)
            if match is None:
                raise PackageNotFoundError(f"{import_path} cannot be proxied")
            doc = await self._proxy.get_doc(match, etag)

        return doc.model_copy(
            update={
                "import_path": import_path,
                "project_root": meta.project_root,
                "project_name": meta.project_name,
                "project_url": meta.project_url,
            }
        )
