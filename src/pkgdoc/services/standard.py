from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pkgdoc.errors import PackageNotFoundError
from pkgdoc.models.doc import CandidateFile
from pkgdoc.services.base import Service, decode_json, github_headers, is_doc_file

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pkgdoc.models.doc import DocumentationRecord


class StandardService(Service):
    """Standard library packages, listed through the Go repository's contents API.

    Not part of the prefix table: the resolver routes known standard package
    paths here directly. The listing is fetched conditionally with the
    server's ETag.
    """

    prefix = ""
    pattern = re.compile(r"[a-z0-9/]+")

    def _headers(self) -> Mapping[str, str] | None:
        return github_headers(self._settings)

    async def get_doc(self, match: re.Match[str], saved_etag: str) -> DocumentationRecord:
        import_path = match.group(0)
        url = f"{self._settings.standard_url}{import_path}?ref={self._settings.standard_ref}"
        data, etag = await self._fetcher.get_bytes_none_match(
            url, saved_etag, headers=self._headers()
        )

        entries = decode_json(data, "api.github.com")
        if not isinstance(entries, list):
            # The path names a file, not a package directory.
            raise PackageNotFoundError(f"{import_path} is not a directory")
        files = [
            CandidateFile(
                name=entry["name"],
                browse_url=entry.get("html_url") or "",
                raw_url=entry.get("download_url"),
            )
            for entry in entries
            if entry.get("type") == "file" and is_doc_file(entry.get("name", ""))
        ]

        await self._fetcher.fetch_files(files, headers=self._headers())

        return self._builder.build(
            import_path, "", "Go", "https://go.dev/", etag, "#L%d", files
        )
