from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pkgdoc.models.doc import CandidateFile
from pkgdoc.services.archive import iter_tarball, read_member
from pkgdoc.services.base import Service, is_doc_file

if TYPE_CHECKING:
    from pkgdoc.models.doc import DocumentationRecord


class ProxyService(Service):
    """Last resort for discovered paths no static service recognises.

    A go-get proxy fetches the package with the real VCS tools and serves the
    result as a tarball. Project fields are filled in by the resolver from
    the discovery metadata.
    """

    prefix = ""
    pattern = re.compile(r".+")

    async def get_doc(self, match: re.Match[str], saved_etag: str) -> DocumentationRecord:
        import_path = match.group(0)
        data, etag = await self._fetcher.get_bytes_compare(
            f"{self._settings.proxy_url}{import_path}", saved_etag
        )

        files = [
            CandidateFile(
                name=name,
                browse_url=f"http://gosourcefile.appspot.com/{import_path}/{name}",
                data=read_member(archive, member),
            )
            for name, archive, member in iter_tarball(data)
            if is_doc_file(name)
        ]

        return self._builder.build(import_path, import_path, "", "", etag, "#L%d", files)
