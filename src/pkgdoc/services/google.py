from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pkgdoc.errors import PackageNotFoundError
from pkgdoc.models.doc import CandidateFile
from pkgdoc.services.base import Service, is_doc_file, normalize_dir

if TYPE_CHECKING:
    from pkgdoc.models.doc import DocumentationRecord

_REPO_RE = re.compile(rb'id="checkoutcmd">(hg|git|svn)')
_FILE_RE = re.compile(rb'<li><a href="([^"/]+)"')


class GoogleCodeService(Service):
    """Google Code project hosting, scraped from HTML.

    The checkout page names the VCS; the VCS browser's directory listing
    names the files. The ETag is the listing's content hash.
    """

    prefix = "code.google.com/"
    pattern = re.compile(r"code\.google\.com/p/([a-z0-9\-]+)(\.[a-z0-9\-]+)?(/[a-z0-9A-Z_.\-/]+)?")

    async def get_doc(self, match: re.Match[str], saved_etag: str) -> DocumentationRecord:
        repo = match.group(1)
        subrepo = match.group(2) or ""
        directory = normalize_dir(match.group(3))
        # "host.subrepo" form: the subrepository is a host name prefix.
        subrepo_host = subrepo[1:] + "." if subrepo else ""

        page = await self._fetcher.get_bytes(f"http://code.google.com/p/{repo}/source/checkout")
        vcs_match = _REPO_RE.search(page)
        if vcs_match is None:
            raise PackageNotFoundError(f"No repository found for code.google.com/p/{repo}")
        vcs = vcs_match.group(1).decode()

        listing, etag = await self._fetcher.get_bytes_compare(
            f"http://{subrepo_host}{repo}.googlecode.com/{vcs}/{directory}", saved_etag
        )

        query = f"?repo={subrepo[1:]}" if subrepo else ""
        files: list[CandidateFile] = []
        for file_match in _FILE_RE.finditer(listing):
            name = file_match.group(1).decode()
            if is_doc_file(name):
                files.append(
                    CandidateFile(
                        name=name,
                        browse_url=(
                            f"http://code.google.com/p/{repo}/source/browse/{directory}{name}{query}"
                        ),
                        raw_url=f"http://{subrepo_host}{repo}.googlecode.com/{vcs}/{directory}{name}",
                    )
                )

        await self._fetcher.fetch_files(files)

        return self._builder.build(
            match.group(0),
            f"code.google.com/p/{repo}{subrepo}",
            repo + subrepo,
            f"https://code.google.com/p/{repo}/",
            etag,
            "#%d",
            files,
        )
