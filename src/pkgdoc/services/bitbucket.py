from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pkgdoc.errors import PackageNotFoundError
from pkgdoc.models.doc import CandidateFile
from pkgdoc.services.base import SEGMENT, Service, decode_json, is_doc_file, normalize_dir, split_dir

if TYPE_CHECKING:
    from pkgdoc.models.doc import DocumentationRecord

_API = "https://api.bitbucket.org/1.0/repositories/"


class BitbucketService(Service):
    """Directory listing through the Bitbucket REST API.

    Mercurial repositories publish their head as tag ``tip``, git repositories
    as ``master``; ``tip`` is tried first. The ETag is the listing's content
    hash.
    """

    prefix = "bitbucket.org/"
    pattern = re.compile(rf"bitbucket\.org/({SEGMENT})/({SEGMENT})(/[a-z0-9A-Z_.\-/]*)?")

    async def get_doc(self, match: re.Match[str], saved_etag: str) -> DocumentationRecord:
        user, repo = match.group(1), match.group(2)
        user_repo = f"{user}/{repo}"
        directory = normalize_dir(match.group(3))

        tag = "tip"
        try:
            data, etag = await self._fetcher.get_bytes_compare(
                f"{_API}{user_repo}/src/{tag}/{directory}", saved_etag
            )
        except PackageNotFoundError:
            tag = "master"
            data, etag = await self._fetcher.get_bytes_compare(
                f"{_API}{user_repo}/src/{tag}/{directory}", saved_etag
            )

        listing = decode_json(data, "api.bitbucket.org")
        files = [
            CandidateFile(
                name=split_dir(path)[1],
                browse_url=f"https://bitbucket.org/{user_repo}/src/{tag}/{path}",
                raw_url=f"{_API}{user_repo}/raw/{tag}/{path}",
            )
            for path in (f.get("path", "") for f in listing.get("files", []))
            if is_doc_file(path)
        ]

        await self._fetcher.fetch_files(files)

        return self._builder.build(
            match.group(0),
            f"bitbucket.org/{user_repo}",
            repo,
            f"https://bitbucket.org/{user_repo}/",
            etag,
            "#cl-%d",
            files,
        )
