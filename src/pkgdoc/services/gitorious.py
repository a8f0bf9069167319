from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pkgdoc.errors import PackageNotFoundError
from pkgdoc.models.doc import CandidateFile
from pkgdoc.services.archive import iter_tarball, read_member
from pkgdoc.services.base import SEGMENT, Service, is_doc_file, normalize_dir

if TYPE_CHECKING:
    from pkgdoc.models.doc import DocumentationRecord


class GitoriousService(Service):
    """Master tarball download; the ETag is the tarball's content hash."""

    prefix = "git.gitorious.org/"
    pattern = re.compile(rf"git\.gitorious\.org/({SEGMENT})/({SEGMENT})\.git(/[a-z0-9A-Z_.\-/]*)?")

    async def get_doc(self, match: re.Match[str], saved_etag: str) -> DocumentationRecord:
        project, repo = match.group(1), match.group(2)
        directory = normalize_dir(match.group(3))

        data, etag = await self._fetcher.get_bytes_compare(
            f"https://gitorious.org/{project}/{repo}/archive-tarball/master", saved_etag
        )

        in_tree = False
        prefix = f"{project}-{repo}/{directory}"
        files: list[CandidateFile] = []
        for member_name, archive, member in iter_tarball(data):
            if not member_name.startswith(prefix):
                continue
            name = member_name[len(prefix) :]
            if not is_doc_file(name):
                continue
            in_tree = True
            if "/" not in name:
                files.append(
                    CandidateFile(
                        name=name,
                        browse_url=(
                            f"https://gitorious.org/{project}/{repo}/blobs/master/{directory}{name}"
                        ),
                        data=read_member(archive, member),
                    )
                )

        if not in_tree:
            raise PackageNotFoundError(f"No Go files in {match.group(0)}")

        return self._builder.build(
            match.group(0),
            f"git.gitorious.org/{project}/{repo}.git",
            repo,
            f"https://gitorious.org/{project}/{repo}/",
            etag,
            "#line%d",
            files,
        )
