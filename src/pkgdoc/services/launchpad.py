from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from pkgdoc.errors import PackageNotFoundError
from pkgdoc.models.doc import CandidateFile
from pkgdoc.services.archive import iter_tarball, read_member
from pkgdoc.services.base import SEGMENT, Service, is_doc_file, normalize_dir, split_dir

if TYPE_CHECKING:
    from pkgdoc.models.doc import DocumentationRecord

log = structlog.get_logger()


class LaunchpadService(Service):
    """Bazaar branch tarballs from Launchpad.

    ``launchpad.net/{a}/{b}/...`` is ambiguous: ``b`` is either a series of
    project ``a`` or a directory in its trunk. The series branch is probed
    first; a 404 means ``b`` is a directory.
    """

    prefix = "launchpad.net/"
    pattern = re.compile(
        rf"launchpad\.net/(({SEGMENT})(/{SEGMENT})?|~{SEGMENT}/(\+junk|{SEGMENT})/{SEGMENT})"
        r"(/[a-z0-9A-Z_.\-/]+)*"
    )

    async def get_doc(self, match: re.Match[str], saved_etag: str) -> DocumentationRecord:
        repo = match.group(1)
        project = match.group(2) or ""
        second = match.group(3) or ""
        subdir = match.group(5) or ""

        if project and second:
            try:
                await self._fetcher.get_bytes(
                    f"https://code.launchpad.net/{project}{second}/.bzr/branch-format"
                )
            except PackageNotFoundError:
                # launchpad.net/{project}/{dir}
                repo = project
                subdir = second + subdir
            log.debug("launchpad_branch_probed", repo=repo, subdir=subdir)

        project_name = project or repo
        directory = normalize_dir(subdir)

        data, etag = await self._fetcher.get_bytes_compare(
            f"https://bazaar.launchpad.net/+branch/{repo}/tarball", saved_etag
        )

        in_tree = False
        prefix = f"+branch/{repo}/"
        files: list[CandidateFile] = []
        for member_name, archive, member in iter_tarball(data):
            if not member_name.startswith(prefix):
                continue
            path = member_name[len(prefix) :]
            if not is_doc_file(path) or not path.startswith(directory):
                continue
            in_tree = True
            path_dir, name = split_dir(path)
            if path_dir == directory:
                files.append(
                    CandidateFile(
                        name=name,
                        browse_url=f"http://bazaar.launchpad.net/+branch/{repo}/view/head:/{path}",
                        data=read_member(archive, member),
                    )
                )

        if not in_tree:
            raise PackageNotFoundError(f"No Go files in {match.group(0)}")

        return self._builder.build(
            match.group(0),
            f"launchpad.net/{project_name}",
            project_name,
            f"https://launchpad.net/{project_name}/",
            etag,
            "#L%d",
            files,
        )
