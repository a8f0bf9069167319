from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from pkgdoc.errors import PackageNotFoundError, PackageNotModifiedError
from pkgdoc.models.doc import CandidateFile
from pkgdoc.services.base import (
    SEGMENT,
    Service,
    decode_json,
    github_headers,
    is_doc_file,
    normalize_dir,
    split_dir,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pkgdoc.models.doc import DocumentationRecord

log = structlog.get_logger()

_API = "https://api.github.com/repos/"
_RAW_ACCEPT = "application/vnd.github.raw"


class GithubService(Service):
    """Git tree walk through the GitHub REST API.

    The ETag is the commit SHA of the documented ref, so an unchanged
    repository is detected with a single request.
    """

    prefix = "github.com/"
    pattern = re.compile(rf"github\.com/({SEGMENT})/({SEGMENT})(/[a-z0-9A-Z_.\-/]*)?")

    def _headers(self) -> Mapping[str, str] | None:
        return github_headers(self._settings)

    async def get_doc(self, match: re.Match[str], saved_etag: str) -> DocumentationRecord:
        user, repo = match.group(1), match.group(2)
        user_repo = f"{user}/{repo}"
        directory = normalize_dir(match.group(3))

        refs = decode_json(
            await self._fetcher.get_bytes(f"{_API}{user_repo}/git/refs", headers=self._headers()),
            "api.github.com",
        )
        tree_name, etag = _pick_tree(refs if isinstance(refs, list) else [])
        if etag and etag == saved_etag:
            raise PackageNotModifiedError(f"github.com/{user_repo} at {etag}")

        tree = decode_json(
            await self._fetcher.get_bytes(
                f"{_API}{user_repo}/git/trees/{tree_name}?recursive=1", headers=self._headers()
            ),
            "api.github.com",
        )

        in_tree = False
        files: list[CandidateFile] = []
        for node in tree.get("tree", []):
            path = node.get("path", "")
            if node.get("type") != "blob" or not is_doc_file(path) or not path.startswith(directory):
                continue
            in_tree = True
            node_dir, name = split_dir(path)
            if node_dir == directory:
                files.append(
                    CandidateFile(
                        name=name,
                        browse_url=f"https://github.com/{user_repo}/blob/{tree_name}/{path}",
                        raw_url=node.get("url"),
                    )
                )

        if not in_tree:
            raise PackageNotFoundError(f"No Go files in {match.group(0)}")

        headers = dict(self._headers() or {})
        headers["Accept"] = _RAW_ACCEPT
        await self._fetcher.fetch_files(files, headers=headers)

        log.debug("github_tree_resolved", repo=user_repo, tree=tree_name, files=len(files))
        return self._builder.build(
            match.group(0),
            f"github.com/{user_repo}",
            repo,
            f"https://github.com/{user_repo}/",
            etag,
            "#L%d",
            files,
        )


def _pick_tree(refs: list[dict]) -> tuple[str, str]:
    """Choose the tree to document and its ETag.

    A ``go1`` branch or tag wins outright; otherwise master, then main.
    """
    etag = ""
    tree_name = "master"
    for ref in refs:
        name = ref.get("ref", "")
        sha = ref.get("object", {}).get("sha", "")
        if name in ("refs/heads/go1", "refs/tags/go1"):
            return "go1", sha + name[len("refs") :]
        if name == "refs/heads/master":
            tree_name, etag = "master", sha
        elif name == "refs/heads/main" and not etag:
            tree_name, etag = "main", sha
    return tree_name, etag
