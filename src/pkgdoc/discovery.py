"""Dynamic discovery through ``<meta name="go-import">`` declarations.

For an import path no static service recognises, the page at
``https://{import_path}?go-get=1`` declares the repository root and where the
repository lives::

    <meta name="go-import" content="example.org/pkg git https://github.com/org/pkg">
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from bs4 import BeautifulSoup

from pkgdoc.errors import PackageNotFoundError, TransportError

if TYPE_CHECKING:
    from pkgdoc.protocols import FetcherProtocol

log = structlog.get_logger()


@dataclass(frozen=True)
class MetaImport:
    project_root: str
    project_name: str
    project_url: str
    repo_root: str


async def get_meta(fetcher: FetcherProtocol, import_path: str) -> MetaImport:
    """Fetch and parse the go-import declaration for ``import_path``.

    HTTPS is tried first; any failure or non-200 response falls back to
    plain HTTP, whose response is parsed regardless of status.
    """
    uri = import_path if "/" in import_path else import_path + "/"
    uri += "?go-get=1"

    scheme = "https"
    response = None
    try:
        response = await fetcher.get_response(f"https://{uri}")
    except TransportError:
        log.debug("discovery_https_failed", import_path=import_path)

    if response is None or response.status_code != 200:
        scheme = "http"
        try:
            response = await fetcher.get_response(f"http://{uri}")
        except TransportError as exc:
            raise TransportError(import_path.split("/", 1)[0], exc.message) from exc

    return parse_meta(response.text, import_path, scheme)


def parse_meta(html: str, import_path: str, scheme: str = "https") -> MetaImport:
    """Return the single go-import declaration in ``html`` that covers ``import_path``.

    Only declarations in the document head count, and only those whose root
    is ``import_path`` or a path prefix of it. Two matching declarations
    report the package as not found.
    """
    soup = BeautifulSoup(html, "html.parser")
    scope = soup.head if soup.head is not None else soup
    found: MetaImport | None = None
    for meta in scope.find_all("meta"):
        if meta.find_parent("body") is not None or meta.get("name") != "go-import":
            continue
        fields = str(meta.get("content") or "").split()
        if len(fields) != 3:
            continue
        root = fields[0]
        if import_path != root and not import_path.startswith(root + "/"):
            continue
        if found is not None:
            raise PackageNotFoundError(f"Ambiguous go-import declarations for {import_path}")
        found = MetaImport(
            project_root=root,
            project_name=root.rsplit("/", 1)[-1],
            project_url=f"{scheme}://{root}",
            repo_root=fields[2],
        )

    if found is None:
        raise PackageNotFoundError(f"No go-import declaration for {import_path}")
    return found
