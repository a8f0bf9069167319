"""Common base for hosting-service adapters."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from pkgdoc.errors import TransportError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pkgdoc.config import ServiceSettings
    from pkgdoc.models.doc import DocumentationRecord
    from pkgdoc.protocols import DocumentationBuilder, FetcherProtocol

# Path segment character class shared by the service patterns.
SEGMENT = r"[a-z0-9A-Z_.\-]+"


def normalize_dir(subdir: str | None) -> str:
    """``/a/b`` → ``a/b/``; an empty or missing directory stays empty."""
    if subdir and subdir[0] == "/":
        return subdir[1:] + "/"
    return subdir or ""


def is_doc_file(path: str) -> bool:
    """Return True if the file at ``path`` belongs in the documentation."""
    name = path.rsplit("/", 1)[-1]
    return name.endswith(".go") and name[0] not in "._"


def split_dir(path: str) -> tuple[str, str]:
    """Split a slash path into directory (with trailing slash) and file name."""
    i = path.rfind("/")
    return path[: i + 1], path[i + 1 :]


def github_headers(settings: ServiceSettings) -> Mapping[str, str] | None:
    """Authorization header for api.github.com when a token is configured."""
    if settings.github_token:
        return {"Authorization": f"token {settings.github_token}"}
    return None


def decode_json(
data: bytes, host: str) -> Any:
    """Decode a JSON API response; garbage from the host is a transport failure."""
    try:
        return json.loads(data)
    except ValueError as exc:
        raise TransportError(host, f"Malformed response from {host}: {exc}") from exc


class Service(ABC):
    """A hosting service recognised by import-path prefix and shape.

    A path that starts with ``prefix`` but does not match ``pattern`` is
    rejected outright by the resolver: the host is known, the path is not.
    """

    prefix: ClassVar[str]
    pattern: ClassVar[re.Pattern[str]]

    def __init__(
        self,
        fetcher: FetcherProtocol,
        builder: DocumentationBuilder,
        settings: ServiceSettings,
    ) -> None:
        self._fetcher = fetcher
        self._builder = builder
        self._settings = settings

    @property
    def name(self) -> str:
        return type(self).__name__

    def match(self, import_path: str) -> re.Match[str] | None:
        return self.pattern.fullmatch(import_path)

    @abstractmethod
    async def get_doc(self, match: re.Match[str], saved_etag: str) -> DocumentationRecord:
        """Fetch and build documentation for a matched import path.

        Raises PackageNotModifiedError when the service can tell that nothing
        changed since ``saved_etag``, PackageNotFoundError when the package
        does not exist, TransportError on network failures.
        """

    def _headers(self) -> Mapping[str, str] | None:
        return None
