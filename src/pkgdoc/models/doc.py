from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

# Bump whenever the serialized DocumentationRecord layout changes. The tag is
# embedded in stored blobs, in ephemeral cache keys and as an ETag prefix, so
# a bump makes every previously cached record read as a miss.
PACKAGE_VERSION = "1"


@dataclass
class CandidateFile:
    """A source file selected by a service adapter.

    Either ``data`` is filled in directly (archives, inline listings) or
    ``raw_url`` points at the body, which ``Fetcher.fetch_files`` downloads
    into ``data``.
    """

    name: str
    browse_url: str
    raw_url: str | None = None
    data: bytes | None = None


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class SourceFileRef(_Record):
    name: str
    browse_url: str


class ValueDoc(_Record):
    """A const or var declaration (or declaration group)."""

    decl: str
    doc: str = ""
    url: str = ""


class FuncDoc(_Record):
    name: str
    decl: str
    doc: str = ""
    url: str = ""


class TypeDoc(_Record):
    name: str
    decl: str
    doc: str = ""
    url: str = ""
    funcs: list[FuncDoc] = []
    methods: list[FuncDoc] = []


class DocumentationRecord(_Record):
    """Documentation for one package, built from its source files."""

    import_path: str
    project_root: str = ""
    project_name: str = ""
    project_url: str = ""
    etag: str = ""
    updated: datetime = Field(default_factory=lambda: datetime.now(UTC))

    name: str = ""
    is_cmd: bool = False
    synopsis: str = ""
    doc: str = ""
    errors: list[str] = []

    files: list[SourceFileRef] = []
    imports: list[str] = []
    test_imports: list[str] = []

    consts: list[ValueDoc] = []
    vars: list[ValueDoc] = []
    funcs: list[FuncDoc] = []
    types: list[TypeDoc] = []
