from __future__ import annotations

from pkgdoc.models.cache import TOMBSTONE, CacheItem, CasResult
from pkgdoc.models.doc import (
    PACKAGE_VERSION,
    CandidateFile,
    DocumentationRecord,
    FuncDoc,
    SourceFileRef,
    TypeDoc,
    ValueDoc,
)
from pkgdoc.models.index import IndexRecord

__all__ = [
    # doc
    "PACKAGE_VERSION",
    "CandidateFile",
    "DocumentationRecord",
    "SourceFileRef",
    "ValueDoc",
    "FuncDoc",
    "TypeDoc",
    # index
    "IndexRecord",
    # cache
    "TOMBSTONE",
    "CacheItem",
    "CasResult",
]
