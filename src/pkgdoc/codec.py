"""Serialization of records for both cache tiers.

Every blob starts with a ``PACKAGE_VERSION`` header line followed by JSON.
A blob written under another version, or one that no longer validates,
decodes to None and is treated exactly like a missing entry.
"""

from __future__ import annotations

import structlog
from pydantic import TypeAdapter, ValidationError

from pkgdoc.errors import BuildError
from pkgdoc.models.doc import PACKAGE_VERSION, DocumentationRecord
from pkgdoc.models.index import IndexRecord

log = structlog.get_logger()

# Upper bound for a stored documentation blob.
MAX_DOC_SIZE = 800_000

TRUNCATED_MESSAGE = "Documentation truncated."

_HEADER = PACKAGE_VERSION.encode() + b"\n"
_package_list = TypeAdapter(list[IndexRecord])


def _payload(blob: bytes, kind: str) -> bytes | None:
    version, sep, payload = blob.partition(b"\n")
    if not sep or version != PACKAGE_VERSION.encode():
        log.info("codec_version_mismatch", kind=kind, version=version[:16].decode(errors="replace"))
        return None
    return payload


def encode_doc(doc: DocumentationRecord) -> bytes:
    return _HEADER + doc.model_dump_json().encode()


def decode_doc(blob: bytes) -> DocumentationRecord | None:
    payload = _payload(blob, "doc")
    if payload is None:
        return None
    try:
        return DocumentationRecord.model_validate_json(payload)
    except ValidationError:
        log.warning("codec_decode_error", kind="doc", exc_info=True)
        return None


def encode_bounded(doc: DocumentationRecord) -> tuple[bytes, DocumentationRecord]:
    """Encode ``doc`` for durable storage, truncating it if it is too large.

    Truncation drops every declaration list and records the fact in
    ``errors``. Returns the blob together with the record it encodes.
    Raises BuildError if even the truncated record does not fit.
    """
    blob = encode_doc(doc)
    if len(blob) <= MAX_DOC_SIZE:
        return blob, doc

    truncated = doc.model_copy(
        update={
            "consts": [],
            "vars": [],
            "funcs": [],
            "types": [],
            "errors": [*doc.errors, TRUNCATED_MESSAGE],
        }
    )
    blob = encode_doc(truncated)
    log.warning(
        "doc_truncated",
        import_path=doc.import_path,
        size=len(blob),
        limit=MAX_DOC_SIZE,
    )
    if len(blob) > MAX_DOC_SIZE:
        raise BuildError(
            f"Documentation for {doc.import_path} exceeds {MAX_DOC_SIZE} bytes after truncation"
        )
    return blob, truncated


def encode_index(record: IndexRecord) -> bytes:
    return _HEADER + record.model_dump_json().encode()


def decode_index(blob: bytes) -> IndexRecord | None:
    payload = _payload(blob, "index")
    if payload is None:
        return None
    try:
        return IndexRecord.model_validate_json(payload)
    except ValidationError:
        log.warning("codec_decode_error", kind="index", exc_info=True)
        return None


def encode_package_list(records: list[IndexRecord]) -> bytes:
    return _HEADER + _package_list.dump_json(records)


def decode_package_list(blob: bytes) -> list[IndexRecord] | None:
    payload = _payload(blob, "package_list")
    if payload is None:
        return None
    try:
        return _package_list.validate_json(payload)
    except ValidationError:
        log.warning("codec_decode_error", kind="package_list", exc_info=True)
        return None
