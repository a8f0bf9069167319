"""Projection of a DocumentationRecord onto its package index entry.

Visibility is decided by an ordered rule list; the first rule that applies
wins. Each rule also contributes the index tokens a visible package is
listed under.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from pkgdoc.models.doc import DocumentationRecord
from pkgdoc.models.index import IndexRecord

LEGACY_MIRROR_PREFIX = "code.google.com/p/go/"


@dataclass(frozen=True)
class VisibilityRule:
    """``apply`` returns ``(hide, extra_tokens)`` for records ``applies`` accepts."""

    name: str
    applies: Callable[[DocumentationRecord], bool]
    apply: Callable[[DocumentationRecord], tuple[bool, list[str]]]


def _last_segment(import_path: str) -> str:
    return import_path.lower().rsplit("/", 1)[-1]


def _standard(doc: DocumentationRecord) -> tuple[bool, list[str]]:
    return True, [doc.name.lower()]


def _command(doc: DocumentationRecord) -> tuple[bool, list[str]]:
    # A command is listed only if its doc has more than one sentence.
    i = doc.doc.find(".")
    hide = not doc.synopsis or i < 0 or i == len(doc.doc) - 1
    return hide, [] if hide else [_last_segment(doc.import_path)]


def _library(doc: DocumentationRecord) -> tuple[bool, list[str]]:
    if not (doc.consts or doc.funcs or doc.types or doc.vars):
        return True, []
    tokens = [_last_segment(doc.import_path)]
    name = doc.name.lower()
    if name != tokens[-1]:
        tokens.append(name)
    return False, tokens


RULES: list[VisibilityRule] = [
    VisibilityRule(
        "legacy_mirror",
        lambda doc: doc.import_path.startswith(LEGACY_MIRROR_PREFIX),
        lambda doc: (True, []),
    ),
    VisibilityRule("standard", lambda doc: doc.project_root == "", _standard),
    VisibilityRule("command", lambda doc: doc.is_cmd, _command),
    VisibilityRule("library", lambda doc: True, _library),
]


def project(doc: DocumentationRecord | None) -> IndexRecord | None:
    """Derive the index entry for ``doc``; None when there is no package."""
    if doc is None or not doc.name:
        return None

    tokens = [doc.project_root.lower()] if doc.project_root else []
    for rule in RULES:
        if rule.applies(doc):
            hide, extra = rule.apply(doc)
            break
    else:  # pragma: no cover - the library rule always applies
        hide, extra = True, []

    return IndexRecord(
        import_path=doc.import_path,
        synopsis=doc.synopsis,
        package_name=doc.name,
        is_cmd=doc.is_cmd,
        hide=hide,
        index_tokens=tokens + extra,
    )
