"""Default documentation builder for Go source files.

Line-oriented extraction that relies on the source being gofmt-formatted:
top-level declarations start in column 0, and brace-delimited bodies close
with a ``}`` in column 0. Exported constants, variables, functions and
types are collected together with the comment block directly above them.
Constructors (functions whose first result is a package type) and methods
are grouped under their type.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import TYPE_CHECKING

import structlog

from pkgdoc.errors import BuildError
from pkgdoc.models.doc import (
    DocumentationRecord,
    FuncDoc,
    SourceFileRef,
    TypeDoc,
    ValueDoc,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pkgdoc.models.doc import CandidateFile

log = structlog.get_logger()

_PACKAGE_RE = re.compile(r"^package\s+([A-Za-z_]\w*)")
_IMPORT_SPEC_RE = re.compile(r'^\s*(?:([A-Za-z_.]\w*)\s+)?"([^"]+)"')
_FUNC_RE = re.compile(r"^func\s+(?:\(([^)]*)\)\s*)?([A-Za-z_]\w*)")
_TYPE_RE = re.compile(r"^type\s+([A-Za-z_]\w*)")
_VALUE_RE = re.compile(r"^(const|var)\s+([A-Za-z_]\w*)")
_GROUP_RE = re.compile(r"^(const|var|type|import)\s*\($")
_GROUP_NAME_RE = re.compile(r"^\s+([A-Za-z_]\w*)")
_RECEIVER_RE = re.compile(r"\*?\s*([A-Za-z_]\w*)\s*(?:\[.*\])?\s*$")
_RESULT_RE = re.compile(r"\)\s*\(?\s*\*?([A-Za-z_]\w*)[\s,){]*")
_SELECTOR_RE = re.compile(r"\b([A-Za-z_]\w*)\.([A-Z]\w*)\b")
_SENTENCE_RE = re.compile(r"^(.*?[^A-Z]\.)(?:\s|$)")

# Exports removed before Go 1. Source still using them has not been updated.
DEPRECATED_EXPORTS: dict[str, frozenset[str]] = {
    "bytes": frozenset({"Add"}),
    "crypto/aes": frozenset({"Cipher"}),
    "crypto/hmac": frozenset({"NewSHA1", "NewSHA256"}),
    "crypto/rand": frozenset({"Seed"}),
    "encoding/json": frozenset({"MarshalForHTML"}),
    "encoding/xml": frozenset({"Marshaler", "NewParser", "Parser"}),
    "html": frozenset({"NewTokenizer", "Parse"}),
    "image": frozenset({"Color", "NRGBAColor", "RGBAColor"}),
    "io": frozenset({"Copyn"}),
    "log": frozenset({"Exitf"}),
    "math": frozenset({"Fabs", "Fmax", "Fmod"}),
    "os": frozenset(
        {"Envs", "Error", "Getenverror", "NewError", "Time", "UnixSignal", "Wait"}
    ),
    "reflect": frozenset({"MapValue", "Typeof"}),
    "runtime": frozenset({"UpdateMemStats"}),
    "strconv": frozenset(
        {
            "Atob", "Atof32", "Atof64", "AtofN", "Atoi64", "Atoui", "Atoui64",
            "Btoui64", "Ftoa64", "Itoa64", "Uitoa", "Uitoa64",
        }
    ),
    "time": frozenset(
        {
            "LocalTime", "Nanoseconds", "NanosecondsToLocalTime", "Seconds",
            "SecondsToLocalTime", "SecondsToUTC",
        }
    ),
    "unicode/utf8": frozenset({"NewString"}),
}


def is_exported(name: str) -> bool:
    return name[:1].isupper()


def synopsis(doc: str) -> str:
    """First sentence of a package comment, whitespace collapsed.

    Comments that open with a copyright or authorship notice have no
    synopsis.
    """
    text = " ".join(doc.split())
    if text.lower().startswith(("copyright", "all rights", "author")):
        return ""
    match = _SENTENCE_RE.match(text)
    return match.group(1) if match else text


def _comment_text(lines: list[str]) -> str:
    out = []
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("//"):
            stripped = stripped[2:]
        else:
            stripped = stripped.removeprefix("/*").removesuffix("*/")
        out.append(stripped[1:] if stripped.startswith(" ") else stripped)
    return "\n".join(out).strip()


class _ParsedFile:
    """Top-level declarations of one source file."""

    def __init__(self, name: str, browse_url: str, text: str, line_fmt: str) -> None:
        self.name = name
        self.package = ""
        self.doc = ""
        self.imports: dict[str, str] = {}
        self.consts: list[ValueDoc] = []
        self.vars: list[ValueDoc] = []
        self.funcs: list[tuple[str, str, FuncDoc]] = []
        self.types: list[TypeDoc] = []
        self._browse_url = browse_url
        self._line_fmt = line_fmt
        self._lines = text.splitlines()
        self._parse()

    def _url(self, lineno: int) -> str:
        return self._browse_url + self._line_fmt % lineno

    def _block(self, start: int) -> int:
        """Index of the line closing the brace block opened at ``start``."""
        i = start
        while i < len(self._lines) and not self._lines[i].startswith("}"):
            i += 1
        return i

    def _group(self, start: int) -> int:
        i = start
        while i < len(self._lines) and not self._lines[i].startswith(")"):
            i += 1
        return i

    def _parse(self) -> None:
        lines = self._lines
        comment: list[str] = []
        i = 0
        while i < len(lines):
            line = lines[i]
            lineno = i + 1

            if not line.strip():
                comment = []
                i += 1
                continue
            if line.startswith("//"):
                comment.append(line)
                i += 1
                continue
            if line.startswith("/*"):
                end = i
                while end < len(lines) and "*/" not in lines[end]:
                    end += 1
                comment = lines[i : end + 1]
                i = end + 1
                continue

            doc = _comment_text(comment)
            comment = []

            if match := _PACKAGE_RE.match(line):
                self.package = match.group(1)
                self.doc = doc
                i += 1
                continue

            if match := _GROUP_RE.match(line.rstrip()):
                end = self._group(i + 1)
                self._add_group(match.group(1), i, end, doc)
                i = end + 1
                continue

            if line.startswith("import"):
                spec = _IMPORT_SPEC_RE.match(line[len("import") :])
                if spec:
                    self._add_import(spec.group(1), spec.group(2))
                i += 1
                continue

            end = self._block(i) if line.rstrip().endswith("{") else i
            decl = "\n".join(lines[i : end + 1])

            if match := _FUNC_RE.match(line):
                receiver, name = match.group(1), match.group(2)
                if is_exported(name):
                    signature = line.rstrip().removesuffix("{").rstrip()
                    recv_type = ""
                    if receiver is not None:
                        recv = _RECEIVER_RE.search(receiver)
                        recv_type = recv.group(1) if recv else ""
                    result = _RESULT_RE.search(signature, signature.find("(", len("func")))
                    self.funcs.append(
                        (
                            recv_type,
                            result.group(1) if result and receiver is None else "",
                            FuncDoc(name=name, decl=signature, doc=doc, url=self._url(lineno)),
                        )
                    )
            elif match := _TYPE_RE.match(line):
                if is_exported(match.group(1)):
                    self.types.append(
                        TypeDoc(name=match.group(1), decl=decl, doc=doc, url=self._url(lineno))
                    )
            elif match := _VALUE_RE.match(line):
                if is_exported(match.group(2)):
                    target = self.consts if match.group(1) == "const" else self.vars
                    target.append(ValueDoc(decl=decl, doc=doc, url=self._url(lineno)))

            i = end + 1

    def _add_import(self, alias: str | None, path: str) -> None:
        if alias in ("_", "."):
            self.imports.setdefault(path, "")
        else:
            self.imports[path] = alias or path.rsplit("/", 1)[-1]

    def _add_group(self, keyword: str, start: int, end: int, doc: str) -> None:
        body = self._lines[start + 1 : end]
        if keyword == "import":
            for line in body:
                spec = _IMPORT_SPEC_RE.match(line)
                if spec:
                    self._add_import(spec.group(1), spec.group(2))
            return

        url = self._url(start + 1)
        names = [m.group(1) for line in body if (m := _GROUP_NAME_RE.match(line))]
        if keyword == "type":
            for line in body:
                m = _GROUP_NAME_RE.match(line)
                if m and is_exported(m.group(1)) and line.startswith("\t") and not line.startswith("\t\t"):
                    self.types.append(
                        TypeDoc(name=m.group(1), decl="type " + line.strip(), doc=doc, url=url)
                    )
            return
        if any(is_exported(name) for name in names):
            decl = "\n".join(self._lines[start : end + 1])
            target = self.consts if keyword == "const" else self.vars
            target.append(ValueDoc(decl=decl, doc=doc, url=url))

    def deprecated_uses(self) -> dict[str, int]:
        """Messages for selectors that reference pre-Go 1 exports, with line numbers."""
        found: dict[str, int] = {}
        local_names = {name: path for path, name in self.imports.items() if name}
        for lineno, line in enumerate(self._lines, start=1):
            code = line.split("//", 1)[0]
            for m in _SELECTOR_RE.finditer(code):
                path = local_names.get(m.group(1))
                if path and m.group(2) in DEPRECATED_EXPORTS.get(path, ()):
                    found.setdefault(f'"{path}".{m.group(2)} not found', lineno)
        return found


class SourceBuilder:
    """DocumentationBuilder implementation backed by ``_ParsedFile``."""

    def build(
        self,
        import_path: str,
        project_root: str,
        project_name: str,
        project_url: str,
        etag: str,
        line_fmt: str,
        files: Sequence[CandidateFile],
    ) -> DocumentationRecord:
        parsed: list[_ParsedFile] = []
        test_imports: set[str] = set()
        errors: list[str] = []

        for f in sorted(files, key=lambda f: f.name):
            if f.data is None:
                raise BuildError(f"No content for {f.name}")
            try:
                text = f.data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise BuildError(f"{f.name} is not valid UTF-8") from exc

            pf = _ParsedFile(f.name, f.browse_url, text, line_fmt)
            if not pf.package:
                raise BuildError(f"{f.name}: expected package clause")
            if f.name.endswith("_test.go"):
                test_imports.update(pf.imports)
            else:
                parsed.append(pf)

        names = Counter(pf.package for pf in parsed)
        name = names.most_common(1)[0][0] if names else ""
        if len(names) > 1:
            errors.append(
                f"Multiple packages in directory: {', '.join(sorted(names))}"
            )
        package_files = [pf for pf in parsed if pf.package == name]

        for pf in package_files:
            for message, lineno in sorted(pf.deprecated_uses().items()):
                errors.append(f"{message} ({pf.name}:{lineno})")

        doc = next((pf.doc for pf in package_files if pf.doc), "")
        consts = [c for pf in package_files for c in pf.consts]
        vars_ = [v for pf in package_files for v in pf.vars]
        types, funcs = self._group_funcs(package_files)

        log.debug(
            "package_built",
            import_path=import_path,
            name=name,
            files=len(files),
            errors=len(errors),
        )
        return DocumentationRecord(
            import_path=import_path,
            project_root=project_root,
            project_name=project_name,
            project_url=project_url,
            etag=etag,
            name=name,
            is_cmd=name == "main",
            synopsis=synopsis(doc),
            doc=doc,
            errors=errors,
            files=[SourceFileRef(name=f.name, browse_url=f.browse_url) for f in files],
            imports=sorted({path for pf in package_files for path in pf.imports}),
            test_imports=sorted(test_imports),
            consts=consts,
            vars=vars_,
            funcs=funcs,
            types=types,
        )

    @staticmethod
    def _group_funcs(files: list[_ParsedFile]) -> tuple[list[TypeDoc], list[FuncDoc]]:
        """Attach methods and constructors to their types.

        Methods on unexported types are dropped; constructors of unexported
        types stay top-level functions.
        """
        types = {t.name: t for pf in files for t in pf.types}
        methods: dict[str, list[FuncDoc]] = {name: [] for name in types}
        constructors: dict[str, list[FuncDoc]] = {name: [] for name in types}
        funcs: list[FuncDoc] = []

        for pf in files:
            for recv_type, result_type, fn in pf.funcs:
                if recv_type:
                    if recv_type in methods:
                        methods[recv_type].append(fn)
                elif result_type in constructors:
                    constructors[result_type].append(fn)
                else:
                    funcs.append(fn)

        grouped = [
            t.model_copy(update={"funcs": constructors[name], "methods": methods[name]})
            for name, t in sorted(types.items())
        ]
        return grouped, sorted(funcs, key=lambda fn: fn.name)
