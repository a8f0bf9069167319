"""Sample Go sources and test doubles shared across the pkgdoc test suite."""

from __future__ import annotations

import io
import tarfile
from typing import TYPE_CHECKING, Any

from pkgdoc.models.doc import DocumentationRecord, FuncDoc

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pkgdoc.models.doc import CandidateFile


GO_LIBRARY = b"""\
// Copyright 2012 The Authors. All rights reserved.

// Package mux implements a request router and dispatcher. It matches
// incoming requests against a list of registered routes.
package mux

import (
\t"net/http"
\t"strings"
)

// ErrNotFound is returned when no route matches.
var ErrNotFound = errors.New("mux: no route")

const (
\t// MethodAny matches any method.
\tMethodAny = "*"
\tmethodNone = ""
)

const internalLimit = 10

// Router registers routes to be matched and dispatches a handler.
type Router struct {
\troutes []*Route
}

// NewRouter returns a new router instance.
func NewRouter() *Router {
\treturn &Router{}
}

// HandleFunc registers a new route with a matcher for the URL path.
func (r *Router) HandleFunc(path string, f func(http.ResponseWriter, *http.Request)) *Route {
\treturn nil
}

func (r *Router) match(path string) bool {
\treturn strings.HasPrefix(path, "/")
}

// Route stores information to match a request.
type Route struct {
\tpath string
}

// Vars returns the route variables for the current request.
func Vars(req *http.Request) map[string]string {
\treturn nil
}

func helper() {}
"""

GO_LIBRARY_TEST = b"""\
package mux_test

import (
\t"net/http/httptest"
\t"testing"
)

func TestRouter(t *testing.T) {}
"""

GO_COMMAND = b"""\
// Command hello prints a greeting. Run it without arguments.
package main

import "fmt"

func main() {
\tfmt.Println("hello")
}
"""


class FakeClock:
    """Manually advanced clock for expiration tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingBuilder:
    """DocumentationBuilder that records its inputs instead of parsing Go."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

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
        self.calls.append(
            {
                "import_path": import_path,
                "project_root": project_root,
                "project_name": project_name,
                "project_url": project_url,
                "etag": etag,
                "line_fmt": line_fmt,
                "files": {f.name: f.data for f in files},
                "browse_urls": {f.name: f.browse_url for f in files},
            }
        )
        return DocumentationRecord(
            import_path=import_path,
            project_root=project_root,
            project_name=project_name,
            project_url=project_url,
            etag=etag,
            name="pkg",
        )

    @property
    def last(self) -> dict[str, Any]:
        return self.calls[-1]


def make_tarball(files: dict[str, bytes]) -> bytes:
    """Build an in-memory .tar.gz with the given member names and bodies."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as archive:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_doc(**overrides: Any) -> DocumentationRecord:
    """A visible library record under github.com/user/repo."""
    fields: dict[str, Any] = {
        "import_path": "github.com/user/repo",
        "project_root": "github.com/user/repo",
        "project_name": "repo",
        "project_url": "https://github.com/user/repo/",
        "etag": "1-abc",
        "name": "repo",
        "synopsis": "Package repo does things.",
        "doc": "Package repo does things.",
        "funcs": [FuncDoc(name="Do", decl="func Do()")],
    }
    fields.update(overrides)
    return DocumentationRecord(**fields)
