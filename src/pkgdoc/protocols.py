"""Protocol interfaces for swappable components.

The resolver, cache manager and pipeline reference these protocols, not the
concrete implementations. This allows:
- Tests to use lightweight in-memory implementations
- Other backends (memcached, a hosted datastore) to be swapped in without
  changing pipeline code
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    import httpx

    from pkgdoc.models.cache import CasResult
    from pkgdoc.models.doc import CandidateFile, DocumentationRecord


class EphemeralStoreProtocol(Protocol):
    """Fast, lossy key/value tier (memcache semantics).

    ``ttl_seconds`` of 0 means no expiration. Implementations raise
    ``StoreError`` on infrastructure failure.
    """

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, ttl_seconds: float) -> None: ...

    async def set_multi(self, items: Mapping[str, bytes], ttl_seconds: float) -> None: ...

    async def add(self, key: str, value: bytes, ttl_seconds: float) -> bool: ...

    async def compare_and_swap(
        self, key: str, expected: bytes, value: bytes, ttl_seconds: float
    ) -> CasResult: ...

    async def delete_multi(self, keys: Sequence[str]) -> None: ...


class DurableStoreProtocol(Protocol):
    """Durable entity store keyed by (kind, key).

    Implementations raise ``StoreError`` on infrastructure failure.
    """

    async def get(self, kind: str, key: str) -> bytes | None: ...

    async def put(self, kind: str, key: str, value: bytes) -> None: ...

    async def delete(self, kind: str, key: str) -> None: ...

    async def query(
        self, kind: str, *, start: str | None = None, end: str | None = None
    ) -> list[tuple[str, bytes]]: ...


class DocumentationBuilder(Protocol):
    """Turns fetched source files into a DocumentationRecord.

    Treated as a pure function of its inputs. Raises ``BuildError`` for
    source that cannot be processed.
    """

    def build(
        self,
        import_path: str,
        project_root: str,
        project_name: str,
        project_url: str,
        etag: str,
        line_fmt: str,
        files: Sequence[CandidateFile],
    ) -> DocumentationRecord: ...


class FetcherProtocol(Protocol):
    """Interface for the conditional HTTP fetcher."""

    async def get_response(
        self, url: str, *, headers: Mapping[str, str] | None = None
    ) -> httpx.Response: ...

    async def get_bytes(self, url: str, *, headers: Mapping[str, str] | None = None) -> bytes: ...

    async def get_bytes_compare(
        self, url: str, saved_etag: str, *, headers: Mapping[str, str] | None = None
    ) -> tuple[bytes, str]: ...

    async def get_bytes_none_match(
        self, url: str, etag: str, *, headers: Mapping[str, str] | None = None
    ) -> tuple[bytes, str]: ...

    async def fetch_files(
        self, files: Sequence[CandidateFile], *, headers: Mapping[str, str] | None = None
    ) -> None: ...
