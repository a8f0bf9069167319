"""Conditional HTTP fetcher.

All network I/O of the service adapters and of dynamic discovery goes through
a single Fetcher instance. The Fetcher receives an httpx.AsyncClient via
constructor injection; whoever opens the client owns its lifecycle.

Response classification:
  200          → body
  304          → PackageNotModifiedError (conditional requests only)
  404          → PackageNotFoundError
  other/error  → TransportError carrying the remote host

The fetcher never retries; retry policy belongs to the caller.
"""

from __future__ import annotations

import asyncio
import hashlib
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import httpx
import structlog

from pkgdoc.errors import PackageNotFoundError, PackageNotModifiedError, TransportError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from pkgdoc.config import FetcherSettings
    from pkgdoc.models.doc import CandidateFile

log = structlog.get_logger()


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(
            settings.request_timeout_seconds,
            connect=settings.connect_timeout_seconds,
        ),
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
        ),
    )


def _host(url: str) -> str:
    return urlparse(url).hostname or ""


def content_etag(data: bytes) -> str:
    """ETag for services that do not supply one: MD5 of the body."""
    return hashlib.md5(data).hexdigest()


def parse_etag(header: str | None) -> str:
    """Strip the quotes from an ETag header: ``"abc"`` → ``abc``, ``W/"abc"`` → ``W/abc``.

    Returns an empty string for a missing or malformed header.
    """
    if not header:
        return ""
    weak = header.startswith("W/")
    value = header[2:] if weak else header
    if len(value) < 2 or value[0] != '"' or value[-1] != '"':
        return ""
    return ("W/" if weak else "") + value[1:-1]


def format_etag(etag: str) -> str:
    """Inverse of ``parse_etag``, for the If-None-Match header."""
    if etag.startswith("W/"):
        return f'W/"{etag[2:]}"'
    return f'"{etag}"'


class Fetcher:
    """HTTP fetcher with 404/304 classification and parallel file download."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def get_response(
        self, url: str, *, headers: Mapping[str, str] | None = None
    ) -> httpx.Response:
        """GET without status classification. Network failures raise TransportError."""
        try:
            return await self._client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(_host(url), f"Network error fetching {url}: {exc}") from exc

    async def get_bytes(self, url: str, *, headers: Mapping[str, str] | None = None) -> bytes:
        """Fetch a resource body. 404 raises PackageNotFoundError."""
        response = await self.get_response(url, headers=headers)
        if response.is_success:
            log.debug("fetch_complete", url=url, content_length=len(response.content))
            return response.content
        if response.status_code == 404:
            raise PackageNotFoundError(f"HTTP 404 fetching {url}")
        raise TransportError(_host(url), f"HTTP {response.status_code} fetching {url}")

    async def get_bytes_compare(
        self, url: str, saved_etag: str, *, headers: Mapping[str, str] | None = None
    ) -> tuple[bytes, str]:
        """Fetch a resource and derive its ETag from the content hash.

        Raises PackageNotModifiedError when the hash equals ``saved_etag``.
        """
        data = await self.get_bytes(url, headers=headers)
        etag = content_etag(data)
        if etag == saved_etag:
            raise PackageNotModifiedError(f"{url} unchanged")
        return data, etag

    async def get_bytes_none_match(
        self, url: str, etag: str, *, headers: Mapping[str, str] | None = None
    ) -> tuple[bytes, str]:
        """Conditionally fetch a resource with If-None-Match.

        Returns the body and the server's ETag. When the server sends no
        ETag, the content hash stands in and is compared with ``etag`` here.
        """
        request_headers = dict(headers or {})
        if etag:
            request_headers["If-None-Match"] = format_etag(etag)
        response = await self.get_response(url, headers=request_headers)

        if response.status_code == 304:
            raise PackageNotModifiedError(f"{url} unchanged")
        if response.status_code == 404:
            raise PackageNotFoundError(f"HTTP 404 fetching {url}")
        if not response.is_success:
            raise TransportError(_host(url), f"HTTP {response.status_code} fetching {url}")

        new_etag = parse_etag(response.headers.get("etag"))
        if not new_etag:
            new_etag = content_etag(response.content)
            if new_etag == etag:
                raise PackageNotModifiedError(f"{url} unchanged")
        return response.content, new_etag

    async def fetch_files(
        self, files: Sequence[CandidateFile], *, headers: Mapping[str, str] | None = None
    ) -> None:
        """Download ``raw_url`` of every file into its ``data``, one task per file.

        The first failure cancels the remaining downloads and is raised on its
        own. Cancellation of the caller cancels every download as well. No file
        is updated unless all downloads succeed.
        """
        pending = [f for f in files if f.raw_url is not None]
        if not pending:
            return

        async def fetch_one(url: str) -> bytes:
            response = await self.get_response(url, headers=headers)
            if response.status_code != 200:
                raise TransportError(_host(url), f"HTTP {response.status_code} fetching {url}")
            return response.content

        tasks = [asyncio.create_task(fetch_one(f.raw_url)) for f in pending]  # type: ignore[arg-type]
        try:
            for completed in asyncio.as_completed(tasks):
                await completed
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        for f, task in zip(pending, tasks, strict=True):
            f.data = task.result()
        log.debug("fetch_files_complete", count=len(pending))
