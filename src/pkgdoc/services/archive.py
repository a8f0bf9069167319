"""tar+gzip archive reading for services that publish tarballs."""

from __future__ import annotations

import io
import tarfile
from typing import TYPE_CHECKING

from pkgdoc.errors import BuildError

if TYPE_CHECKING:
    from collections.abc import Iterator


def iter_tarball(data: bytes) -> Iterator[tuple[str, tarfile.TarFile, tarfile.TarInfo]]:
    """Yield ``(name, archive, member)`` for each regular file in a .tar.gz.

    Member bodies are read lazily with ``read_member`` so callers only pay for
    the files they keep.
    """
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
            for member in archive:
                if member.isfile():
                    yield member.name, archive, member
    except (tarfile.TarError, EOFError, OSError) as exc:
        raise BuildError(f"Unreadable archive: {exc}") from exc


def read_member(archive: tarfile.TarFile, member: tarfile.TarInfo) -> bytes:
    extracted = archive.extractfile(member)
    if extracted is None:
        return b""
    try:
        with extracted:
            return extracted.read()
    except (tarfile.TarError, EOFError, OSError) as exc:
        raise BuildError(f"Unreadable archive member {member.name}: {exc}") from exc
