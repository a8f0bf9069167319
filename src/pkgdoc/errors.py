from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_IMPORT_PATH = "INVALID_IMPORT_PATH"
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    PACKAGE_NOT_MODIFIED = "PACKAGE_NOT_MODIFIED"
    FETCH_FAILED = "FETCH_FAILED"
    BUILD_FAILED = "BUILD_FAILED"
    STORE_FAILED = "STORE_FAILED"


class PkgDocError(Exception):
    """Base class for every expected failure of the resolution pipeline.

    Subclasses fix the error code so callers can branch on the exception type
    (``except PackageNotModifiedError``) while reporting layers can still
    serialise any of them uniformly via ``to_dict``.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class PackageNotFoundError(PkgDocError):
    """The hosting service confirmed that the package does not exist."""

    def __init__(self, message: str = "package not found") -> None:
        super().__init__(
            code=ErrorCode.PACKAGE_NOT_FOUND,
            message=message,
            suggestion="Check the import path for typos.",
            recoverable=False,
        )


class PackageNotModifiedError(PkgDocError):
    """A conditional fetch confirmed that the stored documentation is current."""

    def __init__(self, message: str = "package not modified") -> None:
        super().__init__(
            code=ErrorCode.PACKAGE_NOT_MODIFIED,
            message=message,
            recoverable=True,
        )


class TransportError(PkgDocError):
    """Network or HTTP failure while talking to ``host``."""

    def __init__(self, host: str, message: str) -> None:
        super().__init__(
            code=ErrorCode.FETCH_FAILED,
            message=message,
            suggestion="The hosting service may be temporarily unavailable.",
            recoverable=True,
        )
        self.host = host


class InvalidImportPathError(PkgDocError):
    def __init__(self, import_path: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_IMPORT_PATH,
            message=f"Invalid import path: {import_path!r}",
            suggestion="Import paths start with a host name, e.g. github.com/user/repo.",
            recoverable=False,
        )
        self.import_path = import_path


class BuildError(PkgDocError):
    def __init__(self, message: str) -> None:
        super().__init__(
            code=ErrorCode.BUILD_FAILED,
            message=message,
            suggestion="The package source could not be processed.",
            recoverable=False,
        )


class StoreError(PkgDocError):
    def __init__(self, message: str) -> None:
        super().__init__(
            code=ErrorCode.STORE_FAILED,
            message=message,
            suggestion="The backing store may be temporarily unavailable.",
            recoverable=True,
        )
