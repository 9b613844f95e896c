"""artifactfs error types.

Every public operation either returns a value or raises one of these typed
errors. SDK and OS exceptions are wrapped (``cause`` / ``__cause__``) so no
provider-specific exception type escapes a backend boundary.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Semantic error kinds shared by all backends."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNSUPPORTED = "UNSUPPORTED"
    # Reported through LoadResult.NO_CONFIG_AVAILABLE, never raised.
    UNAVAILABLE = "UNAVAILABLE"
    INTERNAL = "INTERNAL"


class FileSystemError(Exception):
    """Base exception for artifactfs operations.

    Attributes:
        message: Human-readable error message.
        path: Path associated with the operation (if applicable).
        cause: Underlying exception (if any).
    """

    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.path is not None and self.path not in self.message:
            parts.append(f"path={self.path}")
        return " ".join(parts)


class PathNotFoundError(FileSystemError):
    """Raised when a file or directory does not exist."""

    code = ErrorCode.NOT_FOUND


class CredentialNotFoundError(FileSystemError):
    """Raised when no configured credential prefix matches a path."""

    code = ErrorCode.NOT_FOUND


class InvalidPathError(FileSystemError):
    """Raised when a path or bucket/container name cannot be parsed."""

    code = ErrorCode.INVALID_ARGUMENT


class UnsupportedOperationError(FileSystemError):
    """Raised when a backend does not implement an operation.

    Also raised when a path references a backend whose SDK is not installed.
    """

    code = ErrorCode.UNSUPPORTED


class AmbientCredentialsUnsupportedError(UnsupportedOperationError):
    """Raised when a backend is requested by kind without a credential file.

    Some backends (S3, Azure) need a concrete path to build a client from
    environment credentials, so they cannot be resolved by kind alone.
    """


class BackendError(FileSystemError):
    """Raised when a backend cannot complete an operation.

    Indicates the backend itself failed (I/O error, SDK error, malformed
    remote response) rather than a logical error like a missing path.
    """

    code = ErrorCode.INTERNAL


class CredentialConfigError(BackendError):
    """Raised when the credential configuration file cannot be read or parsed."""
