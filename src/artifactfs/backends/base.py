"""Backend capability interface.

Every storage backend (local disk, GCS, S3, Azure Blob) implements
:class:`FileSystemBackend`. Optional operations default to raising
:class:`UnsupportedOperationError` so read-only providers only override
what they support.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from artifactfs.errors import BackendError, FileSystemError, UnsupportedOperationError
from artifactfs.paths import SEPARATOR, join_path
from artifactfs.routing import BackendKind
from artifactfs.tracing import traced_fs_operation

if TYPE_CHECKING:
    from artifactfs.localization import LocalizedDirectory

NANOS_PER_SECOND = 1_000_000_000


@contextmanager
def translate_errors(message: str, path: str) -> Iterator[None]:
    """Wrap SDK and OS exceptions raised in the block as BackendError."""
    try:
        yield
    except FileSystemError:
        raise
    except Exception as e:
        raise BackendError(f"{message} {path}: {e}", path=path, cause=e) from e


def append_slash(name: str) -> str:
    """Return ``name`` with a trailing separator unless empty or already present."""
    if not name or name.endswith(SEPARATOR):
        return name
    return name + SEPARATOR


def collapse_separators(name: str) -> str:
    """Drop leading, trailing and repeated separators from an object path."""
    return SEPARATOR.join(part for part in name.split(SEPARATOR) if part)


def immediate_child(key: str, prefix: str) -> str | None:
    """Return the first path component of ``key`` below ``prefix``.

    Returns None for the directory marker itself (``key == prefix``) and for
    keys outside ``prefix``.
    """
    if key == prefix or not key.startswith(prefix):
        return None
    child = key[len(prefix) :].split(SEPARATOR, 1)[0]
    return child or None


def datetime_to_ns(value: datetime) -> int:
    """Convert an aware datetime to integer nanoseconds since the epoch."""
    return int(value.timestamp()) * NANOS_PER_SECOND + value.microsecond * 1_000


class FileSystemBackend(ABC):
    """Abstract base class for storage backends.

    Paths passed to every method are full paths in the backend's own
    scheme (``s3://bucket/key``, ``/local/dir``).

    Implementations:
    - LocalFileSystem: local disk, full read/write support
    - GCSFileSystem: Google Cloud Storage, read-only
    - S3FileSystem: Amazon S3 and S3-compatible endpoints, read-only
    - AzureFileSystem: Azure Blob Storage, read plus text upload
    """

    kind: ClassVar[BackendKind]

    # True when client construction needs a concrete path (endpoint or
    # account name is taken from it), so the backend cannot be resolved by
    # kind alone from ambient credentials.
    requires_path: ClassVar[bool] = False

    @property
    def backend_name(self) -> str:
        """Return the backend identifier for logs and spans."""
        return self.kind.value.lower()

    def check_client(self, path: str) -> None:
        """Cheap health probe run right after construction.

        Raises:
            BackendError: If the client cannot reach the store with its credentials.
        """
        return None

    def normalize_path(self, path: str) -> str:
        """Return the canonical form of ``path`` for this backend."""
        return path

    def close(self) -> None:
        """Release the underlying client connection, if any."""
        return None

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        """Return True if ``path`` names a file or a directory."""
        ...

    @abstractmethod
    def is_directory(self, path: str) -> bool:
        """Return True if ``path`` names a directory."""
        ...

    @abstractmethod
    def file_modification_time(self, path: str) -> int:
        """Return the modification time of ``path`` in nanoseconds since the epoch."""
        ...

    @abstractmethod
    def get_directory_contents(self, path: str) -> set[str]:
        """Return the names of the immediate children of ``path``."""
        ...

    @abstractmethod
    def read_binary_file(self, path: str) -> bytes:
        """Return the full content of the file at ``path``.

        Raises:
            PathNotFoundError: If the file does not exist.
            BackendError: If the backend cannot complete the read.
        """
        ...

    def get_directory_subdirs(self, path: str) -> set[str]:
        """Return the names of the immediate child directories of ``path``."""
        return {
            name
            for name in self.get_directory_contents(path)
            if self.is_directory(join_path(path, name))
        }

    def get_directory_files(self, path: str) -> set[str]:
        """Return the names of the immediate child files of ``path``."""
        return {
            name
            for name in self.get_directory_contents(path)
            if not self.is_directory(join_path(path, name))
        }

    def read_text_file(self, path: str) -> str:
        """Return the content of the file at ``path`` decoded as UTF-8."""
        data = self.read_binary_file(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise BackendError(
                f"File is not valid UTF-8 text: {path}", path=path, cause=e
            ) from e

    def write_text_file(self, path: str, contents: str) -> None:
        """Write ``contents`` to ``path``, replacing any existing file."""
        raise UnsupportedOperationError(
            f"Write text file operation not yet implemented {path}", path=path
        )

    def write_binary_file(self, path: str, contents: bytes) -> None:
        """Write ``contents`` to ``path``, replacing any existing file."""
        raise UnsupportedOperationError(
            f"Write binary file operation not yet implemented {path}", path=path
        )

    def make_directory(self, path: str, recursive: bool = False) -> None:
        """Create the directory ``path`` (and missing parents when ``recursive``)."""
        raise UnsupportedOperationError(
            f"Make directory operation not yet implemented {path}", path=path
        )

    def make_temporary_directory(self) -> str:
        """Create a uniquely named scratch directory and return its path."""
        raise UnsupportedOperationError(
            f"Make temporary directory operation not yet implemented for {self.backend_name}"
        )

    def delete_directory(self, path: str) -> None:
        """Recursively delete the directory ``path``."""
        raise UnsupportedOperationError(
            f"Delete directory operation not yet implemented {path}", path=path
        )

    @traced_fs_operation("localize")
    def localize_directory(self, path: str) -> LocalizedDirectory:
        """Mirror the directory at ``path`` into a fresh local temporary directory."""
        from artifactfs.localization import mirror_directory

        return mirror_directory(self, path)

    def __enter__(self) -> FileSystemBackend:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} backend={self.backend_name}>"
