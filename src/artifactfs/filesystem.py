"""Path-based convenience API.

Each function resolves its path with a fresh FileSystemManager (sharing the
process-wide credential store), runs one backend operation and closes the
backend again. Long-lived callers that issue many operations against the
same store should hold a FileSystemManager instead.
"""

from __future__ import annotations

from artifactfs.localization import LocalizedDirectory
from artifactfs.manager import FileSystemManager
from artifactfs.routing import BackendKind, backend_kind_string, get_backend_kind

__all__ = [
    "backend_kind_string",
    "delete_directory",
    "file_exists",
    "file_modification_time",
    "get_backend_kind",
    "get_directory_contents",
    "get_directory_files",
    "get_directory_subdirs",
    "is_directory",
    "localize_directory",
    "make_directory",
    "make_temporary_directory",
    "read_binary_file",
    "read_text_file",
    "write_binary_file",
    "write_text_file",
]

HIDDEN_FILE_PREFIX = "."


def file_exists(path: str) -> bool:
    with FileSystemManager() as manager:
        return manager.get_file_system(path).file_exists(path)


def is_directory(path: str) -> bool:
    with FileSystemManager() as manager:
        return manager.get_file_system(path).is_directory(path)


def file_modification_time(path: str) -> int:
    """Return the modification time of ``path`` in nanoseconds (0 for remote directories)."""
    with FileSystemManager() as manager:
        return manager.get_file_system(path).file_modification_time(path)


def get_directory_contents(path: str) -> set[str]:
    with FileSystemManager() as manager:
        return manager.get_file_system(path).get_directory_contents(path)


def get_directory_subdirs(path: str) -> set[str]:
    with FileSystemManager() as manager:
        return manager.get_file_system(path).get_directory_subdirs(path)


def get_directory_files(path: str, skip_hidden_files: bool = True) -> set[str]:
    """Return the names of the files directly under ``path``.

    Args:
        path: Directory to list.
        skip_hidden_files: Drop names starting with ".".
    """
    with FileSystemManager() as manager:
        files = manager.get_file_system(path).get_directory_files(path)
    if skip_hidden_files:
        return {name for name in files if not name.startswith(HIDDEN_FILE_PREFIX)}
    return files


def read_text_file(path: str) -> str:
    with FileSystemManager() as manager:
        return manager.get_file_system(path).read_text_file(path)


def read_binary_file(path: str) -> bytes:
    with FileSystemManager() as manager:
        return manager.get_file_system(path).read_binary_file(path)


def write_text_file(path: str, contents: str) -> None:
    with FileSystemManager() as manager:
        manager.get_file_system(path).write_text_file(path, contents)


def write_binary_file(path: str, contents: bytes) -> None:
    with FileSystemManager() as manager:
        manager.get_file_system(path).write_binary_file(path, contents)


def make_directory(path: str, recursive: bool = False) -> None:
    with FileSystemManager() as manager:
        manager.get_file_system(path).make_directory(path, recursive)


def make_temporary_directory(kind: BackendKind = BackendKind.LOCAL) -> str:
    """Create a scratch directory on a backend of ``kind`` and return its path."""
    with FileSystemManager() as manager:
        return manager.get_file_system_for_kind(kind).make_temporary_directory()


def delete_directory(path: str) -> None:
    with FileSystemManager() as manager:
        manager.get_file_system(path).delete_directory(path)


def localize_directory(path: str) -> LocalizedDirectory:
    """Return a local copy of the directory at ``path``.

    Local directories are returned in place. Remote directories are mirrored
    into a temporary directory that is deleted when the result is released.
    """
    with FileSystemManager() as manager:
        return manager.localize_directory(path)
