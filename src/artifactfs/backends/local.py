"""Local disk backend."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from artifactfs.backends.base import FileSystemBackend
from artifactfs.errors import BackendError, PathNotFoundError
from artifactfs.models import Credential
from artifactfs.routing import BackendKind
from artifactfs.tracing import traced_fs_operation

if TYPE_CHECKING:
    from artifactfs.localization import LocalizedDirectory

logger = logging.getLogger(__name__)

TEMP_DIR_PREFIX = "folder"
DIRECTORY_MODE = 0o700


class LocalFileSystem(FileSystemBackend):
    """Backend for paths on local disk (including mounted network shares)."""

    kind = BackendKind.LOCAL

    def __init__(self, path: str | None = None, credential: Credential | None = None) -> None:
        # Arguments are accepted for factory symmetry; local disk needs neither.
        del path, credential

    def file_exists(self, path: str) -> bool:
        return os.access(path, os.F_OK)

    def is_directory(self, path: str) -> bool:
        try:
            return stat.S_ISDIR(os.stat(path).st_mode)
        except OSError as e:
            raise BackendError(f"failed to stat file {path}: {e}", path=path, cause=e) from e

    def file_modification_time(self, path: str) -> int:
        try:
            return os.stat(path).st_mtime_ns
        except OSError as e:
            raise BackendError(f"failed to stat file {path}: {e}", path=path, cause=e) from e

    @traced_fs_operation("list")
    def get_directory_contents(self, path: str) -> set[str]:
        try:
            return set(os.listdir(path))
        except OSError as e:
            raise BackendError(
                f"failed to open directory {path}: {e}", path=path, cause=e
            ) from e

    @traced_fs_operation("read")
    def read_binary_file(self, path: str) -> bytes:
        try:
            return Path(path).read_bytes()
        except FileNotFoundError as e:
            raise PathNotFoundError(f"File does not exist at {path}", path=path, cause=e) from e
        except OSError as e:
            raise BackendError(
                f"failed to open file for read {path}: {e}", path=path, cause=e
            ) from e

    def write_text_file(self, path: str, contents: str) -> None:
        self.write_binary_file(path, contents.encode("utf-8"))

    @traced_fs_operation("write")
    def write_binary_file(self, path: str, contents: bytes) -> None:
        try:
            Path(path).write_bytes(contents)
        except OSError as e:
            raise BackendError(
                f"failed to open file for write {path}: {e}", path=path, cause=e
            ) from e

    def make_directory(self, path: str, recursive: bool = False) -> None:
        try:
            if recursive:
                os.makedirs(path, mode=DIRECTORY_MODE)
            else:
                os.mkdir(path, mode=DIRECTORY_MODE)
        except OSError as e:
            raise BackendError(
                f"Failed to create directory '{path}': {e}", path=path, cause=e
            ) from e

    def make_temporary_directory(self) -> str:
        try:
            temp_dir = tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX)
        except OSError as e:
            raise BackendError(f"Failed to create local temp folder: {e}", cause=e) from e
        logger.debug("Created temporary directory %s", temp_dir)
        return temp_dir

    @traced_fs_operation("delete")
    def delete_directory(self, path: str) -> None:
        try:
            shutil.rmtree(path)
        except FileNotFoundError as e:
            raise PathNotFoundError(
                f"Directory does not exist at {path}", path=path, cause=e
            ) from e
        except OSError as e:
            raise BackendError(
                f"Failed to delete directory {path}: {e}", path=path, cause=e
            ) from e

    @traced_fs_operation("localize")
    def localize_directory(self, path: str) -> LocalizedDirectory:
        """Return ``path`` itself; local directories are used in place."""
        from artifactfs.localization import LocalizedDirectory

        if not self.file_exists(path) or not self.is_directory(path):
            raise PathNotFoundError(f"directory does not exist at {path}", path=path)
        return LocalizedDirectory(path)
