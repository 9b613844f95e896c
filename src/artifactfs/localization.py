"""Directory localization: mirror a (possibly remote) directory to local disk."""

from __future__ import annotations

import logging
import shutil
import weakref

from artifactfs.backends.base import FileSystemBackend
from artifactfs.backends.local import LocalFileSystem
from artifactfs.errors import PathNotFoundError
from artifactfs.paths import join_path, relative_path

logger = logging.getLogger(__name__)


def _delete_local_tree(local_path: str) -> None:
    try:
        shutil.rmtree(local_path)
    except FileNotFoundError:
        logger.debug("Localized directory %s already removed", local_path)
    except OSError as e:
        logger.warning("Failed to delete localized directory %s: %s", local_path, e)
    else:
        logger.debug("Deleted localized directory %s", local_path)


class LocalizedDirectory:
    """A local path holding the contents of a source directory.

    Either wraps the source itself (already local; nothing is owned) or a
    temporary mirror that is deleted on :meth:`release`, on exit from a
    ``with`` block, or when the object is garbage-collected.
    """

    def __init__(self, original_path: str, local_path: str | None = None) -> None:
        """Wrap a localized directory.

        Args:
            original_path: Path of the source directory.
            local_path: Owned temporary mirror. If None, ``original_path`` is
                already local and is used in place.
        """
        self._original_path = original_path
        self._local_path = local_path if local_path is not None else original_path
        self._finalizer: weakref.finalize | None = None
        if local_path is not None:
            self._finalizer = weakref.finalize(self, _delete_local_tree, local_path)

    @property
    def path(self) -> str:
        """Local path to read the directory contents from."""
        return self._local_path

    @property
    def original_path(self) -> str:
        return self._original_path

    @property
    def owns_local(self) -> bool:
        """Return True if the local path is a temporary mirror owned by this object."""
        return self._finalizer is not None

    @property
    def is_released(self) -> bool:
        return self._finalizer is not None and not self._finalizer.alive

    def release(self) -> None:
        """Delete the owned mirror. Safe to call more than once."""
        if self._finalizer is not None:
            self._finalizer()

    def __fspath__(self) -> str:
        return self._local_path

    def __enter__(self) -> LocalizedDirectory:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __repr__(self) -> str:
        return (
            f"LocalizedDirectory(original_path={self._original_path!r}, "
            f"path={self._local_path!r}, owns_local={self.owns_local})"
        )


def mirror_directory(
    backend: FileSystemBackend,
    path: str,
    *,
    local: LocalFileSystem | None = None,
) -> LocalizedDirectory:
    """Copy the directory tree at ``path`` into a new local temporary directory.

    The tree is walked level by level: every round takes the current set of
    discovered entries, creates local directories or downloads files for them,
    and collects the children of the directories into the next round.

    Args:
        backend: Backend that owns ``path``.
        path: Source directory.
        local: Local backend used for the mirror (default: a new LocalFileSystem).

    Returns:
        A LocalizedDirectory owning the mirror.

    Raises:
        PathNotFoundError: If ``path`` is not an existing directory.
        FileSystemError: If any list, read or local write fails. The partial
            mirror is deleted before the error propagates.
    """
    source = backend.normalize_path(path)
    if not backend.file_exists(source) or not backend.is_directory(source):
        raise PathNotFoundError(f"directory does not exist at {source}", path=source)

    local = local or LocalFileSystem()
    localized = LocalizedDirectory(source, local.make_temporary_directory())
    logger.debug("Localizing %s into %s", source, localized.path)

    try:
        frontier = {join_path(source, name) for name in backend.get_directory_contents(source)}
        while frontier:
            current, frontier = sorted(frontier), set()
            for entry in current:
                target = join_path(localized.path, relative_path(entry, source))
                if backend.is_directory(entry):
                    local.make_directory(target)
                    frontier.update(
                        join_path(entry, name) for name in backend.get_directory_contents(entry)
                    )
                else:
                    local.write_binary_file(target, backend.read_binary_file(entry))
    except Exception:
        localized.release()
        raise

    logger.debug("Localized %s into %s", source, localized.path)
    return localized
