"""Backend resolution: route a path, pick its credential, build the client.

A FileSystemManager owns the backends it builds. Credentials come from a
shared CredentialStore; when no credential file is configured each SDK's
ambient discovery (environment variables, default provider chain) is used.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Final

from artifactfs.backends import BACKEND_CLASSES, FileSystemBackend
from artifactfs.credentials import (
    ARTIFACTFS_CLOUD_CREDENTIAL_PATH_ENV,
    CredentialStore,
    get_default_credential_store,
)
from artifactfs.errors import (
    AmbientCredentialsUnsupportedError,
    BackendError,
    CredentialNotFoundError,
    FileSystemError,
)
from artifactfs.localization import LocalizedDirectory
from artifactfs.models import Credential, LoadResult
from artifactfs.routing import BackendKind, ensure_backend_enabled, route, scheme_prefix

logger = logging.getLogger(__name__)

BackendFactory = Callable[[str | None, Credential | None], FileSystemBackend]

DEFAULT_BACKEND_FACTORIES: Final[Mapping[BackendKind, BackendFactory]] = dict(BACKEND_CLASSES)

# Kinds whose client needs a concrete path when built from ambient credentials.
PATH_SCOPED_KINDS: Final[frozenset[BackendKind]] = frozenset(
    kind for kind, cls in BACKEND_CLASSES.items() if cls.requires_path
)


class FileSystemManager:
    """Resolves paths and backend kinds to live backends.

    At most one backend per kind is held; resolving a kind again replaces
    (and closes) the previous backend of that kind. Instances are not meant
    to be shared between threads.
    """

    def __init__(
        self,
        credential_store: CredentialStore | None = None,
        backend_factories: Mapping[BackendKind, BackendFactory] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            credential_store: Store to resolve credentials from. If None, the
                process-wide default store is used.
            backend_factories: Per-kind overrides of the callables that build
                backends from ``(path, credential)``.
        """
        self._store = credential_store if credential_store is not None else (
            get_default_credential_store()
        )
        self._factories: dict[BackendKind, BackendFactory] = dict(DEFAULT_BACKEND_FACTORIES)
        if backend_factories:
            self._factories.update(backend_factories)
        self._backends: dict[BackendKind, FileSystemBackend] = {}

    @property
    def credential_store(self) -> CredentialStore:
        return self._store

    def backend(self, kind: BackendKind) -> FileSystemBackend | None:
        """Return the live backend currently held for ``kind``, if any."""
        return self._backends.get(kind)

    def get_file_system(self, path: str) -> FileSystemBackend:
        """Return a backend able to serve ``path``.

        Raises:
            InvalidPathError: If ``path`` is empty or malformed for its scheme.
            UnsupportedOperationError: If the scheme's backend is not installed.
            CredentialNotFoundError: If no configured credential matches ``path``
                after one forced reload.
            BackendError: If the client cannot be built or fails its health
                probe after one forced reload.
        """
        kind = route(path)
        if kind is BackendKind.LOCAL:
            return self._install(kind, self._construct(kind, path, None))
        return self._resolve_remote(kind, path, self._store.load(), allow_reload=True)

    def get_file_system_for_kind(self, kind: BackendKind) -> FileSystemBackend:
        """Return a backend of ``kind`` without a concrete path.

        With a credential file, the credential under the empty prefix is used.

        Raises:
            AmbientCredentialsUnsupportedError: If no credential file is
                configured and ``kind`` needs a path to build its client.
        """
        ensure_backend_enabled(kind)
        if kind is BackendKind.LOCAL:
            return self._install(kind, self._construct(kind, None, None))
        return self._resolve_remote(kind, None, self._store.load(), allow_reload=True)

    def localize_directory(self, path: str) -> LocalizedDirectory:
        """Resolve ``path`` and return a local copy of the directory."""
        return self.get_file_system(path).localize_directory(path)

    def _resolve_remote(
        self,
        kind: BackendKind,
        path: str | None,
        load_result: LoadResult,
        *,
        allow_reload: bool,
    ) -> FileSystemBackend:
        if load_result is LoadResult.NO_CONFIG_AVAILABLE:
            return self._resolve_ambient(kind, path)

        try:
            credential = self._store.match(kind, path if path is not None else scheme_prefix(kind))
            backend = self._construct(kind, path, credential)
            self._check(backend, path)
        except (CredentialNotFoundError, BackendError) as e:
            if not allow_reload:
                raise
            logger.info(
                "Resolving %s backend failed (%s); reloading credentials and retrying once",
                kind,
                e,
            )
            reload_result = self._store.load(force_reload=True)
            return self._resolve_remote(kind, path, reload_result, allow_reload=False)

        return self._install(kind, backend)

    def _resolve_ambient(self, kind: BackendKind, path: str | None) -> FileSystemBackend:
        if path is None and kind in PATH_SCOPED_KINDS:
            raise AmbientCredentialsUnsupportedError(
                f"Unable to create {kind} filesystem client from ambient credentials "
                f"without a path. Set {ARTIFACTFS_CLOUD_CREDENTIAL_PATH_ENV} to use "
                "credentials from a file."
            )
        self._store.warn_ambient_fallback(kind)
        backend = self._construct(kind, path, None)
        self._check(backend, path)
        return self._install(kind, backend)

    def _construct(
        self, kind: BackendKind, path: str | None, credential: Credential | None
    ) -> FileSystemBackend:
        factory = self._factories[kind]
        try:
            backend = factory(path, credential)
        except FileSystemError:
            raise
        except Exception as e:
            raise BackendError(
                f"Unable to create {kind} filesystem client: {e}", path=path, cause=e
            ) from e
        logger.debug("Constructed %r for %s", backend, path or kind)
        return backend

    @staticmethod
    def _check(backend: FileSystemBackend, path: str | None) -> None:
        if path is None:
            return
        try:
            backend.check_client(path)
        except FileSystemError:
            backend.close()
            raise

    def _install(self, kind: BackendKind, backend: FileSystemBackend) -> FileSystemBackend:
        previous = self._backends.get(kind)
        self._backends[kind] = backend
        if previous is not None and previous is not backend:
            self._close_backend(previous)
        return backend

    @staticmethod
    def _close_backend(backend: FileSystemBackend) -> None:
        try:
            backend.close()
        except Exception as e:
            logger.warning("Failed to close %r: %s", backend, e)

    def close(self) -> None:
        """Close every backend held by this manager."""
        backends, self._backends = self._backends, {}
        for backend in backends.values():
            self._close_backend(backend)

    def __enter__(self) -> FileSystemManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
