"""Multi-tenant cloud credential store.

Loads a JSON credential file whose location is given by an environment
variable and answers longest-prefix lookups per backend kind.

File format::

    {
        "gs": {"": "/creds/default.json", "bucket-a/models": "/creds/a.json"},
        "s3": {"bucket": {"secret_key": "...", "key_id": "...", "region": "..."}},
        "as": {"account/container": {"account_str": "...", "account_key": "..."}}
    }

Environment Variables:
    ARTIFACTFS_CLOUD_CREDENTIAL_PATH: Path to the credential file. When unset,
        callers fall back to each SDK's ambient credential discovery.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError

from artifactfs.errors import CredentialConfigError, CredentialNotFoundError
from artifactfs.models import (
    AzureCredential,
    Credential,
    CredentialEntry,
    GCSCredential,
    LoadResult,
    S3Credential,
)
from artifactfs.routing import CONFIG_KEYS, BackendKind, scheme_prefix, strip_scheme

logger = logging.getLogger(__name__)

ARTIFACTFS_CLOUD_CREDENTIAL_PATH_ENV: Final[str] = "ARTIFACTFS_CLOUD_CREDENTIAL_PATH"


def _build_credential(kind: BackendKind, value: Any) -> Credential:
    """Validate one credential record for ``kind``."""
    if kind is BackendKind.GCS:
        return GCSCredential(credential_path=value)
    if kind is BackendKind.S3:
        return S3Credential.model_validate(value)
    return AzureCredential.model_validate(value)


def _parse_tables(
    document: Any, config_path: str
) -> dict[BackendKind, list[CredentialEntry]]:
    """Turn a parsed credential document into sorted per-kind tables.

    Raises:
        CredentialConfigError: If the document does not have the expected shape.
    """
    if not isinstance(document, dict):
        raise CredentialConfigError(
            f"Credential file must contain a JSON object: {config_path}", path=config_path
        )

    tables: dict[BackendKind, list[CredentialEntry]] = {}
    for kind, key in CONFIG_KEYS.items():
        section = document.get(key)
        if section is None:
            tables[kind] = []
            continue
        if not isinstance(section, dict):
            raise CredentialConfigError(
                f"Credential section '{key}' must be an object in {config_path}",
                path=config_path,
            )

        entries: list[CredentialEntry] = []
        for prefix, value in section.items():
            try:
                credential = _build_credential(kind, value)
            except ValidationError as e:
                raise CredentialConfigError(
                    f"Invalid '{key}' credential for prefix '{prefix}' in {config_path}: {e}",
                    path=config_path,
                    cause=e,
                ) from e
            entries.append(CredentialEntry(prefix=strip_scheme(prefix, kind), credential=credential))

        # Longest prefix first so the first match is the most specific one.
        entries.sort(key=lambda entry: len(entry.prefix), reverse=True)
        tables[kind] = entries

    return tables


class CredentialStore:
    """Credential tables for every remote backend kind, guarded by one lock.

    The tables are empty until the first :meth:`load`. A load replaces every
    table at once, so readers never observe a partially installed table.
    """

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize an empty store.

        Args:
            config_path: Credential file location. If None, the
                ARTIFACTFS_CLOUD_CREDENTIAL_PATH environment variable is read
                on every load.
        """
        self._config_path = config_path
        self._lock = threading.Lock()
        self._tables: dict[BackendKind, list[CredentialEntry]] = {}
        self._is_cached = False
        self._ambient_warned: set[BackendKind] = set()

    @property
    def config_path(self) -> str | None:
        """Return the configured credential file location, if any."""
        if self._config_path is not None:
            return self._config_path
        return os.environ.get(ARTIFACTFS_CLOUD_CREDENTIAL_PATH_ENV) or None

    @property
    def is_cached(self) -> bool:
        """Return True once a credential file has been loaded."""
        with self._lock:
            return self._is_cached

    def _read_config(self, config_path: str) -> Any:
        """Read and decode the credential file."""
        try:
            raw = Path(config_path).read_text(encoding="utf-8")
        except OSError as e:
            raise CredentialConfigError(
                f"Failed to read credential file {config_path}: {e}",
                path=config_path,
                cause=e,
            ) from e
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CredentialConfigError(
                f"Failed to parse credential file {config_path}: {e}",
                path=config_path,
                cause=e,
            ) from e

    def load(self, force_reload: bool = False) -> LoadResult:
        """Load the credential file into memory.

        Args:
            force_reload: Discard the cached tables and read the file again.

        Returns:
            LOADED after a successful read, ALREADY_CACHED when a previous
            load is reused without I/O, NO_CONFIG_AVAILABLE when no credential
            file is configured.

        Raises:
            CredentialConfigError: If the file cannot be read or parsed. The
                previously installed tables are left untouched.
        """
        with self._lock:
            if self._is_cached and not force_reload:
                return LoadResult.ALREADY_CACHED

            config_path = self.config_path
            if not config_path:
                logger.debug(
                    "%s environment variable is not set", ARTIFACTFS_CLOUD_CREDENTIAL_PATH_ENV
                )
                self._tables = {}
                self._is_cached = False
                return LoadResult.NO_CONFIG_AVAILABLE

            logger.debug("Reading cloud credential from %s", config_path)
            tables = _parse_tables(self._read_config(config_path), config_path)
            self._tables = tables
            self._is_cached = True

        logger.info(
            "Loaded cloud credentials from %s: %s",
            config_path,
            ", ".join(f"{kind}={len(entries)}" for kind, entries in tables.items()),
        )
        return LoadResult.LOADED

    def invalidate(self) -> None:
        """Drop the cache so the next :meth:`load` reads the file again."""
        with self._lock:
            self._is_cached = False

    def match(self, kind: BackendKind, path: str) -> Credential:
        """Return the most specific credential for ``path``.

        Args:
            kind: Backend kind whose table is searched.
            path: Full path, with or without its scheme prefix.

        Raises:
            CredentialNotFoundError: If the table is empty or nothing matches.
        """
        bare_path = strip_scheme(path, kind)
        with self._lock:
            for entry in self._tables.get(kind, []):
                if entry.matches(bare_path):
                    logger.debug(
                        "Using credential '%s' for path %s%s",
                        entry.prefix,
                        scheme_prefix(kind),
                        bare_path,
                    )
                    return entry.credential

        raise CredentialNotFoundError(
            f"Cannot match credential for path {scheme_prefix(kind)}{bare_path}", path=path
        )

    def entries(self, kind: BackendKind) -> tuple[CredentialEntry, ...]:
        """Return a snapshot of the table for ``kind`` in match order."""
        with self._lock:
            return tuple(self._tables.get(kind, []))

    def warn_ambient_fallback(self, kind: BackendKind) -> None:
        """Log once per store and kind that environment credentials are in use."""
        with self._lock:
            if kind in self._ambient_warned:
                return
            self._ambient_warned.add(kind)
        logger.warning(
            "No credential file configured (%s); using ambient credentials for %s",
            ARTIFACTFS_CLOUD_CREDENTIAL_PATH_ENV,
            kind,
        )


_default_store: CredentialStore | None = None
_default_store_lock = threading.Lock()


def get_default_credential_store() -> CredentialStore:
    """Return the process-wide credential store, creating it on first use."""
    global _default_store
    with _default_store_lock:
        if _default_store is None:
            _default_store = CredentialStore()
        return _default_store


def reset_default_credential_store() -> None:
    """Discard the process-wide credential store (for testing)."""
    global _default_store
    with _default_store_lock:
        _default_store = None
