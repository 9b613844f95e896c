"""URI routing: classify a path into a backend kind by its scheme prefix."""

from __future__ import annotations

import functools
import importlib.util
import logging
from enum import StrEnum
from typing import Final

from artifactfs.errors import InvalidPathError, UnsupportedOperationError

logger = logging.getLogger(__name__)


class BackendKind(StrEnum):
    """Closed set of storage backends."""

    LOCAL = "LOCAL"
    GCS = "GCS"
    S3 = "S3"
    AZURE = "AS"


# Checked in this order; anything unmatched is local.
SCHEME_PREFIXES: Final[tuple[tuple[BackendKind, str], ...]] = (
    (BackendKind.GCS, "gs://"),
    (BackendKind.S3, "s3://"),
    (BackendKind.AZURE, "as://"),
)

# Credential configuration key per backend kind.
CONFIG_KEYS: Final[dict[BackendKind, str]] = {
    BackendKind.GCS: "gs",
    BackendKind.S3: "s3",
    BackendKind.AZURE: "as",
}

_SDK_MODULES: Final[dict[BackendKind, str]] = {
    BackendKind.GCS: "google.cloud.storage",
    BackendKind.S3: "boto3",
    BackendKind.AZURE: "azure.storage.blob",
}

_INSTALL_EXTRAS: Final[dict[BackendKind, str]] = {
    BackendKind.GCS: "gcs",
    BackendKind.S3: "s3",
    BackendKind.AZURE: "azure",
}


def scheme_prefix(kind: BackendKind) -> str:
    """Return the URI prefix for ``kind`` (empty for local paths)."""
    for candidate, prefix in SCHEME_PREFIXES:
        if candidate is kind:
            return prefix
    return ""


def backend_kind_string(kind: BackendKind) -> str:
    """Return the display name of a backend kind."""
    return str(kind.value)


def get_backend_kind(path: str) -> BackendKind:
    """Classify ``path`` by scheme prefix without checking availability.

    Raises:
        InvalidPathError: If ``path`` is empty.
    """
    if not path:
        raise InvalidPathError("Can not infer filesystem type from empty path", path=path)
    for kind, prefix in SCHEME_PREFIXES:
        if path.startswith(prefix):
            return kind
    return BackendKind.LOCAL


@functools.lru_cache(maxsize=None)
def is_backend_enabled(kind: BackendKind) -> bool:
    """Return True if the SDK backing ``kind`` is importable."""
    if kind is BackendKind.LOCAL:
        return True
    try:
        return importlib.util.find_spec(_SDK_MODULES[kind]) is not None
    except ModuleNotFoundError:
        return False


def ensure_backend_enabled(kind: BackendKind) -> None:
    """Raise if ``kind`` cannot be used in this installation.

    Raises:
        UnsupportedOperationError: If the backend's SDK is not installed.
    """
    if is_backend_enabled(kind):
        return
    prefix = scheme_prefix(kind)
    raise UnsupportedOperationError(
        f"{prefix} file-system not supported. To enable, install "
        f"artifactfs[{_INSTALL_EXTRAS[kind]}]."
    )


def route(path: str) -> BackendKind:
    """Classify ``path`` and verify its backend is enabled.

    Raises:
        InvalidPathError: If ``path`` is empty.
        UnsupportedOperationError: If the scheme's backend is not installed.
    """
    kind = get_backend_kind(path)
    ensure_backend_enabled(kind)
    logger.debug("Routed %s to %s backend", path, kind)
    return kind


def strip_scheme(path: str, kind: BackendKind) -> str:
    """Return ``path`` without its scheme prefix."""
    prefix = scheme_prefix(kind)
    if prefix and path.startswith(prefix):
        return path[len(prefix) :]
    return path
