"""Azure Blob Storage backend.

Paths look like ``as://<account host>/<container>/<blob>[?query]``. Reads,
listings and text uploads are supported; every other write is not.

Environment Variables (ambient credentials):
    AZURE_STORAGE_ACCOUNT: Account name, overriding the one in the path host.
    AZURE_STORAGE_KEY: Shared account key. Without it access is anonymous.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Final

from artifactfs.backends.base import (
    FileSystemBackend,
    append_slash,
    datetime_to_ns,
    immediate_child,
    translate_errors,
)
from artifactfs.errors import BackendError, InvalidPathError, PathNotFoundError
from artifactfs.models import AzureCredential
from artifactfs.routing import BackendKind, scheme_prefix
from artifactfs.tracing import traced_fs_operation

logger = logging.getLogger(__name__)

AS_PREFIX = scheme_prefix(BackendKind.AZURE)
AZURE_STORAGE_ACCOUNT_ENV: Final[str] = "AZURE_STORAGE_ACCOUNT"
AZURE_STORAGE_KEY_ENV: Final[str] = "AZURE_STORAGE_KEY"
BLOB_HOST_SUFFIX: Final[str] = ".blob.core.windows.net"

_AS_PATH_RE: Final = re.compile(r"as://([^/]+)/([^/?]+)(?:/([^?]*))?(\?.*)?")


def parse_azure_path(path: str) -> tuple[str, str, str]:
    """Split an Azure path into (account host, container, blob).

    Raises:
        InvalidPathError: If the path is not ``as://host/container[/blob]``.
    """
    match = _AS_PATH_RE.fullmatch(path)
    if not match:
        raise InvalidPathError(f"Invalid azure storage path: {path}", path=path)
    host, container, blob = match.group(1), match.group(2), match.group(3) or ""
    return host, container, blob.strip("/")


def account_name_from_host(host: str) -> str:
    """Return the storage account name for an account host."""
    if host.endswith(BLOB_HOST_SUFFIX):
        return host[: -len(BLOB_HOST_SUFFIX)]
    return host


def _resolve_account(path: str | None, credential: AzureCredential | None) -> tuple[str, str]:
    """Return (account name, account key) for the client behind ``path``.

    Raises:
        InvalidPathError: If no account name can be determined.
    """
    host = parse_azure_path(path)[0] if path else ""
    if credential is not None:
        account, key = credential.account_str, credential.account_key
    else:
        account = os.environ.get(AZURE_STORAGE_ACCOUNT_ENV, "")
        key = os.environ.get(AZURE_STORAGE_KEY_ENV, "")
    account = account or account_name_from_host(host)
    if not account:
        raise InvalidPathError("No Azure storage account name found", path=path)
    return account, key


def _create_client(account: str, key: str) -> Any:
    from azure.storage.blob import BlobServiceClient

    credential: dict[str, str] | None = None
    if key:
        credential = {"account_name": account, "account_key": key}
    return BlobServiceClient(
        account_url=f"https://{account}{BLOB_HOST_SUFFIX}", credential=credential
    )


def _is_not_found(error: Exception) -> bool:
    return getattr(error, "status_code", None) == 404


class AzureFileSystem(FileSystemBackend):
    """Backend for ``as://`` paths, bound to one storage account."""

    kind = BackendKind.AZURE
    requires_path = True

    def __init__(
        self,
        path: str | None,
        credential: AzureCredential | None = None,
        *,
        client: Any = None,
    ) -> None:
        """Create the blob service client for the account named by ``path``.

        Args:
            path: Any path in the target account. May be None when the
                credential or AZURE_STORAGE_ACCOUNT names the account.
            credential: Account name and shared key. None reads
                AZURE_STORAGE_ACCOUNT / AZURE_STORAGE_KEY.
            client: Pre-built BlobServiceClient, bypassing SDK construction.
        """
        self._account, key = _resolve_account(path, credential)
        if client is None:
            with translate_errors(
                "Unable to create Azure filesystem client for", path or AS_PREFIX
            ):
                client = _create_client(self._account, key)
        self._client = client
        logger.debug(
            "Created Azure client for account %s (%s)",
            self._account,
            "shared key" if key else "anonymous",
        )

    @property
    def account_name(self) -> str:
        return self._account

    def normalize_path(self, path: str) -> str:
        host, container, blob = parse_azure_path(path)
        base = f"{AS_PREFIX}{host}/{container}"
        return f"{base}/{blob}" if blob else base

    def close(self) -> None:
        self._client.close()

    def _container(self, container: str) -> Any:
        return self._client.get_container_client(container)

    def _walk(self, path: str) -> list[tuple[str, bool]]:
        """Return (child name, is directory) for the entries directly under ``path``."""
        _, container, blob = parse_azure_path(path)
        prefix = append_slash(blob)
        entries: list[tuple[str, bool]] = []
        with translate_errors("Failed to get contents of directory", path):
            for item in self._container(container).walk_blobs(
                name_starts_with=prefix or None, delimiter="/"
            ):
                child = immediate_child(item.name, prefix)
                if child is not None:
                    entries.append((child, item.name.endswith("/")))
        return entries

    def file_exists(self, path: str) -> bool:
        _, container, blob = parse_azure_path(path)
        if blob:
            with translate_errors("Failed to check if file exists at", path):
                if self._container(container).get_blob_client(blob).exists():
                    return True
        return self.is_directory(path)

    def is_directory(self, path: str) -> bool:
        _, container, blob = parse_azure_path(path)
        with translate_errors("Failed to check if directory at", path):
            client = self._container(container)
            if not blob:
                return bool(client.exists())
            items = client.walk_blobs(name_starts_with=append_slash(blob), delimiter="/")
            return any(True for _ in items)

    def file_modification_time(self, path: str) -> int:
        if self.is_directory(path):
            return 0
        _, container, blob = parse_azure_path(path)
        try:
            properties = self._container(container).get_blob_client(blob).get_blob_properties()
        except Exception as e:
            if _is_not_found(e):
                raise PathNotFoundError(
                    f"Blob does not exist at {path}", path=path, cause=e
                ) from e
            raise BackendError(
                f"Unable to get blob property for file at {path}: {e}", path=path, cause=e
            ) from e
        return datetime_to_ns(properties.last_modified)

    @traced_fs_operation("list")
    def get_directory_contents(self, path: str) -> set[str]:
        return {name for name, _ in self._walk(path)}

    def get_directory_subdirs(self, path: str) -> set[str]:
        return {name for name, is_dir in self._walk(path) if is_dir}

    def get_directory_files(self, path: str) -> set[str]:
        return {name for name, is_dir in self._walk(path) if not is_dir}

    @traced_fs_operation("read")
    def read_binary_file(self, path: str) -> bytes:
        _, container, blob = parse_azure_path(path)
        if not blob:
            raise PathNotFoundError(f"File does not exist at {path}", path=path)
        try:
            return self._container(container).download_blob(blob).readall()
        except Exception as e:
            if _is_not_found(e):
                raise PathNotFoundError(
                    f"File does not exist at {path}", path=path, cause=e
                ) from e
            raise BackendError(
                f"Failed to fetch file stream at {path}: {e}", path=path, cause=e
            ) from e

    @traced_fs_operation("write")
    def write_text_file(self, path: str, contents: str) -> None:
        _, container, blob = parse_azure_path(path)
        if not blob:
            raise InvalidPathError(f"No blob name found in path: {path}", path=path)
        with translate_errors("Failed to upload blob to", path):
            self._container(container).upload_blob(
                name=blob, data=contents.encode("utf-8"), overwrite=True
            )
