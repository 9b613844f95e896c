"""Google Cloud Storage backend (read-only)."""

from __future__ import annotations

import logging
from typing import Any

from artifactfs.backends.base import (
    FileSystemBackend,
    append_slash,
    collapse_separators,
    datetime_to_ns,
    immediate_child,
    translate_errors,
)
from artifactfs.errors import BackendError, InvalidPathError, PathNotFoundError
from artifactfs.models import GCSCredential
from artifactfs.routing import BackendKind, scheme_prefix
from artifactfs.tracing import traced_fs_operation

logger = logging.getLogger(__name__)

GCS_PREFIX = scheme_prefix(BackendKind.GCS)


def parse_gcs_path(path: str) -> tuple[str, str]:
    """Split ``gs://bucket/object`` into bucket and object name.

    Raises:
        InvalidPathError: If no bucket name is present.
    """
    rest = path[len(GCS_PREFIX) :] if path.startswith(GCS_PREFIX) else path
    bucket, _, obj = rest.partition("/")
    if not bucket:
        raise InvalidPathError(f"No bucket name found in path: {path}", path=path)
    return bucket, collapse_separators(obj)


def _create_client(credential: GCSCredential | None) -> Any:
    from google.cloud import storage

    if credential is not None and credential.credential_path:
        return storage.Client.from_service_account_json(credential.credential_path)
    return storage.Client()


class GCSFileSystem(FileSystemBackend):
    """Backend for ``gs://`` paths.

    Directories are inferred from object prefixes. Writes are not supported.
    """

    kind = BackendKind.GCS

    def __init__(
        self,
        path: str | None = None,
        credential: GCSCredential | None = None,
        *,
        client: Any = None,
    ) -> None:
        """Create the storage client.

        Args:
            path: Path that triggered construction (unused; GCS clients are global).
            credential: Service account credential. None uses the default
                credential chain (GOOGLE_APPLICATION_CREDENTIALS, metadata server).
            client: Pre-built client, bypassing SDK construction.
        """
        del path
        if client is None:
            with translate_errors("Unable to create GCS client for", GCS_PREFIX):
                client = _create_client(credential)
        self._client = client
        logger.debug(
            "Created GCS client (%s)",
            "service account" if credential is not None else "ambient credentials",
        )

    def normalize_path(self, path: str) -> str:
        bucket, obj = parse_gcs_path(path)
        return f"{GCS_PREFIX}{bucket}/{obj}" if obj else f"{GCS_PREFIX}{bucket}"

    def close(self) -> None:
        self._client.close()

    def _get_blob(self, bucket: str, obj: str) -> Any:
        return self._client.bucket(bucket).get_blob(obj)

    def file_exists(self, path: str) -> bool:
        bucket, obj = parse_gcs_path(path)
        if obj:
            with translate_errors("Failed to get metadata for object at", path):
                if self._get_blob(bucket, obj) is not None:
                    return True
        return self.is_directory(path)

    def is_directory(self, path: str) -> bool:
        bucket, obj = parse_gcs_path(path)
        with translate_errors("Failed to check if directory at", path):
            if self._client.lookup_bucket(bucket) is None:
                raise BackendError(
                    f"Could not get MetaData for bucket with name {bucket}", path=path
                )
            if not obj:
                return True
            blobs = self._client.list_blobs(bucket, prefix=append_slash(obj), max_results=1)
            return any(True for _ in blobs)

    def file_modification_time(self, path: str) -> int:
        if self.is_directory(path):
            return 0
        bucket, obj = parse_gcs_path(path)
        with translate_errors("Failed to get modification time for object at", path):
            blob = self._get_blob(bucket, obj)
        if blob is None:
            raise PathNotFoundError(f"Object does not exist at {path}", path=path)
        return datetime_to_ns(blob.updated)

    @traced_fs_operation("list")
    def get_directory_contents(self, path: str) -> set[str]:
        bucket, obj = parse_gcs_path(path)
        prefix = append_slash(obj)
        contents: set[str] = set()
        with translate_errors("Failed to get contents of directory", path):
            for blob in self._client.list_blobs(bucket, prefix=prefix):
                child = immediate_child(blob.name, prefix)
                if child is not None:
                    contents.add(child)
        return contents

    @traced_fs_operation("read")
    def read_binary_file(self, path: str) -> bytes:
        bucket, obj = parse_gcs_path(path)
        with translate_errors("Failed to read file at", path):
            blob = self._get_blob(bucket, obj) if obj else None
            if blob is None:
                raise PathNotFoundError(f"File does not exist at {path}", path=path)
            return blob.download_as_bytes()
