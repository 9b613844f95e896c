"""Amazon S3 backend (read-only).

Supports plain ``s3://bucket/key`` paths and paths that carry an explicit
S3-compatible endpoint, ``s3://[http://|https://]host:port/bucket/key``.

Environment Variables (ambient credentials, read by boto3):
    AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_SESSION_TOKEN,
    AWS_DEFAULT_REGION, AWS_PROFILE
"""

from __future__ import annotations

import logging
import re
from typing import Any, Final

from artifactfs.backends.base import (
    FileSystemBackend,
    append_slash,
    datetime_to_ns,
    immediate_child,
    translate_errors,
)
from artifactfs.errors import BackendError, FileSystemError, InvalidPathError, PathNotFoundError
from artifactfs.models import S3Credential
from artifactfs.routing import BackendKind, scheme_prefix
from artifactfs.tracing import traced_fs_operation

logger = logging.getLogger(__name__)

S3_PREFIX = scheme_prefix(BackendKind.S3)

_ENDPOINT_RE: Final = re.compile(
    r"s3://(http://|https://|)([0-9a-zA-Z\-.]+):([0-9]+)/"
    r"([0-9a-z.\-]+)(((/[0-9a-zA-Z.\-_]+)*)?)"
)

_NOT_FOUND_CODES: Final = frozenset({"404", "NoSuchKey", "NotFound"})


def clean_s3_path(path: str) -> str:
    """Strip outer slashes and collapse repeated ones, keeping any endpoint prefix.

    Raises:
        InvalidPathError: If nothing but slashes follows the scheme.
    """
    cleaned = ""
    rest = path
    if S3_PREFIX in rest:
        rest = rest[rest.find(S3_PREFIX) + len(S3_PREFIX) :]
        cleaned = S3_PREFIX
    for protocol in ("https://", "http://"):
        if protocol in rest:
            rest = rest[rest.find(protocol) + len(protocol) :]
            cleaned += protocol
            break

    parts = [part for part in rest.split("/") if part]
    if not parts:
        raise InvalidPathError(f"Invalid bucket name: '{rest}'", path=path)
    return cleaned + "/".join(parts)


def parse_s3_path(path: str) -> tuple[str, str]:
    """Split an S3 path into bucket and key, ignoring any endpoint.

    Raises:
        InvalidPathError: If the path has no bucket name.
    """
    cleaned = clean_s3_path(path)
    match = _ENDPOINT_RE.fullmatch(cleaned)
    if match:
        bucket, key = match.group(4), match.group(5).lstrip("/")
    else:
        rest = cleaned[len(S3_PREFIX) :] if cleaned.startswith(S3_PREFIX) else cleaned
        bucket, _, key = rest.partition("/")
    if not bucket:
        raise InvalidPathError(f"No bucket name found in path: {path}", path=path)
    return bucket, key


def s3_endpoint_url(path: str) -> str | None:
    """Return the endpoint URL embedded in ``path``, or None for AWS itself."""
    match = _ENDPOINT_RE.fullmatch(clean_s3_path(path))
    if not match:
        return None
    scheme = "https" if match.group(1) == "https://" else "http"
    return f"{scheme}://{match.group(2)}:{match.group(3)}"


def _is_not_found(error: Exception) -> bool:
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return False
    return str(response.get("Error", {}).get("Code", "")) in _NOT_FOUND_CODES


def _create_client(endpoint_url: str | None, credential: S3Credential | None) -> Any:
    import boto3
    from botocore.config import Config as BotoConfig

    session_kwargs: dict[str, Any] = {}
    if credential is not None:
        session_kwargs["region_name"] = credential.region or None
        if credential.key_id and credential.secret_key:
            session_kwargs["aws_access_key_id"] = credential.key_id
            session_kwargs["aws_secret_access_key"] = credential.secret_key
            session_kwargs["aws_session_token"] = credential.session_token or None
    session = boto3.Session(**session_kwargs)
    return session.client(
        "s3",
        endpoint_url=endpoint_url,
        config=BotoConfig(s3={"addressing_style": "path"}),
    )


class S3FileSystem(FileSystemBackend):
    """Backend for ``s3://`` paths.

    The client is bound to the endpoint found in the construction path, so a
    backend instance serves either AWS itself or one S3-compatible endpoint.
    """

    kind = BackendKind.S3
    requires_path = True

    def __init__(
        self,
        path: str | None,
        credential: S3Credential | None = None,
        *,
        client: Any = None,
    ) -> None:
        self._endpoint_url = s3_endpoint_url(path) if path else None
        if client is None:
            with translate_errors("Unable to create S3 client for", path or S3_PREFIX):
                client = _create_client(self._endpoint_url, credential)
        self._client = client
        logger.debug(
            "Created S3 client (endpoint=%s, %s)",
            self._endpoint_url or "aws",
            "configured credential" if credential is not None else "ambient credentials",
        )

    @property
    def endpoint_url(self) -> str | None:
        return self._endpoint_url

    def check_client(self, path: str) -> None:
        try:
            self.is_directory(path)
        except FileSystemError as e:
            raise BackendError(
                "Unable to create S3 filesystem client. Check account credentials.",
                path=path,
                cause=e,
            ) from e

    def normalize_path(self, path: str) -> str:
        """Return ``s3://bucket/key`` with the endpoint and extra slashes removed."""
        bucket, key = parse_s3_path(path)
        return f"{S3_PREFIX}{bucket}/{key}" if key else f"{S3_PREFIX}{bucket}"

    def close(self) -> None:
        self._client.close()

    def _head_object(self, path: str, bucket: str, key: str) -> dict[str, Any] | None:
        try:
            return self._client.head_object(Bucket=bucket, Key=key)
        except Exception as e:
            if _is_not_found(e):
                return None
            raise BackendError(
                f"Could not get MetaData for object at {path}: {e}", path=path, cause=e
            ) from e

    def file_exists(self, path: str) -> bool:
        if self.is_directory(path):
            return True
        bucket, key = parse_s3_path(path)
        return self._head_object(path, bucket, key) is not None

    def is_directory(self, path: str) -> bool:
        bucket, key = parse_s3_path(path)
        with translate_errors(f"Could not get MetaData for bucket with name {bucket} at", path):
            self._client.head_bucket(Bucket=bucket)
        if not key:
            return True
        with translate_errors("Failed to list objects with prefix", path):
            response = self._client.list_objects_v2(
                Bucket=bucket, Prefix=append_slash(key), MaxKeys=1
            )
        return bool(response.get("Contents"))

    def file_modification_time(self, path: str) -> int:
        if self.is_directory(path):
            return 0
        bucket, key = parse_s3_path(path)
        head = self._head_object(path, bucket, key)
        if head is None:
            raise PathNotFoundError(f"Object does not exist at {path}", path=path)
        return datetime_to_ns(head["LastModified"])

    @traced_fs_operation("list")
    def get_directory_contents(self, path: str) -> set[str]:
        bucket, key = parse_s3_path(path)
        prefix = append_slash(key)
        contents: set[str] = set()
        request: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        with translate_errors("Failed to list objects with prefix", path):
            while True:
                response = self._client.list_objects_v2(**request)
                for item in response.get("Contents", []):
                    child = immediate_child(item["Key"], prefix)
                    if child is not None:
                        contents.add(child)
                if not response.get("IsTruncated"):
                    break
                request["ContinuationToken"] = response["NextContinuationToken"]
        return contents

    @traced_fs_operation("read")
    def read_binary_file(self, path: str) -> bytes:
        bucket, key = parse_s3_path(path)
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except Exception as e:
            if _is_not_found(e):
                raise PathNotFoundError(
                    f"File does not exist at {path}", path=path, cause=e
                ) from e
            raise BackendError(
                f"Failed to get object at {path}: {e}", path=path, cause=e
            ) from e
        with translate_errors("Failed to read object body at", path):
            return response["Body"].read()
