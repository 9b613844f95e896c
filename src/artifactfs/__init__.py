"""artifactfs: one filesystem facade over local disk, GCS, S3 and Azure Blob Storage.

Paths are routed by scheme (``gs://``, ``s3://``, ``as://``; anything else is
local). Remote credentials come from a JSON file named by an environment
variable and are matched to paths by longest prefix. Remote directories can
be localized into temporary local mirrors.

Environment Variables:
    ARTIFACTFS_CLOUD_CREDENTIAL_PATH: Credential file. When unset, each SDK's
        ambient credential discovery is used.
    ARTIFACTFS_OTEL_ENABLED: Set to "1" to trace backend operations. Tracing is
        configured on the first traced call, or eagerly with configure_tracing().
"""

from artifactfs.backends import (
    AzureFileSystem,
    FileSystemBackend,
    GCSFileSystem,
    LocalFileSystem,
    S3FileSystem,
)
from artifactfs.credentials import CredentialStore, get_default_credential_store
from artifactfs.errors import (
    AmbientCredentialsUnsupportedError,
    BackendError,
    CredentialConfigError,
    CredentialNotFoundError,
    ErrorCode,
    FileSystemError,
    InvalidPathError,
    PathNotFoundError,
    UnsupportedOperationError,
)
from artifactfs.localization import LocalizedDirectory, mirror_directory
from artifactfs.manager import FileSystemManager
from artifactfs.models import (
    AzureCredential,
    Credential,
    CredentialEntry,
    GCSCredential,
    LoadResult,
    S3Credential,
)
from artifactfs.paths import base_name, dir_name, is_absolute_path, join_path
from artifactfs.routing import BackendKind, backend_kind_string, get_backend_kind
from artifactfs.tracing import configure_tracing

__all__ = [
    "AmbientCredentialsUnsupportedError",
    "AzureCredential",
    "AzureFileSystem",
    "BackendError",
    "BackendKind",
    "Credential",
    "CredentialConfigError",
    "CredentialEntry",
    "CredentialNotFoundError",
    "CredentialStore",
    "ErrorCode",
    "FileSystemBackend",
    "FileSystemError",
    "FileSystemManager",
    "GCSCredential",
    "GCSFileSystem",
    "InvalidPathError",
    "LoadResult",
    "LocalFileSystem",
    "LocalizedDirectory",
    "PathNotFoundError",
    "S3Credential",
    "S3FileSystem",
    "UnsupportedOperationError",
    "backend_kind_string",
    "base_name",
    "configure_tracing",
    "dir_name",
    "get_backend_kind",
    "get_default_credential_store",
    "is_absolute_path",
    "join_path",
    "mirror_directory",
]
