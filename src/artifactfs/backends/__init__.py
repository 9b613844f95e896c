"""artifactfs storage backends.

Backends:
- LocalFileSystem: local disk
- GCSFileSystem: Google Cloud Storage (requires artifactfs[gcs])
- S3FileSystem: Amazon S3 and S3-compatible stores (requires artifactfs[s3])
- AzureFileSystem: Azure Blob Storage (requires artifactfs[azure])

Remote SDKs are imported only when a client is built, so every class here is
importable without them.
"""

from artifactfs.backends.azure import AzureFileSystem
from artifactfs.backends.base import FileSystemBackend
from artifactfs.backends.gcs import GCSFileSystem
from artifactfs.backends.local import LocalFileSystem
from artifactfs.backends.s3 import S3FileSystem
from artifactfs.routing import BackendKind

BACKEND_CLASSES: dict[BackendKind, type[FileSystemBackend]] = {
    BackendKind.LOCAL: LocalFileSystem,
    BackendKind.GCS: GCSFileSystem,
    BackendKind.S3: S3FileSystem,
    BackendKind.AZURE: AzureFileSystem,
}

__all__ = [
    "BACKEND_CLASSES",
    "AzureFileSystem",
    "FileSystemBackend",
    "GCSFileSystem",
    "LocalFileSystem",
    "S3FileSystem",
]
