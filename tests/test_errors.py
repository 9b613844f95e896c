"""Tests for the error hierarchy."""

from __future__ import annotations

import pytest

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


class TestErrorCodes:
    """Tests for error kinds and messages."""

    @pytest.mark.parametrize(
        ("error_type", "code"),
        [
            (PathNotFoundError, ErrorCode.NOT_FOUND),
            (CredentialNotFoundError, ErrorCode.NOT_FOUND),
            (InvalidPathError, ErrorCode.INVALID_ARGUMENT),
            (UnsupportedOperationError, ErrorCode.UNSUPPORTED),
            (AmbientCredentialsUnsupportedError, ErrorCode.UNSUPPORTED),
            (BackendError, ErrorCode.INTERNAL),
            (CredentialConfigError, ErrorCode.INTERNAL),
        ],
    )
    def test_codes(self, error_type: type[FileSystemError], code: ErrorCode) -> None:
        error = error_type("boom")

        assert error.code is code
        assert isinstance(error, FileSystemError)

    def test_message_includes_path(self) -> None:
        assert str(BackendError("read failed", path="s3://b/k")) == "read failed path=s3://b/k"
        assert str(PathNotFoundError("missing s3://b/k", path="s3://b/k")) == "missing s3://b/k"

    def test_cause_is_kept(self) -> None:
        cause = OSError("disk")
        error = BackendError("io", cause=cause)

        assert error.cause is cause
        assert error.message == "io"
