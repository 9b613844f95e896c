"""Tests for the GCS backend against an in-memory storage client."""

from __future__ import annotations

from pathlib import Path

import pytest

from artifactfs.backends.gcs import GCSFileSystem, parse_gcs_path
from artifactfs.errors import (
    BackendError,
    InvalidPathError,
    PathNotFoundError,
    UnsupportedOperationError,
)
from tests.fakes import FIXED_MTIME_NS, FakeGCSClient


@pytest.fixture
def client() -> FakeGCSClient:
    return FakeGCSClient(
        {
            "models": {
                "densenet/config.pbtxt": b"platform: onnx",
                "densenet/1/model.onnx": b"weights",
                "densenet/labels/": b"",
            }
        }
    )


@pytest.fixture
def gcs(client: FakeGCSClient) -> GCSFileSystem:
    return GCSFileSystem(client=client)


class TestPathParsing:
    """Tests for gs:// path parsing."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("gs://bucket", ("bucket", "")),
            ("gs://bucket/", ("bucket", "")),
            ("gs://bucket//a///b/", ("bucket", "a/b")),
        ],
    )
    def test_parse(self, path: str, expected: tuple[str, str]) -> None:
        assert parse_gcs_path(path) == expected

    def test_missing_bucket_is_invalid(self) -> None:
        with pytest.raises(InvalidPathError, match="No bucket name"):
            parse_gcs_path("gs:///object")

    def test_normalize_path(self, gcs: GCSFileSystem) -> None:
        assert gcs.normalize_path("gs://models//densenet/") == "gs://models/densenet"
        assert gcs.normalize_path("gs://models/") == "gs://models"


class TestOperations:
    """Tests for reads, listings and metadata."""

    def test_directory_inference(self, gcs: GCSFileSystem) -> None:
        assert gcs.is_directory("gs://models")
        assert gcs.is_directory("gs://models/densenet")
        assert gcs.is_directory("gs://models/densenet/labels")
        assert not gcs.is_directory("gs://models/densenet/config.pbtxt")

    def test_missing_bucket_fails(self, gcs: GCSFileSystem) -> None:
        with pytest.raises(BackendError, match="bucket with name absent"):
            gcs.is_directory("gs://absent/x")

    def test_file_exists(self, gcs: GCSFileSystem) -> None:
        assert gcs.file_exists("gs://models/densenet/config.pbtxt")
        assert gcs.file_exists("gs://models/densenet")
        assert not gcs.file_exists("gs://models/densenet/absent")

    def test_modification_time(self, gcs: GCSFileSystem) -> None:
        assert gcs.file_modification_time("gs://models/densenet") == 0
        assert gcs.file_modification_time("gs://models/densenet/config.pbtxt") == FIXED_MTIME_NS

    def test_listing(self, gcs: GCSFileSystem) -> None:
        path = "gs://models/densenet"

        assert gcs.get_directory_contents(path) == {"config.pbtxt", "1", "labels"}
        assert gcs.get_directory_subdirs(path) == {"1", "labels"}
        assert gcs.get_directory_files(path) == {"config.pbtxt"}
        assert gcs.get_directory_contents("gs://models") == {"densenet"}

    def test_read(self, gcs: GCSFileSystem) -> None:
        assert gcs.read_text_file("gs://models/densenet/config.pbtxt") == "platform: onnx"
        assert gcs.read_binary_file("gs://models/densenet/1/model.onnx") == b"weights"

    def test_read_missing_is_not_found(self, gcs: GCSFileSystem) -> None:
        with pytest.raises(PathNotFoundError):
            gcs.read_binary_file("gs://models/absent")

    def test_writes_are_unsupported(self, gcs: GCSFileSystem) -> None:
        with pytest.raises(UnsupportedOperationError):
            gcs.write_text_file("gs://models/x", "x")
        with pytest.raises(UnsupportedOperationError):
            gcs.delete_directory("gs://models/densenet")

    def test_localize(self, gcs: GCSFileSystem, client: FakeGCSClient, scratch_tempdir: Path) -> None:
        with gcs.localize_directory("gs://models/densenet/") as localized:
            root = Path(localized.path)
            assert localized.original_path == "gs://models/densenet"
            assert (root / "1" / "model.onnx").read_bytes() == b"weights"
            assert (root / "labels").is_dir()

        gcs.close()
        assert client.closed
