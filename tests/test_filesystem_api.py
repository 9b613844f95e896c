"""Tests for the path-based convenience API."""

from __future__ import annotations

from pathlib import Path

import pytest

from artifactfs import filesystem
from artifactfs.errors import AmbientCredentialsUnsupportedError, PathNotFoundError
from artifactfs.routing import BackendKind


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    (tmp_path / "model" / "1").mkdir(parents=True)
    (tmp_path / "model" / "config.pbtxt").write_text("backend: onnx", encoding="utf-8")
    (tmp_path / "model" / ".DS_Store").write_bytes(b"\x00")
    return tmp_path / "model"


class TestLocalPaths:
    """Tests for module-level functions on local paths."""

    def test_queries(self, repo: Path) -> None:
        assert filesystem.file_exists(str(repo))
        assert filesystem.is_directory(str(repo / "1"))
        assert filesystem.get_directory_contents(str(repo)) == {"1", "config.pbtxt", ".DS_Store"}
        assert filesystem.get_directory_subdirs(str(repo)) == {"1"}
        assert filesystem.file_modification_time(str(repo / "config.pbtxt")) > 0

    def test_get_directory_files_skips_hidden(self, repo: Path) -> None:
        assert filesystem.get_directory_files(str(repo)) == {"config.pbtxt"}
        assert filesystem.get_directory_files(str(repo), skip_hidden_files=False) == {
            "config.pbtxt",
            ".DS_Store",
        }

    def test_read_write(self, repo: Path) -> None:
        filesystem.write_text_file(str(repo / "notes.txt"), "hello")
        filesystem.write_binary_file(str(repo / "1" / "model.bin"), b"\x01\x02")

        assert filesystem.read_text_file(str(repo / "notes.txt")) == "hello"
        assert filesystem.read_binary_file(str(repo / "1" / "model.bin")) == b"\x01\x02"

    def test_make_and_delete_directory(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b"

        filesystem.make_directory(str(target), recursive=True)
        assert target.is_dir()

        filesystem.delete_directory(str(tmp_path / "a"))
        assert not (tmp_path / "a").exists()

    def test_make_temporary_directory(self, scratch_tempdir: Path) -> None:
        temp_dir = Path(filesystem.make_temporary_directory(BackendKind.LOCAL))

        assert temp_dir.is_dir()
        assert temp_dir.parent == scratch_tempdir

    def test_localize_local_directory_in_place(self, repo: Path) -> None:
        with filesystem.localize_directory(str(repo)) as localized:
            assert localized.path == str(repo)
            assert not localized.owns_local

        assert repo.exists()

    def test_read_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PathNotFoundError):
            filesystem.read_text_file(str(tmp_path / "absent"))


class TestKinds:
    """Tests for kind helpers re-exported by the module."""

    def test_backend_kind_helpers(self) -> None:
        assert filesystem.get_backend_kind("s3://bucket") is BackendKind.S3
        assert filesystem.backend_kind_string(BackendKind.AZURE) == "AS"

    def test_remote_scratch_directory_needs_credentials(self, enable_all_backends: None) -> None:
        with pytest.raises(AmbientCredentialsUnsupportedError):
            filesystem.make_temporary_directory(BackendKind.S3)
