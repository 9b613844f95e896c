"""Tests for OpenTelemetry spans around backend operations."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

import pytest

from artifactfs.backends import LocalFileSystem
from artifactfs.errors import PathNotFoundError
from artifactfs.tracing import (
    OTEL_ENABLED_ENV,
    OTEL_TEST_CAPTURE_ENV,
    clear_test_spans,
    configure_tracing,
    get_test_spans,
    path_digest,
    reset_tracing,
)
from tests.fakes import FakeRemoteBackend


def _span_attributes(name: str) -> list[dict[str, Any]]:
    return [dict(s.attributes or {}) for s in get_test_spans() if s.name == name]


class TestOtelSpans:
    """Tests for span emission and attribute safety."""

    @pytest.fixture(autouse=True)
    def tracing_capture(self, monkeypatch: pytest.MonkeyPatch) -> Any:
        """Enable in-memory span capture for each test."""
        monkeypatch.setenv(OTEL_ENABLED_ENV, "1")
        monkeypatch.setenv(OTEL_TEST_CAPTURE_ENV, "1")
        reset_tracing()
        configure_tracing()
        clear_test_spans()
        yield
        reset_tracing()

    def test_read_emits_span_with_safe_attributes(self, tmp_path: Path) -> None:
        target = tmp_path / "model.bin"
        target.write_bytes(b"weights")

        LocalFileSystem().read_binary_file(str(target))

        spans = _span_attributes("artifactfs.fs.read")
        assert len(spans) == 1
        attrs = spans[0]
        assert attrs["artifactfs.backend"] == "local"
        assert attrs["artifactfs.path_sha256"] == hashlib.sha256(
            str(target).encode("utf-8")
        ).hexdigest()
        for value in attrs.values():
            assert str(tmp_path) not in str(value)

    def test_failed_operation_marks_error(self, tmp_path: Path) -> None:
        with pytest.raises(PathNotFoundError):
            LocalFileSystem().read_binary_file(str(tmp_path / "absent"))

        attrs = _span_attributes("artifactfs.fs.read")[0]
        assert attrs["error"] is True
        assert attrs["error.type"] == "PathNotFoundError"

    def test_localize_emits_span(
        self, fake_backend: FakeRemoteBackend, scratch_tempdir: Path
    ) -> None:
        fake_backend.localize_directory("gs://bucket").release()

        attrs = _span_attributes("artifactfs.fs.localize")
        assert len(attrs) == 1
        assert attrs[0]["artifactfs.backend"] == "gcs"
        assert attrs[0]["artifactfs.path_sha256"] == path_digest("gs://bucket")

    def test_list_and_write_spans(self, tmp_path: Path) -> None:
        local = LocalFileSystem()

        local.write_text_file(str(tmp_path / "a.txt"), "a")
        local.get_directory_contents(str(tmp_path))

        names = {s.name for s in get_test_spans()}
        assert {"artifactfs.fs.write", "artifactfs.fs.list"} <= names


class TestTracingDisabled:
    """Tests for the default, disabled configuration."""

    def test_disabled_by_default(self) -> None:
        assert configure_tracing() is False

    def test_no_spans_when_disabled(self, tmp_path: Path) -> None:
        clear_test_spans()
        (tmp_path / "f").write_bytes(b"x")

        LocalFileSystem().read_binary_file(str(tmp_path / "f"))

        assert get_test_spans() == []


class TestLazyConfiguration:
    """Tests for tracing that is switched on only through the environment."""

    def test_env_alone_exports_spans(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv(OTEL_ENABLED_ENV, "1")
        monkeypatch.setenv(OTEL_TEST_CAPTURE_ENV, "1")
        reset_tracing()
        (tmp_path / "f").write_bytes(b"x")

        try:
            LocalFileSystem().read_binary_file(str(tmp_path / "f"))

            attrs = _span_attributes("artifactfs.fs.read")
            assert len(attrs) == 1
            assert attrs[0]["artifactfs.path_sha256"] == path_digest(str(tmp_path / "f"))
        finally:
            reset_tracing()

    def test_configure_tracing_is_exported(self) -> None:
        import artifactfs

        assert artifactfs.configure_tracing is configure_tracing
