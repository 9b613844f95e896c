"""Pytest configuration and fixtures for artifactfs tests.

Provides credential file helpers, an in-memory remote tree and environment
isolation shared by all tests.
"""

from __future__ import annotations

import json
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from artifactfs import routing
from artifactfs.credentials import (
    ARTIFACTFS_CLOUD_CREDENTIAL_PATH_ENV,
    reset_default_credential_store,
)
from tests.fakes import FakeRemoteBackend

ISOLATED_ENV_VARS = (
    ARTIFACTFS_CLOUD_CREDENTIAL_PATH_ENV,
    "AZURE_STORAGE_ACCOUNT",
    "AZURE_STORAGE_KEY",
    "ARTIFACTFS_OTEL_ENABLED",
    "ARTIFACTFS_OTEL_TEST_CAPTURE",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Clear credential and tracing environment and the process-wide store."""
    for name in ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_default_credential_store()
    yield
    reset_default_credential_store()


@pytest.fixture
def scratch_tempdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect tempfile.mkdtemp into a per-test directory."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch


@pytest.fixture
def enable_all_backends(monkeypatch: pytest.MonkeyPatch) -> None:
    """Treat every remote SDK as installed."""
    monkeypatch.setattr(routing, "is_backend_enabled", lambda kind: True)


@pytest.fixture
def write_credentials(tmp_path: Path) -> Callable[[Any], str]:
    """Return a helper that writes a credential document and returns its path.

    Strings are written verbatim so tests can produce malformed files.
    """
    config_file = tmp_path / "credentials.json"

    def _write(document: Any) -> str:
        if isinstance(document, str):
            config_file.write_text(document, encoding="utf-8")
        else:
            config_file.write_text(json.dumps(document), encoding="utf-8")
        return str(config_file)

    return _write


@pytest.fixture
def remote_tree() -> dict[str, bytes]:
    """Return a bucket holding d1/f1, d1/d2/f2 and an empty directory d3."""
    return {
        "bucket/d1/f1": b"first file",
        "bucket/d1/d2/f2": b"\x00\x01binary\xff",
        "bucket/d3/": b"",
    }


@pytest.fixture
def fake_backend(remote_tree: dict[str, bytes]) -> FakeRemoteBackend:
    return FakeRemoteBackend(remote_tree)
