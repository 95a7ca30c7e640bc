"""Fixtures shared by the CLI command tests."""

from __future__ import annotations

import re
import zlib
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from archivist.cli.main import app
from archivist.db.connection import Database
from archivist.db.migrations import initialize
from archivist.db.repository import Repository

runner = CliRunner(env={"COLUMNS": "200"})


def fake_embedding(model, input, **kwargs):
    """Stand-in for litellm.embedding: bag-of-words vector over 64 buckets."""
    vec = [0.0] * 64
    for word in re.findall(r"\w+", input[0].lower()):
        vec[zlib.crc32(word.encode()) % 64] += 1.0
    resp = MagicMock()
    resp.data = [{"embedding": vec}]
    return resp


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every command in tmp_path with no global config and quiet logging."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("archivist.config._GLOBAL_CONFIG_PATH", tmp_path / "missing.yaml")
    monkeypatch.setattr("archivist.cli.context.configure_logging", lambda level: 0)
    monkeypatch.delenv("ARCHIVIST_EMBEDDING_MODEL", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


@pytest.fixture
def cli() -> CliRunner:
    return runner


@pytest.fixture
def provider(monkeypatch: pytest.MonkeyPatch) -> Iterator[MagicMock]:
    """Credentials present and litellm.embedding answering locally."""
    monkeypatch.setenv("GEMINI_API_KEY", "fake-key")
    with patch("archivist.rag.embeddings.litellm.embedding", side_effect=fake_embedding) as mock:
        yield mock


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / ".archivist.db"
    result = runner.invoke(app, ["init", "--db", str(path)])
    assert result.exit_code == 0
    return path


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def open_repo() -> Iterator[Callable[[Path], Repository]]:
    """Factory opening a fresh Repository on a database file; closed after the test."""
    conns = []

    def _open(path: Path) -> Repository:
        conn = Database(path).connect()
        initialize(conn)
        conns.append(conn)
        return Repository(conn)

    yield _open
    for conn in conns:
        conn.close()
