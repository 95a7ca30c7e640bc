"""Tests for archivist backfill."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

from archivist.cli.main import app


def _vector_response(*args, **kwargs):
    resp = MagicMock()
    resp.data = [{"embedding": [1.0, 0.0, 0.5]}]
    return resp


def test_backfill_requires_api_key(cli, db_path: Path) -> None:
    result = cli.invoke(app, ["backfill", "--db", str(db_path)])
    assert result.exit_code == 1
    assert "GEMINI_API_KEY" in result.output


def test_backfill_fills_documents_stored_offline(cli, db_path: Path, write_file, open_repo, monkeypatch) -> None:
    doc = write_file("hours.txt", "We open at nine.")
    cli.invoke(app, ["add", "--agent", "agent-a", "--file", str(doc), "--db", str(db_path)])
    cli.invoke(app, ["add", "--global", "--file", str(doc), "--db", str(db_path)])
    assert open_repo(db_path).count_chunks() == 0

    monkeypatch.setenv("GEMINI_API_KEY", "fake-key")
    with patch("archivist.rag.embeddings.litellm.embedding", side_effect=_vector_response):
        result = cli.invoke(app, ["backfill", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "Backfill done" in result.output
    assert open_repo(db_path).count_chunks(embedded_only=True) == 2


def test_backfill_empty_db(cli, db_path: Path, provider) -> None:
    result = cli.invoke(app, ["backfill", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "0 ok, 0 failed" in result.output


def test_backfill_missing_db(cli, tmp_path: Path) -> None:
    result = cli.invoke(app, ["backfill", "--db", str(tmp_path / "missing.db")])
    assert result.exit_code == 1
    assert "archivist init" in result.output
