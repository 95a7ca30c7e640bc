"""Tests for archivist assign."""

from __future__ import annotations

from pathlib import Path

from archivist.cli.main import app


def test_assign_and_revoke_global_document(cli, db_path: Path, provider, write_file, open_repo) -> None:
    doc = write_file("policy.txt", "Refunds are accepted within thirty days.")
    cli.invoke(app, ["add", "--global", "--title", "Policy", "--file", str(doc), "--db", str(db_path)])
    global_id = open_repo(db_path).list_global_documents()[0].id
    search = ["search", "--agent", "agent-a", "--query", "refunds", "--db", str(db_path)]

    assert "No context found" in cli.invoke(app, search).output

    result = cli.invoke(app, ["assign", "--agent", "agent-a", "--global-id", global_id, "--db", str(db_path)])
    assert result.exit_code == 0
    assert "Policy" in cli.invoke(app, search).output

    result = cli.invoke(
        app, ["assign", "--agent", "agent-a", "--global-id", global_id, "--remove", "--db", str(db_path)]
    )
    assert result.exit_code == 0
    assert "No context found" in cli.invoke(app, search).output


def test_revoke_missing_assignment(cli, db_path: Path) -> None:
    result = cli.invoke(app, ["assign", "--agent", "a", "--global-id", "g", "--remove", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "was not assigned" in result.output


def test_assign_unknown_global(cli, db_path: Path) -> None:
    result = cli.invoke(app, ["assign", "--agent", "a", "--global-id", "missing", "--db", str(db_path)])
    assert result.exit_code == 1
    assert "not found" in result.output
