"""Tests for the forward-only migration runner."""

from __future__ import annotations

import sqlite3

import pytest

from archivist.db.connection import Database
from archivist.db.migrations import MIGRATIONS, initialize, run_migrations


def _fresh_conn(tmp_path):
    """Open a new connection without running migrations."""
    db = Database(tmp_path / "test.db")
    return db.connect()


def _table_exists(conn, name: str) -> bool:
    return conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,)
    ).fetchone() is not None


def test_run_migrations_records_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]
    assert version == MIGRATIONS[-1][0]
    conn.close()


def test_run_migrations_idempotent(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    initialize(conn)
    count = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    assert count == len(MIGRATIONS)
    conn.close()


@pytest.mark.parametrize(
    "table", ["knowledge_base", "global_knowledge", "agent_global_knowledge", "knowledge_chunks"]
)
def test_tables_created(tmp_path, table):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    assert _table_exists(conn, table)
    conn.close()


def test_chunk_source_type_constrained(tmp_db):
    with pytest.raises(sqlite3.IntegrityError):
        tmp_db.execute(
            """
            INSERT INTO knowledge_chunks (id, source_type, source_id, chunk_index, title, content)
            VALUES ('c1', 'team', 's1', 0, 't', 'c')
            """
        )


def test_chunk_embedding_nullable(tmp_db):
    tmp_db.execute(
        """
        INSERT INTO knowledge_chunks (id, source_type, source_id, chunk_index, title, content)
        VALUES ('c1', 'global', 's1', 0, 't', 'c')
        """
    )
    row = tmp_db.execute("SELECT embedding FROM knowledge_chunks WHERE id = 'c1'").fetchone()
    assert row["embedding"] is None


def test_connection_context_manager(tmp_path):
    with Database(tmp_path / "ctx.db") as conn:
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
