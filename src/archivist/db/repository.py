"""Repository pattern for all Archivist database operations.

Single interface for: agent documents, global documents, agent <-> global
assignments, and knowledge chunks. Every chunk read or write is scoped by
``(source_type, source_id)``, by owner, or by an explicit set of assigned
global sources; there is no unscoped chunk query.
"""

from __future__ import annotations

import functools
import sqlite3
import threading
import uuid
from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

from archivist.db.models import AGENT, GLOBAL, SOURCE_TYPES, AgentDocument, Chunk, GlobalDocument
from archivist.db.vectors import decode_embedding, encode_embedding

# Stay well below SQLITE_MAX_VARIABLE_NUMBER on older builds (999).
_IN_BATCH = 500

_CHUNK_COLUMNS = (
    "id, source_type, source_id, owner_id, chunk_index, title, content, embedding, created_at"
)

_F = TypeVar("_F", bound=Callable[..., object])


def _serialized(method: _F) -> _F:
    """Run *method* while holding the repository's connection lock."""

    @functools.wraps(method)
    def wrapper(self: Repository, *args: object, **kwargs: object) -> object:
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class Repository:
    """Data access layer for all Archivist database entities.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.

    A sqlite3 connection carries a single transaction, so every method holds
    one lock for its whole duration: a commit issued for one source can never
    land inside another source's replace_chunks. Share one Repository per
    connection across threads rather than wrapping the same connection twice.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see archivist.db.migrations.initialize).
        """
        self._conn = conn
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Agent documents (knowledge_base)
    # ------------------------------------------------------------------

    @_serialized
    def add_agent_document(self, doc: AgentDocument) -> None:
        self._conn.execute(
            """
            INSERT INTO knowledge_base (id, agent_id, title, content, type)
            VALUES (?, ?, ?, ?, ?)
            """,
            (doc.id, doc.agent_id, doc.title, doc.content, doc.type),
        )
        self._conn.commit()

    @_serialized
    def get_agent_document(self, doc_id: str) -> AgentDocument | None:
        row = self._conn.execute(
            "SELECT id, agent_id, title, content, type, created_at FROM knowledge_base WHERE id = ?",
            (doc_id,),
        ).fetchone()
        return _row_to_agent_document(row) if row else None

    @_serialized
    def list_agent_documents(self, agent_id: str | None = None) -> list[AgentDocument]:
        """Return agent documents, optionally restricted to *agent_id*, oldest first."""
        sql = "SELECT id, agent_id, title, content, type, created_at FROM knowledge_base"
        params: tuple = ()
        if agent_id is not None:
            sql += " WHERE agent_id = ?"
            params = (agent_id,)
        sql += " ORDER BY created_at, rowid"
        return [_row_to_agent_document(r) for r in self._conn.execute(sql, params).fetchall()]

    @_serialized
    def update_agent_document(
        self, doc_id: str, title: str | None = None, content: str | None = None
    ) -> AgentDocument | None:
        """Update title and/or content (None keeps the current value).

        Returns:
            The updated document, or None if *doc_id* does not exist.
        """
        self._conn.execute(
            """
            UPDATE knowledge_base SET
                title = COALESCE(?, title),
                content = COALESCE(?, content)
            WHERE id = ?
            """,
            (title, content, doc_id),
        )
        self._conn.commit()
        return self.get_agent_document(doc_id)

    @_serialized
    def delete_agent_document(self, doc_id: str) -> bool:
        cur = self._conn.execute("DELETE FROM knowledge_base WHERE id = ?", (doc_id,))
        self._conn.commit()
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Global documents (global_knowledge)
    # ------------------------------------------------------------------

    @_serialized
    def add_global_document(self, doc: GlobalDocument) -> None:
        self._conn.execute(
            "INSERT INTO global_knowledge (id, title, content, type) VALUES (?, ?, ?, ?)",
            (doc.id, doc.title, doc.content, doc.type),
        )
        self._conn.commit()

    @_serialized
    def get_global_document(self, doc_id: str) -> GlobalDocument | None:
        row = self._conn.execute(
            "SELECT id, title, content, type, created_at FROM global_knowledge WHERE id = ?",
            (doc_id,),
        ).fetchone()
        return _row_to_global_document(row) if row else None

    @_serialized
    def list_global_documents(self) -> list[GlobalDocument]:
        rows = self._conn.execute(
            "SELECT id, title, content, type, created_at FROM global_knowledge ORDER BY created_at, rowid"
        ).fetchall()
        return [_row_to_global_document(r) for r in rows]

    @_serialized
    def update_global_document(
        self, doc_id: str, title: str | None = None, content: str | None = None
    ) -> GlobalDocument | None:
        self._conn.execute(
            """
            UPDATE global_knowledge SET
                title = COALESCE(?, title),
                content = COALESCE(?, content)
            WHERE id = ?
            """,
            (title, content, doc_id),
        )
        self._conn.commit()
        return self.get_global_document(doc_id)

    @_serialized
    def delete_global_document(self, doc_id: str) -> bool:
        """Delete a global document. Assignments cascade via the foreign key."""
        cur = self._conn.execute("DELETE FROM global_knowledge WHERE id = ?", (doc_id,))
        self._conn.commit()
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Agent <-> global document assignments
    # ------------------------------------------------------------------

    @_serialized
    def assign_global(self, agent_id: str, global_id: str) -> None:
        """Grant *agent_id* access to global document *global_id* (idempotent)."""
        self._conn.execute(
            """
            INSERT OR IGNORE INTO agent_global_knowledge (agent_id, global_knowledge_id)
            VALUES (?, ?)
            """,
            (agent_id, global_id),
        )
        self._conn.commit()

    @_serialized
    def unassign_global(self, agent_id: str, global_id: str) -> bool:
        cur = self._conn.execute(
            "DELETE FROM agent_global_knowledge WHERE agent_id = ? AND global_knowledge_id = ?",
            (agent_id, global_id),
        )
        self._conn.commit()
        return cur.rowcount > 0

    @_serialized
    def set_assignments(self, agent_id: str, global_ids: Iterable[str]) -> None:
        """Replace the full set of global documents assigned to *agent_id*."""
        ids = list(dict.fromkeys(global_ids))
        try:
            self._conn.execute(
                "DELETE FROM agent_global_knowledge WHERE agent_id = ?", (agent_id,)
            )
            self._conn.executemany(
                "INSERT INTO agent_global_knowledge (agent_id, global_knowledge_id) VALUES (?, ?)",
                [(agent_id, gid) for gid in ids],
            )
            self._conn.commit()
        except sqlite3.Error:
            self._conn.rollback()
            raise

    @_serialized
    def list_assigned_global_ids(self, agent_id: str) -> list[str]:
        rows = self._conn.execute(
            """
            SELECT global_knowledge_id FROM agent_global_knowledge
            WHERE agent_id = ? ORDER BY created_at, rowid
            """,
            (agent_id,),
        ).fetchall()
        return [r[0] for r in rows]

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    @_serialized
    def add_chunk(self, chunk: Chunk) -> str:
        """Insert a single chunk. Returns its generated id."""
        chunk_id = self._insert_chunk(chunk)
        self._conn.commit()
        return chunk_id

    @_serialized
    def replace_chunks(self, source_type: str, source_id: str, chunks: Sequence[Chunk]) -> list[str]:
        """Atomically swap the chunk set of ``(source_type, source_id)``.

        Old rows are deleted and *chunks* inserted in one transaction: readers
        see either the previous set or the new one, never a mix.

        Returns:
            Ids of the inserted chunks, in input order.
        """
        _check_source_type(source_type)
        for chunk in chunks:
            if (chunk.source_type, chunk.source_id) != (source_type, source_id):
                raise ValueError(
                    f"Chunk belongs to ({chunk.source_type}, {chunk.source_id}), "
                    f"not ({source_type}, {source_id})"
                )
        try:
            self._conn.execute(
                "DELETE FROM knowledge_chunks WHERE source_type = ? AND source_id = ?",
                (source_type, source_id),
            )
            ids = [self._insert_chunk(c) for c in chunks]
            self._conn.commit()
        except (sqlite3.Error, ValueError):
            self._conn.rollback()
            raise
        return ids

    @_serialized
    def delete_chunks_by_source(self, source_type: str, source_id: str) -> int:
        """Delete every chunk of ``(source_type, source_id)``. Returns rows deleted."""
        _check_source_type(source_type)
        cur = self._conn.execute(
            "DELETE FROM knowledge_chunks WHERE source_type = ? AND source_id = ?",
            (source_type, source_id),
        )
        self._conn.commit()
        return cur.rowcount

    @_serialized
    def list_chunks_by_source(self, source_type: str, source_id: str) -> list[Chunk]:
        rows = self._conn.execute(
            f"""
            SELECT {_CHUNK_COLUMNS} FROM knowledge_chunks
            WHERE source_type = ? AND source_id = ?
            ORDER BY chunk_index
            """,
            (source_type, source_id),
        ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    @_serialized
    def list_agent_chunks(self, owner_id: str, embedded_only: bool = True) -> list[Chunk]:
        """Return agent-scoped chunks owned by *owner_id*, in insertion order."""
        sql = f"""
            SELECT {_CHUNK_COLUMNS} FROM knowledge_chunks
            WHERE source_type = '{AGENT}' AND owner_id = ?
        """
        if embedded_only:
            sql += " AND embedding IS NOT NULL"
        sql += " ORDER BY rowid"
        return _decode_rows(self._conn.execute(sql, (owner_id,)).fetchall(), embedded_only)

    @_serialized
    def list_global_chunks(self, source_ids: Sequence[str], embedded_only: bool = True) -> list[Chunk]:
        """Return global-scoped chunks whose source is in *source_ids*, in insertion order."""
        ids = list(dict.fromkeys(source_ids))
        if not ids:
            return []

        rows: list[sqlite3.Row] = []
        for start in range(0, len(ids), _IN_BATCH):
            batch = ids[start:start + _IN_BATCH]
            placeholders = ",".join("?" * len(batch))
            sql = f"""
                SELECT rowid AS _rowid, {_CHUNK_COLUMNS} FROM knowledge_chunks
                WHERE source_type = '{GLOBAL}' AND source_id IN ({placeholders})
            """
            if embedded_only:
                sql += " AND embedding IS NOT NULL"
            rows.extend(self._conn.execute(sql, batch).fetchall())
        rows.sort(key=lambda r: r["_rowid"])
        return _decode_rows(rows, embedded_only)

    @_serialized
    def count_chunks(self, embedded_only: bool = False) -> int:
        sql = "SELECT COUNT(*) FROM knowledge_chunks"
        if embedded_only:
            sql += " WHERE embedding IS NOT NULL"
        return self._conn.execute(sql).fetchone()[0]

    @_serialized
    def count_chunks_by_source(self, source_type: str, source_id: str) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM knowledge_chunks WHERE source_type = ? AND source_id = ?",
            (source_type, source_id),
        ).fetchone()[0]

    @_serialized
    def count_assignments(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM agent_global_knowledge").fetchone()[0]

    def _insert_chunk(self, chunk: Chunk) -> str:
        _check_source_type(chunk.source_type)
        if chunk.source_type == GLOBAL and chunk.owner_id is not None:
            raise ValueError("Global chunks cannot have an owner_id")
        if chunk.source_type == AGENT and not chunk.owner_id:
            raise ValueError("Agent chunks require an owner_id")
        chunk_id = chunk.id or str(uuid.uuid4())
        self._conn.execute(
            """
            INSERT INTO knowledge_chunks
                (id, source_type, source_id, owner_id, chunk_index, title, content, embedding)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                chunk_id,
                chunk.source_type,
                chunk.source_id,
                chunk.owner_id,
                chunk.chunk_index,
                chunk.title,
                chunk.content,
                encode_embedding(chunk.embedding),
            ),
        )
        chunk.id = chunk_id
        return chunk_id


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _check_source_type(source_type: str) -> None:
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"source_type must be one of {SOURCE_TYPES}, got {source_type!r}")


def _decode_rows(rows: list[sqlite3.Row], embedded_only: bool) -> list[Chunk]:
    chunks = [_row_to_chunk(r) for r in rows]
    if embedded_only:
        # A stored value that no longer decodes is as good as no embedding.
        chunks = [c for c in chunks if c.is_embedded]
    return chunks


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["id"],
        source_type=row["source_type"],
        source_id=row["source_id"],
        owner_id=row["owner_id"],
        chunk_index=row["chunk_index"],
        title=row["title"],
        content=row["content"],
        embedding=decode_embedding(row["embedding"]),
        created_at=row["created_at"],
    )


def _row_to_agent_document(row: sqlite3.Row) -> AgentDocument:
    return AgentDocument(
        id=row["id"],
        agent_id=row["agent_id"],
        title=row["title"],
        content=row["content"],
        type=row["type"],
        created_at=row["created_at"],
    )


def _row_to_global_document(row: sqlite3.Row) -> GlobalDocument:
    return GlobalDocument(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        type=row["type"],
        created_at=row["created_at"],
    )
