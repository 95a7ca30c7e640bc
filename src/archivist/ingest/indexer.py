"""Indexer — rebuild the chunk set of one document.

For each document version:
1. Chunk the content (TextChunker).
2. Embed every fragment, one call at a time in fragment order.
3. Swap the stored chunk set of ``(source_type, source_id)`` for the new one
   in a single transaction (Repository.replace_chunks).

A fragment whose embedding is unavailable is skipped (or, with
``keep_unembedded``, stored without a vector); it never aborts the batch.
Store failures surface as IndexingError.
"""

from __future__ import annotations

import sqlite3
import threading
import weakref
from dataclasses import dataclass, field

from loguru import logger

from archivist.db.models import AGENT, GLOBAL, Chunk
from archivist.db.repository import Repository
from archivist.errors import IndexingError
from archivist.ingest.chunker import Fragment, TextChunker
from archivist.rag.embeddings import Embedder

# Entries disappear once no caller holds the lock.
_source_locks: weakref.WeakValueDictionary[tuple[str, str], threading.Lock] = (
    weakref.WeakValueDictionary()
)
_source_locks_guard = threading.Lock()


def _lock_for(source_type: str, source_id: str) -> threading.Lock:
    """Return the process-wide lock serialising re-index of one source."""
    key = (source_type, source_id)
    with _source_locks_guard:
        lock = _source_locks.get(key)
        if lock is None:
            lock = _source_locks[key] = threading.Lock()
        return lock


@dataclass
class IndexResult:
    """Outcome of one index run.

    Attributes:
        fragments: Fragments produced by the chunker.
        embedded: Fragments stored with an embedding.
        skipped: Fragments whose embedding was unavailable.
        chunk_ids: Ids of every stored chunk, in chunk_index order.
    """

    source_type: str
    source_id: str
    fragments: int = 0
    embedded: int = 0
    skipped: int = 0
    chunk_ids: list[str] = field(default_factory=list)


class Indexer:
    """Chunk, embed, and store documents for retrieval.

    Args:
        repo: Open Repository instance.
        embedder: Embedding client (see archivist.rag.embeddings.Embedder).
        chunker: Fragment splitter; defaults to 800 chars / 100 overlap.
        keep_unembedded: Store fragments without a vector instead of skipping them.
    """

    def __init__(
        self,
        repo: Repository,
        embedder: Embedder,
        chunker: TextChunker | None = None,
        keep_unembedded: bool = False,
    ) -> None:
        self._repo = repo
        self._embedder = embedder
        self.chunker = chunker or TextChunker()
        self._keep_unembedded = keep_unembedded

    def index_agent_document(
        self, owner_id: str, source_id: str, title: str | None, content: object
    ) -> IndexResult:
        """(Re)index a document private to agent *owner_id*."""
        if not owner_id:
            raise ValueError("owner_id is required for agent documents")
        return self._index(AGENT, source_id, owner_id, title, content)

    def index_global_document(self, source_id: str, title: str | None, content: object) -> IndexResult:
        """(Re)index a shared document; visibility comes from agent assignments."""
        return self._index(GLOBAL, source_id, None, title, content)

    def delete_chunks_by_source(self, source_type: str, source_id: str) -> int:
        """Remove every chunk of a source. Deleting a missing set is a no-op."""
        with _lock_for(source_type, source_id):
            try:
                return self._repo.delete_chunks_by_source(source_type, source_id)
            except sqlite3.Error as exc:
                raise IndexingError(source_type, source_id, exc) from exc

    # ------------------------------------------------------------------
    # Shared procedure
    # ------------------------------------------------------------------

    def _index(
        self,
        source_type: str,
        source_id: str,
        owner_id: str | None,
        title: str | None,
        content: object,
    ) -> IndexResult:
        result = IndexResult(source_type=source_type, source_id=source_id)

        with _lock_for(source_type, source_id):
            fragments = self.chunker.chunk(content, title)
            result.fragments = len(fragments)

            chunks: list[Chunk] = []
            for fragment in fragments:
                embedding = self._embed(fragment, source_type, source_id)
                if embedding is None:
                    result.skipped += 1
                    if not self._keep_unembedded:
                        continue
                else:
                    result.embedded += 1
                chunks.append(
                    Chunk(
                        source_type=source_type,
                        source_id=source_id,
                        owner_id=owner_id,
                        chunk_index=fragment.chunk_index,
                        title=fragment.title,
                        content=fragment.content,
                        embedding=embedding,
                    )
                )

            try:
                result.chunk_ids = self._repo.replace_chunks(source_type, source_id, chunks)
            except sqlite3.Error as exc:
                raise IndexingError(source_type, source_id, exc) from exc

        logger.debug(
            f"Indexed {source_type}:{source_id} — {result.fragments} fragments, "
            f"{result.embedded} embedded, {result.skipped} skipped"
        )
        return result

    def _embed(self, fragment: Fragment, source_type: str, source_id: str) -> list[float] | None:
        try:
            return self._embedder.embed(fragment.content)
        except Exception as exc:
            # Same outcome as an unavailable embedding.
            logger.warning(
                f"Embedding failed for {source_type}:{source_id}#{fragment.chunk_index}: {exc}"
            )
            return None
