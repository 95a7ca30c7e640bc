"""Knowledge service — document writes with best-effort indexing.

This is the "document changed" owner for the indexing core: it stores agent
and global documents, keeps their chunk sets in step, and manages which global
documents each agent may see. Indexing after a write is a side effect; if it
fails the write still stands and the failure is logged.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass

from loguru import logger

from archivist.config import ArchivistConfig
from archivist.db.models import AGENT, GLOBAL, AgentDocument, GlobalDocument
from archivist.db.repository import Repository
from archivist.ingest.chunker import Fragment, TextChunker
from archivist.ingest.indexer import Indexer, IndexResult
from archivist.rag.embeddings import Embedder, EmbeddingClient
from archivist.rag.retriever import RetrievedChunk, Retriever


@dataclass
class BackfillReport:
    agent_done: int = 0
    agent_failed: int = 0
    global_done: int = 0
    global_failed: int = 0

    @property
    def failed(self) -> int:
        return self.agent_failed + self.global_failed


class KnowledgeService:
    """Documents, assignments, indexing and retrieval behind one object.

    Args:
        repo: Open Repository instance.
        indexer: Indexer bound to the same repository.
        retriever: Retriever bound to the same repository.
        config: Settings the service was built from.
    """

    def __init__(
        self,
        repo: Repository,
        indexer: Indexer,
        retriever: Retriever,
        config: ArchivistConfig | None = None,
    ) -> None:
        self.repo = repo
        self.indexer = indexer
        self.retriever = retriever
        self.config = config or ArchivistConfig()

    @classmethod
    def from_config(
        cls,
        conn: sqlite3.Connection,
        cfg: ArchivistConfig,
        embedder: Embedder | None = None,
    ) -> KnowledgeService:
        """Wire repository, chunker, embedding client, indexer and retriever from *cfg*."""
        repo = Repository(conn)
        embedder = embedder or EmbeddingClient.from_config(cfg.embedding)
        chunker = TextChunker(max_chars=cfg.chunking.max_chars, overlap=cfg.chunking.overlap)
        indexer = Indexer(repo, embedder, chunker, keep_unembedded=cfg.indexing.keep_unembedded)
        retriever = Retriever(repo, embedder, top_k=cfg.retrieval.top_k)
        return cls(repo, indexer, retriever, cfg)

    # ------------------------------------------------------------------
    # Indexing core
    # ------------------------------------------------------------------

    def index_agent_document(
        self, owner_id: str, source_id: str, title: str | None, content: object
    ) -> IndexResult:
        return self.indexer.index_agent_document(owner_id, source_id, title, content)

    def index_global_document(self, source_id: str, title: str | None, content: object) -> IndexResult:
        return self.indexer.index_global_document(source_id, title, content)

    def delete_chunks_by_source(self, source_type: str, source_id: str) -> int:
        return self.indexer.delete_chunks_by_source(source_type, source_id)

    def retrieve(self, agent_id: str, query: str, top_k: int | None = None) -> list[RetrievedChunk]:
        return self.retriever.retrieve(agent_id, query, top_k)

    def chunk(self, content: object, title: str | None = None) -> list[Fragment]:
        """Split *content* with the configured chunker (backfill / debug tooling)."""
        return self.indexer.chunker.chunk(content, title)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def add_agent_document(
        self, agent_id: str, title: str, content: str, type: str = "text"
    ) -> AgentDocument:
        doc = AgentDocument(id=str(uuid.uuid4()), agent_id=agent_id, title=title, content=content, type=type)
        self.repo.add_agent_document(doc)
        self._index_quietly(AGENT, doc.id, doc.title, doc.content, owner_id=doc.agent_id)
        return doc

    def add_global_document(self, title: str, content: str, type: str = "text") -> GlobalDocument:
        doc = GlobalDocument(id=str(uuid.uuid4()), title=title, content=content, type=type)
        self.repo.add_global_document(doc)
        self._index_quietly(GLOBAL, doc.id, doc.title, doc.content)
        return doc

    def update_document(
        self, doc_id: str, title: str | None = None, content: str | None = None
    ) -> AgentDocument | GlobalDocument | None:
        """Update an agent or global document; re-index if title or content changed.

        Returns:
            The updated document, or None if *doc_id* is unknown.
        """
        if self.repo.get_agent_document(doc_id) is not None:
            agent_doc = self.repo.update_agent_document(doc_id, title, content)
            if agent_doc is not None and (title is not None or content is not None):
                self._index_quietly(
                    AGENT, agent_doc.id, agent_doc.title, agent_doc.content, owner_id=agent_doc.agent_id
                )
            return agent_doc

        if self.repo.get_global_document(doc_id) is not None:
            global_doc = self.repo.update_global_document(doc_id, title, content)
            if global_doc is not None and (title is not None or content is not None):
                self._index_quietly(GLOBAL, global_doc.id, global_doc.title, global_doc.content)
            return global_doc

        return None

    def delete_document(self, doc_id: str) -> bool:
        """Delete a document and its chunks. Returns False if *doc_id* is unknown.

        Raises:
            IndexingError: If the chunks cannot be removed; the document is kept.
        """
        if self.repo.get_agent_document(doc_id) is not None:
            self.indexer.delete_chunks_by_source(AGENT, doc_id)
            return self.repo.delete_agent_document(doc_id)
        if self.repo.get_global_document(doc_id) is not None:
            self.indexer.delete_chunks_by_source(GLOBAL, doc_id)
            return self.repo.delete_global_document(doc_id)
        return False

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def assign_global(self, agent_id: str, global_id: str) -> None:
        if self.repo.get_global_document(global_id) is None:
            raise KeyError(global_id)
        self.repo.assign_global(agent_id, global_id)

    def unassign_global(self, agent_id: str, global_id: str) -> bool:
        return self.repo.unassign_global(agent_id, global_id)

    def set_agent_assignments(self, agent_id: str, global_ids: list[str]) -> None:
        """Replace the agent's assigned global documents; unknown ids are dropped."""
        known = [gid for gid in global_ids if self.repo.get_global_document(gid) is not None]
        self.repo.set_assignments(agent_id, known)

    # ------------------------------------------------------------------
    # Backfill
    # ------------------------------------------------------------------

    def reindex_all(self) -> BackfillReport:
        """Re-index every stored document. Per-document failures are counted, not raised."""
        report = BackfillReport()

        for doc in self.repo.list_agent_documents():
            try:
                self.indexer.index_agent_document(doc.agent_id, doc.id, doc.title, doc.content or "")
                report.agent_done += 1
            except Exception as exc:
                report.agent_failed += 1
                logger.warning(f"Skip agent document {doc.id}: {exc}")

        for gdoc in self.repo.list_global_documents():
            try:
                self.indexer.index_global_document(gdoc.id, gdoc.title, gdoc.content or "")
                report.global_done += 1
            except Exception as exc:
                report.global_failed += 1
                logger.warning(f"Skip global document {gdoc.id}: {exc}")

        logger.info(
            f"Backfill done — agent: {report.agent_done} ok, {report.agent_failed} failed; "
            f"global: {report.global_done} ok, {report.global_failed} failed"
        )
        return report

    def _index_quietly(
        self,
        source_type: str,
        source_id: str,
        title: str,
        content: str,
        owner_id: str | None = None,
    ) -> IndexResult | None:
        try:
            if source_type == AGENT:
                return self.indexer.index_agent_document(owner_id or "", source_id, title, content)
            return self.indexer.index_global_document(source_id, title, content)
        except Exception as exc:
            logger.warning(f"Vector index error for {source_type}:{source_id}: {exc}")
            return None
