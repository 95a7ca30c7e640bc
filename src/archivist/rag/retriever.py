"""Retriever: embed the query, score an agent's visible chunks, return top-K.

Candidate scope for agent A:
  - agent chunks with owner_id = A
  - global chunks whose source document is assigned to A
    (agent_global_knowledge)

Ranking is an exhaustive cosine scan over the candidates followed by a
stable descending sort; equal scores keep load order (agent chunks first,
then global, each in insertion order).
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from archivist.db.models import Chunk
from archivist.db.repository import Repository
from archivist.errors import RetrievalError
from archivist.rag.embeddings import Embedder
from archivist.rag.similarity import cosine_similarity

DEFAULT_TOP_K = 10


@dataclass(frozen=True)
class RetrievedChunk:
    """What callers get back: the fragment, without score or identifiers."""

    title: str
    content: str


@dataclass
class ScoredChunk:
    chunk: Chunk
    score: float


class Retriever:
    """Answer queries against the chunks visible to one agent.

    Args:
        repo: Open Repository instance.
        embedder: Embedding client; must use the same model the chunks were
            indexed with.
        top_k: Default result count when ``retrieve()`` is called without one.
    """

    def __init__(self, repo: Repository, embedder: Embedder, top_k: int = DEFAULT_TOP_K) -> None:
        self._repo = repo
        self._embedder = embedder
        self.top_k = top_k

    def retrieve(self, agent_id: str, query: str, top_k: int | None = None) -> list[RetrievedChunk]:
        """Return up to *top_k* fragments for *query*, best first.

        An unavailable embedding provider yields ``[]``; "no context" is a
        normal outcome.

        Raises:
            RetrievalError: If candidate chunks cannot be read from the store.
        """
        k = self.top_k if top_k is None else top_k
        if k <= 0:
            return []
        return [
            RetrievedChunk(title=s.chunk.title, content=s.chunk.content)
            for s in self.search(agent_id, query)[:k]
        ]

    def search(self, agent_id: str, query: str) -> list[ScoredChunk]:
        """Score every candidate for *agent_id* and return them all, best first."""
        query_embedding = self._embed_query(query)
        if query_embedding is None:
            return []

        candidates = self.load_candidates(agent_id)
        ranked = rank(query_embedding, candidates)
        logger.debug(f"Retrieved {len(ranked)} candidates for agent {agent_id}")
        return ranked

    def load_candidates(self, agent_id: str) -> list[Chunk]:
        """Embedded chunks visible to *agent_id*: its own, then assigned globals."""
        try:
            own = self._repo.list_agent_chunks(agent_id)
            assigned = self._repo.list_assigned_global_ids(agent_id)
            shared = self._repo.list_global_chunks(assigned)
        except sqlite3.Error as exc:
            raise RetrievalError(agent_id, exc) from exc
        return own + shared

    def _embed_query(self, query: str) -> list[float] | None:
        try:
            return self._embedder.embed(query)
        except Exception as exc:
            logger.warning(f"Query embedding failed, returning no context: {exc}")
            return None


def rank(query_embedding: Sequence[float], candidates: Sequence[Chunk]) -> list[ScoredChunk]:
    """Score *candidates* against *query_embedding*; stable sort, best first.

    Chunks without an embedding are dropped.
    """
    scored = [
        ScoredChunk(chunk=c, score=cosine_similarity(query_embedding, c.embedding))
        for c in candidates
        if c.is_embedded
    ]
    # sorted(reverse=True) keeps equal elements in their original order.
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored
