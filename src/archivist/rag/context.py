"""Prompt-context helpers on top of the Retriever.

``retrieve_context`` is the entry point for reply-generation code: it never
raises, because a reply must still be produced when no context is available.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from archivist.errors import ArchivistError
from archivist.rag.retriever import RetrievedChunk, Retriever


def retrieve_context(
    retriever: Retriever, agent_id: str, query: str, top_k: int | None = None
) -> list[RetrievedChunk]:
    """Like ``Retriever.retrieve`` but degrades store failures to ``[]``."""
    try:
        return retriever.retrieve(agent_id, query, top_k)
    except ArchivistError as exc:
        logger.warning(f"Knowledge retrieval failed for agent {agent_id}: {exc}")
        return []


def format_context(chunks: Sequence[RetrievedChunk]) -> str:
    """Render retrieved fragments as markdown sections for a system prompt.

    Returns an empty string when there is nothing to inject.
    """
    return "\n\n".join(f"### {c.title}\n{c.content}" for c in chunks)
