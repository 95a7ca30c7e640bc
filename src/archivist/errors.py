"""Exception hierarchy for the indexing and retrieval core."""

from __future__ import annotations


class ArchivistError(Exception):
    """Base class for errors raised by Archivist."""


class IndexingError(ArchivistError):
    """The store could not delete or insert chunks for a document."""

    def __init__(self, source_type: str, source_id: str, cause: BaseException) -> None:
        super().__init__(f"Indexing {source_type}:{source_id} failed: {cause}")
        self.source_type = source_type
        self.source_id = source_id
        self.cause = cause


class RetrievalError(ArchivistError):
    """The store could not load candidate chunks for a query."""

    def __init__(self, agent_id: str, cause: BaseException) -> None:
        super().__init__(f"Retrieval for agent {agent_id} failed: {cause}")
        self.agent_id = agent_id
        self.cause = cause
