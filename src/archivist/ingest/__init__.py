"""Archivist ingest pipeline — chunker and indexer."""

from archivist.ingest.chunker import Fragment, TextChunker, chunk_content
from archivist.ingest.indexer import Indexer, IndexResult

__all__ = [
    "Fragment",
    "IndexResult",
    "Indexer",
    "TextChunker",
    "chunk_content",
]
