"""Archivist database layer."""

from archivist.db.connection import Database
from archivist.db.migrations import MIGRATIONS, initialize, run_migrations
from archivist.db.repository import Repository
from archivist.db.vectors import decode_embedding, encode_embedding

__all__ = [
    "Database",
    "Repository",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "decode_embedding",
    "encode_embedding",
]
