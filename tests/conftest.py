"""Shared pytest fixtures."""

from __future__ import annotations

import re
import zlib

import pytest

from archivist.db.connection import Database
from archivist.db.migrations import initialize
from archivist.db.repository import Repository


class HashEmbedder:
    """Deterministic bag-of-words embedder: identical text -> identical vector."""

    def __init__(self, dims: int = 256) -> None:
        self.dims = dims
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float] | None:
        self.calls.append(text)
        if not isinstance(text, str) or not text.strip():
            return None
        vec = [0.0] * self.dims
        for word in re.findall(r"\w+", text.lower()):
            vec[zlib.crc32(word.encode()) % self.dims] += 1.0
        return vec


class MappingEmbedder:
    """Return a fixed vector per exact text; anything else is unavailable."""

    def __init__(self, mapping: dict[str, list[float]]) -> None:
        self.mapping = mapping
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float] | None:
        self.calls.append(text)
        return self.mapping.get(text)


class UnavailableEmbedder:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float] | None:
        self.calls.append(text)
        return None


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".archivist.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture
def hash_embedder():
    return HashEmbedder()


@pytest.fixture
def unavailable_embedder():
    return UnavailableEmbedder()


@pytest.fixture
def mapping_embedder():
    """Factory: mapping_embedder({"text": [1.0, 0.0]})."""
    return MappingEmbedder
