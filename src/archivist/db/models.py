"""Domain models for the Archivist database layer."""

from __future__ import annotations

from dataclasses import dataclass

AGENT = "agent"
GLOBAL = "global"
SOURCE_TYPES = (AGENT, GLOBAL)


@dataclass
class Chunk:
    source_type: str
    source_id: str
    chunk_index: int
    title: str
    content: str
    owner_id: str | None = None  # None for globally-shared sources
    embedding: list[float] | None = None
    id: str | None = None  # set on insert
    created_at: str | None = None

    @property
    def is_embedded(self) -> bool:
        return bool(self.embedding)


@dataclass
class AgentDocument:
    id: str
    agent_id: str
    title: str
    content: str
    type: str = "text"
    created_at: str | None = None


@dataclass
class GlobalDocument:
    id: str
    title: str
    content: str
    type: str = "text"
    created_at: str | None = None
