"""Tests for prompt-context helpers."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock

from archivist.errors import RetrievalError
from archivist.rag.context import format_context, retrieve_context
from archivist.rag.retriever import RetrievedChunk


def test_retrieve_context_passes_results_through():
    retriever = MagicMock()
    retriever.retrieve.return_value = [RetrievedChunk(title="T", content="C")]
    assert retrieve_context(retriever, "agent-a", "q", 3) == [RetrievedChunk(title="T", content="C")]
    retriever.retrieve.assert_called_once_with("agent-a", "q", 3)


def test_retrieve_context_degrades_store_failure():
    retriever = MagicMock()
    retriever.retrieve.side_effect = RetrievalError("agent-a", sqlite3.OperationalError("locked"))
    assert retrieve_context(retriever, "agent-a", "q") == []


def test_format_context():
    chunks = [RetrievedChunk(title="Hours", content="9 to 5"), RetrievedChunk(title="Refunds", content="30 days")]
    assert format_context(chunks) == "### Hours\n9 to 5\n\n### Refunds\n30 days"


def test_format_context_empty():
    assert format_context([]) == ""
