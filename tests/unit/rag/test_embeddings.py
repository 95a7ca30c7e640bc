"""Tests for the LiteLLM embedding client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from archivist.config import EmbeddingCfg
from archivist.rag.embeddings import EmbeddingClient, required_api_key


def _response(vector):
    resp = MagicMock()
    resp.data = [{"embedding": vector}]
    return resp


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "fake-key")
    return EmbeddingClient()


def test_defaults():
    c = EmbeddingClient()
    assert c.model == "gemini/gemini-embedding-001"
    assert c.timeout == 15.0
    assert c.max_input_chars == 2048 * 4


def test_from_config():
    c = EmbeddingClient.from_config(EmbeddingCfg(model="openai/text-embedding-3-small", timeout=3, max_input_tokens=10))
    assert c.model == "openai/text-embedding-3-small"
    assert c.timeout == 3
    assert c.max_input_chars == 40


def test_required_api_key():
    assert required_api_key("gemini/gemini-embedding-001") == "GEMINI_API_KEY"
    assert required_api_key("text-embedding-3-small") == "OPENAI_API_KEY"
    assert required_api_key("ollama/nomic-embed-text") is None


def test_embed_returns_vector(client):
    with patch("archivist.rag.embeddings.litellm.embedding", return_value=_response([0.1, 0.2])) as mock:
        assert client.embed("hello") == [0.1, 0.2]
    kwargs = mock.call_args.kwargs
    assert kwargs["model"] == "gemini/gemini-embedding-001"
    assert kwargs["input"] == ["hello"]
    assert kwargs["timeout"] == 15.0


def test_embed_accepts_object_items(client):
    item = MagicMock()
    item.embedding = [1, 2]
    resp = MagicMock()
    resp.data = [item]
    with patch("archivist.rag.embeddings.litellm.embedding", return_value=resp):
        assert client.embed("hello") == [1.0, 2.0]


@pytest.mark.parametrize("text", ["", "   \n", None])
def test_blank_input_makes_no_call(client, text):
    with patch("archivist.rag.embeddings.litellm.embedding") as mock:
        assert client.embed(text) is None
    mock.assert_not_called()


def test_long_input_is_truncated(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "fake-key")
    c = EmbeddingClient(max_input_tokens=5)
    with patch("archivist.rag.embeddings.litellm.embedding", return_value=_response([1.0])) as mock:
        c.embed("x" * 100)
    assert mock.call_args.kwargs["input"] == ["x" * 20]


def test_missing_api_key_is_unavailable(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with patch("archivist.rag.embeddings.litellm.embedding") as mock:
        assert EmbeddingClient().embed("hello") is None
    mock.assert_not_called()


@pytest.mark.parametrize(
    "error",
    [TimeoutError("timed out"), ConnectionError("refused"), RuntimeError("500 Internal Server Error")],
)
def test_provider_errors_are_unavailable(client, error):
    with patch("archivist.rag.embeddings.litellm.embedding", side_effect=error):
        assert client.embed("hello") is None


@pytest.mark.parametrize(
    "data",
    [[], [{}], [{"embedding": []}], [{"embedding": "abc"}], [{"embedding": [1.0, None]}], [{"embedding": [float("nan")]}]],
)
def test_malformed_payload_is_unavailable(client, data):
    resp = MagicMock()
    resp.data = data
    with patch("archivist.rag.embeddings.litellm.embedding", return_value=resp):
        assert client.embed("hello") is None


def test_response_without_data_is_unavailable(client):
    with patch("archivist.rag.embeddings.litellm.embedding", return_value=object()):
        assert client.embed("hello") is None
