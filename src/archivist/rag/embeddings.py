"""Embedding client — LiteLLM wrapper that never raises.

Every outcome other than a well-formed vector (missing API key, timeout,
network error, non-success response, malformed payload) is reported as
``None`` and logged as a warning. Callers never see provider-specific errors.
"""

from __future__ import annotations

import math
import os
from typing import Any, Protocol

import litellm
from loguru import logger

from archivist.config import EmbeddingCfg

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

# Character budget per token when truncating provider input.
CHARS_PER_TOKEN = 4

_PROVIDER_ENV: dict[str, str | None] = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "ollama": None,  # Local, no key required
}


class Embedder(Protocol):
    """Anything that maps text to a vector, or None when unavailable."""

    def embed(self, text: str) -> list[float] | None: ...


def required_api_key(model: str) -> str | None:
    """Return the env var name *model*'s provider needs, or None if unknown/keyless."""
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    return _PROVIDER_ENV.get(provider)


class EmbeddingClient:
    """Embed single strings through ``litellm.embedding()``.

    Args:
        model: LiteLLM model string in 'provider/model' format.
        timeout: Per-request timeout in seconds.
        max_input_tokens: Input is truncated to ``max_input_tokens * 4``
            characters before it is sent.
        num_retries: LiteLLM retries on transient errors (0 = fail fast).
    """

    def __init__(
        self,
        model: str = "gemini/gemini-embedding-001",
        timeout: float = 15.0,
        max_input_tokens: int = 2048,
        num_retries: int = 0,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self.max_input_chars = max_input_tokens * CHARS_PER_TOKEN
        self.num_retries = num_retries

    @classmethod
    def from_config(cls, cfg: EmbeddingCfg) -> EmbeddingClient:
        return cls(
            model=cfg.model,
            timeout=cfg.timeout,
            max_input_tokens=cfg.max_input_tokens,
            num_retries=cfg.num_retries,
        )

    def embed(self, text: str) -> list[float] | None:
        """Return the embedding of *text*, or None if it cannot be produced."""
        if not isinstance(text, str):
            return None
        truncated = text[: self.max_input_chars]
        if not truncated.strip():
            return None

        env_var = required_api_key(self.model)
        if env_var and not os.environ.get(env_var):
            logger.warning(f"{env_var} not set, skipping embedding")
            return None

        try:
            response = litellm.embedding(
                model=self.model,
                input=[truncated],
                timeout=self.timeout,
                num_retries=self.num_retries,
            )
        except Exception as exc:
            logger.warning(f"Embedding request failed ({self.model}): {exc}")
            return None

        vector = _extract_vector(response)
        if vector is None:
            logger.warning(f"Malformed embedding response from {self.model}")
        return vector


def _extract_vector(response: Any) -> list[float] | None:
    try:
        item = response.data[0]
        raw = item["embedding"] if isinstance(item, dict) else item.embedding
    except (AttributeError, IndexError, KeyError, TypeError):
        return None
    if not isinstance(raw, (list, tuple)) or not raw:
        return None
    vector: list[float] = []
    for v in raw:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            return None
        vector.append(float(v))
    return vector
