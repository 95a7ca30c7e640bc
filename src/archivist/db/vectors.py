"""Embedding vector serialisation for the knowledge_chunks.embedding column.

Vectors are stored as JSON arrays. ``json`` writes floats with ``repr()``
precision, so a vector read back compares equal to the one written.
"""

from __future__ import annotations

import json
import math


def encode_embedding(embedding: list[float] | None) -> str | None:
    """Serialise *embedding* for storage. ``None`` or empty -> NULL."""
    if not embedding:
        return None
    return json.dumps([float(x) for x in embedding])


def decode_embedding(raw: str | bytes | None) -> list[float] | None:
    """Deserialise a stored embedding.

    Returns None for NULL, empty arrays, and anything that is not a flat
    array of finite numbers. A malformed row is treated like an unembedded
    one rather than failing the whole read.
    """
    if raw is None:
        return None
    try:
        values = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(values, list) or not values:
        return None
    vector: list[float] = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        if not math.isfinite(v):
            return None
        vector.append(float(v))
    return vector
