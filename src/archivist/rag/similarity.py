"""Cosine similarity between two embedding vectors."""

from __future__ import annotations

import math
from collections.abc import Sequence


def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``, in [-1, 1].

    Missing or empty vectors, vectors of different length, and zero-norm
    vectors all score exactly 0.0 so a bad stored vector only sinks in the
    ranking instead of failing it.
    """
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = norm_a = norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    denom = math.sqrt(norm_a) * math.sqrt(norm_b)
    if denom == 0 or not math.isfinite(denom):
        return 0.0
    # Clamp float drift, e.g. 1.0000000000000002 for parallel vectors.
    return max(-1.0, min(1.0, dot / denom))
