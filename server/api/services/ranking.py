"""
Cosine similarity ranking of stored chunks against a query embedding
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np

from core.config import QA_DEFAULT_TOP_K, QA_MAX_TOP_K


@dataclass
class RankedChunk:
    chunk: Any
    score: float


def cosine_similarity(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """
    dot(a, b) / (|a| * |b|), comparing the common prefix of the two vectors.

    A zero norm leaves the denominator at 1, so an all-zero or missing vector
    scores 0 instead of NaN.
    """
    if a is None or b is None:
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    n = min(va.shape[0], vb.shape[0])
    if n == 0:
        return 0.0
    va, vb = va[:n], vb[:n]

    denom = float(np.linalg.norm(va) * np.linalg.norm(vb)) or 1.0
    return float(np.dot(va, vb)) / denom


def clamp_top_k(top_k: Optional[int]) -> int:
    if top_k is None:
        top_k = QA_DEFAULT_TOP_K
    return max(1, min(int(top_k), QA_MAX_TOP_K))


def rank_chunks(query_embedding: Sequence[float], chunks: Sequence[Any], top_k: Optional[int]) -> List[RankedChunk]:
    """Score every chunk and return the best ``top_k`` (clamped to 1..12), highest first."""
    scored = [
        RankedChunk(chunk=chunk, score=cosine_similarity(query_embedding, chunk.embedding))
        for chunk in chunks
    ]
    # sorted() is stable, equal scores keep storage order
    scored = sorted(scored, key=lambda r: r.score, reverse=True)
    return scored[:clamp_top_k(top_k)]
