"""Cosine similarity and top-k ranking over chunk-vectors.

Similarity is the cosine of the angle between two vectors, clamped to
``[0, 1]``: negative cosine means "no relevance", not "anti-relevance".
A zero-norm vector has similarity 0 with everything.

Ranking tolerates bad candidates: a candidate whose vector length differs
from the query's is logged and left out, and the rest are still ranked.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import structlog

from neuraldoc.models.document import ChunkVector
from neuraldoc.models.retrieval import MatchKind, ScoredChunk
from neuraldoc.utils.errors import DimensionMismatchError

logger = structlog.get_logger(logger_name=__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the clamped cosine similarity of *a* and *b*.

    Raises
    ------
    DimensionMismatchError
        If the vectors have different lengths.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            message=f"Vector dimensionality mismatch: {len(a)} != {len(b)}"
        )

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    cosine = float(np.dot(va, vb)) / (norm_a * norm_b)
    return min(1.0, max(0.0, cosine))


def rank(
    query: Sequence[float],
    candidates: Sequence[ChunkVector],
    k: int,
) -> list[ScoredChunk]:
    """Score *candidates* against *query* and return the top *k*.

    Sorting is by descending similarity; ties keep the original candidate
    order.

    Parameters
    ----------
    query:
        Query vector.
    candidates:
        Chunk-vectors to score.
    k:
        Maximum number of results.  ``k <= 0`` returns an empty list.

    Returns
    -------
    list[ScoredChunk]
        At most *k* semantic matches.
    """
    if k <= 0:
        return []

    scored: list[ScoredChunk] = []
    skipped = 0
    for chunk in candidates:
        try:
            score = cosine_similarity(query, chunk.vector)
        except DimensionMismatchError as exc:
            skipped += 1
            logger.warning("similarity_skipped", chunk_id=chunk.id, error=str(exc))
            continue
        scored.append(ScoredChunk(chunk=chunk, similarity=score, match=MatchKind.SEMANTIC))

    # sorted() is stable, so equal scores keep candidate order.
    scored = sorted(scored, key=lambda s: -s.similarity)

    if skipped:
        logger.info("ranking_partial", scored=len(scored), skipped=skipped)
    return scored[:k]
