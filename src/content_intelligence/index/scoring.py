"""
Similarity scoring shared by index implementations.

Cosine similarity for embedded chunks, keyword overlap for chunks (or
queries) without an embedding, and the deterministic hit ordering.
"""

import math
import re
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set

from content_intelligence.index.models import ChunkHit

SIMILARITY_PRECISION = 9

_TOKEN = re.compile(r"[a-z0-9]+")

STOPWORDS: FrozenSet[str] = frozenset(
    """
    a about above after again all am an and any are as at be because been before being
    below between both but by can could did do does doing down during each few for from
    further had has have having he her here hers him his how i if in into is it its itself
    just me more most my no nor not now of off on once only or other our ours out over own
    same she should so some such than that the their theirs them then there these they this
    those through to too under until up very was we were what when where which while who
    whom why will with would you your yours
    """.split()
)

MIN_TOKEN_LENGTH = 2


def tokenize(text: str) -> Set[str]:
    """Lower-cased content words of text, stopwords removed."""
    return {
        token
        for token in _TOKEN.findall(text.lower())
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOPWORDS
    }


def overlap_score(query_terms: Iterable[str], text: str) -> float:
    """
    Fraction of query terms present in text, in [0, 1].

    Returns 0.0 when the query has no content words.
    """
    terms = set(query_terms)
    if not terms:
        return 0.0
    return len(terms & tokenize(text)) / len(terms)


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine similarity clamped to [-1, 1]; 0.0 when either vector is all zeros."""
    if len(vec1) != len(vec2):
        raise ValueError("Vectors must have the same length")

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    magnitude1 = math.sqrt(sum(a * a for a in vec1))
    magnitude2 = math.sqrt(sum(b * b for b in vec2))

    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0

    return max(-1.0, min(1.0, dot_product / (magnitude1 * magnitude2)))


def order_hits(hits: List[ChunkHit], last_submitted: Dict[str, datetime]) -> List[ChunkHit]:
    """
    Order hits by similarity, then owning item recency, then chunk id.

    Similarities are compared at SIMILARITY_PRECISION decimals so float noise
    does not defeat the recency tie-break.
    """
    by_id = sorted(hits, key=lambda hit: hit.chunk_id)
    by_recency = sorted(
        by_id,
        key=lambda hit: _timestamp(last_submitted.get(hit.item_id)),
        reverse=True,
    )
    return sorted(
        by_recency,
        key=lambda hit: round(hit.similarity, SIMILARITY_PRECISION),
        reverse=True,
    )


def _timestamp(value: Optional[datetime]) -> float:
    if value is None:
        return float("-inf")
    return value.timestamp()
