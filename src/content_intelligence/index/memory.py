"""
In-memory chunk index.

Keeps chunk embeddings in process memory with brute-force cosine similarity
search. Each instance is independent; suitable for tests, development and
small personal corpora. For a persistent index use QdrantVectorIndex.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Set

from content_intelligence.errors import IndexConsistencyError
from content_intelligence.index.models import ChunkHit, SearchOutcome
from content_intelligence.index.scoring import (
    cosine_similarity,
    order_hits,
    overlap_score,
    tokenize,
)
from content_intelligence.models import Chunk

logger = logging.getLogger(__name__)


class VectorIndex:
    """
    In-memory implementation of the SimilarityIndex protocol.

    Chunks are grouped by owning item so an item's chunks are swapped in and
    out as a unit under a single lock.
    """

    def __init__(self, dimension: Optional[int] = None):
        """
        Initialize an empty index.

        Args:
            dimension: Fixed embedding dimension (None = taken from the first
                embedded chunk inserted)
        """
        self._fixed_dimension = dimension
        self._dimension = dimension
        self._items: Dict[str, List[Chunk]] = {}
        self._last_submitted: Dict[str, datetime] = {}
        self._lock = threading.RLock()

        logger.info(f"VectorIndex initialized (dimension={dimension or 'auto'})")

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    def insert_item(self, item_id: str, chunks: List[Chunk], last_submitted: datetime) -> None:
        for chunk in chunks:
            if chunk.item_id != item_id:
                raise ValueError(f"Chunk {chunk.id} does not belong to item {item_id}")

        with self._lock:
            dimension = self._check_dimensions(item_id, chunks)
            self._dimension = dimension
            self._items[item_id] = list(chunks)
            self._last_submitted[item_id] = last_submitted

        embedded = sum(1 for chunk in chunks if chunk.embedding is not None)
        logger.debug(
            f"Indexed item {item_id}: {len(chunks)} chunks ({embedded} with embeddings)"
        )

    def _check_dimensions(self, item_id: str, chunks: List[Chunk]) -> Optional[int]:
        """Validate every embedding before anything is published."""
        dimension = self._dimension
        for chunk in chunks:
            if chunk.embedding is None:
                continue
            if dimension is None:
                dimension = len(chunk.embedding)
            elif len(chunk.embedding) != dimension:
                raise IndexConsistencyError(dimension, len(chunk.embedding), item_id=item_id)
        return dimension

    def search(
        self,
        query_embedding: List[float],
        k: int = 50,
        threshold: float = 0.3,
        query_text: Optional[str] = None,
    ) -> SearchOutcome:
        if self._dimension is not None and len(query_embedding) != self._dimension:
            raise IndexConsistencyError(self._dimension, len(query_embedding))

        query_terms = tokenize(query_text) if query_text else set()

        with self._lock:
            candidates = 0
            hits: List[ChunkHit] = []
            for chunks in self._items.values():
                for chunk in chunks:
                    if chunk.embedding is not None:
                        similarity = cosine_similarity(query_embedding, chunk.embedding)
                        keyword_match = False
                    elif query_terms:
                        similarity = overlap_score(query_terms, chunk.text)
                        keyword_match = True
                    else:
                        continue

                    candidates += 1
                    if similarity >= threshold:
                        hits.append(
                            ChunkHit(chunk=chunk, similarity=similarity, keyword_match=keyword_match)
                        )

            ordered = order_hits(hits, self._last_submitted)[:k]

        logger.debug(
            f"{len(ordered)} hits found (threshold={threshold}, candidates={candidates})"
        )
        return SearchOutcome(hits=ordered, threshold=threshold, candidates_considered=candidates)

    def keyword_search(self, query_text: str, k: int = 50) -> List[ChunkHit]:
        query_terms = tokenize(query_text)
        if not query_terms:
            return []

        with self._lock:
            hits = [
                ChunkHit(chunk=chunk, similarity=score, keyword_match=True)
                for chunks in self._items.values()
                for chunk in chunks
                if (score := overlap_score(query_terms, chunk.text)) > 0
            ]
            return order_hits(hits, self._last_submitted)[:k]

    def touch(self, item_id: str, last_submitted: datetime) -> None:
        with self._lock:
            if item_id in self._items:
                self._last_submitted[item_id] = last_submitted

    def delete_item(self, item_id: str) -> int:
        with self._lock:
            removed = self._items.pop(item_id, [])
            self._last_submitted.pop(item_id, None)

        if removed:
            logger.debug(f"Removed {len(removed)} chunks of item {item_id}")
        return len(removed)

    def item_ids(self) -> Set[str]:
        with self._lock:
            return set(self._items)

    def item_count(self) -> int:
        return len(self._items)

    def chunk_count(self) -> int:
        with self._lock:
            return sum(len(chunks) for chunks in self._items.values())

    def clear(self) -> None:
        """Remove every chunk. A fixed dimension is kept; an inferred one is reset."""
        with self._lock:
            count = len(self._items)
            self._items.clear()
            self._last_submitted.clear()
            self._dimension = self._fixed_dimension
        logger.info(f"Cleared index ({count} items)")
