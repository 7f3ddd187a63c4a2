"""
Similarity index protocol.

Defines the interface that chunk indexes must provide. Implementations may be
backed by process memory or by a vector database such as Qdrant.
"""

from datetime import datetime
from typing import List, Optional, Protocol, Set

from typing_extensions import runtime_checkable

from content_intelligence.index.models import ChunkHit, SearchOutcome
from content_intelligence.models import Chunk


@runtime_checkable
class SimilarityIndex(Protocol):
    """
    Protocol for chunk similarity indexes.

    All implementations must:

    1. Publish all chunks of an item in one step (readers never observe a
       partially inserted item)
    2. Reject embeddings whose dimension differs from the index dimension
       with IndexConsistencyError, leaving the index unchanged
    3. Break similarity ties by the owning item's last-submitted time, most
       recent first
    """

    @property
    def dimension(self) -> Optional[int]:
        """Embedding dimension, or None until the first embedded chunk is inserted."""
        ...

    def insert_item(self, item_id: str, chunks: List[Chunk], last_submitted: datetime) -> None:
        """
        Insert every chunk of an item, replacing any chunks it already had.

        Chunks without an embedding are indexed for keyword matching only.

        Raises:
            IndexConsistencyError: If any embedding has the wrong dimension
        """
        ...

    def search(
        self,
        query_embedding: List[float],
        k: int = 50,
        threshold: float = 0.3,
        query_text: Optional[str] = None,
    ) -> SearchOutcome:
        """
        Find the k chunks most similar to query_embedding.

        Args:
            query_embedding: Query vector
            k: Maximum number of hits
            threshold: Minimum cosine similarity; values <= -1 admit everything
            query_text: When given, chunks without embeddings are scored by
                keyword overlap with it

        Returns:
            SearchOutcome ordered by similarity (descending)

        Raises:
            IndexConsistencyError: If the query dimension differs from the index
        """
        ...

    def keyword_search(self, query_text: str, k: int = 50) -> List[ChunkHit]:
        """Score every chunk by keyword overlap with query_text (no embedding needed)."""
        ...

    def touch(self, item_id: str, last_submitted: datetime) -> None:
        """Record a newer last-submitted time for tie-breaking."""
        ...

    def delete_item(self, item_id: str) -> int:
        """Remove all chunks of an item. Returns the number of chunks removed."""
        ...

    def item_ids(self) -> Set[str]:
        """IDs of all items with at least one indexed chunk."""
        ...

    def item_count(self) -> int:
        ...

    def chunk_count(self) -> int:
        ...

    def clear(self) -> None:
        ...
