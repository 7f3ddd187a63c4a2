"""
Chunk similarity indexes.

- SimilarityIndex: protocol shared by all indexes
- VectorIndex: in-memory brute-force cosine index
- QdrantVectorIndex: Qdrant collection backed index
"""

from content_intelligence.index.memory import VectorIndex
from content_intelligence.index.models import ChunkHit, SearchOutcome
from content_intelligence.index.protocol import SimilarityIndex
from content_intelligence.index.qdrant import QdrantVectorIndex

__all__ = [
    "ChunkHit",
    "SearchOutcome",
    "SimilarityIndex",
    "VectorIndex",
    "QdrantVectorIndex",
]
