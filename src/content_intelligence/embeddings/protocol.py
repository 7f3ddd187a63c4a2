"""
Text embedding protocol.

Provides a unified interface for embedding chunks and queries into dense
vectors for cosine similarity search.
"""

from typing import List, Protocol

from typing_extensions import runtime_checkable


@runtime_checkable
class TextEmbedding(Protocol):
    """
    Protocol for text embedding providers.

    All implementations must:

    1. Return vectors of one fixed dimension
    2. Expose that dimension for index compatibility checking
    3. Implement async methods (calls are bounded by a timeout upstream)
    4. Raise on failure rather than returning partial results

    Example:
        >>> embedder = OpenAIEmbedding()
        >>> vector = await embedder.embed_document("dentist appointment")
        >>> len(vector) == embedder.dimension
        True
    """

    @property
    def dimension(self) -> int:
        """
        Vector dimension produced by this embedder.

        Every chunk in an index must share it; a mismatch is an
        IndexConsistencyError.
        """
        ...

    @property
    def model_name(self) -> str:
        """Model name or identifier (e.g., "text-embedding-3-small")."""
        ...

    async def embed_document(self, text: str) -> List[float]:
        """
        Generate embedding for a chunk to be stored.

        Args:
            text: Chunk text to embed

        Returns:
            Embedding vector

        Raises:
            ValueError: If text is empty
        """
        ...

    async def embed_query(self, text: str) -> List[float]:
        """
        Generate embedding for a search query.

        Args:
            text: Query text to embed

        Returns:
            Embedding vector

        Raises:
            ValueError: If text is empty
        """
        ...

    async def embed_documents(self, texts: List[str], batch_size: int = 32) -> List[List[float]]:
        """
        Generate embeddings for multiple chunks in one call.

        Args:
            texts: List of chunk texts
            batch_size: Number of texts to process per batch

        Returns:
            List of embedding vectors (same order as input)

        Raises:
            ValueError: If any text is empty
        """
        ...
