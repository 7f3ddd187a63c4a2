"""Local sentence-transformers embedding adapter."""

import asyncio
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedding:
    """
    Embedding adapter for local sentence-transformers models.

    Encoding runs in a worker thread so the event loop (and the pipeline's
    timeouts) keep working while the model computes.

    Instruction-tuned models expect prefixes; pass them explicitly:
    - all-MiniLM-L6-v2 (384 dims): no prefixes (default)
    - intfloat/e5-base-v2 (768 dims): document_prefix="passage: ", query_prefix="query: "

    Example:
        >>> embedder = SentenceTransformerEmbedding(device="cpu")
        >>> vector = await embedder.embed_query("when is the dentist?")
        >>> len(vector)
        384
    """

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        device: Optional[str] = None,
        document_prefix: str = "",
        query_prefix: str = "",
        normalize_embeddings: bool = True,
        cache_folder: Optional[str] = None,
    ):
        """
        Initialize the embedder.

        Args:
            model_name: HuggingFace model identifier
            device: Device for computation ("cuda", "cpu", or None for auto)
            document_prefix: Prepended to chunk texts
            query_prefix: Prepended to query texts
            normalize_embeddings: L2 normalize vectors
            cache_folder: Directory for model cache (None = default ~/.cache)
        """
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ImportError(
                "sentence-transformers is required for SentenceTransformerEmbedding. "
                "Install with: pip install content-intelligence[embeddings-transformers]"
            ) from e

        self._model_name = model_name
        self._document_prefix = document_prefix
        self._query_prefix = query_prefix
        self._normalize = normalize_embeddings

        logger.info(f"Loading sentence-transformers model: {model_name}")
        self._model = SentenceTransformer(model_name, device=device, cache_folder=cache_folder)
        self._dimension = self._model.get_sentence_embedding_dimension()
        logger.info(f"Model loaded: {model_name} ({self._dimension} dimensions)")

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    async def _encode(self, texts: List[str], batch_size: int = 32) -> List[List[float]]:
        embeddings = await asyncio.to_thread(
            self._model.encode,
            texts,
            normalize_embeddings=self._normalize,
            show_progress_bar=False,
            batch_size=batch_size,
        )
        return embeddings.tolist()

    async def embed_document(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        return (await self._encode([f"{self._document_prefix}{text}"]))[0]

    async def embed_query(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        return (await self._encode([f"{self._query_prefix}{text}"]))[0]

    async def embed_documents(self, texts: List[str], batch_size: int = 32) -> List[List[float]]:
        """
        Generate embeddings for multiple chunks efficiently.

        Raises:
            ValueError: If any text is empty
        """
        if not texts:
            return []

        if any(not text or not text.strip() for text in texts):
            raise ValueError("Cannot embed empty texts in batch")

        return await self._encode(
            [f"{self._document_prefix}{text}" for text in texts], batch_size=batch_size
        )
