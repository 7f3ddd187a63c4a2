"""
Text chunking for embedding.

Splits cleaned text with RecursiveCharacterTextSplitter, preferring paragraph,
then sentence, then word boundaries. The number of chunks per item is capped;
the last permitted chunk absorbs all remaining text so nothing is dropped.
"""

import logging
from typing import List

from langchain_text_splitters import RecursiveCharacterTextSplitter

from content_intelligence.models import Chunk

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
DEFAULT_MAX_CHUNKS = 10

# Paragraphs, then sentences, then words, then characters
CHUNK_SEPARATORS = ["\n\n", ". ", " ", ""]


class TextChunker:
    """Deterministic boundary-aware chunker."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
    ):
        """
        Initialize the chunker.

        Args:
            chunk_size: Target maximum characters per chunk
            overlap: Characters shared between consecutive chunks
            max_chunks: Maximum number of chunks per item

        Raises:
            ValueError: If overlap is not smaller than chunk_size
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError("overlap must be in [0, chunk_size)")
        if max_chunks < 1:
            raise ValueError("max_chunks must be at least 1")

        self.chunk_size = chunk_size
        self.overlap = overlap
        self.max_chunks = max_chunks

        # Separators stay on the end of the preceding piece so sentences keep their period
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=overlap,
            separators=CHUNK_SEPARATORS,
            keep_separator="end",
            add_start_index=True,
        )

        logger.info(
            f"TextChunker initialized: chunk_size={chunk_size}, "
            f"overlap={overlap}, max_chunks={max_chunks}"
        )

    def chunk(self, item_id: str, text: str) -> List[Chunk]:
        """
        Split text into chunks owned by item_id.

        Args:
            item_id: ID of the owning content item
            text: Cleaned text

        Returns:
            Ordered chunks with offsets into text (empty list for blank text)
        """
        if not text or not text.strip():
            return []

        documents = self._splitter.create_documents([text])
        spans = [
            (document.metadata["start_index"], document.page_content)
            for document in documents
        ]

        if len(spans) > self.max_chunks:
            start = spans[self.max_chunks - 1][0]
            spans = spans[: self.max_chunks - 1] + [(start, text[start:].rstrip())]
            logger.debug(
                f"Item {item_id}: chunk limit reached, final chunk holds "
                f"{len(spans[-1][1])} chars"
            )

        return [
            Chunk(
                item_id=item_id,
                index=index,
                text=segment,
                start=start,
                end=start + len(segment),
            )
            for index, (start, segment) in enumerate(spans)
        ]
