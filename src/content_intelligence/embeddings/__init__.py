"""
Text embedding abstractions.

Provides a protocol-based embedding interface with adapters:
- OpenAIEmbedding: OpenAI API embeddings
- SentenceTransformerEmbedding: local sentence-transformers models
"""

from content_intelligence.embeddings.openai_embedding import OpenAIEmbedding
from content_intelligence.embeddings.protocol import TextEmbedding
from content_intelligence.embeddings.sentence_transformer_embedding import (
    SentenceTransformerEmbedding,
)

__all__ = [
    "TextEmbedding",
    "OpenAIEmbedding",
    "SentenceTransformerEmbedding",
]
