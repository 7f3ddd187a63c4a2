"""
content-intelligence: fingerprint-deduplicated personal content with
importance scoring and retrieval-augmented querying.

Core components:
- fingerprint / chunker: content identity and chunking
- intelligence: importance engine, submission patterns, urgency
- index: chunk similarity indexes (in-memory, Qdrant)
- ranking: composite ranking of retrieved items
- query: intent detection, context assembly, RAG state machine
- storage: persistence protocol and back-ends
- pipeline: ContentPipeline, the ingest/query entry point
"""

__version__ = "0.1.0"

from content_intelligence.config import PipelineSettings
from content_intelligence.errors import (
    ContentIntelligenceError,
    ContentNotFoundError,
    IndexConsistencyError,
    ProviderError,
    ValidationError,
)
from content_intelligence.models import (
    Chunk,
    ContentItem,
    FileSource,
    QueryOptions,
    QueryResult,
    RankedItem,
    Submission,
    TextSource,
    UrlSource,
)
from content_intelligence.pipeline import ContentPipeline

__all__ = [
    "__version__",
    # Models
    "Chunk",
    "ContentItem",
    "FileSource",
    "QueryOptions",
    "QueryResult",
    "RankedItem",
    "Submission",
    "TextSource",
    "UrlSource",
    # Errors
    "ContentIntelligenceError",
    "ContentNotFoundError",
    "IndexConsistencyError",
    "ProviderError",
    "ValidationError",
    # Entry points
    "ContentPipeline",
    "PipelineSettings",
]
