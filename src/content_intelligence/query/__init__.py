"""
Query processing: intent detection, context assembly and the RAG state machine.
"""

from content_intelligence.query.context import AssembledContext, ContextAssembler
from content_intelligence.query.intent import QueryIntentDetector, generate_suggestions
from content_intelligence.query.processor import RAGQueryProcessor

__all__ = [
    "AssembledContext",
    "ContextAssembler",
    "QueryIntentDetector",
    "RAGQueryProcessor",
    "generate_suggestions",
]
