"""
Completion (answer synthesis) abstractions.

- CompletionProvider: protocol consumed by the RAG query processor
- LLMCompletionProvider: adapter for casual-llm providers
"""

from content_intelligence.completion.llm_completion import LLMCompletionProvider
from content_intelligence.completion.protocol import CompletionProvider, PromptContext

__all__ = [
    "CompletionProvider",
    "PromptContext",
    "LLMCompletionProvider",
]
