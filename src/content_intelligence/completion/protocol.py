"""
Completion provider protocol.

Answer synthesis goes through a single call: the assembled prompt context
in, generated text out.
"""

from typing import List, Protocol

from pydantic import BaseModel, Field
from typing_extensions import runtime_checkable

from content_intelligence.models import QueryIntent


class PromptContext(BaseModel):
    """Everything the completion provider needs to answer a query."""

    query: str
    context: str
    intent: QueryIntent = "semantic"
    source_ids: List[str] = Field(default_factory=list)


@runtime_checkable
class CompletionProvider(Protocol):
    """
    Protocol for answer synthesis providers.

    Implementations raise on failure; the caller bounds the call with a
    timeout and a retry budget.
    """

    async def complete(self, prompt_context: PromptContext) -> str:
        """
        Generate an answer for the query grounded in the context.

        Args:
            prompt_context: Query, assembled context and detected intent

        Returns:
            Answer text
        """
        ...
