"""
Models returned by similarity indexes.
"""

from typing import List

from pydantic import BaseModel, Field

from content_intelligence.models import Chunk


class ChunkHit(BaseModel):
    """A chunk matched by a search, with its similarity to the query."""

    chunk: Chunk
    similarity: float
    keyword_match: bool = Field(
        default=False, description="Scored by keyword overlap instead of cosine similarity"
    )

    @property
    def chunk_id(self) -> str:
        return self.chunk.id

    @property
    def item_id(self) -> str:
        return self.chunk.item_id


class SearchOutcome(BaseModel):
    """
    Result of a similarity search.

    ``no_relevant_result`` is set when nothing cleared the threshold; callers
    must handle it explicitly instead of falling back to low-quality matches.
    """

    hits: List[ChunkHit] = Field(default_factory=list)
    threshold: float
    candidates_considered: int = 0

    @property
    def no_relevant_result(self) -> bool:
        return not self.hits
