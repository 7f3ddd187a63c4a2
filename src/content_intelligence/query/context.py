"""
Context assembly for answer synthesis.

Concatenates the top ranked items under a character budget, each block
headed by a provenance marker so answers can cite their sources.
"""

import logging
from typing import List, Sequence

from pydantic import BaseModel, Field

from content_intelligence.models import RankedItem

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_BUDGET = 4000
BLOCK_SEPARATOR = "\n\n"
ELLIPSIS = "..."
# Body space kept for a lone first block by shortening its header
MIN_FIRST_BODY_CHARS = 40


class AssembledContext(BaseModel):
    text: str
    item_ids: List[str] = Field(default_factory=list)
    truncated: bool = False

    @property
    def block_count(self) -> int:
        return len(self.item_ids)


def provenance_marker(position: int, ranked: RankedItem) -> str:
    item = ranked.item
    return (
        f"[{position}] id={item.id} kind={item.kind} "
        f"importance={item.importance_score:.2f} submitted={item.last_submitted.isoformat()}"
    )


def _truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    if length <= len(ELLIPSIS):
        return text[: max(length, 0)]
    return text[: length - len(ELLIPSIS)].rstrip() + ELLIPSIS


class ContextAssembler:
    """Builds the bounded context handed to the completion provider."""

    def __init__(self, budget_chars: int = DEFAULT_CONTEXT_BUDGET):
        if budget_chars <= 0:
            raise ValueError("budget_chars must be positive")
        self.budget_chars = budget_chars

    def assemble(self, ranked: Sequence[RankedItem], limit: int) -> AssembledContext:
        """
        Assemble context from ranked items.

        Blocks are added in rank order while they fit. The first block that
        does not fit is cut down (to its best matching chunk, then to the
        remaining space) and ends the context. At least one block is always
        included when ranked is non-empty.

        Args:
            ranked: Items in rank order
            limit: Maximum number of blocks

        Returns:
            AssembledContext with the text and the ids of included items
        """
        blocks: List[str] = []
        item_ids: List[str] = []
        used = 0
        truncated = False

        for position, entry in enumerate(ranked[:limit], start=1):
            header = provenance_marker(position, entry)
            separator = BLOCK_SEPARATOR if blocks else ""
            block = f"{separator}{header}\n{entry.item.text}"

            if used + len(block) <= self.budget_chars:
                blocks.append(block)
                item_ids.append(entry.item.id)
                used += len(block)
                continue

            remaining = self.budget_chars - used - len(separator) - len(header) - 1
            room = min(MIN_FIRST_BODY_CHARS, self.budget_chars // 2)
            if not blocks and remaining < room:
                header = _truncate(header, max(self.budget_chars - room - 1, 0))
                remaining = self.budget_chars - len(header) - 1

            if remaining > 0 or not blocks:
                body = entry.item.text
                if len(body) > remaining and len(entry.best_chunk.text) < len(body):
                    body = entry.best_chunk.text
                blocks.append(f"{separator}{header}\n{_truncate(body, remaining)}")
                item_ids.append(entry.item.id)
            truncated = True
            break

        text = "".join(blocks)
        logger.debug(
            f"Assembled context: {len(item_ids)} blocks, {len(text)} chars "
            f"(budget={self.budget_chars}, truncated={truncated})"
        )
        return AssembledContext(text=text, item_ids=item_ids, truncated=truncated)
