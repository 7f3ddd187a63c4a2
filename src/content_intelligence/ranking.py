"""
Composite ranking of retrieved content.

Merges semantic similarity, importance, urgency and recency into a single
score per content item. Weights are normalised to sum to 1; the query intent
selects which weight preset is used.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from content_intelligence.index.models import ChunkHit
from content_intelligence.intelligence.importance import (
    MAX_IMPORTANCE_SCORE,
    ImportanceEngine,
    recency_signal,
)
from content_intelligence.models import (
    ContentItem,
    ContentKind,
    QueryIntent,
    RankedItem,
    RankingSignals,
    utcnow,
)

logger = logging.getLogger(__name__)

SCORE_PRECISION = 9


class RankingWeights(BaseModel):
    semantic: float = Field(default=0.4, ge=0.0)
    importance: float = Field(default=0.3, ge=0.0)
    urgency: float = Field(default=0.2, ge=0.0)
    recency: float = Field(default=0.1, ge=0.0)

    def normalized(self) -> "RankingWeights":
        total = self.semantic + self.importance + self.urgency + self.recency
        if total <= 0:
            raise ValueError("At least one ranking weight must be positive")
        return RankingWeights(
            semantic=self.semantic / total,
            importance=self.importance / total,
            urgency=self.urgency / total,
            recency=self.recency / total,
        )

    def combine(self, signals: RankingSignals) -> float:
        return (
            self.semantic * signals.semantic
            + self.importance * signals.importance
            + self.urgency * signals.urgency
            + self.recency * signals.recency
        )


DEFAULT_WEIGHTS = RankingWeights()
INTENT_WEIGHTS: Dict[str, RankingWeights] = {
    "semantic": DEFAULT_WEIGHTS,
    "recency": RankingWeights(semantic=0.35, importance=0.2, urgency=0.15, recency=0.3),
    "importance": RankingWeights(semantic=0.3, importance=0.45, urgency=0.15, recency=0.1),
}


def _best_hit_per_item(hits: Iterable[ChunkHit]) -> Dict[str, ChunkHit]:
    best: Dict[str, ChunkHit] = {}
    for hit in hits:
        current = best.get(hit.item_id)
        if current is None or hit.similarity > current.similarity:
            best[hit.item_id] = hit
    return best


class CompositeRanker:
    """
    Ranks content items owning matched chunks.

    Example:
        >>> ranker = CompositeRanker()
        >>> ranked = ranker.rank(outcome.hits, items, intent="recency", limit=5)
        >>> ranked[0].item.id
        'b1f0...'
    """

    def __init__(
        self,
        importance_engine: Optional[ImportanceEngine] = None,
        intent_weights: Optional[Mapping[str, RankingWeights]] = None,
    ):
        """
        Initialize the ranker.

        Args:
            importance_engine: Source of decayed importance (default engine if None)
            intent_weights: Weight preset per intent; missing intents use the
                built-in presets
        """
        self.importance_engine = importance_engine or ImportanceEngine()
        presets = dict(INTENT_WEIGHTS)
        presets.update(intent_weights or {})
        self._weights = {intent: weights.normalized() for intent, weights in presets.items()}

    def weights_for(self, intent: QueryIntent) -> RankingWeights:
        return self._weights.get(intent, self._weights["semantic"])

    def signals_for(
        self, item: ContentItem, similarity: float, now: datetime
    ) -> RankingSignals:
        importance = self.importance_engine.current_importance(item, now)
        return RankingSignals(
            semantic=max(0.0, min(1.0, similarity)),
            importance=max(0.0, min(1.0, importance / MAX_IMPORTANCE_SCORE)),
            urgency=item.urgency_score,
            recency=recency_signal(item.last_submitted, now),
        )

    def rank(
        self,
        hits: Sequence[ChunkHit],
        items: Mapping[str, ContentItem],
        intent: QueryIntent = "semantic",
        limit: Optional[int] = None,
        kinds: Optional[Sequence[ContentKind]] = None,
        time_window_hours: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> List[RankedItem]:
        """
        Rank the items owning the given chunk hits.

        Args:
            hits: Chunk hits from the index
            items: Content items by id (hits for unknown items are skipped)
            intent: Query intent selecting the weight preset
            limit: Maximum number of items returned (None = all)
            kinds: Only keep items of these kinds (None or empty = all)
            time_window_hours: Only keep items submitted within this window
            now: Reference time for decay and recency

        Returns:
            Items ordered by composite score, one entry per item
        """
        now = now or utcnow()
        weights = self.weights_for(intent)
        cutoff = now - timedelta(hours=time_window_hours) if time_window_hours else None

        ranked: List[RankedItem] = []
        for item_id, hit in _best_hit_per_item(hits).items():
            item = items.get(item_id)
            if item is None:
                continue
            if kinds and item.kind not in kinds:
                continue
            if cutoff is not None and item.last_submitted < cutoff:
                continue

            signals = self.signals_for(item, hit.similarity, now)
            ranked.append(
                RankedItem(
                    item=item,
                    composite_score=weights.combine(signals),
                    best_chunk=hit.chunk,
                    signals=signals,
                )
            )

        ranked.sort(key=lambda r: r.item.id)
        ranked.sort(key=lambda r: r.item.last_submitted, reverse=True)
        ranked.sort(key=lambda r: round(r.composite_score, SCORE_PRECISION), reverse=True)

        if limit is not None:
            ranked = ranked[:limit]

        logger.debug(
            f"Ranked {len(ranked)} items (intent={intent}, hits={len(hits)}, "
            f"kinds={list(kinds or [])}, window={time_window_hours})"
        )
        return ranked
