"""
Retrieval-augmented query processing.

A query moves through ReceivedQuery -> IntentDetected -> Retrieved ->
ContextAssembled -> AnswerSynthesized -> Done. Fallback is terminal and
entered whenever there is nothing relevant to answer from or a provider
gives up; in Fallback the completion provider is never called.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from content_intelligence.completion.protocol import CompletionProvider, PromptContext
from content_intelligence.config import PipelineSettings
from content_intelligence.embeddings.protocol import TextEmbedding
from content_intelligence.errors import ProviderError, ValidationError
from content_intelligence.index.models import ChunkHit
from content_intelligence.index.protocol import SimilarityIndex
from content_intelligence.models import (
    ContentItem,
    QueryAnalysis,
    QueryOptions,
    QueryResult,
    QueryState,
    RankedItem,
    utcnow,
)
from content_intelligence.query.context import ContextAssembler
from content_intelligence.query.intent import QueryIntentDetector, generate_suggestions
from content_intelligence.query.prompts import (
    DEGRADED_LISTING_LINE,
    DEGRADED_RESPONSE,
    EMPTY_CORPUS_RESPONSE,
    NO_RESULTS_RESPONSE,
)
from content_intelligence.ranking import CompositeRanker
from content_intelligence.storage.protocols import ContentStore
from content_intelligence.utils.provider_calls import call_with_retry

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 120


class RAGQueryProcessor:
    """
    Answers natural-language queries over the indexed corpus.

    Example:
        >>> processor = RAGQueryProcessor(index, store, embedder, completion)
        >>> result = await processor.process("what am I thinking about lately?")
        >>> result.states
        ['ReceivedQuery', 'IntentDetected', 'Retrieved', 'ContextAssembled', 'AnswerSynthesized', 'Done']
    """

    def __init__(
        self,
        index: SimilarityIndex,
        store: ContentStore,
        embedder: TextEmbedding,
        completion: CompletionProvider,
        ranker: Optional[CompositeRanker] = None,
        detector: Optional[QueryIntentDetector] = None,
        settings: Optional[PipelineSettings] = None,
    ):
        self.index = index
        self.store = store
        self.embedder = embedder
        self.completion = completion
        self.ranker = ranker or CompositeRanker()
        self.detector = detector or QueryIntentDetector()
        self.settings = settings or PipelineSettings()
        self.assembler = ContextAssembler(self.settings.context_budget_chars)

        logger.info(
            f"RAGQueryProcessor initialized: threshold={self.settings.similarity_threshold}, "
            f"context_budget={self.settings.context_budget_chars}"
        )

    def calibrate_threshold(self, requested: Optional[float]) -> float:
        """
        Resolve the similarity threshold for a query.

        Small corpora get a looser threshold so a non-empty corpus still
        yields results for loosely phrased queries.
        """
        threshold = self.settings.similarity_threshold if requested is None else requested
        corpus_size = self.index.item_count()
        if corpus_size < self.settings.small_corpus_size:
            threshold = min(threshold, self.settings.small_corpus_threshold)

        logger.debug(
            f"Threshold calibration: requested={requested}, corpus={corpus_size}, "
            f"effective={threshold}"
        )
        return threshold

    async def process(
        self,
        query: str,
        options: Optional[QueryOptions] = None,
        now: Optional[datetime] = None,
    ) -> QueryResult:
        """
        Run a query through the state machine.

        Args:
            query: Query text
            options: Result limit, similarity threshold and intent hint
            now: Reference time for decay and recency (default: current time)

        Returns:
            QueryResult; used_fallback is set when no answer was synthesized

        Raises:
            ValidationError: If the query is empty or too long
            IndexConsistencyError: If the query embedding dimension does not
                match the index
        """
        if not query or not query.strip():
            raise ValidationError("Query must not be empty", field="query")
        if len(query) > self.settings.max_content_chars:
            raise ValidationError(
                f"Query exceeds {self.settings.max_content_chars} characters", field="query"
            )

        options = options or QueryOptions(limit=self.settings.default_limit)
        now = now or utcnow()
        states: List[QueryState] = ["ReceivedQuery"]

        analysis = self.detector.analyze(query, options.intent_hint)
        states.append("IntentDetected")

        if self.index.item_count() == 0:
            return self._fallback(states, analysis, EMPTY_CORPUS_RESPONSE)

        threshold = self.calibrate_threshold(options.threshold)

        try:
            query_embedding = await call_with_retry(
                "embedding",
                lambda: self.embedder.embed_query(query),
                timeout=self.settings.embedding_timeout_seconds,
                max_attempts=self.settings.provider_max_attempts,
                backoff_seconds=self.settings.provider_backoff_seconds,
            )
        except ProviderError as e:
            logger.warning(f"Query embedding unavailable, using keyword overlap: {e}")
            hits = self.index.keyword_search(query, k=self.settings.search_candidates)
            ranked = self._rank(hits, analysis, options.limit, now)
            if not ranked:
                return self._fallback(states, analysis, NO_RESULTS_RESPONSE, degraded=True)
            return self._fallback(
                states, analysis, self._degraded_answer(ranked), ranked=ranked, degraded=True
            )

        outcome = self.index.search(
            query_embedding,
            k=self.settings.search_candidates,
            threshold=threshold,
            query_text=query,
        )
        if outcome.no_relevant_result:
            return self._fallback(states, analysis, NO_RESULTS_RESPONSE)

        ranked = self._rank(outcome.hits, analysis, options.limit, now)
        if not ranked:
            return self._fallback(states, analysis, NO_RESULTS_RESPONSE)
        states.append("Retrieved")

        context = self.assembler.assemble(ranked, options.limit)
        states.append("ContextAssembled")

        included_ids = set(context.item_ids)
        included = [entry for entry in ranked if entry.item.id in included_ids]
        prompt_context = PromptContext(
            query=query,
            context=context.text,
            intent=analysis.intent,
            source_ids=context.item_ids,
        )

        try:
            answer = await call_with_retry(
                "completion",
                lambda: self.completion.complete(prompt_context),
                timeout=self.settings.completion_timeout_seconds,
                max_attempts=self.settings.provider_max_attempts,
                backoff_seconds=self.settings.provider_backoff_seconds,
            )
        except ProviderError as e:
            logger.warning(f"Answer synthesis unavailable: {e}")
            return self._fallback(
                states, analysis, self._degraded_answer(included), ranked=included, degraded=True
            )

        if not answer or not answer.strip():
            logger.warning("Answer synthesis returned an empty answer")
            return self._fallback(
                states, analysis, self._degraded_answer(included), ranked=included, degraded=True
            )
        states.extend(["AnswerSynthesized", "Done"])

        logger.info(
            f"Query answered: intent={analysis.intent}, sources={len(included)}, "
            f"candidates={len(outcome.hits)}"
        )
        return QueryResult(
            answer=answer,
            sources=[entry.item for entry in included],
            used_fallback=False,
            intent=analysis.intent,
            states=states,
            ranked=included,
        )

    def _rank(
        self,
        hits: Sequence[ChunkHit],
        analysis: QueryAnalysis,
        limit: int,
        now: datetime,
    ) -> List[RankedItem]:
        items: Dict[str, ContentItem] = {}
        for item_id in {hit.item_id for hit in hits}:
            item = self.store.get(item_id)
            if item is not None:
                items[item_id] = item

        return self.ranker.rank(
            hits,
            items,
            intent=analysis.intent,
            limit=limit,
            kinds=analysis.kinds,
            time_window_hours=analysis.time_window_hours,
            now=now,
        )

    def _degraded_answer(self, ranked: Sequence[RankedItem]) -> str:
        listing = "\n".join(
            DEGRADED_LISTING_LINE.format(
                position=position, preview=entry.best_chunk.text[:PREVIEW_CHARS]
            )
            for position, entry in enumerate(ranked, start=1)
        )
        return DEGRADED_RESPONSE.format(count=len(ranked), listing=listing)

    def _fallback(
        self,
        states: List[QueryState],
        analysis: QueryAnalysis,
        answer: str,
        ranked: Optional[List[RankedItem]] = None,
        degraded: bool = False,
    ) -> QueryResult:
        ranked = ranked or []
        states.append("Fallback")
        suggestions = [] if ranked else generate_suggestions(analysis)

        logger.warning(
            f"Query fell back: intent={analysis.intent}, sources={len(ranked)}, "
            f"degraded={degraded}, after={states[-2]}"
        )
        return QueryResult(
            answer=answer,
            sources=[entry.item for entry in ranked],
            used_fallback=True,
            degraded=degraded,
            intent=analysis.intent,
            states=states,
            ranked=ranked,
            suggestions=suggestions,
        )
