"""
Content intelligence pipeline.

Ingestion: raw text -> fingerprint (dedup, importance update) -> chunks ->
embeddings -> index. Query: see RAGQueryProcessor.

Provider calls are the only suspension points. They run outside the
per-fingerprint locks; every store and index mutation happens between
awaits, so readers see an item either fully indexed or not at all.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union
from urllib.parse import urlparse
from weakref import WeakValueDictionary

from content_intelligence.chunker import TextChunker
from content_intelligence.completion.protocol import CompletionProvider
from content_intelligence.config import PipelineSettings
from content_intelligence.embeddings.protocol import TextEmbedding
from content_intelligence.errors import (
    ContentNotFoundError,
    IndexConsistencyError,
    ProviderError,
    ValidationError,
)
from content_intelligence.fingerprint import clean_text, generate_fingerprint, normalize_text
from content_intelligence.index.memory import VectorIndex
from content_intelligence.index.protocol import SimilarityIndex
from content_intelligence.intelligence.importance import ImportanceEngine
from content_intelligence.models import (
    Chunk,
    ContentItem,
    FileSource,
    QueryOptions,
    QueryResult,
    Submission,
    TextSource,
    UrlSource,
    utcnow,
)
from content_intelligence.query.intent import QueryIntentDetector
from content_intelligence.query.processor import RAGQueryProcessor
from content_intelligence.ranking import CompositeRanker
from content_intelligence.storage.memory import InMemoryContentStore
from content_intelligence.storage.protocols import ContentStore
from content_intelligence.utils.provider_calls import call_with_retry

logger = logging.getLogger(__name__)

SourceLike = Union[str, TextSource, FileSource, UrlSource]

_SOURCES_BY_KIND = {
    "text": TextSource,
    "file": FileSource,
    "url": UrlSource,
}


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_source(source: SourceLike) -> Union[TextSource, FileSource, UrlSource]:
    """Turn a kind string or source instance into a validated source."""
    if isinstance(source, str):
        source_cls = _SOURCES_BY_KIND.get(source)
        if source_cls is None:
            raise ValidationError(
                f"Unknown content kind '{source}' (expected one of {sorted(_SOURCES_BY_KIND)})",
                field="kind",
            )
        return source_cls()

    if isinstance(source, UrlSource) and source.url and not source.domain:
        return source.model_copy(update={"domain": urlparse(source.url).netloc or None})
    return source


class ContentPipeline:
    """
    Ingests personal content and answers queries over it.

    Example:
        >>> pipeline = ContentPipeline(embedder=OpenAIEmbedding(), completion=completion)
        >>> item = await pipeline.ingest("dentist appointment tuesday 3pm")
        >>> item.importance_score
        1.0
        >>> result = await pipeline.query("when is the dentist?")
        >>> result.used_fallback
        False
    """

    def __init__(
        self,
        embedder: TextEmbedding,
        completion: CompletionProvider,
        store: Optional[ContentStore] = None,
        index: Optional[SimilarityIndex] = None,
        settings: Optional[PipelineSettings] = None,
        importance_engine: Optional[ImportanceEngine] = None,
        chunker: Optional[TextChunker] = None,
        ranker: Optional[CompositeRanker] = None,
        detector: Optional[QueryIntentDetector] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            embedder: Embedding provider for chunks and queries
            completion: Completion provider for answer synthesis
            store: System of record (default: InMemoryContentStore)
            index: Chunk similarity index (default: in-memory VectorIndex)
            settings: Operational settings (default: read from environment)
            importance_engine: Importance scoring (default: settings' half-life)
            chunker: Text chunker (default: settings' chunk size/overlap/max)
            ranker: Composite ranker (default: weights presets)
            detector: Query intent detector
        """
        self.settings = settings or PipelineSettings()
        self.embedder = embedder
        self.store = store if store is not None else InMemoryContentStore()
        self.index = index if index is not None else VectorIndex()
        self.importance_engine = importance_engine or ImportanceEngine(
            self.settings.decay_half_life_hours
        )
        self.chunker = chunker or TextChunker(
            chunk_size=self.settings.chunk_size,
            overlap=self.settings.chunk_overlap,
            max_chunks=self.settings.max_chunks,
        )
        self.processor = RAGQueryProcessor(
            index=self.index,
            store=self.store,
            embedder=embedder,
            completion=completion,
            ranker=ranker or CompositeRanker(self.importance_engine),
            detector=detector,
            settings=self.settings,
        )

        self._fingerprints: Dict[str, str] = {}  # fingerprint -> item id
        # Entries vanish once no ingest, update or delete holds the lock
        self._locks: "WeakValueDictionary[str, asyncio.Lock]" = WeakValueDictionary()

        logger.info(
            f"ContentPipeline initialized: embedder={getattr(embedder, 'model_name', embedder)}, "
            f"store={type(self.store).__name__}, index={type(self.index).__name__}"
        )

    def _validate_text(self, raw_text: str, field: str = "text") -> str:
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise ValidationError("Content must not be empty", field=field)
        if len(raw_text) > self.settings.max_content_chars:
            raise ValidationError(
                f"Content exceeds {self.settings.max_content_chars} characters",
                field=field,
                details={"length": len(raw_text)},
            )

        cleaned = clean_text(raw_text)
        if not normalize_text(cleaned):
            raise ValidationError("Content has no indexable text", field=field)
        return cleaned

    async def ingest(
        self,
        raw_text: str,
        kind: SourceLike = "text",
        urgency_hint: Optional[float] = None,
        channel: str = "unknown",
        now: Optional[datetime] = None,
    ) -> ContentItem:
        """
        Ingest content, deduplicating by fingerprint.

        A novel fingerprint creates an item at baseline importance; a known
        fingerprint records a resubmission on the existing item instead.

        Args:
            raw_text: Extracted text
            kind: "text", "file", "url" or a source instance with metadata
            urgency_hint: Precomputed time-sensitivity signal in [0, 1]
            channel: Where the submission came from (e.g. "share_sheet")
            now: Submission time (default: current time)

        Returns:
            The created or updated ContentItem

        Raises:
            ValidationError: If the text is empty/oversized, the kind is
                unknown or the urgency hint is out of range
            IndexConsistencyError: If the embeddings do not match the index
                dimension (the new item is discarded)
        """
        cleaned = self._validate_text(raw_text)
        source = resolve_source(kind)
        if urgency_hint is not None and not 0.0 <= urgency_hint <= 1.0:
            raise ValidationError("Urgency hint must be within [0, 1]", field="urgency_hint")

        submitted_at = _as_utc(now)
        submission = Submission(timestamp=submitted_at, source=channel)
        fingerprint = generate_fingerprint(cleaned)

        async with self._lock_for(fingerprint):
            existing = self._existing_item(fingerprint)
            if existing is not None:
                return self._record_resubmission(existing, submission, urgency_hint)

            item = ContentItem(
                source=source,
                text=cleaned,
                fingerprint=fingerprint,
                urgency_hint=urgency_hint,
                first_seen=submitted_at,
                last_submitted=submitted_at,
            )
            item = self.importance_engine.initialize(item, submission)
            item = item.model_copy(update={"chunks": self.chunker.chunk(item.id, cleaned)})

            # Reserve the fingerprint before the provider call so concurrent
            # ingestions of the same content resubmit instead of duplicating
            self.store.upsert(item)
            self._fingerprints[fingerprint] = item.id

        logger.info(
            f"Created item {item.id} ({item.kind}, {len(item.chunks)} chunks, "
            f"fingerprint={fingerprint[:8]})"
        )

        embeddings = await self._embed_chunks(item.chunks)
        published = self._publish(item, item.chunks, embeddings, discard_on_error=True)
        return published or item

    def _lock_for(self, fingerprint: str) -> asyncio.Lock:
        lock = self._locks.get(fingerprint)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[fingerprint] = lock
        return lock

    def _existing_item(self, fingerprint: str) -> Optional[ContentItem]:
        """Find the item owning fingerprint, consulting the store on a cache miss."""
        item_id = self._fingerprints.get(fingerprint)
        if item_id is not None:
            item = self.store.get(item_id)
            if item is not None:
                return item
            self._fingerprints.pop(fingerprint, None)

        item = self.store.get_by_fingerprint(fingerprint)
        if item is not None:
            logger.debug(f"Fingerprint {fingerprint[:8]} found in store as item {item.id}")
            self._fingerprints[fingerprint] = item.id
        return item

    def _record_resubmission(
        self, item: ContentItem, submission: Submission, urgency_hint: Optional[float]
    ) -> ContentItem:
        if urgency_hint is not None:
            hint = max(urgency_hint, item.urgency_hint or 0.0)
            item = item.model_copy(update={"urgency_hint": hint})

        updated = self.importance_engine.record_submission(item, submission)
        self.store.upsert(updated)
        self.index.touch(updated.id, updated.last_submitted)
        return updated

    async def _embed_chunks(self, chunks: List[Chunk]) -> Optional[List[List[float]]]:
        """Embed chunk texts, or return None when the provider is unavailable."""
        if not chunks:
            return []

        texts = [chunk.text for chunk in chunks]
        try:
            vectors = await call_with_retry(
                "embedding",
                lambda: self.embedder.embed_documents(texts),
                timeout=self.settings.embedding_timeout_seconds,
                max_attempts=self.settings.provider_max_attempts,
                backoff_seconds=self.settings.provider_backoff_seconds,
            )
        except ProviderError as e:
            logger.warning(f"Embedding unavailable, indexing for keyword matching only: {e}")
            return None

        if len(vectors) != len(chunks):
            logger.warning(
                f"Embedding provider returned {len(vectors)} vectors for {len(chunks)} chunks, "
                f"indexing for keyword matching only"
            )
            return None
        return vectors

    def _publish(
        self,
        item: ContentItem,
        chunks: List[Chunk],
        embeddings: Optional[List[List[float]]],
        discard_on_error: bool,
    ) -> Optional[ContentItem]:
        """
        Attach embeddings and publish all chunks of an item to the index.

        Re-reads the item so resubmissions recorded while embedding are kept.
        Returns None if the item was deleted or its content replaced in the
        meantime.
        """
        item_id = item.id
        latest = self.store.get(item_id)
        if latest is None:
            logger.info(f"Item {item_id} was deleted before it could be indexed")
            return None
        if latest.fingerprint != item.fingerprint:
            logger.info(f"Item {item_id} changed content before it could be indexed")
            return None

        if embeddings is not None:
            chunks = [
                chunk.model_copy(update={"embedding": vector})
                for chunk, vector in zip(chunks, embeddings)
            ]

        try:
            self.index.insert_item(item_id, chunks, latest.last_submitted)
        except IndexConsistencyError as e:
            logger.error(f"Aborting ingestion of item {item_id}: {e}")
            if discard_on_error:
                self.store.delete(item_id)
                self._fingerprints.pop(latest.fingerprint, None)
            raise

        published = latest.model_copy(
            update={
                "chunks": chunks,
                "embedding_status": "indexed" if embeddings is not None else "pending",
            }
        )
        self.store.upsert(published)
        return published

    async def query(
        self,
        text: str,
        options: Optional[QueryOptions] = None,
        now: Optional[datetime] = None,
    ) -> QueryResult:
        """
        Answer a query over the corpus.

        Provider failures never escape: they end in the Fallback state with
        ``used_fallback`` (and ``degraded``) set.
        """
        if options is None:
            options = QueryOptions(limit=self.settings.default_limit)
        return await self.processor.process(text, options, now=_as_utc(now))

    def get(self, item_id: str) -> Optional[ContentItem]:
        return self.store.get(item_id)

    def list_items(self) -> List[ContentItem]:
        return self.store.list_all()

    def importance(self, item_id: str, now: Optional[datetime] = None) -> float:
        """Current (decayed) importance of an item."""
        item = self.store.get(item_id)
        if item is None:
            raise ContentNotFoundError(item_id)
        return self.importance_engine.current_importance(item, _as_utc(now))

    async def delete(self, item_id: str) -> bool:
        """
        Delete an item and all of its chunks.

        Returns:
            True if the item existed
        """
        item = self.store.get(item_id)
        if item is None:
            return False

        async with self._lock_for(item.fingerprint):
            removed = self.index.delete_item(item_id)
            self.store.delete(item_id)
            if self._fingerprints.get(item.fingerprint) == item_id:
                del self._fingerprints[item.fingerprint]

        logger.info(f"Deleted item {item_id} ({removed} chunks)")
        return True

    async def update_content(
        self, item_id: str, raw_text: str, kind: Optional[SourceLike] = None
    ) -> ContentItem:
        """
        Replace an item's text, re-fingerprinting and re-chunking it wholesale.

        Submission history and importance are kept; this is an edit, not a
        submission.

        Raises:
            ContentNotFoundError: If the item does not exist
            ValidationError: If the text is invalid or already belongs to
                another item
            IndexConsistencyError: If the new embeddings do not match the
                index (the previous content is restored)
        """
        cleaned = self._validate_text(raw_text)
        previous = self.store.get(item_id)
        if previous is None:
            raise ContentNotFoundError(item_id)

        fingerprint = generate_fingerprint(cleaned)
        if fingerprint == previous.fingerprint and kind is None:
            logger.debug(f"Update of item {item_id} does not change its content")
            return previous

        existing = self._existing_item(fingerprint)
        owner = existing.id if existing is not None else None
        if owner is not None and owner != item_id:
            raise ValidationError(
                f"Content already exists as item {owner}",
                field="text",
                details={"item_id": owner},
            )

        async with self._lock_for(fingerprint):
            chunks = self.chunker.chunk(item_id, cleaned)
            updated = previous.model_copy(
                update={
                    "text": cleaned,
                    "fingerprint": fingerprint,
                    "source": resolve_source(kind) if kind is not None else previous.source,
                    "chunks": chunks,
                    "embedding_status": "pending",
                }
            )
            self.store.upsert(updated)
            self._fingerprints.pop(previous.fingerprint, None)
            self._fingerprints[fingerprint] = item_id

        embeddings = await self._embed_chunks(chunks)
        try:
            published = self._publish(updated, chunks, embeddings, discard_on_error=False)
        except IndexConsistencyError:
            if self.store.get(item_id) is not None:
                self.store.upsert(previous)
                self._fingerprints.pop(fingerprint, None)
                self._fingerprints[previous.fingerprint] = item_id
            raise

        if published is None:
            raise ContentNotFoundError(item_id)

        logger.info(f"Updated content of item {item_id} ({len(chunks)} chunks)")
        return published

    def restore(self) -> int:
        """
        Rebuild the fingerprint map and the index from the store.

        Items whose stored embeddings do not fit the index are re-indexed
        for keyword matching and marked pending.

        Returns:
            Number of items restored
        """
        self._fingerprints.clear()
        restored = 0

        for item in self.store.list_all():
            self._fingerprints[item.fingerprint] = item.id
            chunks = item.chunks or self.chunker.chunk(item.id, item.text)
            embedded = item.embedding_status == "indexed" and all(
                chunk.embedding is not None for chunk in chunks
            )

            if embedded:
                try:
                    self.index.insert_item(item.id, chunks, item.last_submitted)
                except IndexConsistencyError as e:
                    logger.error(f"Stored embeddings of item {item.id} do not fit the index: {e}")
                    embedded = False

            if not embedded:
                chunks = [chunk.model_copy(update={"embedding": None}) for chunk in chunks]
                self.index.insert_item(item.id, chunks, item.last_submitted)
                if item.embedding_status != "pending" or chunks != item.chunks:
                    self.store.upsert(
                        item.model_copy(update={"chunks": chunks, "embedding_status": "pending"})
                    )
            restored += 1

        logger.info(f"Restored {restored} items from {type(self.store).__name__}")
        return restored

    async def reindex_pending(self) -> int:
        """
        Embed and publish items ingested while the embedding provider was down.

        Stops at the first provider failure; remaining items stay pending.

        Returns:
            Number of items re-indexed
        """
        pending = [item for item in self.store.list_all() if item.embedding_status == "pending"]
        reindexed = 0

        for position, item in enumerate(pending):
            embeddings = await self._embed_chunks(item.chunks)
            if embeddings is None:
                logger.warning(
                    f"Re-indexing stopped: {len(pending) - position} items still pending"
                )
                break

            try:
                published = self._publish(item, item.chunks, embeddings, discard_on_error=False)
            except IndexConsistencyError:
                continue
            if published is not None:
                reindexed += 1

        logger.info(f"Re-indexed {reindexed} of {len(pending)} pending items")
        return reindexed
