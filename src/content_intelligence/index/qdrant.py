import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PointStruct,
    Range,
    VectorParams,
)

from content_intelligence.errors import IndexConsistencyError
from content_intelligence.index.models import ChunkHit, SearchOutcome
from content_intelligence.index.scoring import order_hits, overlap_score, tokenize
from content_intelligence.models import Chunk

logger = logging.getLogger(__name__)

SCROLL_PAGE_SIZE = 256


def point_id(chunk_id: str) -> str:
    """Deterministic Qdrant point id for a chunk id."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"chunk:{chunk_id}"))


class QdrantVectorIndex:
    """
    SimilarityIndex backed by a Qdrant collection.

    Embedded chunks live in Qdrant; chunks indexed without an embedding are
    held locally for keyword matching until they are re-indexed.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        collection_name: str = "content_chunks",
        dimension: Optional[int] = None,
        client: Optional[QdrantClient] = None,
    ):
        """
        Initialize the Qdrant index.

        Args:
            host: Qdrant host (default: localhost)
            port: Qdrant port (default: 6333)
            collection_name: Collection name (default: content_chunks)
            dimension: Vector size (None = existing collection size, or the
                first embedded chunk inserted)
            client: Pre-built client (e.g. QdrantClient(":memory:")); host and
                port are ignored when given
        """
        self.client = client or QdrantClient(host=host, port=port)
        self.collection_name = collection_name
        self._fixed_dimension = dimension
        self._dimension = dimension
        self._pending: Dict[str, List[Chunk]] = {}
        self._last_submitted: Dict[str, datetime] = {}
        self._embedded_items: Set[str] = set()
        self._lock = threading.RLock()

        self._init_collection()
        logger.info(
            f"QdrantVectorIndex initialized: collection={collection_name}, "
            f"dimension={self._dimension or 'auto'}"
        )

    def _init_collection(self):
        if self.client.collection_exists(self.collection_name):
            info = self.client.get_collection(self.collection_name)
            existing = info.config.params.vectors.size
            if self._dimension is not None and self._dimension != existing:
                raise IndexConsistencyError(existing, self._dimension)
            self._dimension = existing
            self._load_item_ids()
        elif self._dimension is not None:
            self._create_collection(self._dimension)

    def _create_collection(self, dimension: int):
        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
        )
        logger.info(f"Created collection {self.collection_name} ({dimension} dimensions)")

    def _load_item_ids(self):
        for point in self._scroll_all():
            payload = point.payload or {}
            item_id = payload.get("item_id")
            if item_id is None:
                continue
            self._embedded_items.add(item_id)
            submitted = payload.get("last_submitted")
            if submitted is not None:
                recorded = datetime.fromtimestamp(submitted, tz=timezone.utc)
                previous = self._last_submitted.get(item_id)
                if previous is None or recorded > previous:
                    self._last_submitted[item_id] = recorded

    def _scroll_all(self):
        offset = None
        while True:
            points, offset = self.client.scroll(
                collection_name=self.collection_name,
                limit=SCROLL_PAGE_SIZE,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )
            yield from points
            if offset is None:
                break

    @staticmethod
    def _item_filter(item_id: str, min_index: Optional[int] = None) -> Filter:
        conditions = [FieldCondition(key="item_id", match=MatchValue(value=item_id))]
        if min_index is not None:
            conditions.append(FieldCondition(key="index", range=Range(gte=min_index)))
        return Filter(must=conditions)

    @staticmethod
    def _chunk_from_payload(payload: dict) -> Chunk:
        return Chunk(
            item_id=payload["item_id"],
            index=payload["index"],
            text=payload["text"],
            start=payload["start"],
            end=payload["end"],
        )

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    def insert_item(self, item_id: str, chunks: List[Chunk], last_submitted: datetime) -> None:
        embedded = [chunk for chunk in chunks if chunk.embedding is not None]
        pending = [chunk for chunk in chunks if chunk.embedding is None]

        with self._lock:
            dimension = self._dimension
            for chunk in embedded:
                if dimension is None:
                    dimension = len(chunk.embedding)
                elif len(chunk.embedding) != dimension:
                    raise IndexConsistencyError(dimension, len(chunk.embedding), item_id=item_id)

            if dimension is not None and self._dimension is None:
                self._create_collection(dimension)
                self._dimension = dimension

            if embedded:
                timestamp = last_submitted.timestamp()
                self.client.upsert(
                    collection_name=self.collection_name,
                    points=[
                        PointStruct(
                            id=point_id(chunk.id),
                            vector=chunk.embedding,
                            payload={
                                "item_id": item_id,
                                "index": chunk.index,
                                "text": chunk.text,
                                "start": chunk.start,
                                "end": chunk.end,
                                "last_submitted": timestamp,
                            },
                        )
                        for chunk in embedded
                    ],
                    wait=True,
                )
                self._embedded_items.add(item_id)
                # Chunks left over from a longer previous version of the item
                self._delete_points(item_id, min_index=len(chunks))
            elif item_id in self._embedded_items:
                self._delete_points(item_id)
                self._embedded_items.discard(item_id)

            if pending:
                self._pending[item_id] = pending
            else:
                self._pending.pop(item_id, None)
            self._last_submitted[item_id] = last_submitted

        logger.debug(
            f"Indexed item {item_id}: {len(embedded)} embedded, {len(pending)} pending chunks"
        )

    def _delete_points(self, item_id: str, min_index: Optional[int] = None) -> None:
        if self._dimension is None:
            return
        self.client.delete(
            collection_name=self.collection_name,
            points_selector=FilterSelector(filter=self._item_filter(item_id, min_index)),
            wait=True,
        )

    def search(
        self,
        query_embedding: List[float],
        k: int = 50,
        threshold: float = 0.3,
        query_text: Optional[str] = None,
    ) -> SearchOutcome:
        if self._dimension is not None and len(query_embedding) != self._dimension:
            raise IndexConsistencyError(self._dimension, len(query_embedding))

        hits: List[ChunkHit] = []
        candidates = 0

        with self._lock:
            if self._embedded_items:
                response = self.client.query_points(
                    collection_name=self.collection_name,
                    query=query_embedding,
                    limit=k,
                    score_threshold=threshold if threshold > -1 else None,
                    with_payload=True,
                )
                for point in response.points:
                    hits.append(
                        ChunkHit(
                            chunk=self._chunk_from_payload(point.payload),
                            similarity=max(-1.0, min(1.0, point.score)),
                        )
                    )
                candidates += len(response.points)

            if query_text:
                query_terms = tokenize(query_text)
                for chunks in self._pending.values():
                    for chunk in chunks:
                        candidates += 1
                        score = overlap_score(query_terms, chunk.text)
                        if score >= threshold:
                            hits.append(ChunkHit(chunk=chunk, similarity=score, keyword_match=True))

            ordered = order_hits(hits, self._last_submitted)[:k]

        logger.debug(f"{len(ordered)} hits found (threshold={threshold})")
        return SearchOutcome(hits=ordered, threshold=threshold, candidates_considered=candidates)

    def keyword_search(self, query_text: str, k: int = 50) -> List[ChunkHit]:
        query_terms = tokenize(query_text)
        if not query_terms:
            return []

        with self._lock:
            chunks = [chunk for pending in self._pending.values() for chunk in pending]
            if self._embedded_items:
                chunks.extend(self._chunk_from_payload(point.payload) for point in self._scroll_all())

            hits = [
                ChunkHit(chunk=chunk, similarity=score, keyword_match=True)
                for chunk in chunks
                if (score := overlap_score(query_terms, chunk.text)) > 0
            ]
            return order_hits(hits, self._last_submitted)[:k]

    def touch(self, item_id: str, last_submitted: datetime) -> None:
        with self._lock:
            if item_id not in self._last_submitted:
                return
            self._last_submitted[item_id] = last_submitted
            if item_id in self._embedded_items:
                self.client.set_payload(
                    collection_name=self.collection_name,
                    payload={"last_submitted": last_submitted.timestamp()},
                    points=self._item_filter(item_id),
                )

    def delete_item(self, item_id: str) -> int:
        with self._lock:
            removed = len(self._pending.pop(item_id, []))
            if item_id in self._embedded_items:
                removed += self.client.count(
                    collection_name=self.collection_name,
                    count_filter=self._item_filter(item_id),
                    exact=True,
                ).count
                self._delete_points(item_id)
                self._embedded_items.discard(item_id)
            self._last_submitted.pop(item_id, None)

        if removed:
            logger.debug(f"Removed {removed} chunks of item {item_id}")
        return removed

    def item_ids(self) -> Set[str]:
        with self._lock:
            return set(self._embedded_items) | set(self._pending)

    def item_count(self) -> int:
        return len(self.item_ids())

    def chunk_count(self) -> int:
        with self._lock:
            count = sum(len(chunks) for chunks in self._pending.values())
            if self._embedded_items:
                count += self.client.count(collection_name=self.collection_name, exact=True).count
            return count

    def clear(self) -> None:
        """Drop every chunk (dangerous!). A fixed dimension is kept; an inferred one is reset."""
        with self._lock:
            if self.client.collection_exists(self.collection_name):
                self.client.delete_collection(self.collection_name)
            self._pending.clear()
            self._last_submitted.clear()
            self._embedded_items.clear()
            self._dimension = self._fixed_dimension
            if self._fixed_dimension is not None:
                self._create_collection(self._fixed_dimension)
        logger.info(f"Cleared collection {self.collection_name}")
