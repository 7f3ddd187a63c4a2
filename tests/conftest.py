"""Shared fixtures: deterministic providers and a fast-failing pipeline."""

import hashlib
import re
from datetime import datetime, timezone
from typing import List
from unittest.mock import AsyncMock, Mock

import pytest

from content_intelligence import ContentPipeline, PipelineSettings

_WORD = re.compile(r"[a-z0-9]+")


class BagOfWordsEmbedding:
    """
    Deterministic embedder for tests.

    Each word is hashed into one of ``dimension`` buckets, so texts sharing
    words are similar and identical texts have similarity 1.0.
    """

    def __init__(self, dimension: int = 512):
        self._dimension = dimension
        self.embed_documents_calls = 0
        self.embed_query_calls = 0

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "bag-of-words"

    def vector(self, text: str) -> List[float]:
        vector = [0.0] * self._dimension
        for word in _WORD.findall(text.lower()):
            bucket = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % self._dimension
            vector[bucket] += 1.0
        return vector

    async def embed_document(self, text: str) -> List[float]:
        return self.vector(text)

    async def embed_query(self, text: str) -> List[float]:
        self.embed_query_calls += 1
        return self.vector(text)

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.embed_documents_calls += 1
        return [self.vector(text) for text in texts]


class FailingEmbedding(BagOfWordsEmbedding):
    """Embedder whose provider is down."""

    async def embed_query(self, text: str) -> List[float]:
        self.embed_query_calls += 1
        raise ConnectionError("embedding service unavailable")

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.embed_documents_calls += 1
        raise ConnectionError("embedding service unavailable")


@pytest.fixture
def now():
    return datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    """Settings with no retry backoff so provider failures resolve instantly."""
    return PipelineSettings(
        provider_backoff_seconds=0,
        embedding_timeout_seconds=1.0,
        completion_timeout_seconds=1.0,
    )


@pytest.fixture
def embedder():
    return BagOfWordsEmbedding()


@pytest.fixture
def failing_embedder():
    return FailingEmbedding()


@pytest.fixture
def completion():
    """Completion provider returning a canned answer."""
    provider = Mock()
    provider.complete = AsyncMock(return_value="You saved a note about the dentist.")
    return provider


@pytest.fixture
def pipeline(embedder, completion, settings):
    return ContentPipeline(embedder=embedder, completion=completion, settings=settings)


@pytest.fixture
def bag_of_words():
    """Factory for extra embedders, e.g. with a different dimension."""
    return BagOfWordsEmbedding
