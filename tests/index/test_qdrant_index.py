"""Tests for the Qdrant-backed chunk index (local in-memory Qdrant)."""

from datetime import datetime, timedelta, timezone

import pytest

from content_intelligence.errors import IndexConsistencyError
from content_intelligence.models import Chunk

qdrant_client = pytest.importorskip("qdrant_client")

from content_intelligence.index.qdrant import QdrantVectorIndex, point_id  # noqa: E402

T0 = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


def make_chunks(item_id, vectors, texts=None):
    texts = texts or [f"chunk {i} of {item_id}" for i in range(len(vectors))]
    return [
        Chunk(item_id=item_id, index=i, text=text, start=0, end=len(text), embedding=vector)
        for i, (text, vector) in enumerate(zip(texts, vectors))
    ]


@pytest.fixture
def client():
    return qdrant_client.QdrantClient(":memory:")


@pytest.fixture
def index(client):
    return QdrantVectorIndex(collection_name="test_chunks", client=client)


def test_point_id_is_deterministic():
    assert point_id("a:0") == point_id("a:0")
    assert point_id("a:0") != point_id("a:1")


def test_collection_created_on_first_insert(index, client):
    assert not client.collection_exists("test_chunks")

    index.insert_item("a", make_chunks("a", [[1.0, 0.0, 0.0]]), T0)

    assert client.collection_exists("test_chunks")
    assert index.dimension == 3


def test_insert_and_search(index):
    index.insert_item("a", make_chunks("a", [[1.0, 0.0], [0.9, 0.1]]), T0)
    index.insert_item("b", make_chunks("b", [[0.0, 1.0]]), T0)

    outcome = index.search([1.0, 0.0], k=10, threshold=0.3)

    assert {h.item_id for h in outcome.hits} == {"a"}
    assert outcome.hits[0].chunk_id == "a:0"
    assert outcome.hits[0].similarity == pytest.approx(1.0, abs=1e-5)
    assert outcome.hits[0].chunk.text == "chunk 0 of a"


def test_no_relevant_result(index):
    index.insert_item("a", make_chunks("a", [[1.0, 0.0]]), T0)
    assert index.search([0.0, 1.0], threshold=0.3).no_relevant_result


def test_dimension_mismatch(index):
    index.insert_item("a", make_chunks("a", [[1.0, 0.0]]), T0)

    with pytest.raises(IndexConsistencyError):
        index.insert_item("b", make_chunks("b", [[1.0, 0.0, 0.0]]), T0)
    with pytest.raises(IndexConsistencyError):
        index.search([1.0, 0.0, 0.0])

    assert index.item_ids() == {"a"}


def test_reinsert_drops_leftover_chunks(index):
    index.insert_item("a", make_chunks("a", [[1.0, 0.0]] * 3), T0)
    index.insert_item("a", make_chunks("a", [[1.0, 0.0]]), T0)

    assert index.chunk_count() == 1


def test_delete_item(index):
    index.insert_item("a", make_chunks("a", [[1.0, 0.0]] * 2), T0)
    index.insert_item("b", make_chunks("b", [[1.0, 0.0]]), T0)

    assert index.delete_item("a") == 2
    assert index.item_ids() == {"b"}
    assert [h.item_id for h in index.search([1.0, 0.0]).hits] == ["b"]


def test_ties_prefer_recent_items(index):
    index.insert_item("old", make_chunks("old", [[1.0, 0.0]]), T0)
    index.insert_item("new", make_chunks("new", [[1.0, 0.0]]), T0 + timedelta(hours=1))

    assert [h.item_id for h in index.search([1.0, 0.0]).hits] == ["new", "old"]

    index.touch("old", T0 + timedelta(hours=2))
    assert [h.item_id for h in index.search([1.0, 0.0]).hits] == ["old", "new"]


def test_pending_chunks_match_by_keywords(index):
    index.insert_item("p", make_chunks("p", [None], texts=["dentist appointment tuesday"]), T0)

    assert index.item_count() == 1
    outcome = index.search([1.0, 0.0], threshold=0.3, query_text="dentist appointment")
    assert [h.item_id for h in outcome.hits] == ["p"]
    assert outcome.hits[0].keyword_match


def test_reopen_existing_collection(index, client):
    """Test that a second index over the same collection sees stored items."""
    index.insert_item("a", make_chunks("a", [[1.0, 0.0]]), T0)

    reopened = QdrantVectorIndex(collection_name="test_chunks", client=client)

    assert reopened.dimension == 2
    assert reopened.item_ids() == {"a"}
    assert [h.item_id for h in reopened.search([1.0, 0.0]).hits] == ["a"]


def test_reopen_with_wrong_dimension(index, client):
    index.insert_item("a", make_chunks("a", [[1.0, 0.0]]), T0)

    with pytest.raises(IndexConsistencyError):
        QdrantVectorIndex(collection_name="test_chunks", dimension=3, client=client)


def test_clear(index, client):
    index.insert_item("a", make_chunks("a", [[1.0, 0.0]]), T0)
    index.clear()

    assert index.item_count() == 0
    assert index.dimension is None
    assert not client.collection_exists("test_chunks")
