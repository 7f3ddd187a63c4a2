"""Unit tests for in-memory content storage."""

from datetime import datetime, timedelta, timezone

import pytest

from content_intelligence.models import ContentItem
from content_intelligence.storage import InMemoryContentStore

T0 = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def content_store():
    return InMemoryContentStore()


def make_item(item_id, fingerprint=None, hours=0):
    return ContentItem(
        id=item_id,
        text=f"text {item_id}",
        fingerprint=fingerprint or f"fp-{item_id}",
        last_submitted=T0 + timedelta(hours=hours),
    )


def test_upsert_and_get(content_store):
    item = make_item("a")

    assert content_store.upsert(item) == "a"
    assert content_store.get("a") == item
    assert content_store.get_by_fingerprint("fp-a") == item
    assert content_store.get("missing") is None
    assert content_store.get_by_fingerprint("fp-missing") is None


def test_upsert_replaces(content_store):
    content_store.upsert(make_item("a"))
    content_store.upsert(make_item("a").model_copy(update={"submission_count": 3}))

    assert content_store.count() == 1
    assert content_store.get("a").submission_count == 3


def test_fingerprint_change_releases_old_fingerprint(content_store):
    content_store.upsert(make_item("a"))
    content_store.upsert(make_item("a", fingerprint="fp-new"))

    assert content_store.get_by_fingerprint("fp-a") is None
    assert content_store.get_by_fingerprint("fp-new").id == "a"


def test_fingerprint_is_unique(content_store):
    content_store.upsert(make_item("a", fingerprint="shared"))

    with pytest.raises(ValueError):
        content_store.upsert(make_item("b", fingerprint="shared"))


def test_delete(content_store):
    content_store.upsert(make_item("a"))

    assert content_store.delete("a")
    assert not content_store.delete("a")
    assert content_store.get_by_fingerprint("fp-a") is None


def test_list_all_most_recent_first(content_store):
    content_store.upsert(make_item("old", hours=0))
    content_store.upsert(make_item("new", hours=5))
    content_store.upsert(make_item("mid", hours=2))

    assert [item.id for item in content_store.list_all()] == ["new", "mid", "old"]


def test_clear(content_store):
    content_store.upsert(make_item("a"))
    content_store.clear()
    assert content_store.count() == 0
