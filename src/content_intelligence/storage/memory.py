"""
In-memory content storage implementation.

Suitable for testing and single-process deployments. Data is lost on
restart; use SQLAlchemyContentStore for persistence.
"""

import logging
from typing import Dict, List, Optional

from content_intelligence.models import ContentItem

logger = logging.getLogger(__name__)


class InMemoryContentStore:
    """In-memory implementation of the ContentStore protocol."""

    def __init__(self):
        self._items: Dict[str, ContentItem] = {}
        self._fingerprints: Dict[str, str] = {}  # fingerprint -> item id

        logger.info("InMemoryContentStore initialized")

    def get(self, item_id: str) -> Optional[ContentItem]:
        return self._items.get(item_id)

    def get_by_fingerprint(self, fingerprint: str) -> Optional[ContentItem]:
        item_id = self._fingerprints.get(fingerprint)
        if item_id is None:
            return None
        return self._items.get(item_id)

    def upsert(self, item: ContentItem) -> str:
        previous = self._items.get(item.id)
        if previous is not None and previous.fingerprint != item.fingerprint:
            self._fingerprints.pop(previous.fingerprint, None)

        owner = self._fingerprints.get(item.fingerprint)
        if owner is not None and owner != item.id:
            raise ValueError(f"Fingerprint {item.fingerprint} already belongs to item {owner}")

        self._items[item.id] = item
        self._fingerprints[item.fingerprint] = item.id

        logger.debug(
            f"Stored item {item.id} (count={item.submission_count}, "
            f"importance={item.importance_score:.2f})"
        )
        return item.id

    def delete(self, item_id: str) -> bool:
        item = self._items.pop(item_id, None)
        if item is None:
            logger.warning(f"Cannot delete item {item_id}: not found")
            return False

        self._fingerprints.pop(item.fingerprint, None)
        logger.debug(f"Deleted item {item_id}")
        return True

    def list_all(self) -> List[ContentItem]:
        return sorted(self._items.values(), key=lambda item: item.last_submitted, reverse=True)

    def count(self) -> int:
        return len(self._items)

    def clear(self):
        """Clear ALL items from the store."""
        count = len(self._items)
        self._items.clear()
        self._fingerprints.clear()
        logger.info(f"Cleared all items ({count} total)")
