"""
Storage protocol for content items.

The pipeline treats the store as the system of record: every item change
is written through it, and the in-memory fingerprint map and index can be
rebuilt from it. Implementations may be backed by any database.
"""

from typing import List, Optional, Protocol

from content_intelligence.models import ContentItem


class ContentStore(Protocol):
    """Protocol for content item persistence."""

    def get(self, item_id: str) -> Optional[ContentItem]:
        """
        Retrieve an item by ID.

        Args:
            item_id: The item ID

        Returns:
            The item if found, None otherwise
        """
        ...

    def get_by_fingerprint(self, fingerprint: str) -> Optional[ContentItem]:
        """Retrieve the item owning a fingerprint, if any."""
        ...

    def upsert(self, item: ContentItem) -> str:
        """
        Insert or replace an item.

        Args:
            item: The item to store

        Returns:
            The item ID
        """
        ...

    def delete(self, item_id: str) -> bool:
        """
        Delete an item.

        Returns:
            True if the item existed
        """
        ...

    def list_all(self) -> List[ContentItem]:
        """All stored items, most recently submitted first."""
        ...

    def count(self) -> int:
        ...
