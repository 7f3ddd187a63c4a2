"""
Storage for content items.

- ContentStore: persistence protocol (system of record)
- InMemoryContentStore: dictionaries, for tests and single-process use
- SQLAlchemyContentStore: any SQLAlchemy-compatible database
"""

from content_intelligence.storage.memory import InMemoryContentStore
from content_intelligence.storage.protocols import ContentStore
from content_intelligence.storage.sqlalchemy import SQLAlchemyContentStore

__all__ = [
    "ContentStore",
    "InMemoryContentStore",
    "SQLAlchemyContentStore",
]
