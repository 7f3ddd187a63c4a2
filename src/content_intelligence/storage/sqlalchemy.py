"""
SQLAlchemy-based content storage implementation.

Works with any SQLAlchemy-compatible database (PostgreSQL, SQLite, MySQL,
etc.). Queryable fields are stored as columns; the full item (chunks,
submission history, patterns) is kept as a JSON document.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import Column, DateTime, Engine, Float, Integer, String, Text
from sqlalchemy.orm import Session, declarative_base

from content_intelligence.models import ContentItem

logger = logging.getLogger(__name__)

Base = declarative_base()


class ContentItemDB(Base):
    """SQLAlchemy model for content items."""

    __tablename__ = "content_items"

    id = Column(String, primary_key=True)
    fingerprint = Column(String, nullable=False, unique=True, index=True)
    kind = Column(String, nullable=False, index=True)

    submission_count = Column(Integer, nullable=False, default=1)
    importance_score = Column(Float, nullable=False, default=1.0)
    urgency_score = Column(Float, nullable=False, default=0.5)
    embedding_status = Column(String, nullable=False, default="pending", index=True)

    first_seen = Column(DateTime(timezone=True), nullable=False)
    last_submitted = Column(DateTime(timezone=True), nullable=False, index=True)

    payload_json = Column(Text, nullable=False)

    def to_content_item(self) -> ContentItem:
        """Convert database model to ContentItem."""
        return ContentItem.model_validate_json(self.payload_json)

    def update_from(self, item: ContentItem) -> None:
        self.fingerprint = item.fingerprint
        self.kind = item.kind
        self.submission_count = item.submission_count
        self.importance_score = item.importance_score
        self.urgency_score = item.urgency_score
        self.embedding_status = item.embedding_status
        self.first_seen = item.first_seen
        self.last_submitted = item.last_submitted
        self.payload_json = item.model_dump_json()

    @staticmethod
    def from_content_item(item: ContentItem) -> "ContentItemDB":
        """Create database model from ContentItem."""
        db_item = ContentItemDB(id=item.id)
        db_item.update_from(item)
        return db_item


class SQLAlchemyContentStore:
    """
    SQLAlchemy-based content storage.

    Example:
        from sqlalchemy import create_engine
        engine = create_engine("sqlite:///content.db")
        store = SQLAlchemyContentStore(engine)
        store.create_tables()
    """

    def __init__(self, engine: Engine):
        """
        Initialize the SQLAlchemy content store.

        Args:
            engine: SQLAlchemy engine for database connection
        """
        self.engine = engine
        logger.info(f"SQLAlchemyContentStore initialized (engine={engine.url})")

    @contextmanager
    def _session(self):
        """Context manager for database sessions with automatic commit/rollback."""
        session = Session(self.engine)
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create database tables if they don't exist."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables created/verified")

    def get(self, item_id: str) -> Optional[ContentItem]:
        with self._session() as session:
            db_item = session.get(ContentItemDB, item_id)
            if not db_item:
                return None
            return db_item.to_content_item()

    def get_by_fingerprint(self, fingerprint: str) -> Optional[ContentItem]:
        with self._session() as session:
            db_item = (
                session.query(ContentItemDB)
                .filter(ContentItemDB.fingerprint == fingerprint)
                .first()
            )
            if not db_item:
                return None
            return db_item.to_content_item()

    def upsert(self, item: ContentItem) -> str:
        with self._session() as session:
            db_item = session.get(ContentItemDB, item.id)
            if db_item is None:
                session.add(ContentItemDB.from_content_item(item))
            else:
                db_item.update_from(item)

            logger.debug(
                f"Stored item {item.id} (count={item.submission_count}, "
                f"importance={item.importance_score:.2f})"
            )
            return item.id

    def delete(self, item_id: str) -> bool:
        with self._session() as session:
            count = session.query(ContentItemDB).filter(ContentItemDB.id == item_id).delete()

            if not count:
                logger.warning(f"Cannot delete item {item_id}: not found")
                return False

            logger.debug(f"Deleted item {item_id}")
            return True

    def list_all(self) -> List[ContentItem]:
        with self._session() as session:
            db_items = (
                session.query(ContentItemDB)
                .order_by(ContentItemDB.last_submitted.desc(), ContentItemDB.id)
                .all()
            )
            return [db_item.to_content_item() for db_item in db_items]

    def count(self) -> int:
        with self._session() as session:
            return session.query(ContentItemDB).count()
