"""
SQLAlchemy-based document store implementations.

Provides session and memory-record storage on any SQLAlchemy-compatible
database (PostgreSQL, SQLite, MySQL, etc.). Both stores share one schema;
call ``create_tables()`` on either of them once at startup.
"""

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, Engine, Integer, String, Text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession
from sqlalchemy.orm import declarative_base

from session_memory.errors import StoreError
from session_memory.models import MemoryRecord, Session

logger = logging.getLogger(__name__)

# Create SQLAlchemy Base
Base = declarative_base()


class SessionDB(Base):
    """SQLAlchemy model for session records."""

    __tablename__ = "sessions"

    # Time-ordered hex id, also the vector collection name
    id = Column(String(24), primary_key=True)
    name = Column(String, nullable=False)
    tags_json = Column(Text, nullable=False, default="[]")
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_session(self) -> Session:
        """Convert database model to Session."""
        return Session(
            id=self.id,
            name=self.name,
            tags=json.loads(self.tags_json) if self.tags_json else [],
            created_at=self.created_at,
        )

    @staticmethod
    def from_session(session: Session) -> "SessionDB":
        """Create database model from Session."""
        return SessionDB(
            id=session.id,
            name=session.name,
            tags_json=json.dumps(session.tags),
            created_at=session.created_at,
        )


class MemoryRecordDB(Base):
    """SQLAlchemy model for canonical memory records."""

    __tablename__ = "memory_records"

    id = Column(String, primary_key=True)
    memory_id = Column(String, nullable=False, index=True)
    session_id = Column(String(24), nullable=False, index=True)
    content = Column(Text, nullable=False)
    memory_type = Column(String, nullable=False, default="basic")
    importance = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_memory_record(self) -> MemoryRecord:
        """Convert database model to MemoryRecord."""
        return MemoryRecord(
            id=self.id,
            memory_id=self.memory_id,
            session_id=self.session_id,
            content=self.content,
            memory_type=self.memory_type,
            importance=self.importance,
            created_at=self.created_at,
        )

    @staticmethod
    def from_memory_record(record: MemoryRecord) -> "MemoryRecordDB":
        """Create database model from MemoryRecord."""
        return MemoryRecordDB(
            id=record.id,
            memory_id=record.memory_id,
            session_id=record.session_id,
            content=record.content,
            memory_type=record.memory_type,
            importance=record.importance,
            created_at=record.created_at,
        )


class _SQLAlchemyStore:
    """Engine handling shared by the SQLAlchemy stores."""

    def __init__(self, engine: Engine):
        """
        Initialize the store.

        Args:
            engine: SQLAlchemy engine for database connection
        """
        self.engine = engine
        logger.info(f"{type(self).__name__} initialized (engine={engine.url})")

    @contextmanager
    def _session(self, operation: str, batch_size: Optional[int] = None):
        """Context manager for database sessions with automatic commit/rollback."""
        session = DBSession(self.engine)
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error during {operation}: {e}")
            raise StoreError(
                f"document store {operation} failed: {e}",
                operation=operation,
                batch_size=batch_size,
            ) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create database tables if they don't exist."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables created/verified")


class SQLAlchemySessionStore(_SQLAlchemyStore):
    """
    SQLAlchemy-based session storage.

    Example:
        engine = create_engine("sqlite:///memo.db")
        store = SQLAlchemySessionStore(engine)
        store.create_tables()
    """

    def insert(self, session: Session) -> str:
        with self._session("insert") as db:
            db.add(SessionDB.from_session(session))

        logger.info(f"Stored session {session.id} ({session.name})")
        return session.id

    def get(self, session_id: str) -> Optional[Session]:
        with self._session("get") as db:
            db_session = db.query(SessionDB).filter(SessionDB.id == session_id).first()
            if not db_session:
                return None
            return db_session.to_session()

    def list_before(self, cursor: Optional[str], limit: int) -> List[Session]:
        with self._session("list_before") as db:
            query = db.query(SessionDB)
            if cursor is not None:
                query = query.filter(SessionDB.id < cursor)
            query = query.order_by(SessionDB.id.desc()).limit(limit)
            return [db_session.to_session() for db_session in query.all()]

    def update(
        self,
        session_id: str,
        name: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Optional[Session]:
        with self._session("update") as db:
            db_session = db.query(SessionDB).filter(SessionDB.id == session_id).first()
            if not db_session:
                logger.warning(f"Cannot update session {session_id}: not found")
                return None

            if name is not None:
                db_session.name = name
            if tags is not None:
                db_session.tags_json = json.dumps(list(tags))

            return db_session.to_session()

    def delete(self, session_id: str) -> int:
        with self._session("delete") as db:
            count = db.query(SessionDB).filter(SessionDB.id == session_id).delete()

        logger.info(f"Deleted {count} session record(s) for {session_id}")
        return count


class SQLAlchemyMemoryRecordStore(_SQLAlchemyStore):
    """SQLAlchemy-based storage for canonical memory records."""

    def insert_many(self, records: List[MemoryRecord]) -> List[str]:
        if not records:
            return []

        with self._session("insert_many", batch_size=len(records)) as db:
            db.add_all([MemoryRecordDB.from_memory_record(record) for record in records])

        logger.info(f"Stored {len(records)} memory records")
        return [record.id for record in records]

    def find_by_id(self, record_id: str) -> Optional[MemoryRecord]:
        with self._session("find_by_id") as db:
            db_record = db.query(MemoryRecordDB).filter(MemoryRecordDB.id == record_id).first()
            if not db_record:
                return None
            return db_record.to_memory_record()

    def find_by_ids(self, record_ids: List[str]) -> List[MemoryRecord]:
        if not record_ids:
            return []

        with self._session("find_by_ids", batch_size=len(record_ids)) as db:
            db_records = (
                db.query(MemoryRecordDB).filter(MemoryRecordDB.id.in_(set(record_ids))).all()
            )
            return [db_record.to_memory_record() for db_record in db_records]

    def delete_many(self, record_ids: List[str]) -> int:
        if not record_ids:
            return 0

        with self._session("delete_many", batch_size=len(record_ids)) as db:
            count = (
                db.query(MemoryRecordDB)
                .filter(MemoryRecordDB.id.in_(set(record_ids)))
                .delete(synchronize_session=False)
            )

        logger.debug(f"Deleted {count} memory records")
        return count

    def delete_by_session(self, session_id: str) -> int:
        with self._session("delete_by_session") as db:
            count = (
                db.query(MemoryRecordDB)
                .filter(MemoryRecordDB.session_id == session_id)
                .delete(synchronize_session=False)
            )

        logger.info(f"Deleted {count} memory records for session {session_id}")
        return count
