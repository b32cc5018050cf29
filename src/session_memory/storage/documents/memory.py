"""
In-memory document store implementations.

Provides simple in-memory session and memory-record stores, suitable for
testing and single-instance deployments. For persistence, use the
SQLAlchemy implementations instead.
"""

import logging
from typing import Dict, List, Optional

from session_memory.errors import StoreError
from session_memory.models import MemoryRecord, Session

logger = logging.getLogger(__name__)


class InMemorySessionStore:
    """
    In-memory implementation of the SessionStore protocol.

    Stores sessions in a dictionary keyed by id. Data is lost on restart.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

        logger.info("InMemorySessionStore initialized")

    def insert(self, session: Session) -> str:
        if session.id in self._sessions:
            raise StoreError(f"session {session.id} already exists", operation="insert")
        self._sessions[session.id] = session.model_copy(deep=True)
        logger.debug(f"Stored session {session.id} ({session.name})")
        return session.id

    def get(self, session_id: str) -> Optional[Session]:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    def list_before(self, cursor: Optional[str], limit: int) -> List[Session]:
        ids = sorted(self._sessions, reverse=True)
        if cursor is not None:
            ids = [session_id for session_id in ids if session_id < cursor]
        return [self._sessions[session_id].model_copy(deep=True) for session_id in ids[:limit]]

    def update(
        self,
        session_id: str,
        name: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Optional[Session]:
        session = self._sessions.get(session_id)
        if session is None:
            return None

        updates = {}
        if name is not None:
            updates["name"] = name
        if tags is not None:
            updates["tags"] = list(tags)

        session = session.model_copy(update=updates)
        self._sessions[session_id] = session
        logger.debug(f"Updated session {session_id}: {list(updates)}")
        return session.model_copy(deep=True)

    def delete(self, session_id: str) -> int:
        if self._sessions.pop(session_id, None) is None:
            return 0
        logger.debug(f"Deleted session {session_id}")
        return 1


class InMemoryMemoryRecordStore:
    """
    In-memory implementation of the MemoryRecordStore protocol.

    Records are kept by key with a per-session index for cascading deletes.
    """

    def __init__(self):
        self._records: Dict[str, MemoryRecord] = {}
        self._session_records: Dict[str, List[str]] = {}  # session_id -> [record ids]

        logger.info("InMemoryMemoryRecordStore initialized")

    def insert_many(self, records: List[MemoryRecord]) -> List[str]:
        duplicates = [record.id for record in records if record.id in self._records]
        if duplicates:
            raise StoreError(
                f"records already exist: {duplicates}",
                operation="insert_many",
                batch_size=len(records),
            )

        for record in records:
            self._records[record.id] = record.model_copy(deep=True)
            self._session_records.setdefault(record.session_id, []).append(record.id)

        logger.debug(f"Stored {len(records)} memory records")
        return [record.id for record in records]

    def find_by_id(self, record_id: str) -> Optional[MemoryRecord]:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    def find_by_ids(self, record_ids: List[str]) -> List[MemoryRecord]:
        wanted = set(record_ids)
        # Storage order, like a database scan
        return [
            record.model_copy(deep=True)
            for record_id, record in self._records.items()
            if record_id in wanted
        ]

    def delete_many(self, record_ids: List[str]) -> int:
        count = 0
        for record_id in set(record_ids):
            record = self._records.pop(record_id, None)
            if record is None:
                continue
            self._session_records.get(record.session_id, []).remove(record_id)
            count += 1

        logger.debug(f"Deleted {count} memory records")
        return count

    def delete_by_session(self, session_id: str) -> int:
        record_ids = self._session_records.pop(session_id, [])
        for record_id in record_ids:
            self._records.pop(record_id, None)

        logger.info(f"Deleted {len(record_ids)} memory records for session {session_id}")
        return len(record_ids)
