"""
In-memory registry of analysis sessions.

Every read returns a deep copy and every write replaces the stored record
with a fully validated new one under a lock, so a concurrent reader never
observes a half-applied mutation.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from loguru import logger

from shared.errors import SessionClosedError, SessionNotFoundError
from shared.models import SessionRecord

Mutator = Callable[[SessionRecord], None]


class SessionStore:
    """Async-safe keyed store of SessionRecord objects."""

    def __init__(self):
        self._sessions: dict[str, SessionRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def create(self, session_id: str, threshold: int = 70) -> SessionRecord:
        """Register a new session in processing/fetching state."""
        async with self._lock:
            if session_id in self._sessions:
                raise ValueError(f"Session {session_id} already exists")
            record = SessionRecord(session_id=session_id, threshold=threshold)
            self._sessions[session_id] = record
            logger.debug(f"Created session {session_id}")
            return record.model_copy(deep=True)

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        """Return a snapshot of the session, or None if unknown."""
        async with self._lock:
            record = self._sessions.get(session_id)
            return record.model_copy(deep=True) if record else None

    async def update(self, session_id: str, mutator: Mutator) -> SessionRecord:
        """
        Apply a mutation atomically.

        The mutator edits a copy; the copy is re-validated and swapped in only
        if valid.

        Raises:
            SessionNotFoundError: unknown session
            SessionClosedError: session already completed or failed
            pydantic.ValidationError: mutation produced an invalid record
        """
        async with self._lock:
            current = self._sessions.get(session_id)
            if current is None:
                raise SessionNotFoundError(session_id)
            if current.is_terminal:
                raise SessionClosedError(
                    f"Session {session_id} is already {current.status.value}"
                )

            draft = current.model_copy(deep=True)
            mutator(draft)
            updated = SessionRecord.model_validate(draft.model_dump())
            self._sessions[session_id] = updated
            return updated.model_copy(deep=True)

    async def sweep(self, max_age: timedelta) -> int:
        """Evict terminal sessions that finished more than max_age ago. Returns count."""
        cutoff = datetime.now(timezone.utc) - max_age
        async with self._lock:
            expired = [
                session_id
                for session_id, record in self._sessions.items()
                if record.is_terminal
                and (record.completed_at or record.created_at) < cutoff
            ]
            for session_id in expired:
                del self._sessions[session_id]

        if expired:
            logger.info(f"Evicted {len(expired)} expired sessions")
        return len(expired)
