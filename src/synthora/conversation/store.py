"""
Keyed, in-memory session store.

Each session holds its ConversationContext and its own lock. Holding the
lock through ``exclusive`` serializes turns for one session while distinct
sessions proceed independently.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from ..core import ir
from ..core.errors import NotFound

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    context: ir.ConversationContext
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SessionStore:
    """session_id -> (context, lock)."""

    def __init__(self) -> None:
        self._sessions: dict[str, SessionEntry] = {}

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, user_id: str) -> ir.ConversationContext:
        session_id = uuid.uuid4().hex
        context = ir.ConversationContext(
            session_id=session_id, user_id=user_id, state=ir.SessionState.ACTIVE
        )
        self._sessions[session_id] = SessionEntry(context=context)
        return context

    def _entry(self, session_id: str) -> SessionEntry:
        entry = self._sessions.get(session_id)
        if entry is None or entry.context.state == ir.SessionState.CLOSED:
            raise NotFound("session", session_id)
        return entry

    def get(self, session_id: str) -> ir.ConversationContext:
        """
        Current context of a session (not a copy).

        Raises:
            NotFound: If the session is unknown or closed
        """
        return self._entry(session_id).context

    @asynccontextmanager
    async def exclusive(self, session_id: str) -> AsyncIterator[ir.ConversationContext]:
        """
        Hold the session's lock for the duration of the block.

        Waiters are served in arrival order. The session is re-checked once
        the lock is acquired, since it may have been disposed meanwhile.

        Raises:
            NotFound: If the session is unknown or closed
        """
        entry = self._entry(session_id)
        async with entry.lock:
            yield self._entry(session_id).context

    async def dispose(self, session_id: str) -> None:
        """
        Close and remove a session after any in-flight turn completes.

        Raises:
            NotFound: If the session is unknown or already closed
        """
        entry = self._entry(session_id)
        async with entry.lock:
            entry.context.state = ir.SessionState.CLOSED
            self._sessions.pop(session_id, None)
        logger.info(f"Closed session {session_id}")
