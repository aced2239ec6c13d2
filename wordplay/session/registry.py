"""
Session Registry - Live sessions and their locks.

One asyncio.Lock per conversation. Locks are created synchronously on first
use (no await between lookup and insert), so two coroutines on the same
event loop can never end up holding different locks for one conversation.

A lock is dropped once nobody holds or waits for it and the registry has no
session for its conversation, so lookups of unknown ids leave nothing behind.
"""

from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterator
import asyncio

from ..engine_core.state import Session


class SessionRegistry:
    """In-process map of conversation id -> (Session, Lock)."""

    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    @asynccontextmanager
    async def locked(self, conversation_id: str) -> AsyncIterator[None]:
        """
        Hold the conversation's lock for the duration of the block.

        Usage:
            async with registry.locked("chat-1"):
                ...mutate the session...
        """
        lock = self.lock_for(conversation_id)
        self._users[conversation_id] = self._users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[conversation_id] -= 1
            if not self._users[conversation_id]:
                del self._users[conversation_id]
                if conversation_id not in self._sessions:
                    self._locks.pop(conversation_id, None)

    def lock_count(self) -> int:
        return len(self._locks)

    def get(self, conversation_id: str) -> Session | None:
        return self._sessions.get(conversation_id)

    def put(self, session: Session):
        self._sessions[session.conversation_id] = session

    def remove(self, conversation_id: str):
        """Forget a session. Its lock goes once the last holder leaves."""
        self._sessions.pop(conversation_id, None)
        if conversation_id not in self._users:
            self._locks.pop(conversation_id, None)

    def conversation_ids(self) -> list[str]:
        return list(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._sessions
