"""Per-conversation turn serialization."""

from __future__ import annotations

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator

from venue_chat.log import get_logger

logger = get_logger(__name__)


class ConversationLocks:
    """One asyncio.Lock per conversation id, dropped once nobody holds or waits on it.

    Only serializes turns within this process.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, conversation_id: str) -> AsyncIterator[None]:
        lock = self._lock_for(conversation_id)
        if lock.locked():
            logger.info("conversation_turn_waiting", conversation_id=conversation_id)
        async with lock:
            yield
