"""Conversation repository: threads, their ordered messages, and tool usage."""

from __future__ import annotations

import json
import re
import uuid
from datetime import datetime
from typing import Optional

from venue_chat.errors import ConversationNotFound
from venue_chat.log import get_logger
from venue_chat.storage.database import Database, from_db_timestamp, to_db_timestamp
from venue_chat.storage.models import ChatMessage, Conversation, utcnow

logger = get_logger(__name__)

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_valid_conversation_id(value: Optional[str]) -> bool:
    """Structural check run before any lookup of a client-supplied id."""
    return bool(value) and bool(_UUID_PATTERN.match(value))


class ConversationRepository:
    """Append-only message log per conversation plus its activity timestamp."""

    def __init__(self, db: Database):
        self._db = db

    async def get(self, conversation_id: str) -> Optional[Conversation]:
        if not is_valid_conversation_id(conversation_id):
            return None
        cursor = await self._db.conn.execute(
            "SELECT * FROM chat_conversations WHERE id = ?", (conversation_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_conversation(row) if row else None

    async def create(
        self,
        venue_id: str,
        source: str = "web",
        external_id: Optional[str] = None,
        phone: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Conversation:
        now = utcnow()
        conversation = Conversation(
            id=str(uuid.uuid4()),
            venue_id=venue_id,
            source=source,
            external_id=external_id,
            phone=phone,
            name=name,
            created_at=now,
            updated_at=now,
        )
        await self._db.conn.execute(
            """INSERT INTO chat_conversations
               (id, venue_id, source, external_id, phone, name, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                conversation.id,
                conversation.venue_id,
                conversation.source,
                conversation.external_id,
                conversation.phone,
                conversation.name,
                to_db_timestamp(now),
                to_db_timestamp(now),
            ),
        )
        await self._db.conn.commit()
        logger.info(
            "conversation_created",
            conversation_id=conversation.id,
            venue_id=venue_id,
            source=source,
        )
        return conversation

    async def get_or_create(
        self,
        conversation_id: Optional[str],
        venue_id: str,
        source: str = "web",
        external_id: Optional[str] = None,
        phone: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Conversation:
        """Load the conversation, or start a new one when the id is absent, malformed or unknown.

        A conversation belonging to another venue is treated as unknown.
        """
        if conversation_id:
            existing = await self.get(conversation_id)
            if existing is not None and existing.venue_id == venue_id:
                return existing
            logger.info("conversation_not_reused", conversation_id=conversation_id)
        return await self.create(
            venue_id, source=source, external_id=external_id, phone=phone, name=name
        )

    async def append_message(self, message: ChatMessage) -> ChatMessage:
        cursor = await self._db.conn.execute(
            """INSERT INTO chat_messages
               (conversation_id, role, content, provider, model, tokens_used,
                tools_used, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                message.conversation_id,
                message.role,
                message.content,
                message.provider,
                message.model,
                message.tokens_used,
                json.dumps(message.tools_used),
                to_db_timestamp(message.created_at),
            ),
        )
        await self._db.conn.commit()
        message.id = cursor.lastrowid
        return message

    async def recent_messages(self, conversation_id: str, limit: int = 20) -> list[ChatMessage]:
        """Return the newest *limit* messages, oldest first."""
        cursor = await self._db.conn.execute(
            """SELECT * FROM (
                   SELECT * FROM chat_messages
                   WHERE conversation_id = ?
                   ORDER BY created_at DESC, id DESC
                   LIMIT ?
               ) ORDER BY created_at ASC, id ASC""",
            (conversation_id, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_message(row) for row in rows]

    async def all_messages(self, conversation_id: str) -> list[ChatMessage]:
        cursor = await self._db.conn.execute(
            """SELECT * FROM chat_messages
               WHERE conversation_id = ?
               ORDER BY created_at ASC, id ASC""",
            (conversation_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_message(row) for row in rows]

    async def touch(self, conversation_id: str, at: Optional[datetime] = None) -> None:
        await self._db.conn.execute(
            "UPDATE chat_conversations SET updated_at = ? WHERE id = ?",
            (to_db_timestamp(at or utcnow()), conversation_id),
        )
        await self._db.conn.commit()

    async def list_for_venue(self, venue_id: str, limit: int = 50) -> list[Conversation]:
        cursor = await self._db.conn.execute(
            """SELECT * FROM chat_conversations
               WHERE venue_id = ?
               ORDER BY updated_at DESC
               LIMIT ?""",
            (venue_id, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_conversation(row) for row in rows]

    async def get_with_messages(
        self, conversation_id: str
    ) -> tuple[Conversation, list[ChatMessage]]:
        conversation = await self.get(conversation_id)
        if conversation is None:
            raise ConversationNotFound(conversation_id)
        return conversation, await self.all_messages(conversation_id)

    async def record_tool_invocation(
        self, conversation_id: str, tool_name: str, at: Optional[datetime] = None
    ) -> None:
        await self._db.conn.execute(
            """INSERT INTO tool_invocations (conversation_id, tool_name, created_at)
               VALUES (?, ?, ?)""",
            (conversation_id, tool_name, to_db_timestamp(at or utcnow())),
        )
        await self._db.conn.commit()

    async def count_tool_invocations(
        self, conversation_id: str, tool_name: str, since: datetime
    ) -> int:
        cursor = await self._db.conn.execute(
            """SELECT COUNT(*) FROM tool_invocations
               WHERE conversation_id = ? AND tool_name = ? AND created_at >= ?""",
            (conversation_id, tool_name, to_db_timestamp(since)),
        )
        row = await cursor.fetchone()
        return row[0]

    @staticmethod
    def _row_to_conversation(row) -> Conversation:
        return Conversation(
            id=row["id"],
            venue_id=row["venue_id"],
            source=row["source"],
            external_id=row["external_id"],
            phone=row["phone"],
            name=row["name"],
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )

    @staticmethod
    def _row_to_message(row) -> ChatMessage:
        return ChatMessage(
            id=row["id"],
            conversation_id=row["conversation_id"],
            role=row["role"],
            content=row["content"],
            provider=row["provider"],
            model=row["model"],
            tokens_used=row["tokens_used"],
            tools_used=json.loads(row["tools_used"]),
            created_at=from_db_timestamp(row["created_at"]),
        )
