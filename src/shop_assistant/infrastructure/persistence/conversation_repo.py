"""
infrastructure.persistence.conversation_repo - SQLite conversation repository.

Stores conversation metadata (opaque conversation id, owner, title, timestamps).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from shop_assistant.domain.entities import Conversation
from shop_assistant.infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteConversationRepository:
    """Async SQLite implementation of ConversationRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, conversation: Conversation) -> Conversation:
        now = datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                """INSERT INTO conversations
                   (conversation_id, user_id, title, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (conversation.conversation_id, conversation.user_id,
                 conversation.title, now, now),
            )
            return replace(conversation, id=cursor.lastrowid, created_at=now, updated_at=now)

    async def get_by_user(self, user_id: str) -> list[Conversation]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT * FROM conversations
                   WHERE user_id = ?
                   ORDER BY updated_at DESC, id DESC""",
                (user_id,),
            )
            return [self._row_to_entity(r) for r in rows]

    async def get_by_conversation_id(
        self, conversation_id: str,
    ) -> Optional[Conversation]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM conversations WHERE conversation_id = ?",
                (conversation_id,),
            )
            return self._row_to_entity(rows[0]) if rows else None

    @staticmethod
    def _row_to_entity(row) -> Conversation:
        return Conversation(
            id=row["id"],
            conversation_id=row["conversation_id"] or "",
            user_id=row["user_id"] or "",
            title=row["title"] or "",
            created_at=row["created_at"] or "",
            updated_at=row["updated_at"] or "",
        )
