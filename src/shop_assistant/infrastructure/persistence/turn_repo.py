"""
infrastructure.persistence.turn_repo - SQLite turn repository.

Append-only storage for user/assistant exchanges. A turn insert, the
conversation's updated_at bump and the first-turn title all commit in one
transaction, so a turn is either fully recorded or not at all.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from shop_assistant.domain.entities import DEFAULT_CONVERSATION_TITLE, Turn
from shop_assistant.domain.exceptions import PersistenceError
from shop_assistant.infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteTurnRepository:
    """Async SQLite implementation of TurnRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def append(self, turn: Turn, title: Optional[str] = None) -> Turn:
        now = datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                """INSERT INTO turns
                   (conversation_id, user_id, message, response,
                    product_ids, is_user_message, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (turn.conversation_id, turn.user_id, turn.message, turn.response,
                 json.dumps(list(turn.product_ids)), int(turn.is_user_message), now),
            )
            turn_id = cursor.lastrowid

            updated = await conn.execute(
                "UPDATE conversations SET updated_at = ? WHERE conversation_id = ?",
                (now, turn.conversation_id),
            )
            if updated.rowcount == 0:
                raise PersistenceError(
                    f"Conversation '{turn.conversation_id}' does not exist"
                )
            if title:
                await conn.execute(
                    """UPDATE conversations SET title = ?
                       WHERE conversation_id = ? AND (title = ? OR title IS NULL OR title = '')""",
                    (title, turn.conversation_id, DEFAULT_CONVERSATION_TITLE),
                )
        return replace(turn, id=turn_id, created_at=now)

    async def get_recent(self, conversation_id: str, limit: int) -> list[Turn]:
        """Last *limit* turns, returned oldest first."""
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT * FROM turns
                   WHERE conversation_id = ?
                   ORDER BY id DESC
                   LIMIT ?""",
                (conversation_id, limit),
            )
            return [self._row_to_entity(r) for r in reversed(list(rows))]

    async def get_by_conversation(self, conversation_id: str) -> list[Turn]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM turns WHERE conversation_id = ? ORDER BY id ASC",
                (conversation_id,),
            )
            return [self._row_to_entity(r) for r in rows]

    @staticmethod
    def _row_to_entity(row) -> Turn:
        return Turn(
            id=row["id"],
            conversation_id=row["conversation_id"],
            user_id=row["user_id"],
            message=row["message"] or "",
            response=row["response"] or "",
            product_ids=tuple(json.loads(row["product_ids"] or "[]")),
            is_user_message=bool(row["is_user_message"]),
            created_at=row["created_at"] or "",
        )
