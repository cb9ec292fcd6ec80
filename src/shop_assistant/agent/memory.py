"""
agent.memory - Conversation memory backed by the conversation/turn repositories.

The agent reads a bounded, oldest-first window of prior turns and writes
exactly one turn per completed request through append_turn(), the single
write path. Repositories raise PersistenceError on storage failures; this
layer lets it propagate so the request fails instead of returning an
answer that was never recorded.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from shop_assistant.domain.entities import Conversation, Turn
from shop_assistant.domain.exceptions import ConversationNotFoundError
from shop_assistant.domain.ports import ConversationRepository, TurnRepository

logger = logging.getLogger(__name__)

TITLE_LENGTH = 60


class ConversationMemory:
    """Append-only turn log per conversation."""

    def __init__(
        self,
        conversation_repo: ConversationRepository,
        turn_repo: TurnRepository,
    ):
        self._conversation_repo = conversation_repo
        self._turn_repo = turn_repo

    async def get_or_create_conversation(
        self, conversation_id: Optional[str], user_id: str,
    ) -> Conversation:
        """Load the caller's conversation, or start a new one when no id is given.

        Raises:
            ConversationNotFoundError: Unknown id, or the conversation
                belongs to a different user.
        """
        if conversation_id:
            existing = await self._conversation_repo.get_by_conversation_id(
                conversation_id,
            )
            if existing is None or existing.user_id != user_id:
                raise ConversationNotFoundError(
                    f"Conversation '{conversation_id}' not found"
                )
            return existing

        conversation = await self._conversation_repo.save(
            Conversation(conversation_id=uuid4().hex, user_id=user_id),
        )
        logger.info(
            "Created conversation %s for user %s",
            conversation.conversation_id, user_id,
        )
        return conversation

    async def get_recent_history(self, conversation_id: str, limit: int) -> list[Turn]:
        """Return the last *limit* turns, oldest first."""
        if limit <= 0:
            return []
        turns = await self._turn_repo.get_recent(conversation_id, limit)
        if turns:
            logger.info(
                "Loaded %d turn(s) from DB for conversation %s",
                len(turns), conversation_id,
            )
        return turns

    async def append_turn(self, turn: Turn) -> Turn:
        """Persist one turn atomically and return it with its assigned id.

        Also bumps the conversation's updated_at and, on the first turn,
        replaces the default title with the start of the user's message.
        Never retried: a failed append surfaces as PersistenceError.
        """
        saved = await self._turn_repo.append(turn, title=_title_from(turn.message))
        logger.info(
            "Appended turn %s to conversation %s (%d product id(s))",
            saved.id, saved.conversation_id, len(saved.product_ids),
        )
        return saved

    async def find_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """Look a conversation up by its opaque id; None when unknown."""
        return await self._conversation_repo.get_by_conversation_id(conversation_id)

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        """List all conversations for a user, most recently updated first."""
        return await self._conversation_repo.get_by_user(user_id)

    async def get_turns(self, conversation_id: str) -> list[Turn]:
        """All turns of a conversation, oldest first."""
        return await self._turn_repo.get_by_conversation(conversation_id)


def _title_from(message: str) -> str:
    title = message[:TITLE_LENGTH].strip()
    if len(message) > TITLE_LENGTH:
        title += "…"
    return title
