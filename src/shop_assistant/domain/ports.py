"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations. Application services and the
agent depend only on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC: any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from shop_assistant.domain.entities import Conversation, Product, Turn
from shop_assistant.domain.models import (
    LLMResult,
    PromptMessage,
    ToolSchema,
)


# ---------------------------------------------------------------------------
# AI Component Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class LLMGatewayPort(Protocol):
    """Stateless remote completion call with tool support.

    All conversational state is supplied by the caller on every call.
    Transport problems come back as a failure LLMResult, never as an
    exception.
    """

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[PromptMessage],
        tools: Sequence[ToolSchema],
    ) -> LLMResult: ...


@runtime_checkable
class ComparisonAnalyzerPort(Protocol):
    """Write a narrative comparison for a set of products."""

    async def analyze(self, products: Sequence[Product]) -> str: ...


# ---------------------------------------------------------------------------
# Product Source Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class ProductScraperPort(Protocol):
    """Remote product search (the scraping service)."""

    async def search(self, query: str) -> list[Product]: ...


# ---------------------------------------------------------------------------
# Repository Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class ConversationRepository(Protocol):
    """CRUD for Conversation metadata."""

    async def save(self, conversation: Conversation) -> Conversation: ...
    async def get_by_conversation_id(self, conversation_id: str) -> Optional[Conversation]: ...
    async def get_by_user(self, user_id: str) -> list[Conversation]: ...


@runtime_checkable
class TurnRepository(Protocol):
    """Append-only storage for conversation turns."""

    async def append(self, turn: Turn, title: Optional[str] = None) -> Turn: ...
    async def get_recent(self, conversation_id: str, limit: int) -> list[Turn]: ...
    async def get_by_conversation(self, conversation_id: str) -> list[Turn]: ...


@runtime_checkable
class ProductRepository(Protocol):
    """Local product store (also used as the cache for scraped products)."""

    async def get_by_id(self, product_id: int) -> Optional[Product]: ...
    async def get_by_ids(self, product_ids: Sequence[int]) -> list[Product]: ...
    async def get_by_user(self, user_id: str) -> list[Product]: ...
    async def get_all(self, user_id: Optional[str] = None) -> list[Product]: ...
    async def search(self, query: str, limit: int) -> list[Product]: ...
    async def save(self, product: Product) -> Product: ...
    async def upsert_many(self, products: Sequence[Product]) -> list[Product]: ...
