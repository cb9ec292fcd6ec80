"""
domain.entities - Persistence-aware types (have IDs, timestamps).

Decoupled from any persistence strategy: no SQL concerns, no DB imports.
Timestamps are ISO-8601 strings set by the repository implementations,
not by the entities themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

DEFAULT_CONVERSATION_TITLE = "New Conversation"


@dataclass
class Conversation:
    """Metadata for a conversation session.

    ``id`` is the storage row id; ``conversation_id`` is the opaque id
    handed to callers.
    """
    id: Optional[int] = None
    conversation_id: str = ""
    user_id: str = ""
    title: str = DEFAULT_CONVERSATION_TITLE
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class Turn:
    """One persisted user/assistant exchange. Immutable once written."""
    conversation_id: str
    user_id: str
    message: str
    response: str
    product_ids: tuple[int, ...] = ()
    is_user_message: bool = False
    id: Optional[int] = None
    created_at: str = ""


@dataclass(frozen=True)
class Product:
    """A product record. The agent never mutates it; tools fetch it."""
    id: Optional[int] = None
    name: str = ""
    price: Decimal = Decimal("0")
    currency: str = "HUF"
    image_url: Optional[str] = None
    product_url: Optional[str] = None
    store_name: Optional[str] = None
    scraped_at: str = ""
    user_id: Optional[str] = None

    def to_dict(self) -> dict:
        """JSON-safe representation (price as string to keep it exact)."""
        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price),
            "currency": self.currency,
            "image_url": self.image_url,
            "product_url": self.product_url,
            "store_name": self.store_name,
            "scraped_at": self.scraped_at,
        }
