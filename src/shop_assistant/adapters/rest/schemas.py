"""Pydantic models for REST API request/response validation."""

from __future__ import annotations

from pydantic import BaseModel

from shop_assistant.domain.entities import Conversation, Product, Turn


# --- Chat ---

class ChatBody(BaseModel):
    message: str
    user_id: str | None = None
    conversation_id: str | None = None


class ProductOut(BaseModel):
    id: int | None
    name: str
    price: str
    currency: str
    image_url: str | None = None
    product_url: str | None = None
    store_name: str | None = None

    @classmethod
    def from_entity(cls, product: Product) -> ProductOut:
        return cls(
            id=product.id,
            name=product.name,
            price=str(product.price),
            currency=product.currency,
            image_url=product.image_url,
            product_url=product.product_url,
            store_name=product.store_name,
        )


class ChatOut(BaseModel):
    answer: str
    products: list[ProductOut]
    conversation_id: str


# --- Conversations ---

class ConversationOut(BaseModel):
    conversation_id: str
    title: str
    created_at: str
    updated_at: str

    @classmethod
    def from_entity(cls, conversation: Conversation) -> ConversationOut:
        return cls(
            conversation_id=conversation.conversation_id,
            title=conversation.title,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )


class TurnOut(BaseModel):
    id: int | None
    message: str
    response: str
    product_ids: list[int]
    created_at: str

    @classmethod
    def from_entity(cls, turn: Turn) -> TurnOut:
        return cls(
            id=turn.id,
            message=turn.message,
            response=turn.response,
            product_ids=list(turn.product_ids),
            created_at=turn.created_at,
        )
