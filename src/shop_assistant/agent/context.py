"""
agent.context - Mutable per-request state of the agent loop.

Owned by exactly one in-flight respond() call; never shared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, Iterable, Iterator

from shop_assistant.application.context import SessionContext
from shop_assistant.domain.entities import Conversation, Product, Turn
from shop_assistant.domain.models import PromptMessage, Role


class ProductSet:
    """Products surfaced during one request.

    Deduplicated by product id, first-seen order preserved. Products
    without an id (not yet cached) are keyed by URL, then by name.
    """

    def __init__(self):
        self._items: dict[Hashable, Product] = {}

    def add_all(self, products: Iterable[Product]) -> int:
        """Add products not seen yet; return how many were new."""
        added = 0
        for product in products:
            key = _key(product)
            if key not in self._items:
                self._items[key] = product
                added += 1
        return added

    def ids(self) -> tuple[int, ...]:
        return tuple(p.id for p in self._items.values() if p.id is not None)

    def to_tuple(self) -> tuple[Product, ...]:
        return tuple(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Product]:
        return iter(self._items.values())


def _key(product: Product) -> Hashable:
    if product.id is not None:
        return ("id", product.id)
    return ("url", product.product_url or product.name)


@dataclass
class AgentContext:
    """State threaded through the rounds of one request."""
    session: SessionContext
    conversation: Conversation
    user_message: str
    history: list[PromptMessage] = field(default_factory=list)
    context_products: tuple[Product, ...] = ()
    iteration: int = 0
    products: ProductSet = field(default_factory=ProductSet)
    last_text: str = ""
    has_comparison: bool = False


def turn_to_messages(turn: Turn) -> list[PromptMessage]:
    """Expand a stored turn into the user/assistant messages it recorded."""
    messages = []
    if turn.message.strip():
        messages.append(PromptMessage(role=Role.USER, content=turn.message))
    if turn.response.strip():
        messages.append(PromptMessage(role=Role.ASSISTANT, content=turn.response))
    return messages
