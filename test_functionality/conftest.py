"""Shared fixtures: a scripted LLM gateway and tmp_path SQLite stores."""

import asyncio
from decimal import Decimal

import pytest

from shop_assistant.agent.memory import ConversationMemory
from shop_assistant.agent.tools.compare_products import CompareProductsTool
from shop_assistant.agent.tools.filter_products import FilterProductsTool
from shop_assistant.agent.tools.get_price_analytics import GetPriceAnalyticsTool
from shop_assistant.agent.tools.get_product_details import GetProductDetailsTool
from shop_assistant.agent.tools.get_product_recommendations import GetProductRecommendationsTool
from shop_assistant.agent.tools.get_user_products import GetUserProductsTool
from shop_assistant.agent.tools.registry import ToolRegistry
from shop_assistant.agent.tools.search_products import SearchProductsTool
from shop_assistant.application.services.comparison import ProductComparisonService
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.domain.entities import Product
from shop_assistant.domain.models import LLMReply, LLMResult, ToolCall
from shop_assistant.infrastructure.persistence.connection import AsyncSQLiteConnection
from shop_assistant.infrastructure.persistence.conversation_repo import SQLiteConversationRepository
from shop_assistant.infrastructure.persistence.migrations import run_migrations
from shop_assistant.infrastructure.persistence.product_repo import SQLiteProductRepository
from shop_assistant.infrastructure.persistence.turn_repo import SQLiteTurnRepository


class ScriptedGateway:
    """LLM gateway stub that plays back a fixed script.

    Each script item is an LLMReply, an LLMResult, an exception to raise,
    or an async callable producing one of those. The last item repeats
    once the script runs out.
    """

    def __init__(self, *script):
        self._script = list(script)
        self.calls = []

    async def complete(self, system_prompt, history, tools):
        self.calls.append({
            "system_prompt": system_prompt,
            "history": list(history),
            "tools": list(tools),
        })
        step = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        if callable(step):
            step = await step()
        if isinstance(step, Exception):
            raise step
        if isinstance(step, LLMReply):
            return LLMResult.success(step)
        return step


def text(content):
    return LLMReply(text=content)


def calls(*tool_calls, content=""):
    return LLMReply(
        text=content,
        tool_calls=tuple(ToolCall(name=name, arguments=args) for name, args in tool_calls),
    )


LAPTOPS = [
    Product(name="Laptop Alpha 14", price=Decimal("300000"), store_name="TechShop",
            product_url="https://example.test/alpha"),
    Product(name="Laptop Beta 15", price=Decimal("250000"), store_name="MegaStore",
            product_url="https://example.test/beta"),
    Product(name="Laptop Gamma 16", price=Decimal("400000"), store_name="TechShop",
            product_url="https://example.test/gamma"),
]

SAVED_MONITOR = Product(
    name="Monitor Delta 27", price=Decimal("90000"), store_name="MegaStore",
    product_url="https://example.test/delta", user_id="alice",
)


@pytest.fixture
def connection(tmp_path):
    conn = AsyncSQLiteConnection(str(tmp_path / "shop.db"))
    asyncio.run(run_migrations(conn))
    return conn


@pytest.fixture
def memory(connection):
    return ConversationMemory(
        conversation_repo=SQLiteConversationRepository(connection),
        turn_repo=SQLiteTurnRepository(connection),
    )


@pytest.fixture
def product_repo(connection):
    repo = SQLiteProductRepository(connection)

    async def seed():
        for product in LAPTOPS + [SAVED_MONITOR]:
            await repo.save(product)

    asyncio.run(seed())
    return repo


@pytest.fixture
def catalog(product_repo):
    return ProductCatalogService(product_repo)


@pytest.fixture
def registry(catalog):
    tools = ToolRegistry()
    tools.register(SearchProductsTool(catalog))
    tools.register(GetProductDetailsTool(catalog))
    tools.register(CompareProductsTool(catalog, ProductComparisonService()))
    tools.register(GetUserProductsTool(catalog))
    tools.register(FilterProductsTool(catalog))
    tools.register(GetPriceAnalyticsTool(catalog))
    tools.register(GetProductRecommendationsTool(catalog))
    return tools.freeze()
