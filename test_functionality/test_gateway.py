"""LangChainGateway and LLMComparisonAnalyzer against a scripted chat model."""

import asyncio
from decimal import Decimal
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

from shop_assistant.domain.entities import Product
from shop_assistant.domain.models import (
    LLMFailureKind,
    PromptMessage,
    Role,
    ToolCall,
    ToolSchema,
)
from shop_assistant.infrastructure.llm.comparison_analyzer import (
    LLMComparisonAnalyzer,
    build_comparison_prompt,
)
from shop_assistant.infrastructure.llm.gateway import LangChainGateway


class ScriptedChatModel(BaseChatModel):
    """Chat model returning queued AIMessages (or raising queued exceptions)."""

    replies: list[Any] = Field(default_factory=list)
    seen: list[Any] = Field(default_factory=list)
    bound_tools: list[Any] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, **kwargs):
        self.bound_tools.extend(tools)
        return self

    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        self.seen.append(list(messages))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ChatResult(generations=[ChatGeneration(message=reply)])


SEARCH = ToolSchema(
    name="search_products",
    description="Search products.",
    parameters={"type": "object", "properties": {"query": {"type": "string"}}, "required": ["query"]},
)


def test_text_reply():
    llm = ScriptedChatModel(replies=[AIMessage(content="Hello there!")])

    result = asyncio.run(LangChainGateway(llm).complete(
        "be nice", [PromptMessage(role=Role.USER, content="hi")], [SEARCH],
    ))

    assert result.ok
    assert result.reply.text == "Hello there!"
    assert not result.reply.has_tool_calls
    assert llm.bound_tools == [{
        "type": "function",
        "function": {
            "name": "search_products",
            "description": "Search products.",
            "parameters": SEARCH.parameters,
        },
    }]
    [messages] = llm.seen
    assert isinstance(messages[0], SystemMessage) and messages[0].content == "be nice"
    assert isinstance(messages[1], HumanMessage) and messages[1].content == "hi"


def test_tool_call_reply():
    llm = ScriptedChatModel(replies=[AIMessage(
        content="",
        tool_calls=[
            {"name": "search_products", "args": {"query": "tv"}, "id": "call_a"},
            {"name": "get_product_details", "args": {"productId": 4}, "id": None},
        ],
    )])

    result = asyncio.run(LangChainGateway(llm).complete("", [], [SEARCH]))

    first, second = result.reply.tool_calls
    assert first == ToolCall(name="search_products", arguments={"query": "tv"}, call_id="call_a")
    assert second.name == "get_product_details"
    assert second.arguments == {"productId": 4}
    assert second.call_id.startswith("call_")


def test_history_roles_are_converted():
    llm = ScriptedChatModel(replies=[AIMessage(content="Done.")])
    history = [
        PromptMessage(role=Role.USER, content="find a tv"),
        PromptMessage(
            role=Role.ASSISTANT,
            tool_calls=(ToolCall(name="search_products", arguments={"query": "tv"}, call_id="c1"),),
        ),
        PromptMessage(role=Role.TOOL, content='{"count": 0}', tool_call_id="c1", tool_name="search_products"),
    ]

    asyncio.run(LangChainGateway(llm).complete("sys", history, []))

    messages = llm.seen[0]
    assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, ToolMessage]
    assert messages[2].tool_calls[0]["name"] == "search_products"
    assert messages[2].tool_calls[0]["args"] == {"query": "tv"}
    assert messages[2].tool_calls[0]["id"] == "c1"
    assert messages[3].tool_call_id == "c1"
    assert messages[3].content == '{"count": 0}'
    assert llm.bound_tools == []


def test_content_blocks_are_flattened():
    llm = ScriptedChatModel(replies=[AIMessage(content=[
        {"type": "text", "text": "Two "},
        {"type": "text", "text": "parts."},
    ])])

    result = asyncio.run(LangChainGateway(llm).complete("", [], []))

    assert result.reply.text == "Two parts."


def test_provider_error_becomes_failure_result():
    llm = ScriptedChatModel(replies=[ConnectionError("provider unreachable")])

    result = asyncio.run(LangChainGateway(llm).complete("", [], [SEARCH]))

    assert not result.ok
    assert result.failure_kind == LLMFailureKind.UPSTREAM_UNAVAILABLE
    assert "provider unreachable" in result.detail


def test_comparison_analyzer_returns_model_text():
    products = [
        Product(id=1, name="Mouse A", price=Decimal("4990"), store_name="PC Shop"),
        Product(id=2, name="Mouse B", price=Decimal("12990")),
    ]
    llm = ScriptedChatModel(replies=[AIMessage(content="Best value: ID 1")])

    narrative = asyncio.run(LLMComparisonAnalyzer(llm).analyze(products))

    assert narrative == "Best value: ID 1"
    user_prompt = llm.seen[0][-1].content
    assert user_prompt == build_comparison_prompt(products)
    assert "Product 1 (ID: 1):" in user_prompt
    assert "  Price: 12,990 HUF" in user_prompt
    assert "  Store: PC Shop" in user_prompt
