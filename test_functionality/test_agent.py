"""ConversationalAgent: loop, retries, fan-out, caps and persistence."""

import asyncio

import pytest
from pydantic import BaseModel

from conftest import ScriptedGateway, calls, text
from shop_assistant.agent.config import AgentConfig
from shop_assistant.agent.executor import ConversationalAgent
from shop_assistant.agent.memory import ConversationMemory
from shop_assistant.agent.prompt import DEFAULT_COMPARISON_PROMPT
from shop_assistant.agent.tools.base import BaseTool
from shop_assistant.agent.tools.registry import ToolRegistry
from shop_assistant.domain.entities import DEFAULT_CONVERSATION_TITLE, Turn
from shop_assistant.domain.exceptions import (
    ConversationNotFoundError,
    PersistenceError,
    RequestCancelledError,
    UpstreamUnavailableError,
    ValidationError,
)
from shop_assistant.domain.models import LLMFailureKind, LLMResult, Role, ToolResult


def make_agent(gateway, registry, memory, **config):
    return ConversationalAgent(gateway, registry, memory, AgentConfig(**config))


def tool_messages(history):
    return [m for m in history if m.role == Role.TOOL]


async def turns_of(memory, user_id):
    conversations = await memory.list_conversations(user_id)
    result = []
    for conversation in conversations:
        result.extend(await memory.get_turns(conversation.conversation_id))
    return result


# ---------------------------------------------------------------------------
# Basic flows
# ---------------------------------------------------------------------------

def test_plain_answer_without_tools(registry, memory):
    gateway = ScriptedGateway(text("Hi! What are you shopping for today?"))
    agent = make_agent(gateway, registry, memory)

    response = asyncio.run(agent.respond("hello", "alice"))

    assert response.answer == "Hi! What are you shopping for today?"
    assert response.products == ()
    assert response.iterations == 1
    assert len(gateway.calls) == 1
    assert [t.name for t in gateway.calls[0]["tools"]] == [
        "search_products", "get_product_details", "compare_products", "get_user_products",
        "filter_products", "get_price_analytics", "get_product_recommendations",
    ]

    turns = asyncio.run(memory.get_turns(response.conversation_id))
    assert len(turns) == 1
    assert turns[0].message == "hello"
    assert turns[0].response == response.answer
    assert turns[0].product_ids == ()
    assert turns[0].is_user_message is False

    conversation = asyncio.run(memory.find_conversation(response.conversation_id))
    assert conversation.title == "hello"


def test_single_tool_round(registry, memory):
    gateway = ScriptedGateway(
        calls(("search_products", {"query": "Laptop"})),
        text("I found three laptops."),
    )
    agent = make_agent(gateway, registry, memory)

    response = asyncio.run(agent.respond("find me a laptop", "alice"))

    assert len(gateway.calls) == 2
    assert response.answer == "I found three laptops."
    assert [p.id for p in response.products] == [1, 2, 3]

    second = gateway.calls[1]["history"]
    assert [m.role for m in second] == [Role.USER, Role.ASSISTANT, Role.TOOL]
    assert second[1].tool_calls[0].name == "search_products"
    assert second[2].tool_call_id == second[1].tool_calls[0].call_id
    assert '"count": 3' in second[2].content

    turns = asyncio.run(memory.get_turns(response.conversation_id))
    assert [t.product_ids for t in turns] == [(1, 2, 3)]


def test_not_found_is_reported_to_the_model(registry, memory):
    gateway = ScriptedGateway(
        calls(("get_product_details", {"productId": 999})),
        text("Sorry, I could not find that product."),
    )
    agent = make_agent(gateway, registry, memory)

    response = asyncio.run(agent.respond("details of product 999", "alice"))

    assert response.answer == "Sorry, I could not find that product."
    assert response.products == ()
    [message] = tool_messages(gateway.calls[1]["history"])
    assert message.content == (
        "tool get_product_details failed: NotFound: Product with ID 999 not found"
    )


def test_unknown_tool_and_valid_tool_in_one_round(registry, memory):
    gateway = ScriptedGateway(
        calls(
            ("delete_everything", {}),
            ("get_product_details", {"product_id": 2}),
        ),
        text("Here is Laptop Beta."),
    )
    agent = make_agent(gateway, registry, memory)

    response = asyncio.run(agent.respond("show product 2", "alice"))

    messages = tool_messages(gateway.calls[1]["history"])
    assert len(messages) == 2
    assert messages[0].content == (
        "tool delete_everything failed: ToolNotFound: Tool 'delete_everything' not found"
    )
    assert '"name": "Laptop Beta 15"' in messages[1].content
    assert [p.id for p in response.products] == [2]


def test_products_deduplicated_across_rounds(registry, memory):
    gateway = ScriptedGateway(
        calls(("search_products", {"query": "Laptop"})),
        calls(("get_product_details", {"product_id": 2})),
        text("Laptop Beta is the cheapest."),
    )
    agent = make_agent(gateway, registry, memory)

    response = asyncio.run(agent.respond("cheapest laptop?", "alice"))

    assert [p.id for p in response.products] == [1, 2, 3]
    turns = asyncio.run(memory.get_turns(response.conversation_id))
    assert turns[0].product_ids == (1, 2, 3)


def test_empty_final_text_uses_fallback(registry, memory):
    gateway = ScriptedGateway(
        calls(("search_products", {"query": "Laptop"})),
        text("   "),
    )
    agent = make_agent(gateway, registry, memory)

    response = asyncio.run(agent.respond("laptops", "alice"))

    assert response.answer == "I found 3 product(s) for you! Here are the results:"


def test_context_products_listed_in_system_prompt(registry, memory, catalog):
    gateway = ScriptedGateway(text("Your monitor is a good pick."))
    agent = make_agent(gateway, registry, memory)
    saved = asyncio.run(catalog.for_user("alice"))

    asyncio.run(agent.respond("what do I have?", "alice", context_products=saved))

    prompt = gateway.calls[0]["system_prompt"]
    assert "Current product context (user's saved products):" in prompt
    assert "- Monitor Delta 27: 90,000 HUF" in prompt


# ---------------------------------------------------------------------------
# Iteration cap
# ---------------------------------------------------------------------------

def test_iteration_cap_returns_last_text(registry, memory):
    gateway = ScriptedGateway(
        calls(("search_products", {"query": "Laptop"}), content="Let me look around."),
        calls(("search_products", {"query": "Monitor"})),
    )
    agent = make_agent(gateway, registry, memory, max_iterations=2)

    response = asyncio.run(agent.respond("anything", "alice"))

    assert len(gateway.calls) == 2
    assert response.iterations == 2
    assert response.answer == "Let me look around."
    # tools requested in the final round still ran
    assert [p.id for p in response.products] == [1, 2, 3, 4]


def test_iteration_cap_without_text_uses_fallback(registry, memory):
    gateway = ScriptedGateway(calls(("get_product_details", {"product_id": 1})))
    agent = make_agent(gateway, registry, memory, max_iterations=3)

    response = asyncio.run(agent.respond("loop forever", "alice"))

    assert len(gateway.calls) == 3
    assert response.answer == "I found 1 product(s) for you! Here are the results:"
    assert len(asyncio.run(turns_of(memory, "alice"))) == 1


# ---------------------------------------------------------------------------
# LLM failures
# ---------------------------------------------------------------------------

def test_failed_llm_call_is_retried_once(registry, memory):
    gateway = ScriptedGateway(
        LLMResult.failure(LLMFailureKind.UPSTREAM_UNAVAILABLE, "503 from provider"),
        text("Recovered."),
    )
    agent = make_agent(gateway, registry, memory)

    response = asyncio.run(agent.respond("hello", "alice"))

    assert response.answer == "Recovered."
    assert len(gateway.calls) == 2
    assert gateway.calls[0]["history"] == gateway.calls[1]["history"]


def test_retry_exhaustion_records_nothing(registry, memory):
    gateway = ScriptedGateway(
        LLMResult.failure(LLMFailureKind.UPSTREAM_UNAVAILABLE, "down"),
        RuntimeError("connection reset"),
    )
    agent = make_agent(gateway, registry, memory)

    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(agent.respond("hello", "alice"))

    assert len(gateway.calls) == 2
    assert asyncio.run(turns_of(memory, "alice")) == []


def test_llm_call_timeout_counts_as_failure(registry, memory):
    async def slow():
        await asyncio.sleep(1)
        return text("too late")

    gateway = ScriptedGateway(slow)
    agent = make_agent(gateway, registry, memory, request_timeout=0.05)

    with pytest.raises(UpstreamUnavailableError, match="no response within"):
        asyncio.run(agent.respond("hello", "alice"))

    assert len(gateway.calls) == 2


# ---------------------------------------------------------------------------
# Tool execution
# ---------------------------------------------------------------------------

class _NoArgs(BaseModel):
    pass


class RendezvousTool(BaseTool):
    """Completes only if its partner runs at the same time."""

    description = "test tool"

    def __init__(self, name, mine, partner):
        self.name = name
        self._mine = mine
        self._partner = partner

    def get_schema(self):
        return _NoArgs

    async def execute(self, ctx, **kwargs):
        self._mine.set()
        await self._partner.wait()
        return ToolResult.success(self.name, data={"met": True})


class SleepyTool(BaseTool):
    name = "sleepy"
    description = "test tool"

    def get_schema(self):
        return _NoArgs

    async def execute(self, ctx, **kwargs):
        await asyncio.sleep(1)
        return ToolResult.success(self.name, data={})


def test_tool_calls_of_a_round_run_concurrently(memory):
    async def scenario():
        first, second = asyncio.Event(), asyncio.Event()
        tools = ToolRegistry()
        tools.register(RendezvousTool("left", first, second))
        tools.register(RendezvousTool("right", second, first))
        gateway = ScriptedGateway(calls(("left", {}), ("right", {})), text("Both done."))
        agent = make_agent(gateway, tools.freeze(), memory, tool_timeout=2)
        return gateway, await agent.respond("go", "alice")

    gateway, response = asyncio.run(scenario())

    assert response.answer == "Both done."
    contents = [m.content for m in tool_messages(gateway.calls[1]["history"])]
    assert contents == ['{"met": true}', '{"met": true}']


def test_slow_tool_times_out_without_failing_request(memory):
    tools = ToolRegistry()
    tools.register(SleepyTool())
    gateway = ScriptedGateway(calls(("sleepy", {})), text("That took too long."))
    agent = make_agent(gateway, tools.freeze(), memory, tool_timeout=0.05)

    response = asyncio.run(agent.respond("wait", "alice"))

    assert response.answer == "That took too long."
    [message] = tool_messages(gateway.calls[1]["history"])
    assert message.content == "tool sleepy failed: ToolTimeout: timed out after 0.05 seconds"


def test_comparison_prompt_added_after_compare(registry, memory):
    gateway = ScriptedGateway(
        calls(("compare_products", {"productIds": [1, 2]})),
        text("Laptop Beta is the better deal."),
    )
    agent = make_agent(gateway, registry, memory)

    response = asyncio.run(agent.respond("compare 1 and 2", "alice"))

    assert DEFAULT_COMPARISON_PROMPT not in gateway.calls[0]["system_prompt"]
    assert DEFAULT_COMPARISON_PROMPT in gateway.calls[1]["system_prompt"]
    assert [p.id for p in response.products] == [1, 2]


# ---------------------------------------------------------------------------
# Validation, history and persistence
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("message", ["", "   "])
def test_empty_message_rejected(registry, memory, message):
    gateway = ScriptedGateway(text("never"))
    agent = make_agent(gateway, registry, memory)

    with pytest.raises(ValidationError):
        asyncio.run(agent.respond(message, "alice"))

    assert gateway.calls == []


def test_unknown_or_foreign_conversation_rejected(registry, memory):
    gateway = ScriptedGateway(text("Hello again."))
    agent = make_agent(gateway, registry, memory)
    first = asyncio.run(agent.respond("hi", "alice"))

    with pytest.raises(ConversationNotFoundError):
        asyncio.run(agent.respond("hi", "alice", "does-not-exist"))
    with pytest.raises(ConversationNotFoundError):
        asyncio.run(agent.respond("hi", "bob", first.conversation_id))


def test_history_window_limits_loaded_turns(registry, memory):
    gateway = ScriptedGateway(text("ok"))
    agent = make_agent(gateway, registry, memory, history_window=2)

    async def scenario():
        conversation = await memory.get_or_create_conversation(None, "alice")
        for index in range(1, 4):
            await memory.append_turn(Turn(
                conversation_id=conversation.conversation_id,
                user_id="alice",
                message=f"question {index}",
                response=f"answer {index}",
            ))
        return await agent.respond("question 4", "alice", conversation.conversation_id)

    response = asyncio.run(scenario())

    history = gateway.calls[0]["history"]
    assert [m.content for m in history] == [
        "question 2", "answer 2", "question 3", "answer 3", "question 4",
    ]
    assert [m.role for m in history] == [
        Role.USER, Role.ASSISTANT, Role.USER, Role.ASSISTANT, Role.USER,
    ]
    turns = asyncio.run(memory.get_turns(response.conversation_id))
    assert len(turns) == 4
    conversation = asyncio.run(memory.find_conversation(response.conversation_id))
    assert conversation.title == "question 1"


class FailingTurnRepository:
    def __init__(self, inner):
        self._inner = inner

    async def append(self, turn, title=None):
        raise PersistenceError("disk full")

    async def get_recent(self, conversation_id, limit):
        return await self._inner.get_recent(conversation_id, limit)

    async def get_by_conversation(self, conversation_id):
        return await self._inner.get_by_conversation(conversation_id)


def test_append_failure_fails_the_request(registry, memory, connection):
    from shop_assistant.infrastructure.persistence.conversation_repo import (
        SQLiteConversationRepository,
    )
    from shop_assistant.infrastructure.persistence.turn_repo import SQLiteTurnRepository

    broken = ConversationMemory(
        SQLiteConversationRepository(connection),
        FailingTurnRepository(SQLiteTurnRepository(connection)),
    )
    gateway = ScriptedGateway(text("an answer nobody will see"))
    agent = make_agent(gateway, registry, broken)

    with pytest.raises(PersistenceError):
        asyncio.run(agent.respond("hello", "alice"))

    assert asyncio.run(turns_of(memory, "alice")) == []


def test_deadline_cancels_without_recording(registry, memory):
    async def slow():
        await asyncio.sleep(1)
        return text("too late")

    gateway = ScriptedGateway(slow)
    agent = make_agent(gateway, registry, memory)

    with pytest.raises(RequestCancelledError):
        asyncio.run(agent.respond("hello", "alice", deadline=0.05))

    assert asyncio.run(turns_of(memory, "alice")) == []
    conversations = asyncio.run(memory.list_conversations("alice"))
    assert [c.title for c in conversations] == [DEFAULT_CONVERSATION_TITLE]


class BlockingTool(BaseTool):
    """Never finishes on its own; notes when it gets cancelled."""

    name = "blocking"
    description = "test tool"

    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = False

    def get_schema(self):
        return _NoArgs

    async def execute(self, ctx, **kwargs):
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise


def test_cancelled_request_propagates_and_records_nothing(memory):
    async def scenario():
        tool = BlockingTool()
        tools = ToolRegistry()
        tools.register(tool)
        gateway = ScriptedGateway(calls(("blocking", {})), text("never sent"))
        agent = make_agent(gateway, tools.freeze(), memory, tool_timeout=5)

        task = asyncio.create_task(agent.respond("wait", "alice"))
        await tool.started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return tool, gateway

    tool, gateway = asyncio.run(scenario())

    assert tool.cancelled
    assert len(gateway.calls) == 1
    assert asyncio.run(turns_of(memory, "alice")) == []


def test_same_script_gives_same_products(registry, memory):
    def scripted():
        return ScriptedGateway(
            calls(
                ("search_products", {"query": "laptop"}),
                ("get_product_details", {"product_id": 4}),
            ),
            calls(("compare_products", {"productIds": [2, 1]})),
            text("Here is what I found."),
        )

    first = asyncio.run(make_agent(scripted(), registry, memory).respond("laptops", "alice"))
    second = asyncio.run(make_agent(scripted(), registry, memory).respond("laptops", "alice"))

    assert [p.id for p in first.products] == [1, 2, 3, 4]
    assert [p.id for p in second.products] == [p.id for p in first.products]
    assert second.answer == first.answer
    assert second.conversation_id != first.conversation_id
