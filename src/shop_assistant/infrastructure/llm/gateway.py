"""
infrastructure.llm.gateway - Tool-calling LLM gateway.

Implements LLMGatewayPort on top of any LangChain chat model that supports
native tool calling (ChatOpenAI, ChatGroq, ChatOllama). Converts the
provider-neutral PromptMessage history into LangChain messages, binds the
tool schemas in OpenAI function format and maps the AIMessage back to an
LLMReply.

Provider errors never escape as exceptions: every failure becomes
LLMResult.failure(UPSTREAM_UNAVAILABLE). The agent enforces the per-call
timeout and the retry.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence
from uuid import uuid4

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from shop_assistant.domain.models import (
    LLMFailureKind,
    LLMReply,
    LLMResult,
    PromptMessage,
    Role,
    ToolCall,
    ToolSchema,
)

logger = logging.getLogger(__name__)


class LangChainGateway:
    """LLMGatewayPort backed by a LangChain chat model."""

    def __init__(self, llm: BaseChatModel):
        self._llm = llm

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[PromptMessage],
        tools: Sequence[ToolSchema],
    ) -> LLMResult:
        try:
            messages = to_langchain_messages(system_prompt, history)
            runnable = self._llm.bind_tools([to_openai_tool(t) for t in tools]) if tools else self._llm
            message = await runnable.ainvoke(messages)
        except Exception as e:
            logger.error("LLM call failed: %s: %s", type(e).__name__, e)
            return LLMResult.failure(
                LLMFailureKind.UPSTREAM_UNAVAILABLE, f"{type(e).__name__}: {e}",
            )

        reply = to_reply(message)
        logger.debug(
            "LLM replied with %d tool call(s) and %d chars of text",
            len(reply.tool_calls), len(reply.text),
        )
        return LLMResult.success(reply)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

def to_openai_tool(schema: ToolSchema) -> dict[str, Any]:
    """Render a ToolSchema in the OpenAI function-tool format bind_tools accepts."""
    return {
        "type": "function",
        "function": {
            "name": schema.name,
            "description": schema.description,
            "parameters": schema.parameters,
        },
    }


def to_langchain_messages(
    system_prompt: str, history: Sequence[PromptMessage],
) -> list[BaseMessage]:
    messages: list[BaseMessage] = []
    if system_prompt:
        messages.append(SystemMessage(content=system_prompt))

    for msg in history:
        if msg.role == Role.USER:
            messages.append(HumanMessage(content=msg.content))
        elif msg.role == Role.ASSISTANT:
            messages.append(AIMessage(
                content=msg.content,
                tool_calls=[
                    {"name": call.name, "args": dict(call.arguments), "id": call.call_id}
                    for call in msg.tool_calls
                ],
            ))
        elif msg.role == Role.TOOL:
            messages.append(ToolMessage(
                content=msg.content,
                tool_call_id=msg.tool_call_id,
                name=msg.tool_name or None,
            ))
        else:
            raise ValueError(f"Unsupported message role: {msg.role!r}")
    return messages


def to_reply(message: BaseMessage) -> LLMReply:
    """Map a LangChain AIMessage to an LLMReply."""
    calls = tuple(
        ToolCall(
            name=call["name"],
            arguments=_arguments(call.get("args")),
            call_id=call.get("id") or f"call_{uuid4().hex[:12]}",
        )
        for call in getattr(message, "tool_calls", None) or []
    )
    return LLMReply(text=_text(message.content), tool_calls=calls)


def _arguments(args: Any) -> dict[str, Any]:
    if isinstance(args, dict):
        return args
    if isinstance(args, str) and args.strip():
        try:
            parsed = json.loads(args)
        except json.JSONDecodeError:
            logger.warning("Discarding unparseable tool arguments: %s", args[:200])
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def _text(content: Any) -> str:
    """Flatten string or content-block message content into plain text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
