"""
agent.executor - Agent execution engine.

The single class that runs the LLM + tool loop for one user message:

    load history → query LLM → (tool calls? run them concurrently, feed
    results back, query again)* → persist one turn → answer + products

No component construction, no global state, no business logic. All
dependencies and tunables are injected; all request state lives in an
AgentContext owned by the call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from shop_assistant.agent.config import AgentConfig
from shop_assistant.agent.context import AgentContext, turn_to_messages
from shop_assistant.agent.memory import ConversationMemory
from shop_assistant.agent.prompt import build_system_prompt, fallback_answer
from shop_assistant.agent.tools.compare_products import CompareProductsTool
from shop_assistant.agent.tools.registry import ToolRegistry
from shop_assistant.application.context import SessionContext
from shop_assistant.domain.entities import Product, Turn
from shop_assistant.domain.exceptions import (
    RequestCancelledError,
    UpstreamUnavailableError,
    ValidationError,
)
from shop_assistant.domain.models import (
    AgentResponse,
    LLMFailureKind,
    LLMReply,
    LLMResult,
    PromptMessage,
    Role,
    ToolCall,
    ToolResult,
    ToolSchema,
)
from shop_assistant.domain.ports import LLMGatewayPort

logger = logging.getLogger(__name__)


class ConversationalAgent:
    """Runs the LLM + tool selection loop.

    Constructed by factory.py with all dependencies injected.
    Stateless between calls: concurrent respond() calls share only the
    tool registry and the gateway client.
    """

    def __init__(
        self,
        gateway: LLMGatewayPort,
        tools: ToolRegistry,
        memory: ConversationMemory,
        config: Optional[AgentConfig] = None,
    ):
        self._gateway = gateway
        self._tools = tools
        self._memory = memory
        self._config = config or AgentConfig()

    @property
    def config(self) -> AgentConfig:
        return self._config

    async def respond(
        self,
        message: str,
        user_id: str,
        conversation_id: Optional[str] = None,
        *,
        context_products: Optional[Sequence[Product]] = None,
        deadline: Optional[float] = None,
    ) -> AgentResponse:
        """Answer one user message and record exactly one turn.

        Args:
            message:          The user's message text.
            user_id:          Caller's (already authenticated) user id.
            conversation_id:  Existing conversation, or None to start one.
            context_products: Products the user is looking at; listed in
                              the system prompt.
            deadline:         Seconds the whole answer may take. Expiry
                              raises RequestCancelledError before any turn
                              is written.

        Returns:
            AgentResponse with the answer, the aggregated products and the
            conversation id.

        Raises:
            ValidationError:          Empty message or user id, unknown conversation.
            UpstreamUnavailableError: LLM still failing after the retry.
            PersistenceError:         History load or turn append failed.
            RequestCancelledError:    Deadline expired.

        A new conversation is stored before the first LLM call, so a failed
        request leaves it behind with no turns.
        """
        if not message or not message.strip():
            raise ValidationError("Message cannot be empty")
        if not user_id or not user_id.strip():
            raise ValidationError("User id is required")

        logger.info(
            "Agent processing (user=%s, conversation=%s): %s",
            user_id, conversation_id or "<new>", message[:80],
        )

        work = self._answer(message, user_id, conversation_id, context_products or ())
        if deadline is None:
            ctx, answer = await work
        else:
            try:
                ctx, answer = await asyncio.wait_for(work, deadline)
            except asyncio.TimeoutError:
                logger.warning(
                    "Request deadline of %ss expired (user=%s), nothing persisted",
                    deadline, user_id,
                )
                raise RequestCancelledError(
                    f"Request cancelled: no answer within {deadline:g} seconds"
                ) from None

        return await self._finalize(ctx, answer)

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    async def _answer(
        self,
        message: str,
        user_id: str,
        conversation_id: Optional[str],
        context_products: Sequence[Product],
    ) -> tuple[AgentContext, str]:
        ctx = await self._init(message, user_id, conversation_id, context_products)
        schemas = self._tools.list_schemas()

        while True:
            ctx.iteration += 1
            logger.info(
                "Tool calling iteration %d/%d (request=%s)",
                ctx.iteration, self._config.max_iterations, ctx.session.request_id,
            )
            reply = await self._query(ctx, schemas)
            if reply.text.strip():
                ctx.last_text = reply.text

            if not reply.has_tool_calls:
                logger.info("LLM returned final text after %d iteration(s)", ctx.iteration)
                return ctx, reply.text if reply.text.strip() else fallback_answer(len(ctx.products))

            calls = _with_call_ids(reply.tool_calls, ctx.iteration)
            ctx.history.append(
                PromptMessage(role=Role.ASSISTANT, content=reply.text, tool_calls=calls)
            )
            await self._dispatch(ctx, calls)

            if ctx.iteration >= self._config.max_iterations:
                logger.warning(
                    "Iteration cap of %d reached (request=%s), finalizing with %s",
                    self._config.max_iterations, ctx.session.request_id,
                    "last LLM text" if ctx.last_text else "fallback answer",
                )
                return ctx, ctx.last_text or fallback_answer(len(ctx.products))

    async def _init(
        self,
        message: str,
        user_id: str,
        conversation_id: Optional[str],
        context_products: Sequence[Product],
    ) -> AgentContext:
        conversation = await self._memory.get_or_create_conversation(conversation_id, user_id)

        history: list[PromptMessage] = []
        if conversation_id:
            turns = await self._memory.get_recent_history(
                conversation.conversation_id, self._config.history_window,
            )
            for turn in turns:
                history.extend(turn_to_messages(turn))
        history.append(PromptMessage(role=Role.USER, content=message))

        return AgentContext(
            session=SessionContext(
                user_id=user_id,
                conversation_id=conversation.conversation_id,
            ),
            conversation=conversation,
            user_message=message,
            history=history,
            context_products=tuple(context_products),
        )

    async def _query(self, ctx: AgentContext, schemas: list[ToolSchema]) -> LLMReply:
        """Call the gateway, retrying a failed call once with the same context."""
        system_prompt = build_system_prompt(
            self._config.system_prompt,
            context_products=ctx.context_products,
            comparison_prompt=self._config.comparison_prompt if ctx.has_comparison else "",
        )
        history = tuple(ctx.history)
        attempts = self._config.llm_max_attempts

        result = LLMResult.failure(LLMFailureKind.UPSTREAM_UNAVAILABLE, "not attempted")
        for attempt in range(1, attempts + 1):
            result = await self._call_gateway(system_prompt, history, schemas)
            if result.ok:
                return result.reply
            logger.warning(
                "LLM call failed (attempt %d/%d): %s: %s",
                attempt, attempts, result.failure_kind.value, result.detail,
            )

        raise UpstreamUnavailableError(
            f"LLM upstream unavailable after {attempts} attempt(s): {result.detail}"
        )

    async def _call_gateway(
        self,
        system_prompt: str,
        history: Sequence[PromptMessage],
        schemas: list[ToolSchema],
    ) -> LLMResult:
        timeout = self._config.request_timeout
        try:
            return await asyncio.wait_for(
                self._gateway.complete(system_prompt, history, schemas), timeout,
            )
        except asyncio.TimeoutError:
            return LLMResult.failure(
                LLMFailureKind.TIMEOUT, f"no response within {timeout:g} seconds",
            )
        except Exception as e:
            logger.exception("LLM gateway raised instead of returning a failure")
            return LLMResult.failure(LLMFailureKind.UPSTREAM_UNAVAILABLE, str(e))

    async def _dispatch(self, ctx: AgentContext, calls: Sequence[ToolCall]) -> list[ToolResult]:
        """Run all tool calls of a round concurrently and wait for every one."""
        logger.info(
            "Executing %d tool call(s): %s",
            len(calls), ", ".join(call.name for call in calls),
        )
        results = await asyncio.gather(*(
            self._tools.execute(
                call.name,
                call.arguments,
                ctx.session,
                call_id=call.call_id,
                timeout=self._config.tool_timeout,
            )
            for call in calls
        ))

        for call, result in zip(calls, results):
            added = ctx.products.add_all(result.products)
            if result.ok and result.tool_name == CompareProductsTool.name:
                ctx.has_comparison = True
            if not result.ok:
                logger.warning(
                    "Tool %s failed (%s): %s, reporting back to the model",
                    call.name, result.error_kind.value, result.error,
                )
            elif added:
                logger.info("Tool %s surfaced %d new product(s)", call.name, added)
            ctx.history.append(
                PromptMessage(
                    role=Role.TOOL,
                    content=result.to_model_content(),
                    tool_call_id=call.call_id,
                    tool_name=call.name,
                )
            )
        return list(results)

    async def _finalize(self, ctx: AgentContext, answer: str) -> AgentResponse:
        turn = Turn(
            conversation_id=ctx.conversation.conversation_id,
            user_id=ctx.session.user_id,
            message=ctx.user_message,
            response=answer,
            product_ids=ctx.products.ids(),
            is_user_message=False,
        )
        await self._memory.append_turn(turn)

        logger.info(
            "Agent finished: %d iteration(s), %d product(s), answer starts with: %s",
            ctx.iteration, len(ctx.products), answer[:80],
        )
        return AgentResponse(
            answer=answer,
            products=ctx.products.to_tuple(),
            conversation_id=ctx.conversation.conversation_id,
            iterations=ctx.iteration,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _with_call_ids(calls: Sequence[ToolCall], iteration: int) -> tuple[ToolCall, ...]:
    """Give every call an id so tool messages can be matched to requests."""
    return tuple(
        call if call.call_id else ToolCall(
            name=call.name,
            arguments=call.arguments,
            call_id=f"call_{iteration}_{index}",
        )
        for index, call in enumerate(calls)
    )
