"""
agent.tools.registry - Tool registration, discovery, and invocation.

Central registry that manages all available tools. It is the agent's
tool executor: it resolves a requested tool name, validates the
arguments against the tool's Pydantic schema, runs the tool under an
optional timeout and normalizes every outcome into a ToolResult.

Tool-level problems never escape execute() as exceptions; they come back
as failure results the agent can show to the model.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from shop_assistant.application.context import SessionContext
from shop_assistant.agent.tools.base import BaseTool
from shop_assistant.domain.exceptions import (
    NotFoundError,
    ToolConfigurationError,
    ValidationError,
)
from shop_assistant.domain.models import ToolErrorKind, ToolResult, ToolSchema

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Manages tool registration and invocation."""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}
        self._frozen = False

    def register(self, tool: BaseTool) -> None:
        """Register a tool by its name.

        Raises:
            ToolConfigurationError: On a duplicate name, or after freeze().
        """
        if self._frozen:
            raise ToolConfigurationError(
                f"Cannot register '{tool.name}': registry is frozen"
            )
        if tool.name in self._tools:
            raise ToolConfigurationError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def freeze(self) -> ToolRegistry:
        """Make the tool set immutable (called once wiring is done)."""
        self._frozen = True
        logger.info(
            "Tool registry ready with %d tools: %s",
            len(self._tools), ", ".join(self._tools),
        )
        return self

    def list_schemas(self) -> list[ToolSchema]:
        """Name + parameter schema of every tool, in registration order."""
        return [tool.to_schema() for tool in self._tools.values()]

    async def execute(
        self,
        name: str,
        arguments: Optional[dict[str, Any]],
        ctx: SessionContext,
        *,
        call_id: str = "",
        timeout: Optional[float] = None,
    ) -> ToolResult:
        """Run one tool call and return its ToolResult.

        Unknown names, invalid arguments, NotFoundError, timeouts and any
        other exception raised by the tool all become failure results.
        Cancellation still propagates.
        """
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Tool not found: %s (request=%s)", name, ctx.request_id)
            return ToolResult.failure(
                name, ToolErrorKind.TOOL_NOT_FOUND,
                f"Tool '{name}' not found", call_id=call_id,
            )

        try:
            params = tool.get_schema().model_validate(arguments or {})
        except PydanticValidationError as e:
            logger.info("Invalid arguments for %s: %s", name, e.errors())
            return ToolResult.failure(
                name, ToolErrorKind.VALIDATION_ERROR,
                _describe_validation_error(e), call_id=call_id,
            )

        logger.info(
            "Executing tool %s with %s (request=%s)",
            name, params.model_dump(), ctx.request_id,
        )
        try:
            if timeout is not None:
                result = await asyncio.wait_for(
                    tool.execute(ctx, **params.model_dump()), timeout,
                )
            else:
                result = await tool.execute(ctx, **params.model_dump())
        except asyncio.TimeoutError:
            logger.warning("Tool %s timed out after %ss", name, timeout)
            return ToolResult.failure(
                name, ToolErrorKind.TOOL_TIMEOUT,
                f"timed out after {timeout:g} seconds", call_id=call_id,
            )
        except ValidationError as e:
            return ToolResult.failure(
                name, ToolErrorKind.VALIDATION_ERROR, str(e), call_id=call_id,
            )
        except NotFoundError as e:
            return ToolResult.failure(
                name, ToolErrorKind.NOT_FOUND, str(e), call_id=call_id,
            )
        except Exception as e:
            logger.exception("Error executing tool: %s", name)
            return ToolResult.failure(
                name, ToolErrorKind.EXECUTION_FAILED, str(e) or type(e).__name__,
                call_id=call_id,
            )

        logger.info(
            "Tool %s completed with %d product(s)", name, len(result.products),
        )
        return dataclasses.replace(result, tool_name=name, call_id=call_id)


def _describe_validation_error(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "arguments"
        parts.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)
