"""
domain.models - Value objects for the agent loop.

These are immutable data containers with no business logic and no
dependencies on infrastructure (no LangChain, no SQLite, no HTTP).
Everything here is transient: it lives for one request at most.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from shop_assistant.domain.entities import Product


# ---------------------------------------------------------------------------
# Tool calls and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolCall:
    """A tool request produced by the LLM gateway."""
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    call_id: str = ""


@dataclass(frozen=True)
class ToolSchema:
    """Tool name + JSON schema of its parameters, as shown to the LLM."""
    name: str
    description: str
    parameters: dict[str, Any]


class ToolErrorKind(str, Enum):
    VALIDATION_ERROR = "ValidationError"
    NOT_FOUND = "NotFound"
    TOOL_NOT_FOUND = "ToolNotFound"
    TOOL_TIMEOUT = "ToolTimeout"
    EXECUTION_FAILED = "ToolExecutionFailed"


@dataclass(frozen=True)
class ToolResult:
    """Uniform envelope for the outcome of one ToolCall.

    On success ``data`` holds the tool-specific payload and ``products``
    the Products it surfaced. On failure ``error_kind``/``error`` describe
    what went wrong; the agent feeds both shapes back to the model.
    """
    tool_name: str
    ok: bool
    data: Any = None
    products: tuple[Product, ...] = ()
    error_kind: Optional[ToolErrorKind] = None
    error: str = ""
    call_id: str = ""

    @classmethod
    def success(
        cls,
        tool_name: str,
        data: Any,
        products: Optional[list[Product]] = None,
        call_id: str = "",
    ) -> ToolResult:
        return cls(
            tool_name=tool_name,
            ok=True,
            data=data,
            products=tuple(products or ()),
            call_id=call_id,
        )

    @classmethod
    def failure(
        cls,
        tool_name: str,
        kind: ToolErrorKind,
        error: str,
        call_id: str = "",
    ) -> ToolResult:
        return cls(
            tool_name=tool_name,
            ok=False,
            error_kind=kind,
            error=error,
            call_id=call_id,
        )

    def to_model_content(self) -> str:
        """Render the result as the text the LLM sees in the next round."""
        if not self.ok:
            kind = self.error_kind.value if self.error_kind else "Error"
            return f"tool {self.tool_name} failed: {kind}: {self.error}"
        return json.dumps(self.data, default=_json_default, ensure_ascii=False)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Product):
        return value.to_dict()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


# ---------------------------------------------------------------------------
# Prompt messages and LLM gateway results
# ---------------------------------------------------------------------------

class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class PromptMessage:
    """Provider-neutral chat message used to build the LLM context."""
    role: Role
    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str = ""
    tool_name: str = ""


@dataclass(frozen=True)
class LLMReply:
    """Either final text (no tool calls) or a set of requested tool calls."""
    text: str = ""
    tool_calls: tuple[ToolCall, ...] = ()

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class LLMFailureKind(str, Enum):
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    TIMEOUT = "Timeout"


@dataclass(frozen=True)
class LLMResult:
    """success(reply) | failure(kind, detail) for one gateway call."""
    reply: Optional[LLMReply] = None
    failure_kind: Optional[LLMFailureKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.reply is not None

    @classmethod
    def success(cls, reply: LLMReply) -> LLMResult:
        return cls(reply=reply)

    @classmethod
    def failure(cls, kind: LLMFailureKind, detail: str) -> LLMResult:
        return cls(failure_kind=kind, detail=detail)


# ---------------------------------------------------------------------------
# Comparison + agent output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing two or more resolved products."""
    products: tuple[Product, ...]
    analysis: str
    recommendation: str
    best_value_id: Optional[int]
    best_quality_id: Optional[int]
    cheapest_id: Optional[int]
    metrics: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_count": len(self.products),
            "products": [p.to_dict() for p in self.products],
            "analysis": self.analysis,
            "recommendation": self.recommendation,
            "best_value": self.best_value_id,
            "best_quality": self.best_quality_id,
            "cheapest": self.cheapest_id,
            "metrics": self.metrics,
        }


@dataclass(frozen=True)
class AgentResponse:
    """What ConversationalAgent.respond() returns to the caller."""
    answer: str
    products: tuple[Product, ...]
    conversation_id: str
    iterations: int = 0
