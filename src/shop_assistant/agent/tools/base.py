"""
agent.tools.base - Base tool interface.

All agent tools inherit from BaseTool and return a ToolResult on success.
Failures are raised as domain exceptions (ValidationError, NotFoundError,
...) and turned into failure ToolResults by the ToolRegistry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from shop_assistant.application.context import SessionContext
from shop_assistant.domain.models import ToolResult, ToolSchema


class BaseTool(ABC):
    """Abstract base for all agent tools."""

    name: str
    description: str

    @abstractmethod
    async def execute(self, ctx: SessionContext, **kwargs) -> ToolResult:
        """Execute the tool with already-validated arguments."""
        ...

    @abstractmethod
    def get_schema(self) -> type[BaseModel]:
        """Return the Pydantic schema for this tool's input arguments."""
        ...

    def to_schema(self) -> ToolSchema:
        """Name, description and JSON schema as shown to the LLM."""
        parameters = self.get_schema().model_json_schema()
        parameters.pop("title", None)
        return ToolSchema(
            name=self.name,
            description=self.description,
            parameters=parameters,
        )
