"""
agent.tools.get_user_products - Products saved by a user.

Defaults to the session's user. Whether the caller may read another
user's products is decided by the surrounding service, not here.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shop_assistant.application.context import SessionContext
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.agent.tools.base import BaseTool
from shop_assistant.domain.models import ToolResult


class GetUserProductsInput(BaseModel):
    """Input schema for the get_user_products tool."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(
        default=None,
        alias="userId",
        description=(
            "The user ID to get products for. If not provided, "
            "will use the current user context."
        ),
    )


class GetUserProductsTool(BaseTool):
    """List the products a user has saved."""

    name = "get_user_products"
    description = (
        "Gets all products saved or associated with a specific user. Use this "
        "when the user asks about their saved products, wants to see their "
        "product list, or references 'my products'."
    )

    def __init__(self, catalog: ProductCatalogService):
        self._catalog = catalog

    def get_schema(self) -> type[BaseModel]:
        return GetUserProductsInput

    async def execute(
        self, ctx: SessionContext, user_id: Optional[str] = None, **kwargs,
    ) -> ToolResult:
        owner = user_id or ctx.user_id
        products = await self._catalog.for_user(owner)
        return ToolResult.success(
            self.name,
            data={
                "user_id": owner,
                "count": len(products),
                "products": [p.to_dict() for p in products],
            },
            products=products,
        )
