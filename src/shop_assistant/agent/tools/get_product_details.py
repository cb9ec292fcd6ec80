"""
agent.tools.get_product_details - Single product lookup by id.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from shop_assistant.application.context import SessionContext
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.agent.tools.base import BaseTool
from shop_assistant.domain.exceptions import NotFoundError
from shop_assistant.domain.models import ToolResult


class GetProductDetailsInput(BaseModel):
    """Input schema for the get_product_details tool."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(
        gt=0,
        alias="productId",
        description="The unique identifier (ID) of the product to get details for",
    )


class GetProductDetailsTool(BaseTool):
    """Get detailed information about one product."""

    name = "get_product_details"
    description = (
        "Gets detailed information about a specific product by its ID. Use this "
        "when the user asks about a specific product, wants details, or needs "
        "more information about a product they've seen."
    )

    def __init__(self, catalog: ProductCatalogService):
        self._catalog = catalog

    def get_schema(self) -> type[BaseModel]:
        return GetProductDetailsInput

    async def execute(self, ctx: SessionContext, product_id: int = 0, **kwargs) -> ToolResult:
        product = await self._catalog.get(product_id)
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return ToolResult.success(self.name, data=product.to_dict(), products=[product])
