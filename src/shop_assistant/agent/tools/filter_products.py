"""
agent.tools.filter_products - Narrow stored products by price and store.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shop_assistant.application.context import SessionContext
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.agent.tools.base import BaseTool
from shop_assistant.domain.models import ToolResult


class FilterProductsInput(BaseModel):
    """Input schema for the filter_products tool."""
    model_config = ConfigDict(populate_by_name=True)

    min_price: Optional[float] = Field(
        default=None, ge=0, alias="minPrice",
        description="Minimum price filter (optional)",
    )
    max_price: Optional[float] = Field(
        default=None, ge=0, alias="maxPrice",
        description="Maximum price filter (optional)",
    )
    store_name: Optional[str] = Field(
        default=None, alias="storeName",
        description="Store name to filter by (optional)",
    )
    user_id: Optional[str] = Field(
        default=None, alias="userId",
        description="User ID to filter user's saved products (optional)",
    )

    @model_validator(mode="after")
    def _range_in_order(self):
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("minPrice cannot be greater than maxPrice")
        return self


class FilterProductsTool(BaseTool):
    """Filter stored products by price range, store or owner."""

    name = "filter_products"
    description = (
        "Filters products by price range, store, or owner. Use this when the "
        "user wants to find products within a specific price range or from a "
        "specific store."
    )

    def __init__(self, catalog: ProductCatalogService):
        self._catalog = catalog

    def get_schema(self) -> type[BaseModel]:
        return FilterProductsInput

    async def execute(
        self,
        ctx: SessionContext,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        store_name: Optional[str] = None,
        user_id: Optional[str] = None,
        **kwargs,
    ) -> ToolResult:
        products = await self._catalog.filter(
            min_price=min_price,
            max_price=max_price,
            store_name=store_name,
            user_id=user_id,
        )
        return ToolResult.success(
            self.name,
            data={
                "count": len(products),
                "filters": {
                    "min_price": min_price,
                    "max_price": max_price,
                    "store_name": store_name,
                    "user_id": user_id,
                },
                "products": [p.to_dict() for p in products],
            },
            products=products,
        )
