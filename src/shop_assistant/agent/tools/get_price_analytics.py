"""
agent.tools.get_price_analytics - Price statistics for stored products.

Only figures go back to the model; no products join the response.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shop_assistant.application.context import SessionContext
from shop_assistant.application.services.price_analytics import analyze_prices
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.agent.tools.base import BaseTool
from shop_assistant.domain.models import ToolResult


class GetPriceAnalyticsInput(BaseModel):
    """Input schema for the get_price_analytics tool."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(
        default=None,
        alias="userId",
        description="User ID to analyze their saved products (optional)",
    )


class GetPriceAnalyticsTool(BaseTool):
    """Summarize prices across all stored products or one user's products."""

    name = "get_price_analytics"
    description = (
        "Gets price analytics and statistics for products. Use this when the "
        "user asks about price ranges, average prices, the cheapest or most "
        "expensive products, or prices per store."
    )

    def __init__(self, catalog: ProductCatalogService):
        self._catalog = catalog

    def get_schema(self) -> type[BaseModel]:
        return GetPriceAnalyticsInput

    async def execute(
        self, ctx: SessionContext, user_id: Optional[str] = None, **kwargs,
    ) -> ToolResult:
        products = await self._catalog.filter(user_id=user_id)
        analytics = analyze_prices(products)
        if not products:
            analytics["message"] = "No products found for analysis"
        return ToolResult.success(self.name, data=analytics)
