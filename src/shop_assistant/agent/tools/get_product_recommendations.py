"""
agent.tools.get_product_recommendations - Candidates for a recommendation.

The tool does not rank anything itself. It gathers the stored products
that fit the price range and hands them back with an instruction telling
the model how many to recommend for the described need.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shop_assistant.application.context import SessionContext
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.agent.tools.base import BaseTool
from shop_assistant.domain.models import ToolResult

MAX_RECOMMENDATIONS = 10


class GetProductRecommendationsInput(BaseModel):
    """Input schema for the get_product_recommendations tool."""
    model_config = ConfigDict(populate_by_name=True)

    conversation_context: str = Field(
        alias="conversationContext",
        description=(
            "Summary of what the user is looking for based on the conversation "
            "(e.g., 'budget laptop for students', 'gaming phone under 200000 HUF')"
        ),
    )
    user_id: Optional[str] = Field(
        default=None,
        alias="userId",
        description="Only consider this user's saved products (optional)",
    )
    min_price: Optional[float] = Field(
        default=None, ge=0, alias="minPrice",
        description="Minimum price mentioned by user (optional)",
    )
    max_price: Optional[float] = Field(
        default=None, ge=0, alias="maxPrice",
        description="Maximum price mentioned by user (optional)",
    )
    limit: int = Field(
        default=5,
        ge=1,
        description="Number of recommendations to return (default: 5, max: 10)",
    )

    @field_validator("conversation_context")
    @classmethod
    def _context_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Conversation context cannot be empty")
        return value


class GetProductRecommendationsTool(BaseTool):
    """Collect products the model can recommend from."""

    name = "get_product_recommendations"
    description = (
        "Gets personalized product recommendations based on the conversation "
        "context, budget and needs. Use this when the user asks for "
        "recommendations, suggestions, 'what should I buy', or needs help "
        "deciding between products."
    )

    def __init__(self, catalog: ProductCatalogService):
        self._catalog = catalog

    def get_schema(self) -> type[BaseModel]:
        return GetProductRecommendationsInput

    async def execute(
        self,
        ctx: SessionContext,
        conversation_context: str = "",
        user_id: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        limit: int = 5,
        **kwargs,
    ) -> ToolResult:
        limit = min(limit, MAX_RECOMMENDATIONS)
        products = await self._catalog.filter(
            min_price=min_price,
            max_price=max_price,
            user_id=user_id,
        )
        if not products:
            message = "No products found matching the criteria"
        else:
            message = (
                f"Found {len(products)} products matching the criteria. Analyze "
                f"these products based on the conversation context "
                f"'{conversation_context}' and recommend the best {limit} options "
                f"with a short explanation for each."
            )
        return ToolResult.success(
            self.name,
            data={
                "count": len(products),
                "context": conversation_context,
                "price_range": {"min": min_price, "max": max_price},
                "limit": limit,
                "products": [p.to_dict() for p in products],
                "message": message,
            },
            products=products,
        )
