"""
agent.tools.search_products - Free-text product search tool.

Goes through ProductCatalogService, which picks the scraping service or
the local product store. An empty result list is a success.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shop_assistant.application.context import SessionContext
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.agent.tools.base import BaseTool
from shop_assistant.domain.models import ToolResult

MAX_RESULTS_CAP = 100


class SearchProductsInput(BaseModel):
    """Input schema for the search_products tool."""
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(
        description=(
            "The search query or product name to search for "
            "(e.g., 'laptop', 'iPhone 15', 'wireless headphones')"
        ),
    )
    max_results: int = Field(
        default=50,
        ge=1,
        alias="maxResults",
        description="Maximum number of results to return (default: 50, max: 100)",
    )

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Query cannot be empty")
        return value


class SearchProductsTool(BaseTool):
    """Search for products matching a free-text query."""

    name = "search_products"
    description = (
        "Searches for products on e-commerce sites based on a search query. "
        "Use this when the user wants to find products, search for items, "
        "or look for specific products."
    )

    def __init__(self, catalog: ProductCatalogService):
        self._catalog = catalog

    def get_schema(self) -> type[BaseModel]:
        return SearchProductsInput

    async def execute(
        self, ctx: SessionContext, query: str = "", max_results: int = 50, **kwargs,
    ) -> ToolResult:
        limit = min(max_results, MAX_RESULTS_CAP)
        products = await self._catalog.search(query, limit)
        return ToolResult.success(
            self.name,
            data={
                "query": query,
                "count": len(products),
                "products": [p.to_dict() for p in products],
            },
            products=products,
        )
