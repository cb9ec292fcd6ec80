"""
agent.tools.compare_products - Compare two to five products by id.

Resolves the ids through the catalogue, then hands the products to
ProductComparisonService. The comparison (narrative + winners + metrics)
is what the model sees; the compared products join the response.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from shop_assistant.application.context import SessionContext
from shop_assistant.application.services.comparison import ProductComparisonService
from shop_assistant.application.services.product_catalog import ProductCatalogService
from shop_assistant.agent.tools.base import BaseTool
from shop_assistant.domain.exceptions import ValidationError
from shop_assistant.domain.models import ToolResult

logger = logging.getLogger(__name__)

MAX_COMPARED = 5


class CompareProductsInput(BaseModel):
    """Input schema for the compare_products tool."""
    model_config = ConfigDict(populate_by_name=True)

    product_ids: list[int] = Field(
        min_length=2,
        alias="productIds",
        description=(
            "Array of product IDs (integers) to compare "
            "(minimum 2, maximum 5 products). Example: [1, 2, 3]"
        ),
    )


class CompareProductsTool(BaseTool):
    """Compare multiple products and pick per-metric winners."""

    name = "compare_products"
    description = (
        "Compares multiple products by their IDs. Use this when the user wants to "
        "compare products, see price differences, or get recommendations between "
        "products. Requires at least 2 product IDs."
    )

    def __init__(
        self,
        catalog: ProductCatalogService,
        comparison_service: ProductComparisonService,
    ):
        self._catalog = catalog
        self._comparison = comparison_service

    def get_schema(self) -> type[BaseModel]:
        return CompareProductsInput

    async def execute(
        self, ctx: SessionContext, product_ids: list[int] | None = None, **kwargs,
    ) -> ToolResult:
        ids = list(dict.fromkeys(pid for pid in product_ids or [] if pid > 0))
        if len(ids) < 2:
            raise ValidationError("At least 2 distinct, positive product IDs are required")
        if len(ids) > MAX_COMPARED:
            logger.warning("Product IDs list truncated to %d items", MAX_COMPARED)
            ids = ids[:MAX_COMPARED]

        products = await self._catalog.get_many(ids)
        if len(products) < 2:
            raise ValidationError("Could not find at least 2 valid products to compare")

        result = await self._comparison.compare(products)
        return ToolResult.success(self.name, data=result.to_dict(), products=products)
