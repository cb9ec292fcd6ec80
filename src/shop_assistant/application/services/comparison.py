"""
application.services.comparison - Product comparison.

Produces a narrative analysis plus per-metric winners (best value, best
quality, cheapest) for two or more resolved products.

The narrative comes from an optional ComparisonAnalyzerPort (an LLM). The
winners are parsed out of that narrative when it names product ids, and
otherwise decided by price rules. Without an analyzer, or when it fails,
the whole comparison is rule-based.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Optional, Sequence

from shop_assistant.domain.entities import Product
from shop_assistant.domain.exceptions import ValidationError
from shop_assistant.domain.models import ComparisonResult
from shop_assistant.domain.ports import ComparisonAnalyzerPort

logger = logging.getLogger(__name__)

_DEFAULT_RECOMMENDATION = (
    "Based on the analysis above, consider your specific needs and budget "
    "when making a decision."
)

_WINNER_PATTERNS = {
    "best_value": re.compile(r"best\s+value[^\n]*?\bID\W{0,3}(\d+)", re.IGNORECASE),
    "best_quality": re.compile(r"best\s+quality[^\n]*?\bID\W{0,3}(\d+)", re.IGNORECASE),
    "cheapest": re.compile(r"cheapest[^\n]*?\bID\W{0,3}(\d+)", re.IGNORECASE),
}


def format_price(product: Product) -> str:
    return f"{product.price:,.0f} {product.currency}"


class ProductComparisonService:
    """Compare products with an LLM narrative and a price-rule fallback."""

    def __init__(self, analyzer: Optional[ComparisonAnalyzerPort] = None):
        self._analyzer = analyzer

    async def compare(self, products: Sequence[Product]) -> ComparisonResult:
        """Compare the given products.

        Raises:
            ValidationError: If fewer than 2 products are given.
        """
        if len(products) < 2:
            raise ValidationError("At least 2 products are required for comparison")

        products = tuple(products)
        rules = _rule_based_winners(products)
        metrics = calculate_metrics(products)

        if self._analyzer is not None:
            try:
                narrative = await self._analyzer.analyze(products)
            except Exception:
                logger.exception(
                    "LLM comparison failed for %d products, falling back to rules",
                    len(products),
                )
            else:
                parsed = _parse_winners(narrative, products)
                return ComparisonResult(
                    products=products,
                    analysis=narrative,
                    recommendation=_extract_recommendation(narrative),
                    best_value_id=parsed.get("best_value", rules["best_value"]),
                    best_quality_id=parsed.get("best_quality", rules["best_quality"]),
                    cheapest_id=parsed.get("cheapest", rules["cheapest"]),
                    metrics=metrics,
                )

        logger.info("Using rule-based comparison for %d products", len(products))
        return _fallback_comparison(products, rules, metrics)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _rule_based_winners(products: Sequence[Product]) -> dict[str, Optional[int]]:
    cheapest = min(products, key=lambda p: p.price)
    most_expensive = max(products, key=lambda p: p.price)
    # Lowest positive price.
    priced = [p for p in products if p.price > 0]
    best_value = min(priced, key=lambda p: p.price) if priced else cheapest
    return {
        "best_value": best_value.id,
        "best_quality": most_expensive.id,
        "cheapest": cheapest.id,
    }


def _fallback_comparison(
    products: Sequence[Product],
    winners: dict[str, Optional[int]],
    metrics: dict,
) -> ComparisonResult:
    by_id = {p.id: p for p in products}
    cheapest = by_id[winners["cheapest"]]
    most_expensive = by_id[winners["best_quality"]]
    best_value = by_id[winners["best_value"]]

    lines = [f"Comparison of {len(products)} products:", ""]
    for product in sorted(products, key=lambda p: p.price):
        line = f"• {product.name}: {format_price(product)}"
        if product.store_name:
            line += f" ({product.store_name})"
        lines.append(line)
    lines.append("")
    lines.append(f"Cheapest: {cheapest.name} at {format_price(cheapest)}")
    lines.append(f"Most Expensive: {most_expensive.name} at {format_price(most_expensive)}")

    return ComparisonResult(
        products=tuple(products),
        analysis="\n".join(lines),
        recommendation=(
            f"For best value, consider {best_value.name}. "
            f"For the lowest price, choose {cheapest.name}."
        ),
        best_value_id=best_value.id,
        best_quality_id=most_expensive.id,
        cheapest_id=cheapest.id,
        metrics=metrics,
    )


def _parse_winners(narrative: str, products: Sequence[Product]) -> dict[str, int]:
    """Pick ids the narrative names next to each metric label.

    Only ids of compared products are accepted.
    """
    known = {p.id for p in products}
    winners: dict[str, int] = {}
    for metric, pattern in _WINNER_PATTERNS.items():
        match = pattern.search(narrative)
        if match and int(match.group(1)) in known:
            winners[metric] = int(match.group(1))
    return winners


def _extract_recommendation(narrative: str) -> str:
    index = narrative.lower().find("recommendation")
    if index < 0:
        return _DEFAULT_RECOMMENDATION
    return narrative[index:].strip()


def calculate_metrics(products: Sequence[Product]) -> dict:
    prices = [p.price for p in products]
    average = sum(prices, Decimal("0")) / len(prices)
    stores: list[str] = []
    for product in products:
        if product.store_name and product.store_name not in stores:
            stores.append(product.store_name)
    return {
        "product_count": len(products),
        "price_range": {
            "min": str(min(prices)),
            "max": str(max(prices)),
            "average": str(average.quantize(Decimal("0.01"))),
        },
        "stores": stores,
    }

