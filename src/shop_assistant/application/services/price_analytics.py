"""
application.services.price_analytics - Price statistics over a product list.

Pure computation, no I/O: the get_price_analytics tool loads the products
and hands them here. Decimal amounts are rendered as strings so the
figures stay exact in tool output.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from shop_assistant.domain.entities import Product

MAX_STORES = 10

_CENTS = Decimal("0.01")


def _summary(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "price": str(product.price),
        "currency": product.currency,
    }


def _average(prices: Sequence[Decimal]) -> Decimal:
    return (sum(prices, Decimal("0")) / len(prices)).quantize(_CENTS)


def analyze_prices(products: Sequence[Product]) -> dict:
    """Min/max/average/median/sum, cheapest and dearest product, per-store figures.

    Median is the upper middle value for an even count. Store breakdown
    lists the stores with the most products first, at most MAX_STORES.
    An empty list yields only ``total_products: 0``.
    """
    if not products:
        return {"total_products": 0}

    prices = sorted(p.price for p in products)
    cheapest = min(products, key=lambda p: p.price)
    dearest = max(products, key=lambda p: p.price)

    by_store: dict[str, list[Decimal]] = {}
    for product in products:
        if product.store_name:
            by_store.setdefault(product.store_name, []).append(product.price)
    stores = sorted(by_store.items(), key=lambda item: len(item[1]), reverse=True)

    return {
        "total_products": len(products),
        "price_statistics": {
            "min": str(prices[0]),
            "max": str(prices[-1]),
            "average": str(_average(prices)),
            "median": str(prices[len(prices) // 2]),
            "sum": str(sum(prices, Decimal("0"))),
        },
        "cheapest_product": _summary(cheapest),
        "most_expensive_product": _summary(dearest),
        "store_breakdown": [
            {
                "store": store,
                "count": len(store_prices),
                "average_price": str(_average(store_prices)),
                "min_price": str(min(store_prices)),
                "max_price": str(max(store_prices)),
            }
            for store, store_prices in stores[:MAX_STORES]
        ],
    }
