"""
application.services.product_catalog - Product lookup for the agent tools.

Single entry point the tools use to reach products, whichever product
source a deployment has:

    - scraping service configured → search goes to the scraper and the
      results are cached in the local product store (so they get ids that
      get_product_details / compare_products can resolve later)
    - no scraper → search runs against the local product store only
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Sequence

from shop_assistant.domain.entities import Product
from shop_assistant.domain.ports import ProductRepository, ProductScraperPort

logger = logging.getLogger(__name__)


class ProductCatalogService:
    """Read access to products plus the scrape-through cache."""

    def __init__(
        self,
        product_repo: ProductRepository,
        scraper: Optional[ProductScraperPort] = None,
    ):
        self._repo = product_repo
        self._scraper = scraper

    async def search(self, query: str, limit: int) -> list[Product]:
        """Return up to *limit* products matching a free-text query.

        An empty list is a valid answer. ProductSourceError from the
        scraper propagates to the caller.
        """
        if self._scraper is None:
            products = await self._repo.search(query, limit)
            logger.info("Local search '%s' → %d product(s)", query, len(products))
            return products

        scraped = await self._scraper.search(query)
        cached = await self._repo.upsert_many(scraped[:limit])
        logger.info(
            "Scraped search '%s' → %d product(s), %d cached",
            query, len(scraped), len(cached),
        )
        return cached

    async def get(self, product_id: int) -> Optional[Product]:
        return await self._repo.get_by_id(product_id)

    async def get_many(self, product_ids: Sequence[int]) -> list[Product]:
        """Resolve ids in the given order, silently skipping unknown ones."""
        found = {p.id: p for p in await self._repo.get_by_ids(product_ids)}
        return [found[pid] for pid in product_ids if pid in found]

    async def for_user(self, user_id: str) -> list[Product]:
        return await self._repo.get_by_user(user_id)

    async def filter(
        self,
        *,
        min_price: Optional[Decimal | float] = None,
        max_price: Optional[Decimal | float] = None,
        store_name: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> list[Product]:
        """Stored products within a price range and/or from a store.

        Every criterion is optional. *store_name* is a case-insensitive
        substring match. With *user_id* only that user's products are
        considered.
        """
        low, high = _to_decimal(min_price), _to_decimal(max_price)
        products = await self._repo.get_all(user_id)
        store = (store_name or "").strip().lower()
        matched = [
            p for p in products
            if (low is None or p.price >= low)
            and (high is None or p.price <= high)
            and (not store or store in (p.store_name or "").lower())
        ]
        logger.info(
            "Filtered %d of %d product(s) (min=%s, max=%s, store=%s, user=%s)",
            len(matched), len(products), min_price, max_price, store_name, user_id,
        )
        return matched


def _to_decimal(value: Optional[Decimal | float]) -> Optional[Decimal]:
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))
