"""
infrastructure.scraping.scraping_client - HTTP client for the scraping service.

Implements ProductScraperPort by calling the scraping microservice.
Uses requests via run_in_executor for async compat.

The service accepts {"searchTerm": "..."} on POST /api/scraping/search and
returns {"products": [...], "count": n}. Product fields arrive in camelCase;
snake_case is accepted as well. If the service is unreachable or answers
with an error, raises ProductSourceError.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import requests

from shop_assistant.domain.entities import Product
from shop_assistant.domain.exceptions import ProductSourceError

logger = logging.getLogger(__name__)


class ScrapingServiceClient:
    """Search products through the scraping microservice.

    Implements ProductScraperPort (structural typing, no explicit inheritance).
    """

    def __init__(self, service_url: str, timeout: float = 30.0):
        self._search_url = service_url.rstrip("/") + "/api/scraping/search"
        self._timeout = timeout

    async def search(self, query: str) -> list[Product]:
        """Search the service for *query*.

        Raises:
            ProductSourceError: If the service is unreachable or returns an error.
        """
        loop = asyncio.get_running_loop()
        try:
            data = await loop.run_in_executor(None, self._call_service, query)
        except ProductSourceError:
            raise
        except Exception as e:
            raise ProductSourceError(f"Scraping service call failed: {e}") from e

        items = data.get("products") or []
        products = []
        for item in items:
            try:
                products.append(product_from_dict(item))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping malformed product from scraping service: %s", e)
        return products

    def _call_service(self, query: str) -> dict:
        """Synchronous HTTP call to the scraping service (runs in thread pool)."""
        logger.info("Calling scraping service at %s (query=%r)", self._search_url, query)
        try:
            response = requests.post(
                self._search_url,
                json={"searchTerm": query},
                timeout=self._timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise ProductSourceError(
                f"Scraping service unreachable at {self._search_url}: {e}"
            ) from e
        except requests.exceptions.Timeout:
            raise ProductSourceError(
                f"Scraping service timed out after {self._timeout}s"
            )

        if not response.ok:
            raise ProductSourceError(
                f"Scraping service returned HTTP {response.status_code}: {response.text[:200]}"
            )

        data = response.json()
        if not isinstance(data, dict):
            raise ProductSourceError("Scraping service returned an unexpected payload")
        logger.info("Scraping service returned %d product(s)", len(data.get("products") or []))
        return data


def product_from_dict(item: dict[str, Any]) -> Product:
    """Build a Product from a service payload (camelCase or snake_case keys)."""
    if not isinstance(item, dict):
        raise TypeError(f"expected an object, got {type(item).__name__}")

    def pick(camel: str, snake: str) -> Any:
        value = item.get(camel)
        return item.get(snake) if value is None else value

    name = (item.get("name") or "").strip()
    if not name:
        raise ValueError("product has no name")

    try:
        price = Decimal(str(item.get("price", "0")))
    except InvalidOperation as e:
        raise ValueError(f"invalid price {item.get('price')!r}") from e

    return Product(
        id=None,
        name=name,
        price=price,
        currency=item.get("currency") or "HUF",
        image_url=pick("imageUrl", "image_url"),
        product_url=pick("productUrl", "product_url"),
        store_name=pick("storeName", "store_name"),
        scraped_at=str(pick("scrapedAt", "scraped_at") or ""),
    )
