"""
infrastructure.persistence.product_repo - SQLite product repository.

The local product store: products saved by users and the cache that gives
scraped products a stable id. Prices are stored as decimal strings.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from shop_assistant.domain.entities import Product
from shop_assistant.infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteProductRepository:
    """Async SQLite implementation of ProductRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM products WHERE id = ?", (product_id,),
            )
            return self._row_to_entity(rows[0]) if rows else None

    async def get_by_ids(self, product_ids: Sequence[int]) -> list[Product]:
        if not product_ids:
            return []
        placeholders = ", ".join("?" for _ in product_ids)
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                f"SELECT * FROM products WHERE id IN ({placeholders})",
                tuple(product_ids),
            )
            return [self._row_to_entity(r) for r in rows]

    async def get_by_user(self, user_id: str) -> list[Product]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM products WHERE user_id = ? ORDER BY id ASC",
                (user_id,),
            )
            return [self._row_to_entity(r) for r in rows]

    async def get_all(self, user_id: Optional[str] = None) -> list[Product]:
        """Every stored product, or only those owned by *user_id*."""
        if user_id is not None:
            return await self.get_by_user(user_id)
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall("SELECT * FROM products ORDER BY id ASC")
            return [self._row_to_entity(r) for r in rows]

    async def search(self, query: str, limit: int) -> list[Product]:
        """Case-insensitive substring match on name and store."""
        pattern = f"%{query.strip()}%"
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT * FROM products
                   WHERE name LIKE ? OR store_name LIKE ?
                   ORDER BY id ASC
                   LIMIT ?""",
                (pattern, pattern, limit),
            )
            return [self._row_to_entity(r) for r in rows]

    async def save(self, product: Product) -> Product:
        now = datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                """INSERT INTO products
                   (name, price, currency, image_url, product_url, store_name,
                    scraped_at, user_id, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                self._params(product) + (now, now),
            )
            return replace(product, id=cursor.lastrowid)

    async def upsert_many(self, products: Sequence[Product]) -> list[Product]:
        """Insert or refresh products keyed by product_url; return them with ids.

        Products without a URL are always inserted.
        """
        now = datetime.now().isoformat()
        saved: list[Product] = []
        async with self._conn.acquire() as conn:
            for product in products:
                existing = None
                if product.product_url:
                    rows = await conn.execute_fetchall(
                        "SELECT id FROM products WHERE product_url = ?",
                        (product.product_url,),
                    )
                    existing = rows[0]["id"] if rows else None

                if existing is None:
                    cursor = await conn.execute(
                        """INSERT INTO products
                           (name, price, currency, image_url, product_url, store_name,
                            scraped_at, user_id, created_at, updated_at)
                           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                        self._params(product) + (now, now),
                    )
                    saved.append(replace(product, id=cursor.lastrowid))
                else:
                    await conn.execute(
                        """UPDATE products
                           SET name = ?, price = ?, currency = ?, image_url = ?,
                               store_name = ?, scraped_at = ?, updated_at = ?
                           WHERE id = ?""",
                        (product.name, str(product.price), product.currency,
                         product.image_url, product.store_name, product.scraped_at,
                         now, existing),
                    )
                    saved.append(replace(product, id=existing))
        logger.debug("Upserted %d product(s)", len(saved))
        return saved

    @staticmethod
    def _params(product: Product) -> tuple:
        return (
            product.name, str(product.price), product.currency, product.image_url,
            product.product_url, product.store_name, product.scraped_at, product.user_id,
        )

    @staticmethod
    def _row_to_entity(row) -> Product:
        return Product(
            id=row["id"],
            name=row["name"] or "",
            price=Decimal(row["price"] or "0"),
            currency=row["currency"] or "HUF",
            image_url=row["image_url"],
            product_url=row["product_url"],
            store_name=row["store_name"],
            scraped_at=row["scraped_at"] or "",
            user_id=row["user_id"],
        )
