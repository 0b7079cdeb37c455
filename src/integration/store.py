"""Postgres persistence for inventory items and the integration checkpoint.

Tables:
    catalog_integration: exactly one row (id = 1) holding catalog_update
    inventory_items    : UNIQUE (product_id); created idempotently

Item creation relies on the UNIQUE constraint rather than a lock: a
concurrent insert of the same product hits ``ON CONFLICT DO NOTHING`` and
the existing row is returned instead.
"""

from __future__ import annotations

import logging

import asyncpg

from src.integration.base import Integration, InventoryItem
from src.services import database
from src.services.database import build_upsert_query

logger = logging.getLogger("inventory.integration.store")

SCHEMA = """
CREATE TABLE IF NOT EXISTS catalog_integration (
    id             SMALLINT PRIMARY KEY DEFAULT 1 CHECK (id = 1),
    catalog_update TIMESTAMP NULL,
    created_at     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at     TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS inventory_items (
    item_id    UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    product_id TEXT NOT NULL UNIQUE,
    quantity   INTEGER NOT NULL DEFAULT 0 CHECK (quantity >= 0),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

_INTEGRATION_ID = 1

_SAVE_INTEGRATION = (
    build_upsert_query("catalog_integration", ["id", "catalog_update"], ["id"])
    + " RETURNING catalog_update"
)

_CREATE_ITEM = (
    build_upsert_query(
        "inventory_items", ["product_id", "quantity"], ["product_id"], update_columns=[]
    )
    + " RETURNING item_id, product_id, quantity"
)


async def ensure_schema() -> None:
    """Create the integration tables if they do not exist."""
    await database.execute(SCHEMA)
    logger.info("Inventory schema ensured")


def _to_item(row: asyncpg.Record) -> InventoryItem:
    return InventoryItem(
        product_id=row["product_id"],
        quantity=row["quantity"],
        item_id=row["item_id"],
    )


class PostgresIntegrationStore:
    """Reads and writes the single catalog_integration row."""

    async def get_integration(self) -> Integration:
        value = await database.fetchval(
            "SELECT catalog_update FROM catalog_integration WHERE id = $1",
            _INTEGRATION_ID,
        )
        return Integration(catalog_update=value)

    async def save_integration(self, integration: Integration) -> Integration:
        value = await database.fetchval(
            _SAVE_INTEGRATION, _INTEGRATION_ID, integration.catalog_update
        )
        return Integration(catalog_update=value)


class PostgresInventoryStore:
    """Inventory item queries backed by the inventory_items table."""

    async def find_by_product_id(self, product_id: str) -> InventoryItem | None:
        row = await database.fetchrow(
            "SELECT item_id, product_id, quantity FROM inventory_items WHERE product_id = $1",
            product_id,
        )
        return _to_item(row) if row else None

    async def create(self, product_id: str, quantity: int = 0) -> InventoryItem:
        """Insert an item, returning the existing row if the product is taken."""
        async with database.get_connection() as conn:
            row = await conn.fetchrow(_CREATE_ITEM, product_id, quantity)
            if row is None:
                logger.debug("Inventory item for %s created concurrently", product_id)
                row = await conn.fetchrow(
                    "SELECT item_id, product_id, quantity FROM inventory_items "
                    "WHERE product_id = $1",
                    product_id,
                )
        if row is None:
            raise RuntimeError(f"Inventory item for {product_id} vanished after insert")
        return _to_item(row)

    async def list_items(self, offset: int = 0, limit: int = 50) -> list[InventoryItem]:
        rows = await database.fetch(
            "SELECT item_id, product_id, quantity FROM inventory_items "
            "ORDER BY created_at, product_id OFFSET $1 LIMIT $2",
            offset,
            limit,
        )
        return [_to_item(r) for r in rows]

    async def count(self) -> int:
        return await database.fetchval("SELECT COUNT(*) FROM inventory_items")
