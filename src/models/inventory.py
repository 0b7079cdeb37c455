"""Pydantic response models for inventory items and the catalog integration."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from src.models.base import InventoryBase, PaginatedResponse


# ---------- Inventory ----------

class InventoryItemRead(InventoryBase):
    item_id: uuid.UUID | None = None
    product_id: str
    quantity: int = Field(ge=0)


class InventoryItemPage(PaginatedResponse):
    items: list[InventoryItemRead]


# ---------- Integration ----------

class SyncStatusRead(InventoryBase):
    running: bool = False
    runs: int = 0
    failures: int = 0
    last_run_at: datetime | None = None
    last_error: str | None = None


class IntegrationRead(InventoryBase):
    catalog_update: datetime | None = None
    sync: SyncStatusRead | None = None
