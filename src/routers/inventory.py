"""Read-only endpoints for inventory items and the catalog integration state."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.dependencies import Integrations, Inventory, Scheduler
from src.models.base import ErrorDetail
from src.models.inventory import (
    IntegrationRead,
    InventoryItemPage,
    InventoryItemRead,
    SyncStatusRead,
)

router = APIRouter(tags=["inventory"])


# ---------- Inventory items ----------

@router.get("/inventory", response_model=InventoryItemPage)
async def list_inventory(
    inventory: Inventory,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> Any:
    items = await inventory.list_items(offset=offset, limit=limit)
    total = await inventory.count()
    return {
        "items": items,
        "total": total,
        "offset": offset,
        "limit": limit,
    }


@router.get(
    "/inventory/{product_id:path}",
    response_model=InventoryItemRead,
    responses={404: {"model": ErrorDetail}},
)
async def get_inventory_item(product_id: str, inventory: Inventory) -> Any:
    item = await inventory.find_by_product_id(product_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return item


# ---------- Catalog integration ----------

@router.get("/integration", response_model=IntegrationRead)
async def get_integration(integrations: Integrations, scheduler: Scheduler) -> Any:
    integration = await integrations.get_integration()
    sync = None
    if scheduler is not None:
        status = scheduler.status
        sync = SyncStatusRead(
            running=scheduler.running,
            runs=status.runs,
            failures=status.failures,
            last_run_at=status.last_run_at,
            last_error=status.last_error,
        )
    return IntegrationRead(catalog_update=integration.catalog_update, sync=sync)
