"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from src.integration.scheduler import SyncScheduler
from src.integration.store import PostgresIntegrationStore, PostgresInventoryStore


def get_inventory_store() -> PostgresInventoryStore:
    return PostgresInventoryStore()


def get_integration_store() -> PostgresIntegrationStore:
    return PostgresIntegrationStore()


def get_sync_scheduler(request: Request) -> SyncScheduler | None:
    """Return the scheduler started by the app lifespan, if any."""
    return getattr(request.app.state, "sync_scheduler", None)


# Annotated shortcuts for route signatures
Inventory = Annotated[PostgresInventoryStore, Depends(get_inventory_store)]
Integrations = Annotated[PostgresIntegrationStore, Depends(get_integration_store)]
Scheduler = Annotated[SyncScheduler | None, Depends(get_sync_scheduler)]
