"""Inventory service: FastAPI application entry point.

Serves the local inventory read-only and keeps it in step with the catalog
by running the catalog sync in the background for the app's lifetime.

Run locally:
    uvicorn src.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI

from src.config import Settings, get_settings
from src.integration.applier import InventoryApplier
from src.integration.base import CapabilityResolver, Link
from src.integration.client import HalEventClient
from src.integration.discovery import HalCapabilityResolver, StaticCapabilityResolver
from src.integration.scheduler import SyncScheduler
from src.integration.store import (
    PostgresIntegrationStore,
    PostgresInventoryStore,
    ensure_schema,
)
from src.integration.synchronizer import CatalogSynchronizer
from src.routers import health, inventory
from src.services.database import close_pool, init_pool

# ---------- Logging ----------

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("inventory")


# ---------- Wiring ----------

def build_synchronizer(
    settings: Settings, http_client: httpx.AsyncClient
) -> CatalogSynchronizer:
    """Assemble the catalog synchronizer from settings."""
    resolver: CapabilityResolver
    if settings.catalog_events_template:
        resolver = StaticCapabilityResolver(
            Link(href=settings.catalog_events_template, templated=True)
        )
    else:
        resolver = HalCapabilityResolver(
            settings.catalog_base_uri,
            rels=settings.catalog_events_rels,
            http_client=http_client,
        )

    return CatalogSynchronizer(
        resolver=resolver,
        transport=HalEventClient(http_client=http_client),
        integrations=PostgresIntegrationStore(),
        applier=InventoryApplier(PostgresInventoryStore()),
        event_type=settings.catalog_event_type,
    )


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logger.info(
        "Starting %s v%s [%s]",
        settings.app_name,
        settings.app_version,
        settings.environment,
    )
    await init_pool(settings)
    await ensure_schema()

    http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    scheduler = SyncScheduler(
        build_synchronizer(settings, http_client).tick,
        interval_ms=settings.sync_interval_ms,
    )
    app.state.sync_scheduler = scheduler
    if settings.sync_enabled:
        scheduler.start()
    else:
        logger.info("Catalog sync disabled by configuration")

    yield

    await scheduler.stop()
    await http_client.aclose()
    await close_pool()
    logger.info("%s shut down", settings.app_name)


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description=(
            "Local inventory kept in sync with the product catalog's "
            "published events."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    app.include_router(inventory.router, prefix="/api/v1")

    return app


app = create_app()
