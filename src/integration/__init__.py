"""Catalog → inventory integration.

Polls the catalog's ``productAdded`` events from the last checkpoint and
creates an inventory item for every new product.

Modules:
    base        : Domain types, HAL links, collaborator protocols, errors
    discovery   : Resolve the catalog's events link from its root document
    client      : Fetch and parse HAL event collections
    applier     : Idempotent per-event inventory mutation
    synchronizer: One tick: discover, fetch since checkpoint, apply, commit
    scheduler   : Fixed-delay background loop with failure logging
    store       : Postgres stores for items and the checkpoint
"""

from src.integration.applier import InventoryApplier
from src.integration.base import (
    CatalogIntegrationError,
    EventFetchError,
    EventResource,
    Integration,
    InvariantViolation,
    InventoryItem,
    Link,
    ProductAdded,
)
from src.integration.scheduler import SyncScheduler, SyncStatus
from src.integration.synchronizer import CatalogSynchronizer, TickResult

__all__ = [
    "CatalogSynchronizer",
    "InventoryApplier",
    "SyncScheduler",
    "SyncStatus",
    "TickResult",
    "EventResource",
    "ProductAdded",
    "Link",
    "Integration",
    "InventoryItem",
    "CatalogIntegrationError",
    "EventFetchError",
    "InvariantViolation",
]
