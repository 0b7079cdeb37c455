"""Apply one catalog event to the local inventory.

Applying ``productAdded`` makes sure an inventory item exists for the
product.  An existing item is left untouched, so re-applying an event after
a crash between the upsert and the checkpoint commit changes nothing.
"""

from __future__ import annotations

import logging
from datetime import datetime

from src.integration.base import EventResource, InventoryStore, InvariantViolation

logger = logging.getLogger("inventory.integration.applier")


class InventoryApplier:
    """Idempotently create inventory items from catalog events."""

    def __init__(self, inventory: InventoryStore) -> None:
        self._inventory = inventory

    async def apply_and_checkpoint(self, resource: EventResource) -> datetime:
        """Ensure an inventory item exists for the event's product.

        Args:
            resource: A ``productAdded`` event resource.

        Returns:
            The event's publication date, to be committed as the new checkpoint.

        Raises:
            InvariantViolation: If the event has no ``product`` link, or no
                                publication date to checkpoint.
        """
        product_id = resource.product_id
        if not product_id:
            raise InvariantViolation(f"Event has no 'product' link: {resource.links}")

        existing = await self._inventory.find_by_product_id(product_id)
        if existing is None:
            product = resource.content.product
            logger.info(
                "Creating inventory item for product %s.",
                product.description if product and product.description else product_id,
            )
            await self._inventory.create(product_id, quantity=0)
        else:
            logger.debug("Inventory item for %s already exists", product_id)

        published = resource.publication_date
        if published is None:
            raise InvariantViolation(
                f"Event for product {product_id} has no publication date"
            )
        return published
