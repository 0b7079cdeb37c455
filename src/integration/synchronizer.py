"""Periodic catalog → inventory synchronization.

One tick:
1. Ask the resolver whether the catalog advertises its events link
   (absent → nothing to do)
2. Build request parameters from the checkpoint
   (``type`` always, ``since`` only after a previous sync)
3. Fetch the event collection
4. Apply each event in order and commit its publication date as the new
   checkpoint before moving to the next one

Fetch and apply errors are not caught here.  The checkpoint then still
points before the first unapplied event, so the next tick fetches it again
and re-applies anything already applied idempotently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.integration.applier import InventoryApplier
from src.integration.base import (
    CapabilityResolver,
    EventResource,
    EventTransport,
    IntegrationStore,
)

logger = logging.getLogger("inventory.integration.synchronizer")

PRODUCT_ADDED = "productAdded"


@dataclass
class TickResult:
    """Outcome of a tick that ran to completion.

    Attributes:
        status:         'skipped' (no events link advertised) or 'success'.
        events_applied: Number of events applied in this tick.
        checkpoint:     Checkpoint after the tick.
    """

    status: str
    events_applied: int = 0
    checkpoint: datetime | None = None


def build_parameters(
    checkpoint: datetime | None, event_type: str = PRODUCT_ADDED
) -> dict[str, Any]:
    """Return the query parameters for an events request.

    Args:
        checkpoint: Publication date of the last applied event, or None.
        event_type: Event type filter.

    Returns:
        ``{"type": event_type}`` plus ``since`` as an ISO-8601 date-time
        when a checkpoint exists.
    """
    parameters: dict[str, Any] = {"type": event_type}
    if checkpoint is not None:
        parameters["since"] = checkpoint.isoformat()
    return parameters


def in_publication_order(resources: list[EventResource]) -> list[EventResource]:
    """Return the events sorted by publication date if they arrived out of order.

    Only the dated events before the first undated one are sorted.  The
    undated event and everything after it keep their received order, so the
    apply loop still stops at that event.
    """
    dates = [r.publication_date for r in resources]
    cut = next((i for i, d in enumerate(dates) if d is None), len(dates))
    head = dates[:cut]
    if all(a <= b for a, b in zip(head, head[1:])):
        return resources
    logger.warning("Catalog returned %d events out of publication order; sorting", cut)
    return sorted(resources[:cut], key=lambda r: r.publication_date) + resources[cut:]


class CatalogSynchronizer:
    """Pull new catalog events and apply them to the inventory.

    Usage::

        synchronizer = CatalogSynchronizer(
            resolver=HalCapabilityResolver(settings.catalog_base_uri),
            transport=HalEventClient(http_client),
            integrations=PostgresIntegrationStore(),
            applier=InventoryApplier(PostgresInventoryStore()),
        )
        await synchronizer.tick()
    """

    def __init__(
        self,
        resolver: CapabilityResolver,
        transport: EventTransport,
        integrations: IntegrationStore,
        applier: InventoryApplier,
        event_type: str = PRODUCT_ADDED,
    ) -> None:
        self._resolver = resolver
        self._transport = transport
        self._integrations = integrations
        self._applier = applier
        self._event_type = event_type

    async def tick(self) -> TickResult:
        """Run one synchronization pass.

        Returns:
            TickResult describing what was applied.

        Raises:
            httpx.HTTPError:     If fetching events fails.
            EventFetchError:     If the catalog response is malformed.
            InvariantViolation:  If an event cannot be applied or checkpointed.
        """
        logger.info("Catalog integration update triggered…")

        link = await self._resolver.resolve()
        if link is None:
            logger.debug("Catalog events link not advertised; skipping update")
            return TickResult(status="skipped")

        integration = await self._integrations.get_integration()
        uri = link.expand(build_parameters(integration.catalog_update, self._event_type))

        logger.info("Requesting new events from %s…", uri)
        resources = await self._transport.fetch(uri)

        logger.info("Processing %d new events…", len(resources))

        applied = 0
        for resource in in_publication_order(resources):
            published = await self._applier.apply_and_checkpoint(resource)

            current = integration.catalog_update
            if current is None or published >= current:
                integration = await self._integrations.save_integration(
                    integration.with_catalog_update(published)
                )
            else:
                logger.debug(
                    "Event published %s predates checkpoint %s; checkpoint kept",
                    published.isoformat(),
                    current.isoformat(),
                )
            applied += 1

            logger.info(
                "Successful catalog update. New reference time: %s.",
                integration.catalog_update.isoformat(),
            )

        return TickResult(
            status="success",
            events_applied=applied,
            checkpoint=integration.catalog_update,
        )
