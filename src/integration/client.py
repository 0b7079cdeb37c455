"""HAL transport for catalog events.

A catalog event collection looks like::

    {
      "_embedded": {
        "productAddeds": [
          {
            "product": {"description": "Espresso cup", "price": 9.99},
            "publicationDate": "2024-01-01T00:00:00",
            "_links": {
              "self":    {"href": "http://catalog/events/1"},
              "product": {"href": "http://catalog/products/1"}
            }
          }
        ]
      },
      "_links": {"self": {"href": "http://catalog/events?type=productAdded"}}
    }

The embedded rel name is chosen by the catalog, so every embedded list is
read in document order.  No ``_embedded`` key means an empty collection.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from src.integration.base import (
    HAL_JSON,
    EventFetchError,
    EventResource,
    ProductAdded,
    parse_links,
)

logger = logging.getLogger("inventory.integration.client")


class HalEventClient:
    """Fetch catalog event collections over HTTP.

    Transport errors (``httpx.HTTPError``) and non-2xx responses
    (``httpx.HTTPStatusError``) are not caught here.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: Optional pre-configured httpx client (for testing).
            timeout:     Request timeout in seconds when no client is injected.
        """
        self._http_client = http_client
        self._timeout = timeout

    async def fetch(self, uri: str) -> list[EventResource]:
        """GET an event collection and return its events in received order.

        Args:
            uri: Fully expanded request URI.

        Returns:
            List of EventResource, possibly empty.

        Raises:
            httpx.HTTPError:  On transport errors or non-2xx responses.
            EventFetchError:  If the body is not a valid HAL event collection.
        """
        headers = {"Accept": HAL_JSON}
        if self._http_client:
            response = await self._http_client.get(uri, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(uri, headers=headers)

        response.raise_for_status()

        try:
            document = response.json()
        except ValueError as exc:
            raise EventFetchError(f"Response from {uri} is not JSON: {exc}") from exc

        resources = parse_collection(document)
        logger.debug("Fetched %d events from %s", len(resources), uri)
        return resources


def parse_collection(document: Any) -> list[EventResource]:
    """Convert a HAL collection document into EventResources.

    Pure function, no I/O.

    Raises:
        EventFetchError: If the document structure or an event payload is invalid.
    """
    if not isinstance(document, dict):
        raise EventFetchError(
            f"Expected a HAL collection object, got {type(document).__name__}"
        )

    embedded = document.get("_embedded") or {}
    if not isinstance(embedded, dict):
        raise EventFetchError("'_embedded' must be an object")

    resources: list[EventResource] = []
    for rel, items in embedded.items():
        if not isinstance(items, list):
            items = [items]
        for item in items:
            resources.append(_parse_resource(rel, item))
    return resources


def _parse_resource(rel: str, raw: Any) -> EventResource:
    if not isinstance(raw, dict):
        raise EventFetchError(f"Embedded '{rel}' entry must be an object, got {raw!r}")

    payload = {k: v for k, v in raw.items() if k not in ("_links", "_embedded")}
    try:
        content = ProductAdded.model_validate(payload)
    except ValidationError as exc:
        raise EventFetchError(f"Invalid '{rel}' event: {exc}") from exc

    return EventResource(content=content, links=parse_links(raw.get("_links")))
