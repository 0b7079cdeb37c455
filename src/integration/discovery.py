"""Discovery of the catalog's event feed.

The catalog does not publish a fixed events URL.  Its root document lists
hypermedia links, and the feed is available only while the ``events`` rel
is advertised there.  Resolution is repeated on every tick so the
integration starts and stops following the catalog without a restart.

Link hrefs may be relative; each one is resolved against the URI of the
document that advertised it.

A resolver that cannot reach the catalog reports the feed as absent rather
than failing: the tick then becomes a no-op and the next one tries again.
"""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from src.integration.base import HAL_JSON, Link, parse_links

logger = logging.getLogger("inventory.integration.discovery")


class HalCapabilityResolver:
    """Follow a chain of HAL rels from the catalog root to the events link.

    Usage::

        resolver = HalCapabilityResolver("http://catalog:8080", rels=["events"])
        link = await resolver.resolve()   # Link or None
    """

    def __init__(
        self,
        base_uri: str,
        rels: Sequence[str] = ("events",),
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the resolver.

        Args:
            base_uri:    Catalog root URI.
            rels:        Rels to follow in order; the last one is the feed.
            http_client: Optional pre-configured httpx client (for testing).
            timeout:     Request timeout in seconds when no client is injected.
        """
        if not rels:
            raise ValueError("At least one rel is required for discovery")
        self._base_uri = base_uri
        self._rels = list(rels)
        self._http_client = http_client
        self._timeout = timeout

    async def resolve(self) -> Link | None:
        """Return the advertised events link, or None if it is not available."""
        uri = self._base_uri
        link: Link | None = None
        for rel in self._rels:
            try:
                document = await self._get(uri)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Catalog discovery failed at %s: %s", uri, exc)
                return None

            link = parse_links(document.get("_links"), base=uri).get(rel)
            if link is None:
                logger.info("Catalog at %s does not advertise rel '%s'", uri, rel)
                return None
            uri = link.expand({})

        logger.debug("Discovered catalog events link %s", link)
        return link

    async def _get(self, uri: str) -> dict:
        """GET a HAL document.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses.
            ValueError:      If the body is not a JSON object.
        """
        headers = {"Accept": HAL_JSON}
        if self._http_client:
            response = await self._http_client.get(uri, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(uri, headers=headers)

        response.raise_for_status()
        document = response.json()
        if not isinstance(document, dict):
            raise ValueError(f"Expected a HAL document, got {type(document).__name__}")
        return document


class StaticCapabilityResolver:
    """Resolver for a configured events template; always available."""

    def __init__(self, link: Link) -> None:
        self._link = link

    async def resolve(self) -> Link | None:
        return self._link
