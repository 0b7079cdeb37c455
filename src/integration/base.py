"""Domain types and collaborator interfaces for the catalog integration.

The catalog publishes ``productAdded`` events as a HAL collection.  Each
event resource carries a ``product`` link identifying the catalog product
and a ``publicationDate``.  The inventory keeps one ``InventoryItem`` per
product and a single ``Integration`` record whose ``catalog_update`` is the
publication date of the last event applied locally.

Collaborators (discovery, transport, persistence) are expressed as
``Protocol`` classes so the synchronizer can run against in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from uritemplate import URITemplate

HAL_JSON = "application/hal+json"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class CatalogIntegrationError(Exception):
    """Base class for errors raised by the catalog integration."""


class EventFetchError(CatalogIntegrationError):
    """The catalog returned a body that is not a valid event collection."""


class InvariantViolation(CatalogIntegrationError):
    """An event cannot be applied or checkpointed safely.

    Raised instead of skipping the event: once the checkpoint moved past a
    skipped event it would never be fetched again.
    """


# ---------------------------------------------------------------------------
# Hypermedia
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Link:
    """A HAL link, possibly an RFC 6570 URI template.

    Attributes:
        href:      Link target or URI template.
        templated: True if ``href`` is a template that needs expanding.
        base:      URI of the document the link was read from.  Relative
                   hrefs are resolved against it after expansion.
    """

    href: str
    templated: bool = False
    base: str | None = None

    @classmethod
    def from_hal(cls, raw: Any, base: str | None = None) -> "Link | None":
        """Build a Link from a HAL link object; None if it has no href."""
        if isinstance(raw, list):
            raw = raw[0] if raw else None
        if not isinstance(raw, dict) or not raw.get("href"):
            return None
        return cls(href=str(raw["href"]), templated=raw.get("templated") is True, base=base)

    def expand(self, params: dict[str, Any]) -> str:
        """Expand the link with the given parameters.

        Template variables are filled from ``params``.  Parameters the
        template does not declare (or every parameter, for a plain link)
        are appended to the query string.  ``None`` values are omitted.

        Args:
            params: Variable name → value.

        Returns:
            The absolute request URI.
        """
        values = {k: v for k, v in params.items() if v is not None}
        if self.templated:
            template = URITemplate(self.href)
            uri = template.expand(values)
            extra = {k: v for k, v in values.items() if k not in template.variable_names}
        else:
            uri = self.href
            extra = values
        if self.base is not None:
            uri = str(httpx.URL(self.base).join(uri))
        if extra:
            uri = str(httpx.URL(uri).copy_merge_params(extra))
        return uri


def parse_links(raw: Any, base: str | None = None) -> dict[str, Link]:
    """Parse a HAL ``_links`` object into rel → Link, dropping unusable entries."""
    links: dict[str, Link] = {}
    if not isinstance(raw, dict):
        return links
    for rel, value in raw.items():
        link = Link.from_hal(value, base=base)
        if link is not None:
            links[rel] = link
    return links


# ---------------------------------------------------------------------------
# Event payload
# ---------------------------------------------------------------------------


class Product(BaseModel):
    """Catalog product as embedded in a ``productAdded`` event."""

    model_config = ConfigDict(extra="ignore")

    description: str | None = None
    price: Decimal | None = None


class ProductAdded(BaseModel):
    """Payload of a ``productAdded`` catalog event.

    ``publication_date`` is normalized to a naive UTC datetime so the
    checkpoint formats as ``2024-01-01T00:00:00`` regardless of how the
    catalog serialized it.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    product: Product | None = None
    publication_date: datetime | None = Field(default=None, alias="publicationDate")

    @field_validator("publication_date")
    @classmethod
    def _to_naive_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


@dataclass(frozen=True)
class EventResource:
    """One event from the catalog: payload plus its hypermedia links.

    Attributes:
        content: The ``productAdded`` payload.
        links:   rel → Link, including ``product`` and usually ``self``.
    """

    content: ProductAdded
    links: dict[str, Link] = field(default_factory=dict)

    def link(self, rel: str) -> Link | None:
        return self.links.get(rel)

    @property
    def product_id(self) -> str | None:
        """The product URI, which identifies the inventory item."""
        product = self.link("product")
        return product.href if product else None

    @property
    def publication_date(self) -> datetime | None:
        return self.content.publication_date


# ---------------------------------------------------------------------------
# Local state
# ---------------------------------------------------------------------------


@dataclass
class InventoryItem:
    """Inventory record tracked for one catalog product.

    Attributes:
        product_id: Catalog product URI (unique).
        quantity:   Units in stock; zero when created from a catalog event.
        item_id:    Database identifier, None until persisted.
    """

    product_id: str
    quantity: int = 0
    item_id: UUID | None = None


@dataclass(frozen=True)
class Integration:
    """The single integration record.

    Attributes:
        catalog_update: Publication date of the last applied catalog event,
                        None before the first successful sync.
    """

    catalog_update: datetime | None = None

    def with_catalog_update(self, value: datetime) -> "Integration":
        return replace(self, catalog_update=value)


# ---------------------------------------------------------------------------
# Collaborator interfaces
# ---------------------------------------------------------------------------


class CapabilityResolver(Protocol):
    """Tells whether the catalog currently advertises its event feed."""

    async def resolve(self) -> Link | None: ...


class EventTransport(Protocol):
    """Fetches an ordered collection of events from a concrete URI.

    Transport and protocol errors must reach the caller.
    """

    async def fetch(self, uri: str) -> list[EventResource]: ...


class IntegrationStore(Protocol):
    async def get_integration(self) -> Integration: ...

    async def save_integration(self, integration: Integration) -> Integration: ...


class InventoryStore(Protocol):
    async def find_by_product_id(self, product_id: str) -> InventoryItem | None: ...

    async def create(self, product_id: str, quantity: int = 0) -> InventoryItem:
        """Create the item, or return the existing one if the id is taken."""
        ...
