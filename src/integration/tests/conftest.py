"""Shared fixtures and in-memory collaborators for catalog integration tests."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from src.integration.applier import InventoryApplier
from src.integration.base import (
    EventResource,
    Integration,
    InventoryItem,
    Link,
    Product,
    ProductAdded,
)
from src.integration.synchronizer import CatalogSynchronizer

CATALOG_ROOT = "http://catalog.test"
EVENTS_TEMPLATE = "http://catalog.test/events{?type,since}"

T1 = datetime(2024, 1, 1, 0, 0, 0)
T2 = datetime(2024, 1, 1, 0, 5, 0)
T3 = datetime(2024, 1, 1, 0, 10, 0)


def product_uri(product: str) -> str:
    return f"{CATALOG_ROOT}/products/{product}"


def make_event(
    product: str | None,
    published: datetime | None,
    description: str | None = None,
) -> EventResource:
    """Build a productAdded event resource as the catalog would return it."""
    links = {"self": Link(href=f"{CATALOG_ROOT}/events/{uuid4()}")}
    if product is not None:
        links["product"] = Link(href=product_uri(product))
    return EventResource(
        content=ProductAdded(
            product=Product(description=description or f"Product {product}", price=Decimal("9.99")),
            publication_date=published,
        ),
        links=links,
    )


def hal_event(product: str, published: str, description: str = "Espresso cup") -> dict:
    """A productAdded event in HAL+JSON form."""
    return {
        "product": {"description": description, "price": 9.99},
        "publicationDate": published,
        "_links": {
            "self": {"href": f"{CATALOG_ROOT}/events/1"},
            "product": {"href": product_uri(product)},
        },
    }


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class InMemoryInventoryStore:
    """Inventory store keyed by product id; can be told to fail for some products."""

    def __init__(self) -> None:
        self.items: dict[str, InventoryItem] = {}
        self.fail_on: set[str] = set()
        self.create_calls = 0

    async def find_by_product_id(self, product_id: str) -> InventoryItem | None:
        return self.items.get(product_id)

    async def create(self, product_id: str, quantity: int = 0) -> InventoryItem:
        self.create_calls += 1
        if product_id in self.fail_on:
            raise ConnectionError(f"store unavailable for {product_id}")
        return self.items.setdefault(
            product_id,
            InventoryItem(product_id=product_id, quantity=quantity, item_id=uuid4()),
        )

    async def list_items(self, offset: int = 0, limit: int = 50) -> list[InventoryItem]:
        return list(self.items.values())[offset:offset + limit]

    async def count(self) -> int:
        return len(self.items)


class InMemoryIntegrationStore:
    """Single checkpoint record that remembers every committed value."""

    def __init__(self, catalog_update: datetime | None = None) -> None:
        self.integration = Integration(catalog_update=catalog_update)
        self.history: list[datetime | None] = []

    @property
    def checkpoint(self) -> datetime | None:
        return self.integration.catalog_update

    async def get_integration(self) -> Integration:
        return self.integration

    async def save_integration(self, integration: Integration) -> Integration:
        self.integration = integration
        self.history.append(integration.catalog_update)
        return integration


class FakeResolver:
    def __init__(self, link: Link | None) -> None:
        self.link = link
        self.calls = 0

    async def resolve(self) -> Link | None:
        self.calls += 1
        return self.link


class FakeTransport:
    """Returns queued batches (or raises queued exceptions) and records URIs."""

    def __init__(self, *batches: list[EventResource] | Exception) -> None:
        self.batches = list(batches)
        self.uris: list[str] = []

    async def fetch(self, uri: str) -> list[EventResource]:
        self.uris.append(uri)
        batch = self.batches.pop(0) if self.batches else []
        if isinstance(batch, Exception):
            raise batch
        return list(batch)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def events_link() -> Link:
    return Link(href=EVENTS_TEMPLATE, templated=True)


@pytest.fixture
def inventory_store() -> InMemoryInventoryStore:
    return InMemoryInventoryStore()


@pytest.fixture
def integration_store() -> InMemoryIntegrationStore:
    return InMemoryIntegrationStore()


@pytest.fixture
def applier(inventory_store: InMemoryInventoryStore) -> InventoryApplier:
    return InventoryApplier(inventory_store)


@pytest.fixture
def make_synchronizer(events_link, integration_store, applier):
    """Factory: synchronizer over the in-memory stores and a given transport."""

    def _make(
        transport: FakeTransport, link: Link | None = events_link
    ) -> CatalogSynchronizer:
        return CatalogSynchronizer(
            resolver=FakeResolver(link),
            transport=transport,
            integrations=integration_store,
            applier=applier,
        )

    return _make

