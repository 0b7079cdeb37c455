"""Tests for the Postgres stores, with the asyncpg layer mocked out."""

from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.integration import store
from src.integration.base import Integration
from src.integration.tests.conftest import T1, product_uri
from src.services import database
from src.services.database import build_upsert_query


def _row(product: str, quantity: int = 0) -> dict:
    return {"item_id": uuid4(), "product_id": product_uri(product), "quantity": quantity}


@pytest.fixture
def conn(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Patch database.get_connection to yield a mock connection."""
    connection = MagicMock()
    connection.fetchrow = AsyncMock()

    @asynccontextmanager
    async def fake_connection():
        yield connection

    monkeypatch.setattr(database, "get_connection", fake_connection)
    return connection


class TestBuildUpsertQuery:
    def test_do_update_on_conflict(self) -> None:
        sql = build_upsert_query("catalog_integration", ["id", "catalog_update"], ["id"])
        assert sql == (
            "INSERT INTO catalog_integration (id, catalog_update) VALUES ($1, $2) "
            "ON CONFLICT (id) DO UPDATE SET catalog_update = EXCLUDED.catalog_update, "
            "updated_at = NOW()"
        )

    def test_do_nothing_with_empty_update_columns(self) -> None:
        sql = build_upsert_query(
            "inventory_items", ["product_id", "quantity"], ["product_id"], update_columns=[]
        )
        assert sql.endswith("ON CONFLICT (product_id) DO NOTHING")


class TestPostgresInventoryStore:
    @pytest.mark.asyncio
    async def test_create_inserts_new_item(self, conn: MagicMock) -> None:
        conn.fetchrow.return_value = _row("P1")

        item = await store.PostgresInventoryStore().create(product_uri("P1"))

        assert item.product_id == product_uri("P1")
        assert item.quantity == 0
        sql, *args = conn.fetchrow.call_args.args
        assert "ON CONFLICT (product_id) DO NOTHING" in sql
        assert args == [product_uri("P1"), 0]

    @pytest.mark.asyncio
    async def test_create_conflict_returns_existing_row(self, conn: MagicMock) -> None:
        existing = _row("P1", quantity=4)
        conn.fetchrow.side_effect = [None, existing]

        item = await store.PostgresInventoryStore().create(product_uri("P1"))

        assert item.item_id == existing["item_id"]
        assert item.quantity == 4
        assert conn.fetchrow.await_count == 2

    @pytest.mark.asyncio
    async def test_find_by_product_id(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fetchrow = AsyncMock(side_effect=[_row("P1"), None])
        monkeypatch.setattr(database, "fetchrow", fetchrow)
        inventory = store.PostgresInventoryStore()

        found = await inventory.find_by_product_id(product_uri("P1"))
        missing = await inventory.find_by_product_id(product_uri("P2"))

        assert found is not None and found.product_id == product_uri("P1")
        assert missing is None


class TestPostgresIntegrationStore:
    @pytest.mark.asyncio
    async def test_absent_row_means_no_checkpoint(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(database, "fetchval", AsyncMock(return_value=None))

        integration = await store.PostgresIntegrationStore().get_integration()

        assert integration == Integration()

    @pytest.mark.asyncio
    async def test_save_upserts_single_row(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fetchval = AsyncMock(return_value=T1)
        monkeypatch.setattr(database, "fetchval", fetchval)

        saved = await store.PostgresIntegrationStore().save_integration(Integration(T1))

        assert saved.catalog_update == T1
        sql, *args = fetchval.call_args.args
        assert sql.startswith("INSERT INTO catalog_integration")
        assert "RETURNING catalog_update" in sql
        assert args == [1, T1]


@pytest.mark.asyncio
async def test_ensure_schema_creates_both_tables(monkeypatch: pytest.MonkeyPatch) -> None:
    execute = AsyncMock(return_value="CREATE TABLE")
    monkeypatch.setattr(database, "execute", execute)

    await store.ensure_schema()

    (sql,) = execute.call_args.args
    assert "catalog_integration" in sql
    assert "product_id TEXT NOT NULL UNIQUE" in sql
