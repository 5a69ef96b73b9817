from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import pytest
from db.client import session_scope
from db.models.ledger import LedgerTransaction

from financial_ledger.errors import RelationMissingError, RowNotFoundError
from financial_ledger.ledger import LedgerService
from financial_ledger.models import Direction, NewTransaction
from financial_ledger.sql_store import SqlLedgerStore
from financial_ledger.store import fetch_custom_transactions
from tests.helpers.db import (
    assert_transactions_schema_in_sync,
    bootstrap_sqlite_db,
    seed_catalog,
    table_exists,
)

T0 = datetime(2026, 10, 1, 9, 0, 0, tzinfo=UTC)


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    seed_catalog(
        database_url=url,
        plans=[("p1", "Gold", "R$ 99,90"), ("p2", "Broken", "R$ abc")],
        products=[("k1", "Kit", "R$ 30,00")],
        customers=[
            ("c1", "Alice", "p1", "k1", T0),
            ("c2", "Bruno", "p2", None, T0),
            ("c3", "Carla", None, None, None),
        ],
    )
    return url


def test_reads_map_rows_to_models(db_url: str):
    store = SqlLedgerStore(database_url=db_url)

    async def _main():
        return await asyncio.gather(
            store.fetch_customers(), store.fetch_plans(), store.fetch_products()
        )

    customers, plans, products = asyncio.run(_main())

    by_id = {c.id: c for c in customers}
    assert by_id["c1"].plan_id == "p1"
    assert by_id["c1"].product_id == "k1"
    assert by_id["c3"].plan_id is None and by_id["c3"].product_id is None
    assert {p.id: p.price for p in plans} == {"p1": "R$ 99,90", "p2": "R$ abc"}
    assert [p.name for p in products] == ["Kit"]


def test_missing_transactions_table_is_reported_as_relation_missing(db_url: str):
    store = SqlLedgerStore(database_url=db_url)
    tx = NewTransaction(amount=1.0, direction=Direction.INFLOW)

    with pytest.raises(RelationMissingError):
        asyncio.run(store.fetch_transactions("u1"))
    with pytest.raises(RelationMissingError):
        asyncio.run(store.insert_transaction(tx, owner_id="u1"))
    assert asyncio.run(fetch_custom_transactions(store, "u1")) is None


def test_provisioning_creates_the_transactions_table(db_url: str):
    store = SqlLedgerStore(database_url=db_url)
    assert not table_exists(db_url, "ledger_transactions")

    asyncio.run(store.provision_transactions())
    # Idempotent
    asyncio.run(store.provision_transactions())

    assert table_exists(db_url, "ledger_transactions")
    assert_transactions_schema_in_sync(db_url)
    assert asyncio.run(fetch_custom_transactions(store, "u1")) == []


def test_transactions_are_owner_scoped_and_newest_first(db_url: str):
    store = SqlLedgerStore(database_url=db_url)
    asyncio.run(store.provision_transactions())
    with session_scope(database_url=db_url) as session:
        for tx_id, owner, day in [("a", "u1", 1), ("b", "u1", 3), ("c", "u2", 2), ("d", "u1", 2)]:
            session.add(
                LedgerTransaction(
                    id=tx_id,
                    amount=Decimal("1.00"),
                    direction="inflow",
                    description="x",
                    owner_id=owner,
                    created_at=datetime(2026, 10, day, tzinfo=UTC),
                )
            )

    rows = asyncio.run(store.fetch_transactions("u1"))

    assert [r.id for r in rows] == ["b", "d", "a"]
    assert all(r.direction is Direction.INFLOW for r in rows)


def test_update_and_delete_unknown_ids_raise_row_not_found(db_url: str):
    store = SqlLedgerStore(database_url=db_url)
    asyncio.run(store.provision_transactions())
    tx = NewTransaction(amount=1.0, direction=Direction.INFLOW)

    with pytest.raises(RowNotFoundError):
        asyncio.run(store.update_transaction("inflow-c1", tx, owner_id="u1"))
    with pytest.raises(RowNotFoundError):
        asyncio.run(store.delete_transaction("inflow-c1", owner_id="u1"))


def test_service_end_to_end_against_sqlite(db_url: str):
    store = SqlLedgerStore(database_url=db_url)
    service = LedgerService(store, owner_id="u1")

    state = asyncio.run(service.load())
    assert state.error is None
    assert state.total_inflow == pytest.approx(99.9)
    assert state.total_outflow == pytest.approx(30.0)

    # First write provisions the table on demand.
    tx = NewTransaction(amount=12.5, direction=Direction.INFLOW, description="Dana\ntip\ncash")
    state = asyncio.run(service.create_transaction(tx))
    assert table_exists(db_url, "ledger_transactions")
    (custom,) = [e for e in state.entries if e.is_custom]
    assert custom.amount == pytest.approx(12.5)
    assert (custom.counterparty, custom.detail) == ("Dana", "tip cash")
    assert state.net_profit == pytest.approx(99.9 + 12.5 - 30.0)

    edited = NewTransaction(amount=20.0, direction=Direction.OUTFLOW, description="Dana")
    state = asyncio.run(service.edit_transaction(custom.id, edited))
    (custom,) = [e for e in state.entries if e.is_custom]
    assert custom.direction is Direction.OUTFLOW
    assert custom.detail == "No details"
    assert state.total_outflow == pytest.approx(50.0)

    state = asyncio.run(service.delete_transaction(custom.id))
    assert not any(e.is_custom for e in state.entries)
    assert state.net_profit == pytest.approx(69.9)

    with pytest.raises(RowNotFoundError):
        asyncio.run(service.delete_transaction("outflow-c1"))


def test_update_and_delete_only_touch_the_owners_rows(db_url: str):
    alice = LedgerService(SqlLedgerStore(database_url=db_url), owner_id="alice")
    mallory = LedgerService(SqlLedgerStore(database_url=db_url), owner_id="mallory")
    state = asyncio.run(
        alice.create_transaction(NewTransaction(amount=10.0, direction=Direction.INFLOW))
    )
    (custom,) = [e for e in state.entries if e.is_custom]
    tx = NewTransaction(amount=999.0, direction=Direction.OUTFLOW)

    with pytest.raises(RowNotFoundError):
        asyncio.run(mallory.edit_transaction(custom.id, tx))
    with pytest.raises(RowNotFoundError):
        asyncio.run(mallory.delete_transaction(custom.id))

    (kept,) = [e for e in asyncio.run(alice.load()).entries if e.is_custom]
    assert (kept.id, kept.direction, kept.amount) == (custom.id, Direction.INFLOW, 10.0)
