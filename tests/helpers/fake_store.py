"""In-memory ``TransactionStore`` stand-in with failure injection and call log."""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from financial_ledger.errors import RelationMissingError, RowNotFoundError, StoreError
from financial_ledger.models import (
    Customer,
    CustomTransaction,
    NewTransaction,
    Plan,
    Product,
)

BASE_TIME = datetime(2026, 10, 1, 12, 0, 0, tzinfo=UTC)


@dataclass
class FakeStore:
    customers: list[Customer] = field(default_factory=list)
    plans: list[Plan] = field(default_factory=list)
    products: list[Product] = field(default_factory=list)
    transactions: list[CustomTransaction] = field(default_factory=list)

    # Failure injection
    relation_exists: bool = True
    # Provisioning flips ``relation_exists`` unless this is set.
    provision_creates_relation: bool = True
    provision_error: Exception | None = None
    failing_sources: set[str] = field(default_factory=set)
    transactions_error: Exception | None = None
    insert_errors: list[Exception] = field(default_factory=list)

    calls: list[str] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0

    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def count(self, name: str) -> int:
        return self.calls.count(name)

    async def _read(self, name: str, rows: Sequence):
        self.calls.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so concurrently issued reads overlap.
            await asyncio.sleep(0)
            if name in self.failing_sources:
                raise StoreError(f"{name} unavailable")
            return list(rows)
        finally:
            self.in_flight -= 1

    async def fetch_customers(self) -> list[Customer]:
        return await self._read("fetch_customers", self.customers)

    async def fetch_plans(self) -> list[Plan]:
        return await self._read("fetch_plans", self.plans)

    async def fetch_products(self) -> list[Product]:
        return await self._read("fetch_products", self.products)

    async def fetch_transactions(self, owner_id: str) -> list[CustomTransaction]:
        self.calls.append("fetch_transactions")
        if not self.relation_exists:
            raise RelationMissingError("relation does not exist", code="PGRST205")
        if self.transactions_error is not None:
            raise self.transactions_error
        rows = [t for t in self.transactions if t.owner_id == owner_id]
        return sorted(rows, key=lambda t: t.created_at, reverse=True)

    async def insert_transaction(self, tx: NewTransaction, *, owner_id: str) -> None:
        self.calls.append("insert_transaction")
        if self.insert_errors:
            raise self.insert_errors.pop(0)
        if not self.relation_exists:
            raise RelationMissingError("relation does not exist", code="PGRST205")
        n = next(self._ids)
        self.transactions.append(
            CustomTransaction(
                id=f"tx-{n}",
                amount=tx.amount,
                direction=tx.direction,
                description=tx.description,
                owner_id=owner_id,
                created_at=BASE_TIME + timedelta(hours=n),
            )
        )

    def _index(self, tx_id: str, owner_id: str) -> int:
        for i, t in enumerate(self.transactions):
            if t.id == tx_id and t.owner_id == owner_id:
                return i
        raise RowNotFoundError(f"no transaction with id {tx_id!r}")

    async def update_transaction(
        self, tx_id: str, tx: NewTransaction, *, owner_id: str
    ) -> None:
        self.calls.append("update_transaction")
        if not self.relation_exists:
            raise RelationMissingError("relation does not exist")
        i = self._index(tx_id, owner_id)
        old = self.transactions[i]
        self.transactions[i] = CustomTransaction(
            id=old.id,
            amount=tx.amount,
            direction=tx.direction,
            description=tx.description,
            owner_id=old.owner_id,
            created_at=old.created_at,
        )

    async def delete_transaction(self, tx_id: str, *, owner_id: str) -> None:
        self.calls.append("delete_transaction")
        if not self.relation_exists:
            raise RelationMissingError("relation does not exist")
        del self.transactions[self._index(tx_id, owner_id)]

    async def provision_transactions(self) -> None:
        self.calls.append("provision_transactions")
        if self.provision_error is not None:
            raise self.provision_error
        if self.provision_creates_relation:
            self.relation_exists = True
