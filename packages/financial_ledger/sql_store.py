# ruff: noqa: I001
"""SQLAlchemy-backed :class:`~financial_ledger.store.TransactionStore`.

Reads and writes go through the shared ``db`` library (``db.client`` session
helpers and ``db.models.ledger`` ORM models). Sessions are synchronous; each
operation runs in a worker thread so the ledger's event loop stays free while
the three source reads are in flight.

Driver errors are translated into :mod:`financial_ledger.errors`:

- missing table (SQLite "no such table", Postgres SQLSTATE ``42P01``) ->
  :class:`RelationMissingError`
- update/delete matching no row of the owner -> :class:`RowNotFoundError`
- anything else -> :class:`StoreError`
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import Base
from db.client import get_engine, session_scope
from db.models.ledger import LedgerCustomer, LedgerPlan, LedgerProduct, LedgerTransaction

from .errors import RelationMissingError, RowNotFoundError, StoreError
from .logging_setup import get_logger
from .models import Customer, CustomTransaction, Direction, NewTransaction, Plan, Product

logger = get_logger("financial_ledger.sql_store")

T = TypeVar("T")

UNDEFINED_TABLE_SQLSTATE = "42P01"


def _translate(exc: SQLAlchemyError) -> StoreError:
    orig = getattr(exc, "orig", None)
    # psycopg2 exposes ``pgcode``; psycopg 3 exposes ``sqlstate``.
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    message = str(orig if orig is not None else exc)
    if code == UNDEFINED_TABLE_SQLSTATE or "no such table" in message.lower():
        return RelationMissingError(message, code=code or UNDEFINED_TABLE_SQLSTATE)
    return StoreError(message, code=code)


def _to_decimal_2(amount: float) -> Decimal:
    return Decimal(str(amount)).quantize(Decimal("0.01"))


class SqlLedgerStore:
    """Ledger store over the workspace database.

    ``database_url`` overrides ``DATABASE_URL`` (see :mod:`db.client`).
    """

    def __init__(self, *, database_url: str | None = None) -> None:
        self._database_url = database_url

    async def _call(self, fn: Callable[[Session], T]) -> T:
        def _run() -> T:
            with session_scope(database_url=self._database_url) as session:
                return fn(session)

        try:
            return await asyncio.to_thread(_run)
        except SQLAlchemyError as exc:
            raise _translate(exc) from exc

    # ---- reads -------------------------------------------------------------

    async def fetch_customers(self) -> list[Customer]:
        def _q(session: Session) -> list[Customer]:
            rows = session.scalars(select(LedgerCustomer)).all()
            return [
                Customer(
                    id=r.id,
                    name=r.name,
                    created_at=r.created_at,
                    plan_id=r.plan_id,
                    product_id=r.product_id,
                )
                for r in rows
            ]

        return await self._call(_q)

    async def fetch_plans(self) -> list[Plan]:
        def _q(session: Session) -> list[Plan]:
            rows = session.scalars(select(LedgerPlan)).all()
            return [Plan(id=r.id, name=r.name, price=r.price) for r in rows]

        return await self._call(_q)

    async def fetch_products(self) -> list[Product]:
        def _q(session: Session) -> list[Product]:
            rows = session.scalars(select(LedgerProduct)).all()
            return [Product(id=r.id, name=r.name, price=r.price) for r in rows]

        return await self._call(_q)

    async def fetch_transactions(self, owner_id: str) -> list[CustomTransaction]:
        def _q(session: Session) -> list[CustomTransaction]:
            stmt = (
                select(LedgerTransaction)
                .where(LedgerTransaction.owner_id == owner_id)
                .order_by(LedgerTransaction.created_at.desc())
            )
            return [
                CustomTransaction(
                    id=r.id,
                    amount=r.amount,
                    direction=Direction(r.direction),
                    description=r.description or "",
                    owner_id=r.owner_id,
                    created_at=r.created_at,
                )
                for r in session.scalars(stmt).all()
            ]

        return await self._call(_q)

    # ---- writes ------------------------------------------------------------

    async def insert_transaction(self, tx: NewTransaction, *, owner_id: str) -> None:
        def _q(session: Session) -> None:
            session.add(
                LedgerTransaction(
                    amount=_to_decimal_2(tx.amount),
                    direction=tx.direction.value,
                    description=tx.description,
                    owner_id=owner_id,
                )
            )
            session.flush()

        await self._call(_q)

    async def update_transaction(
        self, tx_id: str, tx: NewTransaction, *, owner_id: str
    ) -> None:
        def _q(session: Session) -> int:
            result = session.execute(
                update(LedgerTransaction)
                .where(LedgerTransaction.id == tx_id, LedgerTransaction.owner_id == owner_id)
                .values(
                    amount=_to_decimal_2(tx.amount),
                    direction=tx.direction.value,
                    description=tx.description,
                    updated_at=datetime.now(UTC),
                )
            )
            return result.rowcount

        if await self._call(_q) == 0:
            raise RowNotFoundError(f"no transaction with id {tx_id!r}")

    async def delete_transaction(self, tx_id: str, *, owner_id: str) -> None:
        def _q(session: Session) -> int:
            result = session.execute(
                delete(LedgerTransaction).where(
                    LedgerTransaction.id == tx_id, LedgerTransaction.owner_id == owner_id
                )
            )
            return result.rowcount

        if await self._call(_q) == 0:
            raise RowNotFoundError(f"no transaction with id {tx_id!r}")

    async def provision_transactions(self) -> None:
        """Create ``ledger_transactions`` (and its index) if absent.

        Mirrors Alembic revision ``0002_ledger_transactions``.
        """

        def _create() -> None:
            engine = get_engine(database_url=self._database_url)
            Base.metadata.create_all(
                bind=engine, tables=[LedgerTransaction.__table__], checkfirst=True
            )

        try:
            await asyncio.to_thread(_create)
        except SQLAlchemyError as exc:
            raise _translate(exc) from exc
        logger.info("Provisioned table %s", LedgerTransaction.__tablename__)


__all__ = ["SqlLedgerStore"]
