from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------
# Catalog: ledger_plans / ledger_products
# ---------------------------


class LedgerPlan(Base):
    __tablename__ = "ledger_plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Locale-formatted price as entered by operators (e.g. "R$ 99,90"). Parsed
    # at read time; rows with unparseable prices are ignored by the ledger.
    price: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=text("now()")
    )


class LedgerProduct(Base):
    __tablename__ = "ledger_products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=text("now()")
    )


# ---------------------------
# Customers
# ---------------------------


class LedgerCustomer(Base):
    __tablename__ = "ledger_customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Plain references (no FK): catalog rows may be removed while customers
    # still point at them; unresolved references simply yield no entry.
    plan_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    product_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, server_default=text("now()")
    )


# ---------------------------
# Manually entered: ledger_transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    direction: Mapped[str] = mapped_column(String, nullable=False)
    # First line is the counterparty label; remaining lines are free detail.
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    owner_id: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=text("now()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=text("now()")
    )

    __table_args__ = (
        CheckConstraint(
            "direction in ('inflow','outflow')",
            name="ck_ledger_tx_direction",
        ),
        Index("ix_ledger_transactions_owner_created", "owner_id", "created_at"),
    )


__all__ = [
    "Base",
    "LedgerCustomer",
    "LedgerPlan",
    "LedgerProduct",
    "LedgerTransaction",
]
