"""Data models for ``financial_ledger``.

Source records (:class:`Customer`, :class:`Plan`, :class:`Product`,
:class:`CustomTransaction`) mirror rows returned by a store and are treated as
read-only. :class:`LedgerEntry` and :class:`LedgerSnapshot` are derived,
in-memory only, and rebuilt from scratch on every load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"
# Largest magnitude a NUMERIC(14, 2) column holds.
MAX_AMOUNT = 999_999_999_999.99


class Direction(StrEnum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"


class DetailKind(StrEnum):
    PLAN = "Plan"
    PRODUCT = "Product"
    CUSTOM = "Custom"


def normalize_timestamp(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime truncated to whole seconds.

    Naive datetimes (SQLite round-trips) are taken to be UTC.
    """

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).replace(microsecond=0)


# ---------------------------------------------------------------------------
# Source records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Plan:
    id: str
    name: str
    # Locale-formatted, e.g. "R$ 99,90"
    price: str


@dataclass(frozen=True, slots=True)
class Product:
    id: str
    name: str
    price: str


@dataclass(frozen=True, slots=True)
class Customer:
    id: str
    name: str
    created_at: datetime | None = None
    plan_id: str | None = None
    product_id: str | None = None


@dataclass(frozen=True, slots=True)
class CustomTransaction:
    """A manually entered transaction as persisted by the store.

    ``amount`` is kept as the store surfaced it (numeric column, JSON number
    or string) and parsed when the ledger is built.
    """

    id: str
    amount: float | Decimal | str | None
    direction: Direction
    description: str
    owner_id: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Write input
# ---------------------------------------------------------------------------


class NewTransaction(BaseModel):
    """Payload for creating or editing a custom transaction."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    amount: float = Field(ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    direction: Direction
    description: str = ""


# ---------------------------------------------------------------------------
# Derived ledger
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """One row of the unified ledger.

    Attributes
    ----------
    id:
        ``"inflow-<customer id>"`` / ``"outflow-<customer id>"`` for derived
        entries; the persisted transaction id for custom ones.
    counterparty:
        Customer name, or the first description line of a custom entry.
    timestamp:
        Aware UTC datetime at second granularity; the sort key.
    detail_kind, detail:
        What the amount refers to (plan/product name, or custom detail text).
    is_custom:
        Only custom entries may be edited or deleted.
    description:
        Raw description of a custom entry, kept so edits start from the
        original text.
    """

    id: str
    counterparty: str
    direction: Direction
    amount: float
    timestamp: datetime
    detail_kind: DetailKind
    detail: str
    is_custom: bool = False
    description: str | None = None

    def display_timestamp(
        self, fmt: str = DEFAULT_TIMESTAMP_FORMAT, *, tz: tzinfo | None = None
    ) -> str:
        return self.timestamp.astimezone(tz or UTC).strftime(fmt)


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    total_inflow: float = 0.0
    total_outflow: float = 0.0
    net_profit: float = 0.0
    entries: tuple[LedgerEntry, ...] = ()


@dataclass(frozen=True, slots=True)
class LedgerState:
    """What subscribers of :class:`~financial_ledger.ledger.LedgerService` see."""

    snapshot: LedgerSnapshot = field(default_factory=LedgerSnapshot)
    loading: bool = True
    error: str | None = None

    @property
    def total_inflow(self) -> float:
        return self.snapshot.total_inflow

    @property
    def total_outflow(self) -> float:
        return self.snapshot.total_outflow

    @property
    def net_profit(self) -> float:
        return self.snapshot.net_profit

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        return self.snapshot.entries


__all__ = [
    "DEFAULT_TIMESTAMP_FORMAT",
    "MAX_AMOUNT",
    "Customer",
    "CustomTransaction",
    "DetailKind",
    "Direction",
    "LedgerEntry",
    "LedgerSnapshot",
    "LedgerState",
    "NewTransaction",
    "Plan",
    "Product",
    "normalize_timestamp",
]
