"""Turn source records into :class:`~financial_ledger.models.LedgerEntry` rows.

Two producers feed the ledger:

- :func:`build_derived_entries` – one inflow per customer with a resolvable
  plan and one outflow per customer with a resolvable product.
- :func:`build_custom_entries` – one entry per manually entered transaction.

Records whose amount does not parse are dropped (debug-logged only).
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime

from .logging_setup import get_logger
from .models import (
    Customer,
    CustomTransaction,
    DetailKind,
    Direction,
    LedgerEntry,
    Plan,
    Product,
    normalize_timestamp,
)
from .money import parse_amount, parse_money

logger = get_logger("financial_ledger.builders")

DEFAULT_COUNTERPARTY = "Custom transaction"
DEFAULT_DETAIL = "No details"


def derived_entry_id(direction: Direction, customer_id: str) -> str:
    """Synthesized id of a derived entry; never a real store key."""

    return f"{direction.value}-{customer_id}"


def split_description(description: str | None) -> tuple[str, str]:
    """Split a free-text description into ``(counterparty, detail)``.

    Only ``\\n`` and ``\\r\\n`` separate lines; other control characters
    stay in the text.

    >>> split_description("Alice\\nmonthly fee\\nvia card")
    ('Alice', 'monthly fee via card')
    """

    lines = re.split(r"\r?\n", description or "")
    counterparty = lines[0] if lines else ""
    detail = " ".join(lines[1:])
    return counterparty or DEFAULT_COUNTERPARTY, detail or DEFAULT_DETAIL


def build_derived_entries(
    customers: Iterable[Customer],
    plans: Iterable[Plan],
    products: Iterable[Product],
    *,
    now: datetime | None = None,
) -> list[LedgerEntry]:
    """Emit plan inflows and product outflows, in customer order.

    Plans and products are resolved by id (not by name, which may collide).
    Customers without a creation time are stamped with ``now``.
    """

    plans_by_id: Mapping[str, Plan] = {p.id: p for p in plans}
    products_by_id: Mapping[str, Product] = {p.id: p for p in products}
    fallback = normalize_timestamp(now or datetime.now(UTC))

    entries: list[LedgerEntry] = []
    for customer in customers:
        ts = normalize_timestamp(customer.created_at) if customer.created_at else fallback

        plan = plans_by_id.get(customer.plan_id) if customer.plan_id else None
        if plan is not None:
            amount = parse_money(plan.price)
            if math.isnan(amount):
                logger.debug(
                    "Skipping plan %s for customer %s: bad price %r",
                    plan.id,
                    customer.id,
                    plan.price,
                )
            else:
                entries.append(
                    LedgerEntry(
                        id=derived_entry_id(Direction.INFLOW, customer.id),
                        counterparty=customer.name,
                        direction=Direction.INFLOW,
                        amount=amount,
                        timestamp=ts,
                        detail_kind=DetailKind.PLAN,
                        detail=plan.name,
                    )
                )

        product = products_by_id.get(customer.product_id) if customer.product_id else None
        if product is not None:
            amount = parse_money(product.price)
            if math.isnan(amount):
                logger.debug(
                    "Skipping product %s for customer %s: bad price %r",
                    product.id,
                    customer.id,
                    product.price,
                )
            else:
                entries.append(
                    LedgerEntry(
                        id=derived_entry_id(Direction.OUTFLOW, customer.id),
                        counterparty=customer.name,
                        direction=Direction.OUTFLOW,
                        amount=amount,
                        timestamp=ts,
                        detail_kind=DetailKind.PRODUCT,
                        detail=product.name,
                    )
                )
    return entries


def build_custom_entries(transactions: Iterable[CustomTransaction]) -> list[LedgerEntry]:
    """Convert persisted transactions, preserving store order."""

    entries: list[LedgerEntry] = []
    for tx in transactions:
        amount = parse_amount(tx.amount)
        if math.isnan(amount):
            logger.debug("Skipping custom transaction %s: bad amount %r", tx.id, tx.amount)
            continue
        counterparty, detail = split_description(tx.description)
        entries.append(
            LedgerEntry(
                id=tx.id,
                counterparty=counterparty,
                direction=Direction(tx.direction),
                amount=amount,
                timestamp=normalize_timestamp(tx.created_at),
                detail_kind=DetailKind.CUSTOM,
                detail=detail,
                is_custom=True,
                description=tx.description,
            )
        )
    return entries


__all__ = [
    "DEFAULT_COUNTERPARTY",
    "DEFAULT_DETAIL",
    "build_custom_entries",
    "build_derived_entries",
    "derived_entry_id",
    "split_description",
]
