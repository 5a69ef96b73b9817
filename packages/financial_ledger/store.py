"""Store interface consumed by the ledger.

A store exposes read access to customers, plans and products, and full
create/update/delete access to manually entered transactions. The
transactions relation may not exist yet on first use; adapters signal that
with :class:`~financial_ledger.errors.RelationMissingError` and offer
:meth:`TransactionStore.provision_transactions` to create it.

Adapters:

- :class:`financial_ledger.sql_store.SqlLedgerStore` (SQLAlchemy)
- :class:`financial_ledger.postgrest_store.PostgrestLedgerStore` (Supabase)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from .errors import RelationMissingError
from .logging_setup import get_logger
from .models import Customer, CustomTransaction, NewTransaction, Plan, Product

logger = get_logger("financial_ledger.store")


class TransactionStore(Protocol):
    async def fetch_customers(self) -> Sequence[Customer]: ...

    async def fetch_plans(self) -> Sequence[Plan]: ...

    async def fetch_products(self) -> Sequence[Product]: ...

    async def fetch_transactions(self, owner_id: str) -> Sequence[CustomTransaction]:
        """Return the owner's transactions, newest ``created_at`` first."""
        ...

    async def insert_transaction(self, tx: NewTransaction, *, owner_id: str) -> None: ...

    async def update_transaction(
        self, tx_id: str, tx: NewTransaction, *, owner_id: str
    ) -> None:
        """Raise ``RowNotFoundError`` when ``owner_id`` owns no row with ``tx_id``."""
        ...

    async def delete_transaction(self, tx_id: str, *, owner_id: str) -> None:
        """Raise ``RowNotFoundError`` when ``owner_id`` owns no row with ``tx_id``."""
        ...

    async def provision_transactions(self) -> None:
        """Create the transactions relation (idempotent)."""
        ...


async def fetch_custom_transactions(
    store: TransactionStore, owner_id: str
) -> Sequence[CustomTransaction] | None:
    """Read the owner's custom transactions without failing the caller.

    Returns ``None`` when the relation does not exist yet, which is distinct
    from an existing relation with zero rows. Any other failure, including a
    row the adapter cannot map, is logged and read as an empty result so
    derived totals stay available.
    """

    try:
        return await store.fetch_transactions(owner_id)
    except RelationMissingError:
        logger.info("Transactions relation not created yet; continuing without custom entries")
        return None
    except Exception as exc:
        logger.warning(
            "Could not read custom transactions (%s); continuing without them",
            exc,
            exc_info=True,
        )
        return []


__all__ = ["TransactionStore", "fetch_custom_transactions"]
