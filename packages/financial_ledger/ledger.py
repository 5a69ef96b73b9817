"""Unified ledger: aggregation plus the stateful service around it.

:func:`aggregate` is pure: totals per direction, net profit, and the merged
entry list sorted newest first. :class:`LedgerService` owns the last loaded
:class:`~financial_ledger.models.LedgerState`, re-runs the full
fetch-parse-merge-sort cycle on every :meth:`~LedgerService.load`, and
reloads after every successful mutation. Nothing is patched incrementally.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import datetime
from typing import TypeAlias

from .builders import build_custom_entries, build_derived_entries
from .errors import NotAuthenticatedError, SourceFetchError
from .logging_setup import get_logger
from .models import (
    Customer,
    Direction,
    LedgerEntry,
    LedgerSnapshot,
    LedgerState,
    NewTransaction,
    Plan,
    Product,
)
from .store import TransactionStore, fetch_custom_transactions
from .writer import SelfHealingWriter

logger = get_logger("financial_ledger.ledger")

LOAD_ERROR_MESSAGE = "Failed to load financial data"

LedgerListener: TypeAlias = Callable[[LedgerState], None]


def aggregate(
    derived: Iterable[LedgerEntry], custom: Iterable[LedgerEntry]
) -> LedgerSnapshot:
    """Merge derived and custom entries into one snapshot.

    Entries are ordered by descending timestamp. ``sorted`` is stable with
    ``reverse=True`` as well, so entries sharing a timestamp keep their
    relative order (derived before custom, then input order).
    """

    merged = [*derived, *custom]
    total_inflow = 0.0
    total_outflow = 0.0
    for entry in merged:
        if entry.direction == Direction.INFLOW:
            total_inflow += entry.amount
        else:
            total_outflow += entry.amount
    return LedgerSnapshot(
        total_inflow=total_inflow,
        total_outflow=total_outflow,
        net_profit=total_inflow - total_outflow,
        entries=tuple(sorted(merged, key=lambda e: e.timestamp, reverse=True)),
    )


class LedgerService:
    """Keep an owner's ledger current against a :class:`TransactionStore`.

    ``owner_id`` comes from the host's identity provider; without one,
    :meth:`load` is a no-op and create/edit/delete raise
    :class:`NotAuthenticatedError`.
    Listeners registered with :meth:`subscribe` receive every state change.

    Concurrent mutations from several callers are not serialized here: each
    call awaits its own reload, so a single caller always reads its writes,
    but interleaved callers race on the final state.
    """

    def __init__(
        self,
        store: TransactionStore,
        *,
        owner_id: str | None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._owner_id = owner_id
        self._clock = clock
        self._writer = SelfHealingWriter(store)
        self._listeners: list[LedgerListener] = []
        self._state = LedgerState()

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def writer(self) -> SelfHealingWriter:
        return self._writer

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set_state(self, state: LedgerState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    async def _fetch_sources(
        self,
    ) -> tuple[Sequence[Customer], Sequence[Plan], Sequence[Product]]:
        # Wait for all three even when one fails so no read is left in flight.
        results = await asyncio.gather(
            self._store.fetch_customers(),
            self._store.fetch_plans(),
            self._store.fetch_products(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise SourceFetchError(f"source fetch failed: {result}") from result
        customers, plans, products = results
        return customers, plans, products

    async def load(self) -> LedgerState:
        """Fetch every source, rebuild the ledger and publish it.

        A failing customers/plans/products read keeps the previous snapshot
        and sets ``error``; it is logged, not raised. A failing or missing
        transactions relation only means "no custom entries".
        """

        if not self._owner_id:
            return self._state

        self._set_state(replace(self._state, loading=True, error=None))
        logger.info("Loading ledger for owner %s", self._owner_id)
        try:
            customers, plans, products = await self._fetch_sources()
            custom_rows = await fetch_custom_transactions(self._store, self._owner_id)
            now = self._clock() if self._clock else None
            derived = build_derived_entries(customers, plans, products, now=now)
            custom = build_custom_entries(custom_rows or ())
            snapshot = aggregate(derived, custom)
        except Exception:
            logger.exception("Failed to load ledger")
            self._set_state(replace(self._state, loading=False, error=LOAD_ERROR_MESSAGE))
            return self._state

        logger.info(
            "Ledger loaded: customers=%d plans=%d products=%d custom=%d entries=%d",
            len(customers),
            len(plans),
            len(products),
            len(custom_rows or ()),
            len(snapshot.entries),
        )
        self._set_state(LedgerState(snapshot=snapshot, loading=False, error=None))
        return self._state

    def _require_owner(self) -> str:
        if not self._owner_id:
            raise NotAuthenticatedError("an authenticated owner is required to write transactions")
        return self._owner_id

    async def create_transaction(self, tx: NewTransaction) -> LedgerState:
        """Persist a new custom transaction, then reload."""

        try:
            owner_id = self._require_owner()
            await self._writer.write(tx, owner_id=owner_id)
        except Exception:
            logger.exception("Failed to save transaction")
            raise
        return await self.load()

    async def edit_transaction(self, tx_id: str, tx: NewTransaction) -> LedgerState:
        """Update a custom transaction by id, then reload.

        Derived entry ids (``"inflow-..."``/``"outflow-..."``) and rows owned
        by someone else match nothing and fail with ``RowNotFoundError``.
        """

        try:
            owner_id = self._require_owner()
            await self._store.update_transaction(tx_id, tx, owner_id=owner_id)
        except Exception:
            logger.exception("Failed to edit transaction %s", tx_id)
            raise
        return await self.load()

    async def delete_transaction(self, tx_id: str) -> LedgerState:
        """Delete one of the owner's custom transactions by id, then reload."""

        try:
            owner_id = self._require_owner()
            await self._store.delete_transaction(tx_id, owner_id=owner_id)
        except Exception:
            logger.exception("Failed to delete transaction %s", tx_id)
            raise
        return await self.load()


__all__ = ["LOAD_ERROR_MESSAGE", "LedgerListener", "LedgerService", "aggregate"]
