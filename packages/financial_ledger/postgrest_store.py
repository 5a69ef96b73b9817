"""Supabase (PostgREST) :class:`~financial_ledger.store.TransactionStore`.

Talks to ``<base_url>/rest/v1`` with ``httpx``. Table and column names match
the ``db`` migrations, so a Supabase project migrated with Alembic works as
is. Row-level security decides what the caller may see; transactions are
also filtered by ``owner_id`` explicitly.

PostgREST reports an unknown table as ``PGRST205`` (schema cache miss) or, on
older versions, as the Postgres SQLSTATE ``42P01``; both become
:class:`RelationMissingError`. Provisioning invokes an edge function
(``/functions/v1/<name>``) that creates the table server-side.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

import httpx

from .errors import RelationMissingError, RowNotFoundError, StoreError
from .logging_setup import get_logger
from .models import Customer, CustomTransaction, Direction, NewTransaction, Plan, Product

logger = get_logger("financial_ledger.postgrest_store")

RELATION_MISSING_CODES = frozenset({"PGRST205", "42P01"})
DEFAULT_PROVISION_FUNCTION = "create-transactions"


def _truncate(text: str, limit: int = 300) -> str:
    t = (text or "").strip()
    if len(t) <= limit:
        return t
    return f"{t[:limit]}…"


def _parse_ts(raw: Any) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return None


def _error_from_response(resp: httpx.Response) -> StoreError:
    code: str | None = None
    message = ""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping):
        code = str(body["code"]) if body.get("code") is not None else None
        message = str(body.get("message") or "")
    if not message:
        message = _truncate(resp.text) or resp.reason_phrase
    message = f"HTTP {resp.status_code}: {message}"
    if code in RELATION_MISSING_CODES:
        return RelationMissingError(message, code=code)
    return StoreError(message, code=code)


class PostgrestLedgerStore:
    """Ledger store over a Supabase REST endpoint.

    Parameters
    ----------
    base_url:
        Project URL, e.g. ``https://xyz.supabase.co``.
    api_key:
        Project API key, sent as ``apikey``.
    access_token:
        Optional user JWT for ``Authorization``; defaults to ``api_key``.
    provision_function:
        Edge function creating the transactions table.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests pass one with a
        ``MockTransport``). A client created here is closed by :meth:`aclose`.
    """

    customers_table = "ledger_customers"
    plans_table = "ledger_plans"
    products_table = "ledger_products"
    transactions_table = "ledger_transactions"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: str | None = None,
        provision_function: str = DEFAULT_PROVISION_FUNCTION,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        base = (base_url or "").strip().rstrip("/")
        if not base:
            raise ValueError("base_url is required")
        self._base = base
        self._provision_function = provision_function
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> PostgrestLedgerStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        try:
            resp = await self._client.request(
                method,
                f"{self._base}{path}",
                params=params,
                json=json,
                headers={**self._headers, **(headers or {})},
            )
        except httpx.HTTPError as exc:
            raise StoreError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code < 200 or resp.status_code >= 300:
            raise _error_from_response(resp)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    async def _select(self, table: str, **params: str) -> list[dict[str, Any]]:
        data = await self._request("GET", f"/rest/v1/{table}", params={"select": "*", **params})
        return list(data or [])

    # ---- reads -------------------------------------------------------------

    async def fetch_customers(self) -> list[Customer]:
        return [
            Customer(
                id=str(r["id"]),
                name=str(r.get("name") or ""),
                created_at=_parse_ts(r.get("created_at")),
                plan_id=str(r["plan_id"]) if r.get("plan_id") else None,
                product_id=str(r["product_id"]) if r.get("product_id") else None,
            )
            for r in await self._select(self.customers_table)
        ]

    async def fetch_plans(self) -> list[Plan]:
        return [
            Plan(id=str(r["id"]), name=str(r.get("name") or ""), price=str(r.get("price") or ""))
            for r in await self._select(self.plans_table)
        ]

    async def fetch_products(self) -> list[Product]:
        return [
            Product(
                id=str(r["id"]), name=str(r.get("name") or ""), price=str(r.get("price") or "")
            )
            for r in await self._select(self.products_table)
        ]

    async def fetch_transactions(self, owner_id: str) -> list[CustomTransaction]:
        rows = await self._select(
            self.transactions_table,
            owner_id=f"eq.{owner_id}",
            order="created_at.desc",
        )
        out: list[CustomTransaction] = []
        for r in rows:
            created_at = _parse_ts(r.get("created_at"))
            if (
                r.get("id") is None
                or created_at is None
                or r.get("direction") not in set(Direction)
            ):
                logger.debug("Skipping malformed transaction row %s", r.get("id"))
                continue
            out.append(
                CustomTransaction(
                    id=str(r["id"]),
                    amount=r.get("amount"),
                    direction=Direction(r["direction"]),
                    description=str(r.get("description") or ""),
                    owner_id=str(r.get("owner_id") or owner_id),
                    created_at=created_at,
                )
            )
        return out

    # ---- writes ------------------------------------------------------------

    async def insert_transaction(self, tx: NewTransaction, *, owner_id: str) -> None:
        await self._request(
            "POST",
            f"/rest/v1/{self.transactions_table}",
            json={
                "amount": tx.amount,
                "direction": tx.direction.value,
                "description": tx.description,
                "owner_id": owner_id,
            },
            headers={"Prefer": "return=minimal"},
        )

    async def update_transaction(
        self, tx_id: str, tx: NewTransaction, *, owner_id: str
    ) -> None:
        rows = await self._request(
            "PATCH",
            f"/rest/v1/{self.transactions_table}",
            params={"id": f"eq.{tx_id}", "owner_id": f"eq.{owner_id}"},
            json={
                "amount": tx.amount,
                "direction": tx.direction.value,
                "description": tx.description,
            },
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RowNotFoundError(f"no transaction with id {tx_id!r}")

    async def delete_transaction(self, tx_id: str, *, owner_id: str) -> None:
        rows = await self._request(
            "DELETE",
            f"/rest/v1/{self.transactions_table}",
            params={"id": f"eq.{tx_id}", "owner_id": f"eq.{owner_id}"},
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RowNotFoundError(f"no transaction with id {tx_id!r}")

    async def provision_transactions(self) -> None:
        result = await self._request("POST", f"/functions/v1/{self._provision_function}", json={})
        logger.info("Provisioning function %s returned %s", self._provision_function, result)


__all__ = ["DEFAULT_PROVISION_FUNCTION", "PostgrestLedgerStore", "RELATION_MISSING_CODES"]
