# ruff: noqa: I001
"""CLI for the ``financial_ledger`` package.

Typer-based console interface over :class:`~financial_ledger.ledger.LedgerService`.
Environment variables (``DATABASE_URL``, ``SUPABASE_URL``/``SUPABASE_KEY``,
``LEDGER_OWNER_ID``...) are loaded from a local ``.env`` using
``python-dotenv`` in the root callback; options override them.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import replace
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import LedgerSettings
from .errors import LedgerError
from .ledger import LedgerService
from .logging_setup import configure_logging
from .models import Direction, LedgerState, NewTransaction
from .store import TransactionStore

T = TypeVar("T")

app = typer.Typer(
    name="financial-ledger",
    no_args_is_help=True,
    add_completion=False,
    help="Unified ledger of plan inflows, product outflows and manual transactions.",
)
console = Console()
err_console = Console(stderr=True)


# ---- Small module-level helpers used by CLI commands -------------------------


def _settings(ctx: typer.Context) -> LedgerSettings:
    settings = ctx.obj
    assert isinstance(settings, LedgerSettings)  # set by the root callback
    return settings


def _build_store(settings: LedgerSettings) -> TransactionStore:
    if settings.backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise typer.BadParameter("SUPABASE_URL and SUPABASE_KEY are required for supabase")
        from .postgrest_store import PostgrestLedgerStore

        return PostgrestLedgerStore(
            settings.supabase_url,
            settings.supabase_key,
            provision_function=settings.provision_function,
        )
    from .sql_store import SqlLedgerStore

    return SqlLedgerStore(database_url=settings.database_url)


def _run(settings: LedgerSettings, fn: Callable[[LedgerService], Awaitable[T]]) -> T:
    """Run ``fn`` against a fresh service, closing the store afterwards."""

    store = _build_store(settings)

    async def _main() -> T:
        service = LedgerService(store, owner_id=settings.owner_id)
        try:
            return await fn(service)
        finally:
            aclose = getattr(store, "aclose", None)
            if aclose is not None:
                await aclose()

    try:
        return asyncio.run(_main())
    except (LedgerError, RuntimeError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _print_ledger(state: LedgerState, *, timestamp_format: str) -> None:
    table = Table(title="Ledger")
    table.add_column("Date")
    table.add_column("Counterparty")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    table.add_column("Detail")
    table.add_column("Id")
    for e in state.entries:
        table.add_row(
            e.display_timestamp(timestamp_format),
            e.counterparty,
            e.direction.value,
            f"{e.amount:,.2f}",
            f"{e.detail_kind.value}: {e.detail}",
            e.id if e.is_custom else "",
        )
    console.print(table)
    console.print(f"Inflow: {state.total_inflow:,.2f}", markup=False)
    console.print(f"Outflow: {state.total_outflow:,.2f}", markup=False)
    console.print(f"Net profit: {state.net_profit:,.2f}", markup=False)


def _new_transaction(amount: float, direction: Direction, description: str) -> NewTransaction:
    # Escaped "\n" lets shells pass multi-line descriptions in one argument.
    try:
        return NewTransaction(
            amount=amount, direction=direction, description=description.replace("\\n", "\n")
        )
    except ValidationError as e:
        raise typer.BadParameter(f"invalid transaction: {e}") from e


# ---- Commands ---------------------------------------------------------------


@app.command("summary")
def summary_cmd(ctx: typer.Context) -> None:
    """Load every source and print the unified ledger with totals."""

    settings = _settings(ctx)
    if not settings.owner_id:
        err_console.print("[red]Error:[/red] LEDGER_OWNER_ID (or --owner-id) is required")
        raise typer.Exit(1)
    state = _run(settings, lambda service: service.load())
    if state.error:
        err_console.print(f"[red]Error:[/red] {state.error}")
        raise typer.Exit(1)
    _print_ledger(state, timestamp_format=settings.timestamp_format)


AmountOpt = Annotated[float, typer.Option("--amount", help="Transaction amount")]
DirectionOpt = Annotated[Direction, typer.Option("--direction", help="inflow or outflow")]
DescriptionOpt = Annotated[
    str,
    typer.Option(
        "--description",
        help="First line is the counterparty, remaining lines the detail (use \\n).",
    ),
]


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    amount: AmountOpt,
    direction: DirectionOpt,
    description: DescriptionOpt = "",
) -> None:
    """Record a manual transaction (creates the table on first use)."""

    settings = _settings(ctx)
    tx = _new_transaction(amount, direction, description)
    state = _run(settings, lambda service: service.create_transaction(tx))
    console.print(f"Saved. Net profit: {state.net_profit:,.2f}", markup=False)


@app.command("edit")
def edit_cmd(
    ctx: typer.Context,
    tx_id: Annotated[str, typer.Argument(help="Id of a manual transaction")],
    amount: AmountOpt,
    direction: DirectionOpt,
    description: DescriptionOpt = "",
) -> None:
    """Replace amount, direction and description of a manual transaction."""

    settings = _settings(ctx)
    tx = _new_transaction(amount, direction, description)
    state = _run(settings, lambda service: service.edit_transaction(tx_id, tx))
    console.print(f"Updated. Net profit: {state.net_profit:,.2f}", markup=False)


@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    tx_id: Annotated[str, typer.Argument(help="Id of a manual transaction")],
) -> None:
    """Delete a manual transaction."""

    settings = _settings(ctx)
    state = _run(settings, lambda service: service.delete_transaction(tx_id))
    console.print(f"Deleted. Net profit: {state.net_profit:,.2f}", markup=False)


@app.command("provision")
def provision_cmd(ctx: typer.Context) -> None:
    """Create the manual transactions table if it does not exist."""

    settings = _settings(ctx)

    async def _provision(service: LedgerService) -> None:
        await service.writer.provision()

    _run(settings, _provision)
    console.print("Transactions table is ready.", markup=False)


@app.callback()
def _root(
    ctx: typer.Context,
    *,
    backend: Annotated[
        str | None, typer.Option(help="Store backend: sql or supabase (env LEDGER_BACKEND).")
    ] = None,
    database_url: Annotated[
        str | None, typer.Option(help="Override DATABASE_URL (falls back to env var).")
    ] = None,
    owner_id: Annotated[
        str | None, typer.Option(help="Owner identity (falls back to LEDGER_OWNER_ID).")
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    already-set variables), configures logging, and resolves settings.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()

    overrides = {
        k: v
        for k, v in {
            "backend": backend.lower() if backend else None,
            "database_url": database_url,
            "owner_id": owner_id,
        }.items()
        if v
    }
    try:
        ctx.obj = replace(LedgerSettings.from_env(), **overrides)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m financial_ledger.cli`
    app()
