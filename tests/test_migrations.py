"""Alembic revisions produce the same schema as the ORM models."""

from __future__ import annotations

import importlib.util
from pathlib import Path
from types import ModuleType

from alembic.migration import MigrationContext
from alembic.operations import Operations
from db import metadata
from db.client import get_engine, reset_engine
from sqlalchemy import inspect

VERSIONS = Path(__file__).resolve().parents[1] / "libs" / "db" / "alembic" / "versions"


def _load(name: str) -> ModuleType:
    path = VERSIONS / f"{name}.py"
    module_spec = importlib.util.spec_from_file_location(f"ledger_migration_{name}", path)
    assert module_spec is not None and module_spec.loader is not None
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def _run(engine, *steps) -> None:
    with engine.begin() as conn:
        ctx = MigrationContext.configure(conn)
        with Operations.context(ctx):
            for step in steps:
                step()


def test_revisions_chain_in_order():
    catalog = _load("0001_ledger_catalog")
    transactions = _load("0002_ledger_transactions")

    assert catalog.down_revision is None
    assert transactions.down_revision == catalog.revision


def test_upgrade_matches_orm_columns(tmp_path: Path):
    reset_engine()
    engine = get_engine(database_url=f"sqlite+pysqlite:///{tmp_path / 'migrated.db'}")
    catalog = _load("0001_ledger_catalog")
    transactions = _load("0002_ledger_transactions")

    _run(engine, catalog.upgrade, transactions.upgrade)

    insp = inspect(engine)
    for name, table in metadata.tables.items():
        got = {c["name"] for c in insp.get_columns(name)}
        assert got == {c.name for c in table.columns}, name
    indexes = {ix["name"] for ix in insp.get_indexes("ledger_transactions")}
    assert "ix_ledger_transactions_owner_created" in indexes


def test_downgrade_drops_transactions_only(tmp_path: Path):
    reset_engine()
    engine = get_engine(database_url=f"sqlite+pysqlite:///{tmp_path / 'migrated.db'}")
    catalog = _load("0001_ledger_catalog")
    transactions = _load("0002_ledger_transactions")
    _run(engine, catalog.upgrade, transactions.upgrade)

    _run(engine, transactions.downgrade)

    insp = inspect(engine)
    assert not insp.has_table("ledger_transactions")
    assert insp.has_table("ledger_customers")
