# ruff: noqa: I001
"""Manually entered ledger transactions.

The application can also create this table on demand (see
``SqlLedgerStore.provision_transactions``); the definition here must stay in
sync with ``db.models.ledger.LedgerTransaction``.

Revision ID: 0002_ledger_transactions
Revises: 0001_ledger_catalog
Create Date: 2026-09-21
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0002_ledger_transactions"
down_revision: str | None = "0001_ledger_catalog"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "ledger_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("direction", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint(
            "direction in ('inflow','outflow')",
            name="ck_ledger_tx_direction",
        ),
    )
    op.create_index(
        "ix_ledger_transactions_owner_created",
        "ledger_transactions",
        ["owner_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_ledger_transactions_owner_created", table_name="ledger_transactions")
    op.drop_table("ledger_transactions")
