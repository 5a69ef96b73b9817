# ruff: noqa: I001
"""Catalog tables (plans, products) and customers.

Revision ID: 0001_ledger_catalog
Revises: None
Create Date: 2026-09-14
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_catalog"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at(nullable: bool = False) -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    op.create_table(
        "ledger_plans",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("price", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_table(
        "ledger_products",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("price", sa.Text(), nullable=False),
        _created_at(),
    )
    # Customers reference catalog rows by id without FKs; dangling references
    # are tolerated and resolve to no ledger entry.
    op.create_table(
        "ledger_customers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("plan_id", sa.String(36), nullable=True),
        sa.Column("product_id", sa.String(36), nullable=True),
        _created_at(nullable=True),
    )


def downgrade() -> None:
    op.drop_table("ledger_customers")
    op.drop_table("ledger_products")
    op.drop_table("ledger_plans")
