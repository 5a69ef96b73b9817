"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the ledger models used by ``financial_ledger``.
"""

from .ledger import Base, LedgerCustomer, LedgerPlan, LedgerProduct, LedgerTransaction

__all__ = [
    "Base",
    "LedgerCustomer",
    "LedgerPlan",
    "LedgerProduct",
    "LedgerTransaction",
]
