"""Public interface for the ``financial_ledger`` package.

Symbol re-exports only. Store adapters (``sql_store``, ``postgrest_store``)
and the CLI are imported from their modules so the core stays free of
database and HTTP imports.
"""

from .builders import build_custom_entries, build_derived_entries, split_description
from .errors import (
    ErrorKind,
    LedgerError,
    NotAuthenticatedError,
    ProvisioningError,
    RelationMissingError,
    RowNotFoundError,
    SourceFetchError,
    StoreError,
)
from .ledger import LedgerService, aggregate
from .models import (
    Customer,
    CustomTransaction,
    DetailKind,
    Direction,
    LedgerEntry,
    LedgerSnapshot,
    LedgerState,
    NewTransaction,
    Plan,
    Product,
)
from .money import parse_amount, parse_money
from .store import TransactionStore, fetch_custom_transactions
from .writer import SelfHealingWriter, WriteState

__all__ = [
    # Core
    "LedgerService",
    "SelfHealingWriter",
    "TransactionStore",
    "WriteState",
    "aggregate",
    "build_custom_entries",
    "build_derived_entries",
    "fetch_custom_transactions",
    "parse_amount",
    "parse_money",
    "split_description",
    # Models
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
    # Errors
    "ErrorKind",
    "LedgerError",
    "NotAuthenticatedError",
    "ProvisioningError",
    "RelationMissingError",
    "RowNotFoundError",
    "SourceFetchError",
    "StoreError",
]
