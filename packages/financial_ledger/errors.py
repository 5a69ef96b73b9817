"""Exception hierarchy for ``financial_ledger``.

Store adapters translate backend failures into :class:`StoreError`
subclasses so callers can branch on a stable ``kind`` rather than on driver
or HTTP specifics.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    RELATION_MISSING = "relation_missing"
    NOT_FOUND = "not_found"
    OTHER = "other"


class LedgerError(Exception):
    """Base class for all package errors."""


class StoreError(LedgerError):
    """A store operation failed.

    ``code`` carries the backend's own code when one is available (e.g. a
    SQLSTATE or a PostgREST error code) for logging.
    """

    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class RelationMissingError(StoreError):
    kind = ErrorKind.RELATION_MISSING


class RowNotFoundError(StoreError):
    kind = ErrorKind.NOT_FOUND


class SourceFetchError(LedgerError):
    """One of the customers/plans/products reads failed during a load."""


class ProvisioningError(LedgerError):
    """Automatic creation of the transactions relation failed."""


class NotAuthenticatedError(LedgerError):
    """A write was attempted without an owner identity."""


__all__ = [
    "ErrorKind",
    "LedgerError",
    "NotAuthenticatedError",
    "ProvisioningError",
    "RelationMissingError",
    "RowNotFoundError",
    "SourceFetchError",
    "StoreError",
]
