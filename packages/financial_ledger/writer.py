"""Create path that provisions the transactions relation on first use.

:class:`SelfHealingWriter` runs a small state machine per call::

    INSERTING --ok--------------------------------> SUCCEEDED
    INSERTING --relation missing--> PROVISIONING
    INSERTING --other error-----------------------> FAILED (error unchanged)
    PROVISIONING --error--------------------------> FAILED (ProvisioningError)
    PROVISIONING --ok--> retry insert once --ok---> SUCCEEDED
                                        --error---> FAILED (error unchanged)

Provisioning runs at most once per call; a relation that is still missing
after provisioning is reported, never retried again.
"""

from __future__ import annotations

from enum import StrEnum

from .errors import ProvisioningError, RelationMissingError
from .logging_setup import get_logger
from .models import NewTransaction
from .store import TransactionStore

logger = get_logger("financial_ledger.writer")

PROVISIONING_FAILED_MESSAGE = (
    "The transactions table does not exist and could not be created automatically; "
    "manual intervention is required."
)


class WriteState(StrEnum):
    INSERTING = "inserting"
    PROVISIONING = "provisioning"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SelfHealingWriter:
    """Insert custom transactions, creating the relation when it is missing.

    Each :meth:`write` call records the states it visits in its own trail,
    so concurrent writes through one writer never mix their histories.
    """

    def __init__(self, store: TransactionStore) -> None:
        self._store = store

    @staticmethod
    def _enter(trail: list[WriteState], state: WriteState) -> None:
        trail.append(state)
        logger.debug("write state -> %s", state.value)

    async def provision(self) -> None:
        """Create the transactions relation, wrapping any failure."""

        try:
            await self._store.provision_transactions()
        except Exception as exc:
            logger.error("Automatic provisioning failed: %s", exc)
            raise ProvisioningError(PROVISIONING_FAILED_MESSAGE) from exc

    async def write(
        self,
        tx: NewTransaction,
        *,
        owner_id: str,
        history: list[WriteState] | None = None,
    ) -> list[WriteState]:
        """Insert ``tx``; on a missing relation provision it and retry once.

        States are appended to ``history`` when given (it stays readable if
        the call raises) and the trail is returned on success.
        """

        trail = [] if history is None else history
        self._enter(trail, WriteState.INSERTING)
        try:
            await self._store.insert_transaction(tx, owner_id=owner_id)
        except RelationMissingError:
            logger.info("Transactions relation missing; provisioning it")
        except Exception:
            self._enter(trail, WriteState.FAILED)
            raise
        else:
            self._enter(trail, WriteState.SUCCEEDED)
            return trail

        self._enter(trail, WriteState.PROVISIONING)
        try:
            await self.provision()
        except ProvisioningError:
            self._enter(trail, WriteState.FAILED)
            raise

        try:
            await self._store.insert_transaction(tx, owner_id=owner_id)
        except Exception:
            self._enter(trail, WriteState.FAILED)
            raise
        self._enter(trail, WriteState.SUCCEEDED)
        logger.info("Transaction saved after provisioning the relation")
        return trail


__all__ = ["PROVISIONING_FAILED_MESSAGE", "SelfHealingWriter", "WriteState"]
