"""Runtime settings gathered from the environment.

Entrypoints load ``.env`` with ``python-dotenv`` first (``override=False``),
then call :meth:`LedgerSettings.from_env`. Library code receives explicit
arguments and never reads the environment itself.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .models import DEFAULT_TIMESTAMP_FORMAT
from .postgrest_store import DEFAULT_PROVISION_FUNCTION

BACKENDS = ("sql", "supabase")


@dataclass(frozen=True, slots=True)
class LedgerSettings:
    backend: str = "sql"
    database_url: str | None = None
    supabase_url: str | None = None
    supabase_key: str | None = None
    owner_id: str | None = None
    provision_function: str = DEFAULT_PROVISION_FUNCTION
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(f"backend must be one of {', '.join(BACKENDS)}; got {self.backend!r}")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> LedgerSettings:
        """Build settings from ``env`` (defaults to ``os.environ``).

        Recognized variables: ``LEDGER_BACKEND``, ``DATABASE_URL``,
        ``SUPABASE_URL``, ``SUPABASE_KEY``, ``LEDGER_OWNER_ID``,
        ``LEDGER_PROVISION_FUNCTION``, ``LEDGER_TIMESTAMP_FORMAT``.
        """

        env = os.environ if env is None else env

        def _get(name: str) -> str | None:
            val = (env.get(name) or "").strip()
            return val or None

        return cls(
            backend=(_get("LEDGER_BACKEND") or "sql").lower(),
            database_url=_get("DATABASE_URL"),
            supabase_url=_get("SUPABASE_URL"),
            supabase_key=_get("SUPABASE_KEY"),
            owner_id=_get("LEDGER_OWNER_ID"),
            provision_function=_get("LEDGER_PROVISION_FUNCTION") or DEFAULT_PROVISION_FUNCTION,
            timestamp_format=_get("LEDGER_TIMESTAMP_FORMAT") or DEFAULT_TIMESTAMP_FORMAT,
        )


__all__ = ["BACKENDS", "LedgerSettings"]
