"""Pytest configuration for test isolation.

``db.client`` keeps one process-wide engine bound to a single URL. Tests
bootstrap their own SQLite files, so the engine is reset around every test,
and ``DATABASE_URL`` (possibly loaded from a developer ``.env``) is removed so
no test can reach a real database by accident.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from db.client import reset_engine


@pytest.fixture(autouse=True)
def _isolate_database(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    for name in ("LEDGER_BACKEND", "LEDGER_OWNER_ID", "SUPABASE_URL", "SUPABASE_KEY"):
        monkeypatch.delenv(name, raising=False)
    reset_engine()
    yield
    reset_engine()
