"""Centralized logging configuration for the ``financial_ledger`` package.

- ``configure_logging(...)``: attach a single ``StreamHandler`` to the package
  root logger (``"financial_ledger"``). Called once by entrypoints (the CLI).
- ``get_logger(name)``: acquire a logger, ensuring the package root logger has
  at least a ``NullHandler`` when nothing has been configured.

Library modules never attach their own handlers; they call
``get_logger("financial_ledger.<module>")`` and rely on the host application.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "financial_ledger"
_LEVEL_ENV = "FINANCIAL_LEDGER_LOG_LEVEL"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(_LEVEL_ENV)
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        # Accept numeric strings or standard level names (INFO/DEBUG/etc.).
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level name. When ``None``, the
        ``FINANCIAL_LEDGER_LOG_LEVEL`` environment variable is used if set,
        otherwise ``logging.INFO``.
    fmt:
        Optional format string; defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        Output stream for the handler (``sys.stderr`` by default).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    )

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # Avoid double emission via the root logger.
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, attaching a ``NullHandler`` to the package root
    when logging has not been configured yet."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
