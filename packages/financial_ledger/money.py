"""Parsing of locale-formatted money strings (``"R$ 1.234,56"``).

Parsing never raises: unparseable input yields ``math.nan`` and callers drop
the record (``math.isnan``). A malformed upstream price must not corrupt the
ledger totals.
"""

from __future__ import annotations

import math
import re
import unicodedata
from decimal import Decimal
from typing import Any

# Full-string match only; "12,50abc" is rejected rather than read as 12.5.
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _strip_currency(text: str) -> str:
    # "R" and "$" cover the "R$" prefix; category Sc covers other symbols.
    return "".join(
        ch
        for ch in text
        if not (ch.isspace() or ch in "R$" or unicodedata.category(ch) == "Sc")
    )


def parse_money(text: str) -> float:
    """Parse a price such as ``"R$ 99,90"`` into ``99.9``.

    Currency symbols and whitespace (including non-breaking spaces) are
    removed. A comma is the decimal separator; when one is present, dots are
    read as thousands separators. Returns ``math.nan`` when the remainder is
    not a number.
    """

    if not isinstance(text, str):
        return math.nan
    s = _strip_currency(text)
    if "," in s:
        s = s.replace(".", "").replace(",", ".", 1)
    if not _NUMBER_RE.fullmatch(s):
        return math.nan
    value = float(s)
    return value if math.isfinite(value) else math.nan


def parse_amount(value: Any) -> float:
    """Parse a stored amount that may already be numeric."""

    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, int | float | Decimal):
        try:
            f = float(value)
        except (OverflowError, ValueError):
            return math.nan
        return f if math.isfinite(f) else math.nan
    if isinstance(value, str):
        return parse_money(value)
    return math.nan


__all__ = ["parse_amount", "parse_money"]
