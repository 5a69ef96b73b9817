import math
from decimal import Decimal

import pytest

from financial_ledger.money import parse_amount, parse_money


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("R$ 99,90", 99.9),
        ("R$99,90", 99.9),
        ("99,90", 99.9),
        ("  150  ", 150.0),
        ("R$ 1.234,56", 1234.56),
        ("R$ 1.000.000,00", 1_000_000.0),
        ("$ 12.50", 12.5),
        ("€ 7,25", 7.25),
        ("-10,00", -10.0),
    ],
)
def test_parse_money_accepts_locale_formatted_prices(text, expected):
    assert parse_money(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["R$ abc", "", "R$", "12,50abc", "1,2,3", "nan", "inf", "--5"])
def test_parse_money_returns_nan_for_unparseable_input(text):
    assert math.isnan(parse_money(text))


def test_parse_money_never_raises_on_non_strings():
    assert math.isnan(parse_money(None))  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (Decimal("19.90"), 19.9),
        (42, 42.0),
        (3.5, 3.5),
        ("12,34", 12.34),
        ("12.34", 12.34),
    ],
)
def test_parse_amount_accepts_numeric_and_string_values(value, expected):
    assert parse_amount(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", [None, True, float("nan"), float("inf"), Decimal("NaN"), "x", []])
def test_parse_amount_rejects_missing_and_non_finite_values(value):
    assert math.isnan(parse_amount(value))
