"""Tests for money helpers"""
from decimal import Decimal

import pytest

from storefront.services.money import format_money, parse_price, round_money, to_decimal


def test_to_decimal_from_float_keeps_precision():
    """Floats go through str() so 0.1 stays 0.1."""
    assert to_decimal(0.1) == Decimal("0.1")


def test_to_decimal_invalid_is_zero():
    """Unparseable input becomes zero."""
    assert to_decimal("abc") == Decimal("0")
    assert to_decimal(None) == Decimal("0")


def test_parse_price_is_strict():
    """parse_price() raises instead of defaulting."""
    assert parse_price("12.50") == Decimal("12.50")
    for bad in ("abc", None, True, "Infinity"):
        with pytest.raises(ValueError):
            parse_price(bad)


def test_round_money_half_up():
    """Rounding is half-up, to cents or to whole units."""
    assert round_money("2.675") == Decimal("2.68")
    assert round_money("2.5", to_int=True) == Decimal("3")


def test_format_money():
    """Symbol placement and grouping per currency."""
    assert format_money("1299", "USD") == "$1,299.00"
    assert format_money("25000000", "VND") == "25,000,000 ₫"
    assert format_money("10", "CHF") == "10.00 CHF"
