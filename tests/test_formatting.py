"""Tests for formatting helpers."""

from decimal import Decimal

import pytest

from portfolio_aggregator.core.formatting import format_address, format_currency, format_number, format_units


@pytest.mark.parametrize(
    ("raw", "decimals", "expected"),
    [
        (0, 18, "0.0"),
        (10**18, 18, "1.0"),
        (1500000000000000000, 18, "1.5"),
        (123456789, 6, "123.456789"),
        (100 * 10**18, 18, "100.0"),
        (1, 18, "0.000000000000000001"),
    ],
)
def test_format_units(raw, decimals, expected):
    """On-chain integers convert to plain decimal strings."""
    assert format_units(raw, decimals) == expected


def test_format_address():
    """Addresses shorten to prefix and suffix."""
    assert format_address("0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045") == "0xd8dA...6045"


def test_format_currency():
    """USD amounts use two decimals and separators."""
    assert format_currency(Decimal("27660")) == "$27,660.00"
    assert format_currency(Decimal("135.678")) == "$135.68"


def test_format_number():
    """Numbers drop trailing zeros."""
    assert format_number(Decimal("12.50")) == "12.5"
    assert format_number(Decimal("1234.5678"), 2) == "1,234.57"
    assert format_number(Decimal("1000"), 2) == "1,000"
