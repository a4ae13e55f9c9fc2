"""Tests for amount string parsing."""

from decimal import Decimal

import pytest

from tideledger.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123.45", Decimal("123.45")),
        ("-123.45", Decimal("-123.45")),
        ("+123.45", Decimal("123.45")),
        ("1,234.56", Decimal("1234.56")),
        ("1.234,56", Decimal("1234.56")),
        ("1.234.567", Decimal("1234567")),
        ("12,5", Decimal("12.5")),
        ("1,234", Decimal("1234")),
        ("€ 123,45", Decimal("123.45")),
        ("123.45 EUR", Decimal("123.45")),
        ("$1,234.56", Decimal("1234.56")),
        ("(123.45)", Decimal("-123.45")),
        ("1'234.56", Decimal("1234.56")),
        ("1 234,56", Decimal("1234.56")),
        ("  42  ", Decimal("42")),
    ],
)
def test_parse_amount(text, expected):
    """Test parsing the supported notations."""
    assert parse_amount(text) == expected


def test_parse_amount_keeps_exact_digits():
    """Test that parsing never goes through float."""
    assert str(parse_amount("0.10")) == "0.10"


def test_parse_negative_in_parentheses_with_sign():
    """Test that a minus inside parentheses flips the sign back."""
    assert parse_amount("(-5.00)") == Decimal("5.00")


@pytest.mark.parametrize("text", ["", "   ", "abc", "EUR", "12.34.56", "1,2,3", "--5"])
def test_parse_amount_invalid(text):
    """Test that unparsable strings raise ValueError."""
    with pytest.raises(ValueError):
        parse_amount(text)
